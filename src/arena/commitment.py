"""
Commit-reveal scheme.

A commitment is the SHA-256 digest of the packed tuple (move, nonce, identity):
    move      32 bytes, big-endian unsigned
    nonce     32 bytes, big-endian unsigned
    identity  UTF-8 bytes of the committer's identity, in canonical form (hex addresses lowercased)
rendered as a 0x-prefixed lowercase hex string.

Binding the identity stops a participant from replaying the opponent's commitment.
The nonce hides the (small) move space from anyone trying to match digests before the reveal.
"""

import hashlib
import re
import secrets

from src.core.exceptions import InvalidCommitmentError
from src.core.shared_types import normalize_identity

UINT256_MAX = 2**256 - 1
NONCE_BITS = 64

_DIGEST_PATTERN = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


def pack(move: int, nonce: int, identity: str) -> bytes:
    """Ordered, unambiguous byte encoding of the committed tuple."""
    for name, value in (("move", move), ("nonce", nonce)):
        if not 0 <= value <= UINT256_MAX:
            raise ValueError(f"{name} must fit in an unsigned 256-bit integer, got {value}")
    identity_bytes = normalize_identity(identity).encode("utf-8")
    return move.to_bytes(32, "big") + nonce.to_bytes(32, "big") + identity_bytes


def commit(move: int, nonce: int, identity: str) -> str:
    return "0x" + hashlib.sha256(pack(move, nonce, identity)).hexdigest()


def verify(commitment: str, move: int, nonce: int, identity: str) -> bool:
    """Recompute the digest from the revealed values and compare with the stored commitment."""
    if not (0 <= move <= UINT256_MAX and 0 <= nonce <= UINT256_MAX):
        return False
    try:
        expected = normalize_digest(commitment)
    except InvalidCommitmentError:
        return False
    return secrets.compare_digest(expected, commit(move, nonce, identity))


def normalize_digest(digest: str) -> str:
    """Canonical form of a digest: lowercase hex with 0x prefix."""
    if not isinstance(digest, str) or not _DIGEST_PATTERN.match(digest):
        raise InvalidCommitmentError(
            f"Commitment must be 32 bytes of hex (optionally 0x-prefixed), got {digest!r}"
        )
    digest = digest.lower()
    return digest if digest.startswith("0x") else "0x" + digest


def generate_nonce(num_bits: int = NONCE_BITS) -> int:
    return secrets.randbits(num_bits)


def make_commitment(move: int, identity: str) -> tuple[str, int]:
    """Client side helper: pick a fresh nonce and return (digest, nonce). Keep the nonce secret until reveal."""
    nonce = generate_nonce()
    return commit(move, nonce, identity), nonce
