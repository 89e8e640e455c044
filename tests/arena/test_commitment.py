"""Unit tests for src/arena/commitment.py"""

import hashlib

import pytest

from src.arena.commitment import (
    UINT256_MAX,
    commit,
    generate_nonce,
    make_commitment,
    normalize_digest,
    pack,
    verify,
)
from src.core.exceptions import InvalidCommitmentError

PLAYER_A = "0x1111111111111111111111111111111111111111"
PLAYER_B = "0x2222222222222222222222222222222222222222"


def test_digest_is_sha256_of_packed_tuple() -> None:
    """move and nonce as 32-byte big-endian words, followed by the identity bytes."""
    expected = hashlib.sha256(
        (5).to_bytes(32, "big") + (123).to_bytes(32, "big") + PLAYER_A.encode("utf-8")
    ).hexdigest()
    assert commit(5, 123, PLAYER_A) == "0x" + expected


def test_digest_format() -> None:
    digest = commit(42, 7, PLAYER_A)
    assert digest.startswith("0x")
    assert len(digest) == 66
    assert digest == digest.lower()


@pytest.mark.parametrize(
    "move, nonce, identity",
    [
        (5, 123, PLAYER_A),
        (3, 456, PLAYER_B),
        (0, 0, PLAYER_A),
        (UINT256_MAX, UINT256_MAX, "player with spaces"),
    ],
)
def test_commitment_verifies(move: int, nonce: int, identity: str) -> None:
    assert verify(commit(move, nonce, identity), move, nonce, identity)


@pytest.mark.parametrize(
    "move, nonce, identity",
    [
        (6, 123, PLAYER_A),  # changed move
        (5, 124, PLAYER_A),  # changed nonce
        (5, 123, PLAYER_B),  # changed identity
    ],
)
def test_single_field_mutation_fails(move: int, nonce: int, identity: str) -> None:
    digest = commit(5, 123, PLAYER_A)
    assert not verify(digest, move, nonce, identity)


def test_commitment_is_bound_to_identity() -> None:
    """The same move and nonce committed by two players give different digests (no replay)."""
    assert commit(5, 123, PLAYER_A) != commit(5, 123, PLAYER_B)


def test_address_casing_does_not_change_the_digest() -> None:
    mixed = "0x" + "aB" * 20
    assert commit(5, 123, mixed) == commit(5, 123, mixed.lower())
    assert verify(commit(5, 123, mixed.lower()), 5, 123, mixed)


def test_verify_rejects_out_of_range_values() -> None:
    digest = commit(5, 123, PLAYER_A)
    assert not verify(digest, -1, 123, PLAYER_A)
    assert not verify(digest, 5, UINT256_MAX + 1, PLAYER_A)


def test_verify_rejects_malformed_commitment() -> None:
    assert not verify("not a digest", 5, 123, PLAYER_A)


def test_verify_accepts_unprefixed_uppercase_commitment() -> None:
    digest = commit(5, 123, PLAYER_A)
    assert verify(digest[2:].upper(), 5, 123, PLAYER_A)


@pytest.mark.parametrize("value", [-1, UINT256_MAX + 1])
def test_pack_rejects_values_outside_uint256(value: int) -> None:
    with pytest.raises(ValueError):
        pack(value, 1, PLAYER_A)
    with pytest.raises(ValueError):
        pack(1, value, PLAYER_A)


def test_normalize_digest() -> None:
    raw = "AB" * 32
    assert normalize_digest(raw) == "0x" + "ab" * 32
    assert normalize_digest("0x" + raw) == "0x" + "ab" * 32


@pytest.mark.parametrize(
    "invalid_digest",
    [
        "",
        "0x",
        "0x" + "a" * 63,  # too short
        "0x" + "a" * 65,  # too long
        "0x" + "g" * 64,  # not hex
        "1x" + "a" * 64,
    ],
)
def test_normalize_rejects_malformed_digest(invalid_digest: str) -> None:
    with pytest.raises(InvalidCommitmentError):
        normalize_digest(invalid_digest)


def test_generate_nonce_range() -> None:
    nonces = {generate_nonce() for _ in range(20)}
    assert all(0 <= nonce < 2**64 for nonce in nonces)
    # 20 draws of 64 random bits
    assert len(nonces) > 1


def test_make_commitment_returns_matching_nonce() -> None:
    digest, nonce = make_commitment(17, PLAYER_B)
    assert verify(digest, 17, nonce, PLAYER_B)
