"""Unit tests for src/core/logging_config.py"""

import json
import logging
from pathlib import Path

from src.core.logging_config import PACKAGE_LOGGER, setup_logging


def test_module_loggers_write_json_lines(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "arena.log"
    pkg_logger = setup_logging(logging.DEBUG, str(log_file))
    try:
        logging.getLogger("src.services.game_service").info("Game %s created", 1)
        for handler in pkg_logger.handlers:
            handler.flush()

        record = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        assert record["message"] == "Game 1 created"
        assert record["level"] == "INFO"
        assert record["logger"] == "src.services.game_service"
        assert not pkg_logger.propagate
    finally:
        for handler in pkg_logger.handlers:
            handler.close()
        pkg_logger.handlers.clear()
        pkg_logger.propagate = True
        logging.getLogger(PACKAGE_LOGGER).setLevel(logging.NOTSET)
