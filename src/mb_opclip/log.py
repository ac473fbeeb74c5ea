"""File logging for the CLI and the daemon."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAME = "mb_opclip"
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(log_path: Path, *, max_bytes: int = 1_000_000, backups: int = 3) -> None:
    """Attach a rotating file handler to the package logger once per process.

    Secret values are never passed to the logger; only titles, keys and codes are.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return

    log_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_path, maxBytes=max_bytes, backupCount=backups)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
