"""Logging setup with automatic rotation"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_MAX_BYTES = 10 * 1024 * 1024  # 10 MB max per log file
LOG_BACKUP_COUNT = 5  # Number of rotated log files to keep
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Loggers used by the prepare pipeline
LOGGER_NAMES = ("BackupPreparer", "XtrabackupApplier", "FilesystemCatalog", "ConfigManager", "NotificationManager")


def setup_logging(log_dir: Path | None, level: str = "INFO", console: bool = True) -> None:
    """Attach a rotating file handler and an optional console handler

    Args:
        log_dir: Directory for prepare.log, None to skip file logging
        level: Level name for the file handler
        console: Also log INFO and above to stderr
    """
    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = []

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(
            log_dir / "prepare.log",
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        fh.setLevel(getattr(logging, level.upper(), logging.INFO))
        fh.setFormatter(formatter)
        handlers.append(fh)

    if console:
        ch = logging.StreamHandler()
        ch.setLevel(logging.INFO)
        ch.setFormatter(formatter)
        handlers.append(ch)

    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        if not logger.handlers:
            for handler in handlers:
                logger.addHandler(handler)
