import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from store_ratings.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s] - %(message)s"


def setup_logger(name: str, level: int = None) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level or getattr(logging, settings.LOG_LEVEL, logging.INFO))

    # Clear any existing handlers so repeated imports don't duplicate output
    logger.handlers = []
    logger.propagate = False

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if settings.LOG_TO_FILE:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_dir / f"{name.replace('.', '_')}.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)

        error_handler = RotatingFileHandler(
            log_dir / f"{name.replace('.', '_')}_error.log",
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        error_handler.setFormatter(formatter)
        error_handler.setLevel(logging.ERROR)
        logger.addHandler(error_handler)

    return logger
