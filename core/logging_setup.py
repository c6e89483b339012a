"""
Logging Setup

Shared logging configuration for the entry points (recorder service,
backend server, maintenance scripts).

Logs to both console and file with rotation:
- Daily rotation
- Keep LOG_BACKUP_DAYS days of logs
- Falls back to ./logs when LOG_DIR is not writable
"""

import logging
import logging.handlers
import sys
from pathlib import Path

from config.settings import LOG_BACKUP_DAYS, LOG_DIR

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s | %(name)s"


def _rotating_handler(path: Path) -> logging.Handler:
    handler = logging.handlers.TimedRotatingFileHandler(
        str(path),
        when="midnight",
        interval=1,
        backupCount=LOG_BACKUP_DAYS,
        encoding="utf-8",
    )
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def setup_logging(log_file_name: str, level: int = logging.INFO) -> None:
    """
    Configure the root logger.

    Args:
        log_file_name: File name inside LOG_DIR (e.g. "recorder.log")
        level: Root log level
    """
    logger = logging.getLogger()
    logger.setLevel(level)

    # Console handler (stdout)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console_handler)

    log_file = Path(LOG_DIR) / log_file_name
    try:
        logger.addHandler(_rotating_handler(log_file))
    except (PermissionError, FileNotFoundError):
        logs_dir = Path("logs")
        logs_dir.mkdir(exist_ok=True)

        fallback_log = logs_dir / log_file_name
        logger.warning(
            f"Cannot write to {log_file}, using fallback: {fallback_log}",
        )
        logger.info(
            f"To fix: sudo mkdir -p {LOG_DIR} && sudo chown $(whoami) {LOG_DIR}",
        )
        logger.addHandler(_rotating_handler(fallback_log))

    # requests/urllib3 log every connection at DEBUG/INFO
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)
