"""
Logging configuration for the Telematics Data Console.
Provides structured logging with different levels and formats.

File handlers sit behind a QueueHandler so log writes never block the
event loop; a QueueListener performs the file I/O in its own thread.
"""

import atexit
import logging
import logging.handlers
import queue
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel


_queue_listener: Optional[logging.handlers.QueueListener] = None


class LogConfig(BaseModel):
    """Logging configuration settings."""

    level: str = "INFO"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    enable_file_logging: bool = True
    log_dir: str = "logs"
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5
    enable_console: bool = True


class ColoredFormatter(logging.Formatter):
    """Formatter with colored level names for console output."""

    grey = "\x1b[38;21m"
    yellow = "\x1b[33;21m"
    red = "\x1b[31;21m"
    bold_red = "\x1b[31;1m"
    blue = "\x1b[34;21m"
    reset = "\x1b[0m"

    COLORS = {
        logging.DEBUG: grey,
        logging.INFO: blue,
        logging.WARNING: yellow,
        logging.ERROR: red,
        logging.CRITICAL: bold_red,
    }

    def format(self, record):
        color = self.COLORS.get(record.levelno, self.grey)
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{self.reset}"
        return super().format(record)


def _rotating_handler(config: LogConfig, filename: str, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        Path(config.log_dir) / filename,
        maxBytes=config.max_file_size,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    handler.setLevel(getattr(logging, config.level.upper()))
    handler.setFormatter(formatter)
    return handler


def setup_logging(config: Optional[LogConfig] = None) -> None:
    """Set up application logging.

    - Console handler writes directly (stdout is non-blocking)
    - app.log receives everything, verification.log receives the
      "verification.*" loggers only
    - SQLAlchemy engine logging follows PERFORMANCE_ENABLE_QUERY_LOGGING
    """
    global _queue_listener

    if config is None:
        config = LogConfig()

    if _queue_listener:
        _queue_listener.stop()
        _queue_listener = None

    level = getattr(logging, config.level.upper())
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if config.enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(
            ColoredFormatter(
                fmt="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
                datefmt=config.date_format,
            )
        )
        root_logger.addHandler(console_handler)

    if config.enable_file_logging:
        Path(config.log_dir).mkdir(exist_ok=True)
        file_formatter = logging.Formatter(
            fmt="%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s",
            datefmt=config.date_format,
        )
        app_handler = _rotating_handler(config, "app.log", file_formatter)
        verification_handler = _rotating_handler(config, "verification.log", file_formatter)
        verification_handler.addFilter(logging.Filter("verification"))

        log_queue = queue.Queue(-1)
        root_logger.addHandler(logging.handlers.QueueHandler(log_queue))
        _queue_listener = logging.handlers.QueueListener(
            log_queue,
            app_handler,
            verification_handler,
            respect_handler_level=True,
        )
        _queue_listener.start()
        atexit.register(stop_queue_listener)

    from .config import settings

    sqlalchemy_logger = logging.getLogger("sqlalchemy.engine")
    if settings.performance.enable_query_logging:
        sqlalchemy_logger.setLevel(level)
    else:
        sqlalchemy_logger.setLevel(logging.WARNING)


def stop_queue_listener() -> None:
    """Stop the queue listener gracefully.

    Called automatically on exit via atexit.
    """
    global _queue_listener

    if _queue_listener:
        _queue_listener.stop()
        _queue_listener = None


class VerificationLogger:
    """Structured logger for IMEI access and verification events."""

    def __init__(self, name: str = "imei"):
        self.logger = logging.getLogger(f"verification.{name}")

    def access_denied(
        self,
        device_id: int,
        imei: Optional[str],
        technician_id: Optional[int] = None,
        user_id: Optional[int] = None,
        reason: str = "",
    ) -> None:
        """Log a denied access decision."""
        self.logger.warning(
            f"Access denied | Technician ID: {technician_id} | User ID: {user_id} | "
            f"Device ID: {device_id} | IMEI: {imei} | Reason: {reason}"
        )

    def verification_recorded(
        self, verification_id: int, technician_id: int, device_id: int, verified_at: datetime
    ) -> None:
        """Log a newly inserted verification entry."""
        self.logger.info(
            f"Verification recorded | Verification ID: {verification_id} | "
            f"Technician ID: {technician_id} | Device ID: {device_id} | "
            f"Verified At: {verified_at.isoformat()}"
        )

    def verification_reused(
        self, verification_id: int, technician_id: int, device_id: int, verified_at: datetime
    ) -> None:
        """Log a check collapsed into an existing entry inside the time gap."""
        self.logger.debug(
            f"Verification reused | Verification ID: {verification_id} | "
            f"Technician ID: {technician_id} | Device ID: {device_id} | "
            f"Prior Verified At: {verified_at.isoformat()}"
        )

    def daily_limit_reached(self, technician_id: int, daily_limit: int, count_today: int) -> None:
        """Log a verification refused by the technician's daily limit."""
        self.logger.warning(
            f"Daily limit reached | Technician ID: {technician_id} | "
            f"Limit: {daily_limit} | Today: {count_today}"
        )
