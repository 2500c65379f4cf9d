"""Loguru setup for the voicedesk process.

One stderr sink always; in production two rotating file sinks are added, the
second holding errors only. Phone numbers go through mask_phone() and caller
or agent text through preview_text() before they reach a log line.
"""

import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"


def _add_file_sink(path: Path, level: str, rotation: str, retention: str, fmt: str) -> None:
    # Variable values stay out of files even when console diagnose is on
    logger.add(
        path,
        format=fmt,
        level=level,
        rotation=rotation,
        retention=retention,
        compression="gz",
        backtrace=True,
        diagnose=False,
    )


def setup_logging(
    level: str = "INFO",
    log_dir: str = "logs",
    enable_file: bool = True,
) -> None:
    """Replace loguru's default handler with the voicedesk sinks.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for call and error logs
        enable_file: Add the rotating file sinks (production)
    """
    logger.remove()
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=level,
        colorize=True,
        backtrace=True,
        diagnose=not enable_file,
    )

    if enable_file:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        _add_file_sink(
            directory / "voicedesk_{time:YYYY-MM-DD}.log",
            level,
            rotation="100 MB",
            retention="30 days",
            fmt=FILE_FORMAT,
        )
        _add_file_sink(
            directory / "voicedesk_errors_{time:YYYY-MM-DD}.log",
            "ERROR",
            rotation="50 MB",
            retention="90 days",
            fmt=FILE_FORMAT + "\n{exception}",
        )

    logger.info(f"Logging initialized at {level} (file sinks: {enable_file})")


def get_logger(name: str) -> "logger":
    """Module logger: ``logger = get_logger(__name__)``."""
    return logger.bind(name=name)


def mask_phone(phone: str) -> str:
    """Mask a phone number for logs: +14155550123 -> +1XXXX0123."""
    if not phone or len(phone) < 6:
        return "XXXX"
    return f"{phone[:2]}XXXX{phone[-4:]}"


def preview_text(text: str, limit: int = 50) -> str:
    """Collapse whitespace and cut transcript or reply text for log lines."""
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return f"{text[:limit]}..."
