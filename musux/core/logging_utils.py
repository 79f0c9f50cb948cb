import logging

from .logging_config import LOGGER_NAME

# Project logger for user-facing progress lines
logger = logging.getLogger(LOGGER_NAME)


def log_section(title: str) -> None:
    """
    Log a top-level section header.
    """
    logger.info("=== %s ===", title)


def log_info(message: str) -> None:
    logger.info("%s", message)


def log_step(message: str) -> None:
    """
    Action step / ongoing work.
    """
    logger.info("→ %s", message)


def log_success(message: str) -> None:
    logger.info("✅ %s", message)


def log_warning(message: str) -> None:
    """
    Warning / non-fatal problem (e.g. a playback intent that failed).
    """
    logger.warning("⚠️ %s", message)


def log_error(message: str) -> None:
    """
    Error / the user has to do something (log in again, open a device).
    """
    logger.error("❌ %s", message)
