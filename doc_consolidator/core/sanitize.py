"""
Log sanitization helpers for Document Consolidator.

Ensures sensitive information is not logged while maintaining useful debugging info.
"""
import logging
import re
from pathlib import Path
from typing import Optional, Union


LOGGER_NAME = "doc_consolidator"


class SanitizedFormatter(logging.Formatter):
    """
    Custom log formatter that sanitizes sensitive information.

    - Redacts potential usernames from paths
    - Never logs file contents
    """

    # Pattern to match Windows user paths
    USER_PATH_PATTERN = re.compile(
        r'([A-Za-z]:\\Users\\)([^\\]+)(\\.*)',
        re.IGNORECASE
    )

    # Pattern to match Unix home paths (Linux and macOS)
    HOME_PATH_PATTERN = re.compile(
        r'(/home/|/Users/)([^/]+)(/.*)',
        re.IGNORECASE
    )

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        redact_usernames: bool = True
    ):
        super().__init__(fmt, datefmt)
        self.redact_usernames = redact_usernames

    def format(self, record: logging.LogRecord) -> str:
        """Format and sanitize log record."""
        original_msg = record.msg
        original_args = record.args

        record.msg = self._sanitize_message(record.getMessage())
        record.args = ()
        try:
            return super().format(record)
        finally:
            # Restore original (for other handlers)
            record.msg = original_msg
            record.args = original_args

    def _sanitize_message(self, message: str) -> str:
        """Sanitize a log message."""
        if self.redact_usernames:
            message = redact_user_paths(message)
        return message


def redact_user_paths(text: str) -> str:
    """Replace the user name segment of home-directory paths with <user>."""
    text = SanitizedFormatter.USER_PATH_PATTERN.sub(r'\1<user>\3', text)
    return SanitizedFormatter.HOME_PATH_PATTERN.sub(r'\1<user>\3', text)


def setup_logging(
    log_level: int = logging.INFO,
    log_file: Optional[Path] = None,
    redact_usernames: bool = True
) -> logging.Logger:
    """
    Set up application logging with sanitization.

    Args:
        log_level: Logging level
        log_file: Optional file to write logs to
        redact_usernames: Whether to redact usernames from paths

    Returns:
        Configured logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)

    # Clear existing handlers
    logger.handlers.clear()

    formatter = SanitizedFormatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        redact_usernames=redact_usernames
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def sanitize_path_for_log(path: Union[str, Path]) -> str:
    """
    Sanitize a path for logging.

    Args:
        path: Path to sanitize

    Returns:
        Sanitized path string
    """
    return redact_user_paths(str(path))


def get_logger() -> logging.Logger:
    """
    Get the application logger.

    Handlers are attached by setup_logging() at startup; until then records
    propagate to the root logger.
    """
    return logging.getLogger(LOGGER_NAME)
