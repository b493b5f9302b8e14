"""
Logging utilities for the Naver Maps gateway.

Provides centralized logging configuration and convenience methods
for consistent logging across the application. Console output goes to
stderr because stdout carries the tool protocol when running as a server.
"""

import logging
import sys
from pathlib import Path
from typing import Optional


# Flag to track if logger has been initialized to ensure idempotency
_logger_initialized = False


def initialize_logger(log_level: str = "INFO", log_file: Optional[str] = "logs/navermap.log") -> None:
    """
    Initialize the root logger with console and file handlers.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file, or None for console only
    """
    global _logger_initialized

    # Ensure idempotency - don't re-initialize if already done
    if _logger_initialized:
        return

    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear any existing handlers to prevent duplicates
    root_logger.handlers.clear()

    console_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    _logger_initialized = True

    root_logger.info(f"Logger initialized with level {log_level}, file: {log_file}")


def log_debug(message: str) -> None:
    """
    Log a debug message.

    Args:
        message: Message to log
    """
    logger = logging.getLogger()
    logger.debug(message)


def log_info(message: str) -> None:
    """
    Log an info message.

    Args:
        message: Message to log
    """
    logger = logging.getLogger()
    logger.info(message)


def log_warning(message: str) -> None:
    """
    Log a warning message.

    Args:
        message: Message to log
    """
    logger = logging.getLogger()
    logger.warning(message)


def log_error(message: str) -> None:
    """
    Log an error message.

    Args:
        message: Message to log
    """
    logger = logging.getLogger()
    logger.error(message)
