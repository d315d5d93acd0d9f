"""
Logging utility for PointCloudTriangulation

All modules log under the "PointCloudTriangulation" namespace so that a single
call to configure_root_logger() controls console and file output for the
smoother, the reconstructor and the service shell.
"""

import logging
import sys
from pathlib import Path
from typing import Optional


ROOT_LOGGER_NAME = "PointCloudTriangulation"

LOG_FORMAT = '[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: str = "INFO",
    log_file: Optional[str] = None,
    console: bool = True,
    force: bool = False
) -> logging.Logger:
    """
    Setup logger with file and/or console output

    Args:
        name: Logger name
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        console: Whether to output to console
        force: Force reconfiguration even if already configured

    Returns:
        Configured logger

    Example:
        >>> logger = setup_logger('PointCloudTriangulation', level='DEBUG', log_file='triangulation.log')
        >>> logger.info("Triangulation service running")
    """
    logger = logging.getLogger(name)

    if logger.handlers and not force:
        return logger

    logger.setLevel(getattr(logging, level.upper()))
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    # Format: [2025-10-31 10:15:30] [INFO] [PointCloudTriangulation.smoothing] Message
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode='a')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get logger for a specific module

    Args:
        name: Module name (e.g., 'smoothing', 'reconstruction', 'service')

    Returns:
        Logger instance

    Example:
        >>> logger = get_logger("smoothing")
        >>> logger.info("Smoothing 1200 points")
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def configure_root_logger(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the root PointCloudTriangulation logger.

    Call once at process start (CLI, service bootstrap).
    """
    return setup_logger(
        name=ROOT_LOGGER_NAME,
        level=level,
        log_file=log_file,
        console=True,
        force=True
    )


def disable_console_logging():
    """Disable console output, keep only file logging"""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in logger.handlers[:]:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
            logger.removeHandler(handler)
