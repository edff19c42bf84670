"""
Logging Configuration for the NBMon contract tooling

Provides structured logging with:
- Timestamps
- Log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
- Optional file rotation (1 file per day) and a separate error log
"""

import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from typing import Optional


# Log directory
LOG_DIR = Path("logs")

# Log formats
DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
SIMPLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(
    name: str,
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    console: bool = True,
    detailed: bool = False,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """
    Setup a logger with console and, optionally, file handlers.

    Args:
        name: Logger name (typically the package name)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file name; file handlers are only added when set
        console: Whether to log to console (stderr, so stdout stays for results)
        detailed: Whether to use detailed format (includes file/line)
        log_dir: Directory for log files (defaults to ./logs)

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logger("nbmon_ops", level=logging.DEBUG)
        >>> logger.info("Deploying GenesisNBMon")
        >>> logger.error("Mint failed", exc_info=True)
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    log_format = DETAILED_FORMAT if detailed else SIMPLE_FORMAT
    formatter = logging.Formatter(log_format, datefmt=DATE_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file is None:
        return logger

    directory = log_dir or LOG_DIR
    directory.mkdir(parents=True, exist_ok=True)

    # File handler with daily rotation
    file_handler = TimedRotatingFileHandler(
        directory / log_file,
        when="midnight",
        interval=1,
        backupCount=30,  # Keep 30 days of logs
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    # Separate error log
    error_handler = RotatingFileHandler(
        directory / f"{name}_errors.log",
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding="utf-8",
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(error_handler)

    return logger


def log_tx(
    logger: logging.Logger,
    contract: str,
    method: str,
    tx_hash: str,
    gas_used: int,
    success: bool = True,
):
    """
    Log a sent transaction in structured format.

    Args:
        logger: Logger instance
        contract: Contract name
        method: Method name, or "constructor" for deployments
        tx_hash: Transaction hash
        gas_used: Gas used by the receipt
        success: Whether the receipt status was 1
    """
    status = "SUCCESS" if success else "FAILED"
    msg = f"{status} | {contract}.{method} | Gas: {gas_used} | TX: {tx_hash}"
    if success:
        logger.info(msg)
    else:
        logger.error(msg)
