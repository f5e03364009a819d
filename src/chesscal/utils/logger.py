"""
Logging utilities for the calibration tool.
"""

import logging
import sys
from pathlib import Path


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _resolve_level(level) -> int:
    """Accept either a logging constant or its name ('DEBUG', 'info', ...)."""
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        return resolved
    return level


def setup_logger(name: str, log_file: str = None, level=logging.INFO) -> logging.Logger:
    """
    Setup logger with console and optional file handlers.
    
    Args:
        name: Logger name
        log_file: Path to log file (None for console only)
        level: Logging level, as a constant or a level name
    
    Returns:
        Configured logger
    """
    level = _resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(level)
    
    # Remove existing handlers
    logger.handlers.clear()
    
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
    
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        
        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger.
    
    Loggers below the ``chesscal`` namespace propagate to the package logger
    configured by :func:`setup_logger`, so they are returned untouched.
    Any other name without handlers gets a default console setup.
    
    Args:
        name: Logger name
    
    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)
    if name.startswith('chesscal.') or logger.handlers:
        return logger
    return setup_logger(name)
