"""
Utility functions for logging, configuration and data structures.
"""

from .logger import setup_logger, get_logger
from .config import load_config
from .data_structures import BoardGeometry, Sample, Intrinsics, Observation

__all__ = [
    'setup_logger', 'get_logger', 'load_config',
    'BoardGeometry', 'Sample', 'Intrinsics', 'Observation',
]
