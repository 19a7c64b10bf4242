"""
Utility Module for the Invoice Extraction Pipeline.

This module provides common utilities used across all other modules:
    - Logging configuration
    - Exception hierarchy
    - File and timestamp helpers
"""

from .logger import setup_logger, setup_logger_from_config, get_logger
from .helpers import ensure_directory, get_file_extension, guess_media_type, generate_timestamp

__all__ = [
    'setup_logger',
    'setup_logger_from_config',
    'get_logger',
    'ensure_directory',
    'get_file_extension',
    'guess_media_type',
    'generate_timestamp'
]
