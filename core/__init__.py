"""
===================================================
Core infrastructure package for the routine loader.
===================================================

This package provides centralized configuration management and logging
infrastructure used throughout the routine loader.

Modules:
    config: Configuration management from environment variables
    logger: Centralized logging configuration and utilities

Example:
    >>> from core.config import config
    >>> from core.logger import get_logger
    >>> 
    >>> logger = get_logger(__name__)
    >>> logger.info(f"Writing metadata to {config.loader.metadata_path}")
"""

__version__ = "0.1.0"
__all__ = ['get_logger', 'setup_logging', 'config', 'Config']

from core.config import Config, config
from core.logger import get_logger, setup_logging
