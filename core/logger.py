"""
=========================================================
Centralized logging configuration for the routine loader.
=========================================================

Provides consistent logging setup across all modules with:
- Console and optional file output
- Configurable log levels
- Colored console output with emojis
- Quiet third-party loggers (SQLAlchemy) unless asked otherwise
- Module-specific loggers

Example:
    >>> from core.logger import get_logger, setup_logging
    >>> 
    >>> # Setup logging at application start
    >>> setup_logging(log_level='DEBUG', log_file='loader.log')
    >>> 
    >>> # Get module logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Loading routines")
"""

import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Loggers of libraries that are noisy at INFO level.
LIBRARY_LOGGERS = ('sqlalchemy',)


class ColoredFormatter(logging.Formatter):
    """Custom formatter with color support for console output.
    
    Adds ANSI color codes and emoji indicators to log messages for
    improved readability in terminal output.
    
    Attributes:
        COLORS: Dict mapping log levels to ANSI color codes
        EMOJI: Dict mapping log levels to emoji indicators
    """
    
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'        # Reset
    }
    
    EMOJI = {
        'DEBUG': '🔍',
        'INFO': 'ℹ️ ',
        'WARNING': '⚠️ ',
        'ERROR': '❌',
        'CRITICAL': '🔥'
    }
    
    def format(self, record):
        """Format log record with colors and emojis.
        
        The record is restored afterwards, so handlers sharing it (e.g. a
        plain file handler) see the original level name.
        
        Args:
            record: LogRecord instance to format
            
        Returns:
            Formatted log message string with ANSI colors and emoji
        """
        levelname = record.levelname
        record.emoji = self.EMOJI.get(levelname, '')
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
        
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Get a logger instance for the specified module.
    
    Args:
        name: Logger name (typically __name__ of calling module)
        level: Optional logging level override (DEBUG/INFO/WARNING/ERROR/CRITICAL)
        
    Returns:
        Configured Logger instance
        
    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Module initialized")
        >>> 
        >>> # With custom level
        >>> debug_logger = get_logger(__name__, level='DEBUG')
    """
    logger = logging.getLogger(name)
    
    if level:
        logger.setLevel(getattr(logging, level.upper()))
    
    return logger


def setup_logging(
    log_level: str = 'INFO',
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    console_output: bool = True,
    use_colors: bool = True,
    library_level: str = 'WARNING'
) -> None:
    """Setup centralized logging configuration.
    
    Configures the root logger with console and/or file handlers.
    Should be called once at application startup.
    
    Args:
        log_level: Logging level (DEBUG/INFO/WARNING/ERROR/CRITICAL)
        log_file: Optional log file name (e.g., 'loader.log')
        log_dir: Optional log directory path (defaults to 'logs/')
        console_output: If True, output to console (stdout)
        use_colors: If True, use colored output for console
        library_level: Logging level of third-party library loggers
        
    Example:
        >>> # Basic setup
        >>> setup_logging(log_level='INFO')
        >>> 
        >>> # With file output
        >>> setup_logging(
        ...     log_level='DEBUG',
        ...     log_file='loader.log',
        ...     log_dir='logs',
        ...     use_colors=False
        ... )
    """
    level = getattr(logging, log_level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    
    # Clear existing handlers
    root_logger.handlers.clear()
    
    # Console handler
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        
        if use_colors:
            console_formatter = ColoredFormatter(
                '%(emoji)s ' + LOG_FORMAT,
                datefmt=DATE_FORMAT
            )
        else:
            console_formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
        
        console_handler.setFormatter(console_formatter)
        root_logger.addHandler(console_handler)
    
    # File handler
    if log_file:
        log_path = Path(log_dir) if log_dir else Path('logs')
        log_path.mkdir(parents=True, exist_ok=True)
        
        file_handler = logging.FileHandler(
            log_path / log_file,
            encoding='utf-8'
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    for name in LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(getattr(logging, library_level.upper()))


def _init_default_logging():
    """Initialize default logging configuration if not already setup.
    
    Called automatically on module import to ensure basic logging
    is always available even if setup_logging() is not called explicitly.
    """
    if not logging.getLogger().handlers:
        setup_logging(
            log_level='INFO',
            console_output=True,
            use_colors=True
        )


# Auto-initialize on import
_init_default_logging()
