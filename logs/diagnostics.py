"""
===================================================
Diagnostic output for the stored routine loader.
===================================================

The loader reports progress, warnings and errors through a small sink
interface and owns no formatting policy itself. LoggingDiagnosticSink
renders the messages through the centralized logging configuration of
core.logger, so console colors and log files follow setup_logging().

Classes:
    DiagnosticSink: Interface the loader writes diagnostics to
    LoggingDiagnosticSink: Sink writing to a standard library logger

Example:
    >>> from logs.diagnostics import LoggingDiagnosticSink
    >>>
    >>> sink = LoggingDiagnosticSink()
    >>> sink.note('Loading routine abc_get_user')
    >>> sink.error_list('Failed to load', ['Tag @type not found in DocBlock.'])
"""

import logging
from typing import Iterable, Optional, Protocol, Sequence

from core.logger import get_logger


class DiagnosticSink(Protocol):
    """Interface for reporting loader diagnostics."""

    def title(self, text: str) -> None:
        ...

    def note(self, text: str) -> None:
        ...

    def text(self, lines: Iterable[str]) -> None:
        ...

    def listing(self, items: Sequence[str]) -> None:
        ...

    def warning_list(self, title: str, items: Sequence[str]) -> None:
        ...

    def error_list(self, title: str, items: Sequence[str]) -> None:
        ...


class LoggingDiagnosticSink:
    """Diagnostic sink backed by a ``logging.Logger``.

    Notes and text go out at INFO, listings of warnings at WARNING and
    listings of errors at ERROR, one record per line so file handlers keep
    a readable layout.

    Attributes:
        logger: Logger receiving the records
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """Initialize the sink.

        Args:
            logger: Logger to write to (defaults to this module's logger)
        """
        self.logger = logger or get_logger(__name__)

    def title(self, text: str) -> None:
        """Write a section title."""
        self.logger.info("=" * 60)
        self.logger.info(text)
        self.logger.info("=" * 60)

    def note(self, text: str) -> None:
        """Write an informational note."""
        self.logger.info(text)

    def text(self, lines: Iterable[str]) -> None:
        """Write a block of text, one record per line."""
        if isinstance(lines, str):
            lines = [lines]
        for line in lines:
            self.logger.info(line)

    def listing(self, items: Sequence[str]) -> None:
        """Write a bulleted listing."""
        for item in items:
            self.logger.info(f" * {item}")

    def warning_list(self, title: str, items: Sequence[str]) -> None:
        """Write a warning followed by the items it applies to."""
        self.logger.warning(title)
        for item in items:
            self.logger.warning(f" * {item}")

    def error_list(self, title: str, items: Sequence[str]) -> None:
        """Write an error followed by its details."""
        self.logger.error(title)
        for item in items:
            self.logger.error(f" * {item}")
