"""
=============================================================
Diagnostics and error handling for the routine loader.
=============================================================

This package provides the error kinds raised while loading stored routines
and the diagnostic sink that reports progress, warnings and errors to the
user.

Modules:
    error_handler: Exception hierarchy and failure descriptions
    diagnostics: Diagnostic sink capability and its logging implementation

Components:
    RoutineLoaderError: Base class of all routine-local errors
    DiagnosticSink: Capability for reporting notes, warnings and errors
    LoggingDiagnosticSink: Diagnostic sink writing to the standard logger

Example:
    >>> from logs.diagnostics import LoggingDiagnosticSink
    >>> from logs.error_handler import RoutineLoaderError, describe_failure
    >>> 
    >>> sink = LoggingDiagnosticSink()
    >>> try:
    ...     loader.load(source)
    ... except RoutineLoaderError as e:
    ...     message, *details = describe_failure(source.path, e)
    ...     sink.error_list(message, details)
"""

__version__ = "0.1.0"
__all__ = [
    'RoutineLoaderError', 'describe_failure',
    'DiagnosticSink', 'LoggingDiagnosticSink'
]

# Note: Eager imports removed to prevent circular dependencies.
# Import modules directly when needed:
#   from logs.error_handler import RoutineLoaderError, describe_failure
#   from logs.diagnostics import DiagnosticSink, LoggingDiagnosticSink
