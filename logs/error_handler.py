"""
==============================================
Error kinds for loading stored routines.
==============================================

Defines the exception hierarchy raised while loading pseudo-SQL sources and
helpers for turning a failure into the messages reported to the user.

Routine-local errors derive from RoutineLoaderError. They are caught at the
single-routine boundary by the batch loader and degrade that one routine to
"failed" without aborting the batch. StatementExecutionError (bootstrapping
the scratch database) and SerializationError (writing the metadata file)
abort the whole run.

Classes:
    RoutineLoaderError: Base class of all routine-local errors
    UnreadableSourceError: Source file missing, unreadable or empty
    DesignationTagError: No or more than one ``@type`` tag
    InvalidDesignationError: ``@type`` value is not a known designation
    ReturnTagError: ``@return`` tag missing, redundant, repeated or empty
    InvalidReturnTypeError: ``@return`` type composition not allowed
    UnresolvedPlaceholderError: Placeholders without replacement value
    ParameterMismatchError: Bind markers and ``@param`` tags disagree
    DuplicateMethodNameError: Routines mapping onto one wrapper method
    StatementExecutionError: A statement of the scratch database failed
    ResultCountError: A query selected an unexpected number of rows
    SerializationError: Metadata cannot be encoded or written
    ConfigurationError: Mandatory settings are missing

Example:
    >>> from logs.error_handler import RoutineLoaderError, describe_failure
    >>>
    >>> try:
    ...     loader.load()
    ... except RoutineLoaderError as e:
    ...     sink.error_list(describe_failure(path, e))
"""

from typing import List, Optional, Sequence


class RoutineLoaderError(Exception):
    """Exception raised when a single stored routine cannot be loaded."""
    pass


class UnreadableSourceError(RoutineLoaderError):
    """Raised when a source file cannot be read or holds no text."""
    pass


class DesignationTagError(RoutineLoaderError):
    """Raised when the DocBlock has no or multiple ``@type`` tags."""
    pass


class InvalidDesignationError(RoutineLoaderError):
    """Raised when the ``@type`` tag holds an unknown designation type."""

    def __init__(self, designation: str):
        self.designation = designation
        super().__init__(f"'{designation}' is not a valid designation type")


class ReturnTagError(RoutineLoaderError):
    """Raised when the ``@return`` tag is missing, redundant or empty."""
    pass


class InvalidReturnTypeError(RoutineLoaderError):
    """Raised when the declared return type is not an allowed composition."""
    pass


class UnresolvedPlaceholderError(RoutineLoaderError):
    """Raised when placeholders in a source have no replacement value.

    Attributes:
        placeholders: Sorted list of distinct unresolved placeholders
    """

    def __init__(self, placeholders: Sequence[str]):
        self.placeholders = sorted(set(placeholders))
        super().__init__('Unknown placeholder(s) found')


class ParameterMismatchError(RoutineLoaderError):
    """Raised when bind markers and documented parameters do not match.

    Attributes:
        undocumented: Bind markers without ``@param`` tag
        unused: Documented parameters not found in the payload
    """

    def __init__(self, undocumented: Sequence[str], unused: Sequence[str]):
        self.undocumented = list(undocumented)
        self.unused = list(unused)
        super().__init__('Parameters of routine and DocBlock do not match')


class DuplicateMethodNameError(RoutineLoaderError):
    """Raised for sources that would result in equally named wrapper methods."""

    def __init__(self, method_name: str, paths: Sequence[str]):
        self.method_name = method_name
        self.paths = list(paths)
        super().__init__(
            f"The following source files would result wrapper methods with equal name '{method_name}'"
        )


class StatementExecutionError(Exception):
    """Exception raised when a statement against the scratch database fails.

    Attributes:
        statement: The failing SQL statement (stripped)
        line: 1-based line of the statement in its script, None for single
            statements
    """

    def __init__(self, message: str, statement: str, line: Optional[int] = None):
        self.statement = statement
        self.line = line
        if line is not None:
            message = f"{message}, at line {line}."
        super().__init__(message)


class ResultCountError(Exception):
    """Exception raised when a query selects an unexpected number of rows."""

    def __init__(self, expected: Sequence[int], actual: int, query: str):
        self.expected = list(expected)
        self.actual = actual
        self.query = query
        expected_text = ' or '.join(str(count) for count in self.expected)
        super().__init__(
            f"Wrong number of rows selected. Expected: {expected_text}. Actual: {actual}."
        )


class SerializationError(Exception):
    """Exception raised when the routine metadata cannot be serialized or written."""
    pass


class ConfigurationError(Exception):
    """Exception raised when mandatory loader settings are missing."""
    pass


def describe_failure(path: str, error: Exception) -> List[str]:
    """Build the message list reported for a routine that failed to load.

    Args:
        path: Path of the source file
        error: The exception that aborted loading

    Returns:
        List with the error message followed by the failed file notice
    """
    return [str(error), f"Failed to load file '{path}'"]
