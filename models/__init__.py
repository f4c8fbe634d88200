"""
========================================
Data Models for the Routine Loader
========================================

Centralized dataclass definitions for stored routine sources and their
compiled metadata.

This package contains the value objects exchanged between the loader, the
SQL utilities and the metadata writer, separated from the loading logic to
prevent circular imports.

Modules:
    routine_models: Source descriptors, DocBlock tags and routine metadata

Example:
    >>> from models import RoutineMetadata, SourceDescriptor
    >>>
    >>> source = SourceDescriptor.from_path('lib/psql/abc_get_user.psql')
    >>> print(source.routine_name)
"""

__version__ = "0.1.0"
__all__ = [
    'DesignationType',
    'DocumentationTag',
    'DocumentedParameter',
    'ParameterDescriptor',
    'RoutineDocumentation',
    'RoutineMetadata',
    'SourceDescriptor',
    'metadata_to_dict',
]

from .routine_models import (
    DesignationType,
    DocumentationTag,
    DocumentedParameter,
    ParameterDescriptor,
    RoutineDocumentation,
    RoutineMetadata,
    SourceDescriptor,
    metadata_to_dict,
)
