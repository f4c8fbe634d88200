"""
===========================================
Data models for stored routine metadata.
===========================================

Plain dataclass definitions shared by the loader, the SQL utilities and the
metadata writer. Kept separate from the loading logic so every package can
import them without pulling in the parser.

Models:
    SourceDescriptor: One candidate source file discovered for loading
    DocumentationTag: One ``@name`` tag parsed from a DocBlock
    DesignationType: The result shape a routine declares with ``@type``
    ParameterDescriptor: A bind marker (``:name``) found in a routine payload
    DocumentedParameter: A ``@param`` entry handed to the wrapper generator
    RoutineDocumentation: DocBlock parts handed to the wrapper generator
    RoutineMetadata: The compiled metadata record of one routine

Example:
    >>> from models.routine_models import SourceDescriptor, DesignationType
    >>>
    >>> source = SourceDescriptor.from_path('lib/psql/abc_get_user.psql')
    >>> source.routine_name
    'abc_get_user'
    >>> DesignationType.parse('row1')
    <DesignationType.ROW1: 'row1'>
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple


class DesignationType(str, Enum):
    """Result shape of a stored routine, declared with the ``@type`` tag."""

    NONE = 'none'
    ROW0 = 'row0'
    ROW1 = 'row1'
    ROWS = 'rows'
    SINGLETON0 = 'singleton0'
    SINGLETON1 = 'singleton1'
    LAST_INSERT_ID = 'lastInsertId'

    @classmethod
    def parse(cls, value: str) -> Optional['DesignationType']:
        """Return the designation type for a tag value, or None if unknown.

        Args:
            value: Raw value of the ``@type`` tag (case sensitive)

        Returns:
            Matching DesignationType or None
        """
        for member in cls:
            if member.value == value:
                return member
        return None

    @property
    def returns_value(self) -> bool:
        """True if routines of this kind must declare a ``@return`` tag."""
        return self in RETURN_BEARING_DESIGNATIONS


RETURN_BEARING_DESIGNATIONS = frozenset({
    DesignationType.SINGLETON0,
    DesignationType.SINGLETON1,
})


@dataclass(frozen=True)
class SourceDescriptor:
    """A candidate source file holding one stored routine.

    Attributes:
        path: Path of the source file as given by discovery
        routine_name: Name of the routine (the file stem)
        method_name: Name of the generated wrapper method, None when no
            naming policy is configured
    """

    path: str
    routine_name: str
    method_name: Optional[str] = None

    @classmethod
    def from_path(
        cls,
        path: str,
        mangler: Optional[Callable[[str], str]] = None
    ) -> 'SourceDescriptor':
        """Build a descriptor for a source file.

        Args:
            path: Path of the source file
            mangler: Optional naming policy mapping a routine name to a
                wrapper method name

        Returns:
            SourceDescriptor with routine_name set to the file stem
        """
        routine_name = Path(path).stem
        method_name = mangler(routine_name) if mangler is not None else None
        return cls(path=str(path), routine_name=routine_name, method_name=method_name)


@dataclass(frozen=True)
class DocumentationTag:
    """One tag of a DocBlock.

    Attributes:
        name: Tag name without the leading ``@``
        arguments: Positional arguments by argument name, in schema order
        description: Free text following the positional arguments
        content: Raw text after the tag name
    """

    name: str
    arguments: Dict[str, str] = field(default_factory=dict)
    description: str = ''
    content: str = ''


@dataclass(frozen=True)
class ParameterDescriptor:
    """A bind marker discovered in the payload of a routine."""

    name: str
    inferred_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'type': self.inferred_type}


@dataclass(frozen=True)
class DocumentedParameter:
    """A parameter as documented with ``@param <type> <name> <description>``."""

    name: str
    type: str
    description: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'type': self.type, 'description': self.description}


@dataclass(frozen=True)
class RoutineDocumentation:
    """DocBlock parts consumed by the wrapper generator."""

    short_description: str = ''
    long_description: str = ''
    parameters: Tuple[DocumentedParameter, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'short_description': self.short_description,
            'long_description': self.long_description,
            'parameters': [parameter.to_dict() for parameter in self.parameters]
        }


@dataclass(frozen=True)
class RoutineMetadata:
    """Compiled metadata of one stored routine.

    Attributes:
        routine_name: Name of the routine
        designation: Declared result shape
        return_type: Declared return type, only for value returning kinds
        parameters: Bind markers in first-occurrence order
        documentation: DocBlock parts for the wrapper generator
        payload_offset: 0-based index of the first payload line in the source
        source: Payload with all placeholders substituted
    """

    routine_name: str
    designation: DesignationType
    return_type: Optional[str]
    parameters: Tuple[ParameterDescriptor, ...]
    documentation: RoutineDocumentation
    payload_offset: int
    source: str

    def to_dict(self) -> Dict[str, Any]:
        """Return the serializable form written to the metadata file."""
        return {
            'routine_name': self.routine_name,
            'designation': self.designation.value,
            'return': self.return_type,
            'parameters': [parameter.to_dict() for parameter in self.parameters],
            'documentation': self.documentation.to_dict(),
            'offset': self.payload_offset,
            'source': self.source
        }


def metadata_to_dict(metadata: Dict[str, RoutineMetadata]) -> Dict[str, Dict[str, Any]]:
    """Convert a routine name to metadata mapping to plain dictionaries."""
    return {name: routine.to_dict() for name, routine in metadata.items()}
