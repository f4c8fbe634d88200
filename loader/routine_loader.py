"""
=====================================================
Metadata compilation for a single stored routine.
=====================================================

Compiles one pseudo-SQL source into a RoutineMetadata record consumed by
the wrapper generator. Processing is strictly sequential and fails fast:

    1. Read the source and split it into lines
    2. Extract the DocBlock
    3. Find the payload: the first non-blank line after the DocBlock
    4. Discover the bind markers of the payload
    5. Resolve the placeholders of the whole source
    6. Extract and validate the designation type (``@type``)
    7. Extract the return type (``@return``)
    8. Validate the return type against the designation type
    9. Cross-validate bind markers and ``@param`` tags
   10. Substitute placeholders and magic constants in the payload
   11. Assemble the metadata

Magic constants available in every payload:
    __FILE__     Absolute path of the source as a string literal
    __DIR__      Directory of the source as a string literal
    __ROUTINE__  Name of the routine as a string literal
    __LINE__     Line number (1-based, in the source file) of the line it
                 appears on

Any RoutineLoaderError raised here concerns this routine only.

Example:
    >>> from loader.routine_loader import RoutineLoader
    >>>
    >>> loader = RoutineLoader(sink, scratch, replace_pairs={'@SCHEMA@': "'main'"})
    >>> metadata = loader.load(SourceDescriptor.from_path('lib/psql/abc_get_user.psql'))
    >>> metadata.designation
    <DesignationType.ROW1: 'row1'>
"""

import os
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from core.logger import get_logger
from loader.docblock import PARAM_TAG, RETURN_TAG, TYPE_TAG, DocBlock, extract_docblock
from loader.parameters import discover_parameters, documented_parameters, validate_parameters
from logs.diagnostics import DiagnosticSink
from logs.error_handler import (
    DesignationTagError,
    InvalidDesignationError,
    InvalidReturnTypeError,
    ReturnTagError,
    UnreadableSourceError,
    UnresolvedPlaceholderError,
)
from models.routine_models import (
    DesignationType,
    RoutineDocumentation,
    RoutineMetadata,
    SourceDescriptor,
)
from sql.placeholders import mark_unresolved, resolve_placeholders, substitute
from utils.database_utils import ScratchDatabase
from utils.file_utils import read_text_file

logger = get_logger(__name__)

SCALAR_RETURN_TYPES = frozenset({'string', 'int', 'float', 'double', 'bool', 'null'})
OPAQUE_RETURN_TYPES = frozenset({'mixed', 'bool'})

LINE_MACRO = '__LINE__'


@dataclass(frozen=True)
class RoutineSource:
    """Source text of one routine, local to a single load."""

    path: str
    routine_name: str
    text: str
    lines: Tuple[str, ...]

    @property
    def real_path(self) -> str:
        return os.path.realpath(self.path)


def read_routine_source(source: SourceDescriptor) -> RoutineSource:
    """
    Read the source file of a routine.

    Raises:
        UnreadableSourceError: If the file cannot be read or is empty
    """
    try:
        text = read_text_file(source.path)
    except (OSError, UnicodeDecodeError) as e:
        raise UnreadableSourceError(f"Unable to read source file: {e}") from e

    if not text.strip():
        raise UnreadableSourceError('Source file is empty')

    return RoutineSource(
        path=source.path,
        routine_name=source.routine_name,
        text=text,
        lines=tuple(text.split('\n'))
    )


def find_payload_offset(lines: Tuple[str, ...], docblock: DocBlock) -> int:
    """
    Return the 0-based index of the first payload line.

    The payload starts after the closing marker of the DocBlock (or at the
    top of the source without DocBlock) and skips blank lines.
    """
    offset = docblock.end + 1 if docblock.found else 0
    while offset < len(lines) and not lines[offset].strip():
        offset += 1
    return offset


def line_number(index: int, offset: int) -> int:
    """Return the 1-based source line of a payload line.

    Args:
        index: 0-based index of the line within the payload
        offset: 0-based index of the first payload line in the source
    """
    return offset + index + 1


def extract_designation(docblock: DocBlock) -> DesignationType:
    """
    Extract the designation type from the ``@type`` tag.

    Raises:
        DesignationTagError: If there is no or more than one ``@type`` tag,
            or the tag has no value
        InvalidDesignationError: If the value is not a designation type
    """
    tags = docblock.get_tags(TYPE_TAG.name)
    if not tags:
        raise DesignationTagError('Tag @type not found in DocBlock.')
    if len(tags) > 1:
        raise DesignationTagError('Multiple @type tags found in DocBlock.')

    value = tags[0].arguments.get('type', '')
    if not value:
        raise DesignationTagError('Unable to find the designation type of the stored routine.')

    designation = DesignationType.parse(value)
    if designation is None:
        raise InvalidDesignationError(value)

    return designation


def extract_return_type(docblock: DocBlock, designation: DesignationType) -> Optional[str]:
    """
    Extract the return type from the ``@return`` tag.

    Raises:
        ReturnTagError: If the tag is missing, repeated or empty for a value
            returning designation, or present for any other designation
    """
    tags = docblock.get_tags(RETURN_TAG.name)

    if not designation.returns_value:
        if tags:
            raise ReturnTagError(
                f"Redundant @return tag found in DocBlock (designation type '{designation.value}')."
            )
        return None

    if not tags:
        raise ReturnTagError('Tag @return not found in DocBlock.')
    if len(tags) > 1:
        raise ReturnTagError('Multiple @return tags found in DocBlock.')

    return_type = tags[0].arguments.get('type', '')
    if not return_type:
        raise ReturnTagError('Invalid return tag. Expected: @return <type>.')

    return return_type


def validate_return_type(designation: DesignationType, return_type: Optional[str]) -> None:
    """
    Validate a return type against the designation type.

    Return types are 'mixed', 'bool', or a '|' separated combination of
    'string', 'int', 'float', 'double', 'bool' and 'null'. For singleton0
    routines the combination must include 'null'.

    Raises:
        InvalidReturnTypeError: If the composition is not allowed
    """
    if not designation.returns_value:
        return

    parts = return_type.split('|')
    if not (return_type in OPAQUE_RETURN_TYPES or set(parts) <= SCALAR_RETURN_TYPES):
        raise InvalidReturnTypeError(
            "Return type must be 'mixed', 'bool', or a combination of 'int', 'float', 'string', and 'null'"
        )

    if designation != DesignationType.SINGLETON0:
        return

    if return_type in OPAQUE_RETURN_TYPES:
        return

    if 'null' not in parts:
        raise InvalidReturnTypeError(
            "Return type must be 'mixed', 'bool', or contain 'null' "
            "(with a combination of 'int', 'float', and 'string')"
        )


class RoutineLoader:
    """Compile pseudo-SQL sources into routine metadata.

    A loader holds only configuration shared by all routines of a batch;
    all per-routine state lives in local values of load(), so one loader
    can process many sources.

    Attributes:
        sink: Diagnostic sink for progress and error details
        scratch: Scratch database used for quoting literals
        replace_pairs: Placeholder replacement values keyed by upper-cased
            ``@NAME@``
    """

    def __init__(
        self,
        sink: DiagnosticSink,
        scratch: ScratchDatabase,
        replace_pairs: Optional[Mapping[str, str]] = None
    ):
        self.sink = sink
        self.scratch = scratch
        self.replace_pairs: Dict[str, str] = dict(replace_pairs or {})

    def load(self, source: SourceDescriptor) -> RoutineMetadata:
        """
        Compile the metadata of one routine.

        Args:
            source: Descriptor of the source file

        Returns:
            The compiled RoutineMetadata

        Raises:
            RoutineLoaderError: If the routine cannot be loaded
        """
        self.sink.text([f"Loading routine {source.routine_name}"])

        routine = read_routine_source(source)
        docblock = extract_docblock(routine.lines)
        offset = find_payload_offset(routine.lines, docblock)
        discovered = discover_parameters('\n'.join(routine.lines[offset:]))
        replace = self._resolve_placeholders(routine)
        designation = extract_designation(docblock)
        return_type = extract_return_type(docblock, designation)
        validate_return_type(designation, return_type)
        parameters, documented = validate_parameters(
            discovered,
            documented_parameters(docblock.get_tags(PARAM_TAG.name)),
            self.sink
        )
        payload = self._substitute_payload(routine, offset, replace)

        logger.debug(
            f"Compiled routine {routine.routine_name}: designation={designation.value}, "
            f"parameters={len(parameters)}, offset={offset}"
        )

        return RoutineMetadata(
            routine_name=routine.routine_name,
            designation=designation,
            return_type=return_type,
            parameters=parameters,
            documentation=RoutineDocumentation(
                short_description=docblock.short_description,
                long_description=docblock.long_description,
                parameters=documented
            ),
            payload_offset=offset,
            source=payload
        )

    def _resolve_placeholders(self, routine: RoutineSource) -> Dict[str, str]:
        """Resolve all placeholders of a source, reporting unknown ones."""
        replace, unknown = resolve_placeholders(routine.text, self.replace_pairs)
        if unknown:
            self._log_unknown_placeholders(routine, unknown)
            raise UnresolvedPlaceholderError(unknown)
        return replace

    def _log_unknown_placeholders(self, routine: RoutineSource, unknown: List[str]) -> None:
        self.sink.text(['Unknown placeholder(s):'])
        self.sink.listing(unknown)
        self.sink.text(mark_unresolved(routine.text, unknown).split('\n'))

    def _magic_constants(self, routine: RoutineSource) -> Dict[str, str]:
        real_path = routine.real_path
        return {
            '__FILE__': self.scratch.quote_literal('string', real_path),
            '__ROUTINE__': self.scratch.quote_literal('string', routine.routine_name),
            '__DIR__': self.scratch.quote_literal('string', os.path.dirname(real_path)),
        }

    def _substitute_payload(
        self,
        routine: RoutineSource,
        offset: int,
        replace: Mapping[str, str]
    ) -> str:
        """Substitute placeholders and magic constants in every payload line."""
        pairs = dict(replace)
        pairs.update(self._magic_constants(routine))

        lines = []
        for index, line in enumerate(routine.lines[offset:]):
            pairs[LINE_MACRO] = self.scratch.quote_literal('int', line_number(index, offset))
            lines.append(substitute(line, pairs))

        return '\n'.join(lines)
