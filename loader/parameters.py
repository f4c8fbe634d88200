"""
=====================================================
Routine parameter discovery and validation.
=====================================================

The parameters of a pseudo-SQL routine are its bind markers: ``:name``
tokens in the payload. The DocBlock documents them separately with
``@param <type> <name> <description>`` tags. Both lists must agree; the
documented type and description are attached to each bind marker for the
wrapper generator.

Documented names may be written with or without the leading colon.

Functions:
- discover_parameters: Distinct bind markers in first-occurrence order
- documented_parameters: ``@param`` tags as DocumentedParameter entries
- compare_parameters: Names present on one side only
- validate_parameters: Cross-check both lists and build the descriptors

Example:
    >>> from loader.parameters import discover_parameters
    >>>
    >>> discover_parameters("select * from t where id = :p_id or parent = :p_id")
    [':p_id']
"""

import re
from typing import Dict, List, Sequence, Tuple

from logs.diagnostics import DiagnosticSink
from logs.error_handler import ParameterMismatchError
from models.routine_models import (
    DocumentationTag,
    DocumentedParameter,
    ParameterDescriptor,
)

# A colon followed by an identifier, not part of a '::' cast.
BIND_MARKER = re.compile(r'(?<!:):[A-Za-z_][A-Za-z0-9_]*')


def discover_parameters(payload: str) -> List[str]:
    """Return the distinct bind markers of a payload in first-occurrence order."""
    seen: Dict[str, None] = {}
    for marker in BIND_MARKER.findall(payload):
        seen.setdefault(marker, None)
    return list(seen)


def _bind_name(name: str) -> str:
    name = name.strip()
    if not name:
        return name
    return name if name.startswith(':') else f':{name}'


def documented_parameters(tags: Sequence[DocumentationTag]) -> List[DocumentedParameter]:
    """
    Convert ``@param`` tags to documented parameters.

    Tags without a name are skipped; only the first tag for a name counts.

    Args:
        tags: The ``@param`` tags of a DocBlock

    Returns:
        Documented parameters in tag order
    """
    documented: Dict[str, DocumentedParameter] = {}
    for tag in tags:
        name = _bind_name(tag.arguments.get('name', ''))
        if not name or name in documented:
            continue
        documented[name] = DocumentedParameter(
            name=name,
            type=tag.arguments.get('type', ''),
            description=tag.description
        )
    return list(documented.values())


def compare_parameters(
    discovered: Sequence[str],
    documented: Sequence[DocumentedParameter]
) -> Tuple[List[str], List[str]]:
    """
    Compare bind markers with documented parameters.

    Returns:
        Tuple of (bind markers without documentation, documented names not
        found in the payload), each in its own list order
    """
    documented_names = [parameter.name for parameter in documented]
    undocumented = [name for name in discovered if name not in documented_names]
    unused = [name for name in documented_names if name not in discovered]
    return undocumented, unused


def validate_parameters(
    discovered: Sequence[str],
    documented: Sequence[DocumentedParameter],
    sink: DiagnosticSink
) -> Tuple[Tuple[ParameterDescriptor, ...], Tuple[DocumentedParameter, ...]]:
    """
    Cross-validate bind markers and documented parameters.

    Every mismatching name is reported as a note before the routine fails.

    Args:
        discovered: Bind markers in first-occurrence order
        documented: Documented parameters
        sink: Diagnostic sink for the per-name notes

    Returns:
        Tuple of (parameter descriptors, documented parameters), both in
        bind marker order

    Raises:
        ParameterMismatchError: If any name occurs on one side only
    """
    undocumented, unused = compare_parameters(discovered, documented)
    for name in undocumented:
        sink.note(f"Parameter '{name}' is not documented in the DocBlock")
    for name in unused:
        sink.note(f"Documented parameter '{name}' does not occur in the routine")
    if undocumented or unused:
        raise ParameterMismatchError(undocumented, unused)

    by_name = {parameter.name: parameter for parameter in documented}
    parameters = tuple(
        ParameterDescriptor(name=name, inferred_type=by_name[name].type or None)
        for name in discovered
    )
    ordered = tuple(by_name[name] for name in discovered)

    return parameters, ordered
