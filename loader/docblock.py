"""
=====================================================
DocBlock extraction for pseudo-SQL routine sources.
=====================================================

A pseudo-SQL source starts with a DocBlock: a line holding only ``/**``,
any number of lines optionally prefixed with ``*``, and a line holding only
``*/``. Its text consists of a short description (up to the first blank
line), a long description (up to the first tag) and tags. A tag is a line
starting with ``@name``; non-tag lines following a tag continue it.

Every tag kind has a fixed list of positional arguments registered in
TAG_SCHEMAS. The first words after the tag name fill these arguments, the
remaining text is the tag's description. Tags without a schema keep their
raw content only.

No errors are raised here: a missing DocBlock yields an empty one, and
required or repeated tags are validated by the routine loader.

Example:
    >>> from loader.docblock import extract_docblock
    >>>
    >>> docblock = extract_docblock(source.splitlines())
    >>> [tag.arguments['type'] for tag in docblock.get_tags('type')]
    ['rows']
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from models.routine_models import DocumentationTag

DOCBLOCK_OPEN = re.compile(r'^\s*/\*\*\s*$')
DOCBLOCK_CLOSE = re.compile(r'^\s*\*/\s*$')
TAG_LINE = re.compile(r'^@([A-Za-z_][A-Za-z0-9_-]*)(?:\s+(.*))?$')


class TagSchema(NamedTuple):
    """Positional argument layout of one tag kind."""

    name: str
    arguments: Tuple[str, ...]


PARAM_TAG = TagSchema('param', ('type', 'name'))
TYPE_TAG = TagSchema('type', ('type',))
RETURN_TAG = TagSchema('return', ('type',))

TAG_SCHEMAS: Dict[str, TagSchema] = {
    schema.name: schema for schema in (PARAM_TAG, TYPE_TAG, RETURN_TAG)
}


@dataclass(frozen=True)
class DocBlock:
    """A parsed DocBlock.

    Attributes:
        start: 0-based line of the opening ``/**``, None if absent
        end: 0-based line of the closing ``*/``, None if absent
        short_description: Text before the first blank line or tag
        long_description: Free text after the short description
        tags: Tags in order of appearance
    """

    start: Optional[int] = None
    end: Optional[int] = None
    short_description: str = ''
    long_description: str = ''
    tags: Tuple[DocumentationTag, ...] = ()

    @property
    def found(self) -> bool:
        return self.start is not None and self.end is not None

    def get_tags(self, name: str) -> List[DocumentationTag]:
        """Return all tags with a given name in order of appearance."""
        return [tag for tag in self.tags if tag.name == name]


@dataclass
class _TagBuilder:
    name: str
    lines: List[str] = field(default_factory=list)


def find_docblock(lines: Sequence[str]) -> Optional[Tuple[int, int]]:
    """
    Locate the DocBlock in the lines of a source.

    Args:
        lines: Lines of the source

    Returns:
        Tuple (start, end) of 0-based line numbers of the opening and
        closing markers, or None when no closing marker follows the first
        opening marker
    """
    start = None
    for i, line in enumerate(lines):
        if start is None:
            if DOCBLOCK_OPEN.match(line):
                start = i
        elif DOCBLOCK_CLOSE.match(line):
            return start, i
    return None


def _strip_decoration(line: str) -> str:
    """Remove the leading ``*`` (and one space) of a DocBlock line."""
    text = line.strip()
    if text.startswith('*'):
        text = text[1:]
        if text.startswith(' '):
            text = text[1:]
    return text.rstrip()


def _join_paragraph(lines: List[str]) -> str:
    while lines and not lines[0].strip():
        lines = lines[1:]
    while lines and not lines[-1].strip():
        lines = lines[:-1]
    return '\n'.join(lines)


def parse_tag(
    name: str,
    content: str,
    schemas: Mapping[str, TagSchema] = TAG_SCHEMAS
) -> DocumentationTag:
    """
    Build a tag from its name and the text after the name.

    Args:
        name: Tag name without ``@``
        content: Text following the tag name (may span several lines)
        schemas: Registered tag schemas

    Returns:
        DocumentationTag with its schema arguments filled in order; missing
        arguments are empty strings
    """
    content = content.strip()
    schema = schemas.get(name)
    if schema is None:
        return DocumentationTag(name=name, content=content)

    words = content.split(None, len(schema.arguments))
    arguments = {}
    for i, argument in enumerate(schema.arguments):
        arguments[argument] = words[i] if i < len(words) else ''
    rest = words[len(schema.arguments)] if len(words) > len(schema.arguments) else ''
    description = ' '.join(rest.split())

    return DocumentationTag(name=name, arguments=arguments, description=description, content=content)


def parse_docblock(
    lines: Sequence[str],
    schemas: Mapping[str, TagSchema] = TAG_SCHEMAS
) -> Tuple[str, str, List[DocumentationTag]]:
    """
    Parse the inner lines of a DocBlock.

    Args:
        lines: Lines between the opening and closing markers
        schemas: Registered tag schemas

    Returns:
        Tuple of (short description, long description, tags)
    """
    short_lines: List[str] = []
    long_lines: List[str] = []
    builders: List[_TagBuilder] = []
    section = 'short'

    for raw in lines:
        text = _strip_decoration(raw)

        match = TAG_LINE.match(text.lstrip())
        if match:
            section = 'tags'
            builders.append(_TagBuilder(name=match.group(1), lines=[match.group(2) or '']))
            continue

        if section == 'tags':
            builders[-1].lines.append(text)
        elif section == 'short':
            if text:
                short_lines.append(text)
            elif short_lines:
                section = 'long'
        else:
            long_lines.append(text)

    tags = [parse_tag(builder.name, '\n'.join(builder.lines), schemas) for builder in builders]

    return _join_paragraph(short_lines), _join_paragraph(long_lines), tags


def extract_docblock(
    lines: Sequence[str],
    schemas: Mapping[str, TagSchema] = TAG_SCHEMAS
) -> DocBlock:
    """
    Locate and parse the DocBlock of a source.

    Args:
        lines: All lines of the source
        schemas: Registered tag schemas

    Returns:
        Parsed DocBlock; an empty DocBlock (found is False) when the source
        has none
    """
    bounds = find_docblock(lines)
    if bounds is None:
        return DocBlock()

    start, end = bounds
    short_description, long_description, tags = parse_docblock(lines[start + 1:end], schemas)

    return DocBlock(
        start=start,
        end=end,
        short_description=short_description,
        long_description=long_description,
        tags=tuple(tags)
    )
