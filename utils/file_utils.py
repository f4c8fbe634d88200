"""
==================================================
File utilities for the routine loader.
==================================================

Reading pseudo-SQL sources and writing the metadata file. Writes go through
a temporary file in the target directory that replaces the target in one
step, so readers never see a partially written file.

Example:
    >>> from utils.file_utils import write_atomically
    >>>
    >>> if write_atomically('etc/routines.json', data):
    ...     print("Metadata updated")
"""

import os
import tempfile
from pathlib import Path
from typing import Union

from core.logger import get_logger

logger = get_logger(__name__)


def write_atomically(path: Union[str, Path], text: str, encoding: str = 'utf-8') -> bool:
    """
    Write text to a file in two phases: temporary file, then replace.

    The file is left untouched when it already holds exactly the same text.

    Args:
        path: Target file path (parent directories are created)
        text: Text to write
        encoding: Text encoding

    Returns:
        True if the file was written, False if it was already up to date

    Raises:
        OSError: If the temporary file cannot be written or moved
    """
    target = Path(path)
    if target.is_file() and read_text_file(target, encoding) == text:
        logger.debug(f"File '{target}' is up to date")
        return False

    target.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f'.{target.name}.',
        suffix='.tmp',
        dir=str(target.parent)
    )
    try:
        with os.fdopen(fd, 'w', encoding=encoding, newline='') as handle:
            handle.write(text)
        os.replace(tmp_name, target)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

    logger.info(f"Wrote '{target}'")
    return True


def read_text_file(path: Union[str, Path], encoding: str = 'utf-8') -> str:
    """Read a text file, keeping line endings as written."""
    with open(path, 'r', encoding=encoding, newline='') as handle:
        return handle.read()
