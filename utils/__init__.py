"""
==========================
Utility Functions Package.
==========================

Reusable utilities for the scratch SQLite database and file operations used
by the routine loader.

Modules:
    database_utils: Scratch database capability and its SQLite implementation
    file_utils: Atomic file writing and source reading
"""

__version__ = "1.0.0"
__all__ = [
    'ScratchDatabase',
    'SqliteScratchDatabase',
    'create_scratch_engine',
    'read_text_file',
    'write_atomically',
]

from .database_utils import ScratchDatabase, SqliteScratchDatabase, create_scratch_engine
from .file_utils import read_text_file, write_atomically
