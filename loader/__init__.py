"""
=====================================================
Stored routine loader package.
=====================================================

Compiles pseudo-SQL stored routine sources into the metadata consumed by the
wrapper generator.

Modules:
    docblock: DocBlock extraction and tag parsing
    parameters: Bind marker discovery and ``@param`` cross-validation
    routine_loader: Compilation of a single routine
    batch_loader: Loading a batch of routines and writing the metadata file
    name_mangler: Naming policies for wrapper methods

Example:
    >>> from loader.batch_loader import BatchLoader
    >>> 
    >>> result = BatchLoader(sink, scratch, metadata_path='etc/routines.json').load_all('lib/psql/*.psql')
"""

__version__ = "0.1.0"
__all__ = ['BatchLoader', 'BatchResult', 'RoutineLoader']

# Note: Eager imports removed to prevent circular dependencies.
# Import modules directly when needed:
#   from loader.batch_loader import BatchLoader, BatchResult
#   from loader.routine_loader import RoutineLoader
