"""
=====================================================
Batch loader for pseudo-SQL stored routine sources.
=====================================================

Coordinates loading a batch of stored routine sources: discovery, duplicate
wrapper method detection, compiling every routine, and writing the
collected metadata file. A bad source never aborts the batch; it is
reported and listed in the failed paths.

This loader manages:
    - Source discovery by glob pattern or from an explicit list of paths
    - Detection of routines that would get equally named wrapper methods
    - Placeholder values (configured pairs and column type placeholders)
    - Compiling routines in routine name order
    - Serializing the metadata and writing it atomically
    - Overview of the sources that were not loaded

Example:
    >>> from loader.batch_loader import BatchLoader
    >>> from logs.diagnostics import LoggingDiagnosticSink
    >>> from utils.database_utils import SqliteScratchDatabase
    >>>
    >>> with SqliteScratchDatabase(script='etc/ddl/setup.sql') as scratch:
    ...     batch = BatchLoader(LoggingDiagnosticSink(), scratch, metadata_path='etc/routines.json')
    ...     result = batch.load_all('lib/psql/**/*.psql', root='.')
    >>>
    >>> if not result.succeeded:
    ...     print(result.failed_paths)
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from core.logger import get_logger
from loader.name_mangler import NameMangler
from loader.routine_loader import RoutineLoader
from logs.diagnostics import DiagnosticSink
from logs.error_handler import (
    DuplicateMethodNameError,
    RoutineLoaderError,
    SerializationError,
    describe_failure,
)
from models.routine_models import RoutineMetadata, SourceDescriptor, metadata_to_dict
from sql.placeholders import column_type_pairs, normalize_replace_pairs
from utils.database_utils import ScratchDatabase
from utils.file_utils import write_atomically

logger = get_logger(__name__)


@dataclass
class BatchResult:
    """Outcome of loading a batch of routines.

    Attributes:
        metadata: Compiled metadata by routine name, in routine name order
        failed_paths: Paths of sources that were not loaded, in the order
            they failed
    """

    metadata: Dict[str, RoutineMetadata] = field(default_factory=dict)
    failed_paths: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        """True if every source was loaded."""
        return not self.failed_paths


def serialize_metadata(metadata: Mapping[str, RoutineMetadata]) -> str:
    """
    Serialize routine metadata as a pretty printed JSON document.

    Keys are sorted, so equal metadata always gives identical text.

    Raises:
        SerializationError: If the metadata holds values JSON cannot represent
    """
    try:
        document = json.dumps(
            metadata_to_dict(dict(metadata)),
            indent=4,
            sort_keys=True,
            ensure_ascii=False,
            allow_nan=False
        )
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Error of encoding to JSON: '{e}'.") from e

    return document + '\n'


class BatchLoader:
    """Load a batch of stored routine sources.

    Attributes:
        sink: Diagnostic sink for progress, warnings and errors
        scratch: Scratch database for quoting and column metadata
        replace_pairs: Configured placeholder values
        mangler: Naming policy for wrapper methods, None for no policy
        metadata_path: File the metadata is written to, None to skip writing
    """

    def __init__(
        self,
        sink: DiagnosticSink,
        scratch: ScratchDatabase,
        replace_pairs: Optional[Mapping[str, str]] = None,
        mangler: Optional[NameMangler] = None,
        metadata_path: Optional[Union[str, Path]] = None
    ):
        self.sink = sink
        self.scratch = scratch
        self.replace_pairs = dict(replace_pairs or {})
        self.mangler = mangler
        self.metadata_path = Path(metadata_path) if metadata_path is not None else None

        logger.debug(f"Initialized BatchLoader (metadata: {self.metadata_path})")

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def describe(self, path: Union[str, Path]) -> SourceDescriptor:
        """Build the descriptor of a source file."""
        return SourceDescriptor.from_path(str(path), self.mangler)

    def find_sources(self, pattern: str, root: Union[str, Path] = '.') -> List[SourceDescriptor]:
        """
        Find all source files matching a glob pattern.

        Args:
            pattern: Glob pattern relative to root (``**`` recurses)
            root: Base directory of the pattern

        Returns:
            Descriptors of the matching files, sorted by path
        """
        root_path = Path(root)
        paths = sorted(path for path in root_path.glob(pattern) if path.is_file())
        logger.debug(f"Found {len(paths)} source(s) matching '{pattern}' in '{root_path}'")
        return [self.describe(path) for path in paths]

    def sources_from_list(self, paths: Sequence[str]) -> Tuple[List[SourceDescriptor], List[str]]:
        """
        Build descriptors for an explicit list of source files.

        Args:
            paths: Paths of the source files

        Returns:
            Tuple of (descriptors of existing files, paths that do not exist)
        """
        sources = []
        missing = []
        for path in paths:
            if not os.path.exists(path):
                self.sink.error_list(f"File not exists: '{path}'", [])
                missing.append(path)
            else:
                sources.append(self.describe(path))
        return sources, missing

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def detect_name_conflicts(
        self,
        sources: Sequence[SourceDescriptor]
    ) -> Tuple[List[SourceDescriptor], List[str]]:
        """
        Remove sources that would result in equally named wrapper methods.

        Sources without method name never conflict.

        Args:
            sources: Candidate sources

        Returns:
            Tuple of (remaining sources, paths of the removed sources)
        """
        lookup: Dict[str, List[SourceDescriptor]] = {}
        for source in sources:
            if source.method_name is not None:
                lookup.setdefault(source.method_name, []).append(source)

        conflicts = {method: group for method, group in lookup.items() if len(group) > 1}
        for method, group in conflicts.items():
            error = DuplicateMethodNameError(method, [source.path for source in group])
            self.sink.error_list(str(error), error.paths)

        remaining = []
        failed = []
        for source in sources:
            if source.method_name in conflicts:
                failed.append(source.path)
            else:
                remaining.append(source)

        return remaining, failed

    def build_replace_pairs(self) -> Dict[str, str]:
        """
        Collect the placeholder values for this batch.

        Column type placeholders of the scratch database come first, so
        configured pairs override them.
        """
        pairs = column_type_pairs(self.scratch)
        pairs.update(normalize_replace_pairs(self.replace_pairs))
        return pairs

    def run(self, sources: Sequence[SourceDescriptor]) -> BatchResult:
        """
        Compile all sources of a batch.

        Args:
            sources: Candidate sources in any order

        Returns:
            BatchResult with the metadata of all loaded routines and the
            paths of all sources that were not loaded
        """
        result = BatchResult()

        remaining, conflicting = self.detect_name_conflicts(sources)
        result.failed_paths.extend(conflicting)

        loader = RoutineLoader(self.sink, self.scratch, self.build_replace_pairs())

        for source in sorted(remaining, key=lambda source: source.routine_name):
            try:
                result.metadata[source.routine_name] = loader.load(source)
            except RoutineLoaderError as e:
                logger.debug(f"Failed to load {source.path}: {type(e).__name__}")
                self.sink.error_list(*self._failure_messages(source.path, e))
                result.failed_paths.append(source.path)
                result.metadata.pop(source.routine_name, None)

        logger.info(
            f"Loaded {len(result.metadata)} routine(s), {len(result.failed_paths)} failed"
        )
        return result

    def _failure_messages(self, path: str, error: Exception) -> Tuple[str, List[str]]:
        messages = describe_failure(path, error)
        return messages[0], messages[1:]

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def load_all(self, pattern: str, root: Union[str, Path] = '.') -> BatchResult:
        """
        Load all sources matching a glob pattern and write the metadata.

        Raises:
            SerializationError: If the metadata cannot be serialized
        """
        result = self.run(self.find_sources(pattern, root))
        self.write_metadata(result.metadata)
        self.log_overview(result)
        return result

    def load_list(self, paths: Sequence[str]) -> BatchResult:
        """
        Load an explicit list of sources and write the metadata.

        Missing files are reported and counted as failed without any
        attempt to parse them.

        Raises:
            SerializationError: If the metadata cannot be serialized
        """
        sources, missing = self.sources_from_list(paths)
        result = self.run(sources)
        result.failed_paths[:0] = missing
        self.write_metadata(result.metadata)
        self.log_overview(result)
        return result

    def write_metadata(self, metadata: Mapping[str, RoutineMetadata]) -> bool:
        """
        Serialize the metadata and write it atomically to the metadata file.

        Returns:
            True if the file was written, False if it was up to date or no
            metadata file is configured

        Raises:
            SerializationError: If the metadata cannot be serialized or
                written; the metadata file is left untouched
        """
        document = serialize_metadata(metadata)
        if self.metadata_path is None:
            return False

        try:
            return write_atomically(self.metadata_path, document)
        except OSError as e:
            raise SerializationError(f"Unable to write '{self.metadata_path}': {e}") from e

    def log_overview(self, result: BatchResult) -> None:
        """Report the sources that were not loaded."""
        if result.failed_paths:
            self.sink.warning_list('Routines in the files below are not loaded:', result.failed_paths)
