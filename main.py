"""
=========================================================
Main entry point of the stored routine loader.
=========================================================

Compiles pseudo-SQL stored routine sources into the metadata file consumed
by the wrapper generator:
    - Open the scratch database (optionally seeded by an init script)
    - Collect the placeholder values
    - Load all sources matching the configured pattern, or an explicit
      list of files
    - Write the metadata file and report the sources that were not loaded

Key Design Principles:
    - core.config provides the defaults, command line options override them
    - BatchLoader handles ALL loading logic
    - main.py is a thin CLI wrapper

Usage:
    # Load all sources matching LOADER_SOURCES
    python main.py

    # Load selected sources only
    python main.py lib/psql/abc_get_user.psql lib/psql/abc_set_user.psql

    # Override the metadata file and seed the scratch database
    python main.py --metadata etc/routines.json --init-script etc/ddl/setup.sql

Example:
    >>> from main import LoaderOrchestrator
    >>>
    >>> orchestrator = LoaderOrchestrator(metadata_path='etc/routines.json')
    >>> result = orchestrator.run()
    >>> result.succeeded
    True
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from core.config import config, read_replace_pairs
from core.logger import get_logger, setup_logging
from loader.batch_loader import BatchLoader, BatchResult
from loader.name_mangler import NameMangler, load_mangler
from logs.diagnostics import DiagnosticSink, LoggingDiagnosticSink
from logs.error_handler import (
    ConfigurationError,
    SerializationError,
    StatementExecutionError,
)
from utils.database_utils import SqliteScratchDatabase

logger = get_logger(__name__)


def resolve_mangler(dotted_path: Optional[str]) -> Optional[NameMangler]:
    """
    Resolve the naming policy of the wrapper methods.

    Raises:
        ConfigurationError: If the policy cannot be loaded
    """
    try:
        return load_mangler(dotted_path)
    except (ImportError, TypeError) as e:
        raise ConfigurationError(f"Invalid name mangler '{dotted_path}': {e}") from e


class LoaderOrchestrator:
    """
    Top-level orchestrator of a routine loader run.

    Resolves the settings of a run (command line options over configuration),
    opens the scratch database and delegates the batch to BatchLoader.

    Attributes:
        metadata_path: File the metadata is written to
        source_pattern: Glob pattern of the sources
        source_root: Directory the pattern is relative to
        init_script: SQL script seeding the scratch database
        scratch_database: File of the scratch database, None for in memory
        volatile: Delete a file-backed scratch database before and after use
        replace_pairs: Configured placeholder values
        mangler: Naming policy of the wrapper methods
        sink: Diagnostic sink

    Example:
        >>> orchestrator = LoaderOrchestrator(init_script='etc/ddl/setup.sql')
        >>> result = orchestrator.run(['lib/psql/abc_get_user.psql'])
    """

    def __init__(
        self,
        metadata_path: Optional[Union[str, Path]] = None,
        source_pattern: Optional[str] = None,
        source_root: Optional[Union[str, Path]] = None,
        init_script: Optional[Union[str, Path]] = None,
        scratch_database: Optional[Union[str, Path]] = None,
        volatile: Optional[bool] = None,
        replace_pairs: Optional[Dict[str, str]] = None,
        mangler: Optional[NameMangler] = None,
        sink: Optional[DiagnosticSink] = None
    ):
        settings = config.loader

        self.metadata_path = metadata_path if metadata_path is not None else settings.metadata_path
        self.source_pattern = source_pattern if source_pattern is not None else settings.source_pattern
        self.source_root = source_root if source_root is not None else settings.source_root
        self.init_script = init_script if init_script is not None else settings.init_script
        self.scratch_database = (
            scratch_database if scratch_database is not None else settings.scratch_database
        )
        self.volatile = volatile if volatile is not None else settings.volatile
        self.replace_pairs = (
            replace_pairs if replace_pairs is not None else settings.load_replace_pairs()
        )
        self.mangler = mangler if mangler is not None else resolve_mangler(settings.mangler)
        self.sink = sink or LoggingDiagnosticSink()

    def validate(self, paths: Sequence[str] = ()) -> None:
        """
        Validate the settings of a run.

        Raises:
            ConfigurationError: If a mandatory setting is missing, listing
                every missing setting
        """
        # An explicit list of paths needs no source pattern
        config.validate(
            metadata_path=self.metadata_path,
            source_pattern=self.source_pattern or bool(paths)
        )

        if self.init_script and not Path(self.init_script).is_file():
            raise ConfigurationError(f"Init script not found: '{self.init_script}'")

    def open_scratch(self) -> SqliteScratchDatabase:
        """
        Open the scratch database of this run.

        Raises:
            StatementExecutionError: If a statement of the init script fails
        """
        return SqliteScratchDatabase(
            path=str(self.scratch_database) if self.scratch_database else None,
            script=str(self.init_script) if self.init_script else None,
            volatile=self.volatile
        )

    def run(self, paths: Sequence[str] = ()) -> BatchResult:
        """
        Load the routines of this run and write the metadata file.

        Args:
            paths: Explicit source files; all sources matching the source
                pattern when empty

        Returns:
            BatchResult of the run

        Raises:
            ConfigurationError: If a mandatory setting is missing
            StatementExecutionError: If the scratch database cannot be seeded
            SerializationError: If the metadata cannot be written
        """
        self.validate(paths)

        self.sink.title('Loader')

        with self.open_scratch() as scratch:
            batch = BatchLoader(
                self.sink,
                scratch,
                replace_pairs=self.replace_pairs,
                mangler=self.mangler,
                metadata_path=self.metadata_path
            )
            if paths:
                result = batch.load_list(list(paths))
            else:
                result = batch.load_all(self.source_pattern, self.source_root)

        logger.info(f"Metadata file: {self.metadata_path}")
        return result


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        description="Stored routine loader - compile pseudo-SQL sources into routine metadata",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Load all sources matching LOADER_SOURCES
  python main.py

  # Load selected sources
  python main.py lib/psql/abc_get_user.psql

  # Seed the scratch database and use camelCase wrapper method names
  python main.py --init-script etc/ddl/setup.sql --mangler loader.name_mangler:camel_case

Exit Codes:
  0    All routines loaded
  1    Routines not loaded, or a fatal error
  130  Interrupted by user
        """
    )

    parser.add_argument(
        'paths',
        nargs='*',
        help='Source files to load (default: all sources matching the source pattern)'
    )
    parser.add_argument(
        '--metadata',
        type=str,
        help='Metadata file to write (default: LOADER_METADATA)'
    )
    parser.add_argument(
        '--sources',
        type=str,
        help='Glob pattern of the sources (default: LOADER_SOURCES)'
    )
    parser.add_argument(
        '--init-script',
        type=str,
        help='SQL script seeding the scratch database (default: LOADER_INIT_SCRIPT)'
    )
    parser.add_argument(
        '--placeholders',
        type=str,
        help='dotenv-format file with placeholder values (default: LOADER_PLACEHOLDERS)'
    )
    parser.add_argument(
        '--mangler',
        type=str,
        help='Naming policy as package.module:function (default: LOADER_MANGLER)'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging (DEBUG level)'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        help='Also write the log to this file in the logs directory'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command-line interface of the routine loader.

    Exit Codes:
        0: Success
        1: Error
        130: User interrupt (Ctrl+C)
    """
    args = build_parser().parse_args(argv)

    if args.log_file:
        config.project.ensure_directories()
        setup_logging(
            log_level='DEBUG' if args.verbose else 'INFO',
            log_file=args.log_file,
            log_dir=str(config.project.logs_dir)
        )
    elif args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        for handler in logging.getLogger().handlers:
            handler.setLevel(logging.DEBUG)

    try:
        replace_pairs = read_replace_pairs(args.placeholders) if args.placeholders else None

        orchestrator = LoaderOrchestrator(
            metadata_path=args.metadata,
            source_pattern=args.sources,
            init_script=args.init_script,
            replace_pairs=replace_pairs,
            mangler=resolve_mangler(args.mangler)
        )
        result = orchestrator.run(args.paths)

        if result.succeeded:
            logger.info(f"✅ Loaded {len(result.metadata)} routine(s)")
            return 0

        logger.error(f"❌ {len(result.failed_paths)} routine(s) not loaded")
        return 1

    except ConfigurationError as e:
        logger.error(f"❌ Configuration error: {e}")
        return 1
    except StatementExecutionError as e:
        logger.error(f"❌ Unable to initialize the scratch database: {e}")
        return 1
    except SerializationError as e:
        logger.error(f"❌ Unable to write the metadata file: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("⚠️  Operation interrupted by user")
        return 130


if __name__ == '__main__':
    sys.exit(main())
