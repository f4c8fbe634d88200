"""
================================================
Configuration management for the routine loader.
================================================

Loads all configuration from environment variables (.env file) and provides
a centralized Config singleton for application-wide access.

The configuration system ensures:
- Single source of truth for all settings
- Type conversion of flags and paths
- Relative paths resolved against the project root
- Validation reporting every missing setting at once

Example:
    >>> from core.config import config
    >>>
    >>> print(f"Metadata file: {config.loader.metadata_path}")
    >>> pairs = config.loader.load_replace_pairs()
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

from dotenv import dotenv_values, load_dotenv

from logs.error_handler import ConfigurationError

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path)

TRUE_VALUES = ('1', 'true', 'yes', 'on')


def _optional(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return None
    return value.strip()


def _flag(name: str, default: bool = False) -> bool:
    value = _optional(name)
    if value is None:
        return default
    return value.lower() in TRUE_VALUES


def read_replace_pairs(path: Union[str, Path]) -> Dict[str, str]:
    """Read placeholder values from a dotenv-format file.

    Each ``NAME=value`` line defines the placeholder ``@NAME@``. Values
    are used verbatim, so string literals must carry their own quotes,
    e.g. ``SCHEMA="'main'"``.

    Raises:
        ConfigurationError: If the file does not exist
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Placeholders file not found: '{path}'")

    values = dotenv_values(dotenv_path=path)
    return {name: value for name, value in values.items() if value is not None}


@dataclass
class LoaderConfig:
    """Routine loader settings.

    Attributes:
        metadata_path: File the routine metadata is written to
        source_root: Directory source_pattern is relative to
        source_pattern: Glob pattern of the pseudo-SQL sources
        mangler: Dotted path of the wrapper method naming policy
        placeholders_file: dotenv-format file with placeholder values
        init_script: SQL script seeding the scratch database
        scratch_database: File of the scratch database (None for in memory)
        volatile: Delete a file-backed scratch database before and after use
    """

    metadata_path: Optional[Path]
    source_root: Path
    source_pattern: Optional[str]
    mangler: Optional[str] = None
    placeholders_file: Optional[Path] = None
    init_script: Optional[Path] = None
    scratch_database: Optional[Path] = None
    volatile: bool = False

    def load_replace_pairs(self) -> Dict[str, str]:
        """Read the placeholder values from the placeholders file.

        Returns:
            Mapping from placeholder name to value (empty without file)

        Raises:
            ConfigurationError: If the configured file does not exist
        """
        if self.placeholders_file is None:
            return {}
        return read_replace_pairs(self.placeholders_file)


@dataclass
class ProjectConfig:
    """Project-wide configuration settings.

    Attributes:
        project_root: Absolute path to project root directory
        logs_dir: Path to logs directory
    """

    project_root: Path
    logs_dir: Path

    def ensure_directories(self) -> None:
        """Create project directories if they don't exist.

        Safe to call multiple times (idempotent).
        """
        self.logs_dir.mkdir(parents=True, exist_ok=True)


class Config:
    """Centralized configuration manager.

    Provides access to all configuration settings loaded from environment
    variables (.env file).

    Attributes:
        loader: LoaderConfig instance with routine loader settings
        project: ProjectConfig instance with project directory paths

    Example:
        >>> config = Config()
        >>> config.validate()
        >>> print(f"Loading {config.loader.source_pattern} from {config.loader.source_root}")
    """

    def __init__(self):
        """Initialize configuration from environment variables.

        Relative paths are resolved against the project root, which is
        taken from LOADER_PROJECT_ROOT or the current working directory.
        """
        project_root = Path(os.getenv('LOADER_PROJECT_ROOT', os.getcwd())).resolve()
        self.project = ProjectConfig(
            project_root=project_root,
            logs_dir=project_root / os.getenv('LOADER_LOGS_DIR', 'logs')
        )

        source_root = _optional('LOADER_SOURCE_ROOT')
        self.loader = LoaderConfig(
            metadata_path=self._path(os.getenv('LOADER_METADATA', 'etc/routines.json')),
            source_root=self._path(source_root) if source_root else project_root,
            source_pattern=os.getenv('LOADER_SOURCES', 'lib/psql/**/*.psql').strip() or None,
            mangler=_optional('LOADER_MANGLER'),
            placeholders_file=self._path(_optional('LOADER_PLACEHOLDERS')),
            init_script=self._path(_optional('LOADER_INIT_SCRIPT')),
            scratch_database=self._path(_optional('LOADER_SCRATCH_DB')),
            volatile=_flag('LOADER_SCRATCH_VOLATILE')
        )

    def _path(self, value: Optional[str]) -> Optional[Path]:
        """Resolve a configured path against the project root."""
        if value is None or value.strip() == '':
            return None
        path = Path(value.strip())
        if not path.is_absolute():
            path = self.project.project_root / path
        return path

    def validate(self, **overrides) -> None:
        """Validate required configuration exists.

        Args:
            **overrides: Effective values of loader settings (e.g. taken
                from command line options) checked instead of the
                configured ones

        Raises:
            ConfigurationError: If any required setting is missing, with a
                message listing all missing items
        """
        required_configs = [
            ('metadata_path', 'Metadata file (--metadata or LOADER_METADATA)'),
            ('source_pattern', 'Source pattern (--sources or LOADER_SOURCES)')
        ]

        missing = []
        for attr, description in required_configs:
            value = overrides[attr] if attr in overrides else getattr(self.loader, attr, None)
            if not value:
                missing.append(description)

        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}. "
                f"Please check your .env file."
            )


# Global configuration instance
config = Config()
