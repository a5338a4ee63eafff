"""
Build Index Manager - Global singleton for release to build correspondence tables.

Each table maps a marketed release label to the build numbers that shipped
under it. Recognizers need the inverse (build -> release) plus a compiled
alternation of every release label, so tables are inverted once and shared
read-only for the lifetime of the process.

Architecture:
- Load each configured table once during initialization
- Validate against the release table schema before indexing
- Invert release -> builds into build -> [releases] keeping insertion order
- Singleton pattern for session-wide reuse

Usage:
    from ..storage.build_index_manager import get_global_build_index_manager

    manager = get_global_build_index_manager()
    if not manager.is_initialized():
        manager.initialize()

    release = manager.get_index('windows_11').resolve_build('26100')   # '24H2'
"""

from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Pattern, Sequence

import orjson

from ..core.config_loader import load_config
from ..core.keyword_matcher import build_alternation
from ..core.resolution_errors import BuildIndexError, UnknownBuildError
from ..core.schema_validator import validate_release_table
from ..logging.workflow_logger import get_logger

logger = get_logger()

WINDOWS_11_TABLE = 'windows_11'
WINDOWS_10_TABLE = 'windows_10'
WINDOWS_SERVER_TABLE = 'windows_server'
WINDOWS_SERVER_SEMI_ANNUAL_TABLE = 'windows_server_semi_annual'

# Global singleton instance
_global_build_index_manager = None


class BuildIndex:
    """
    Immutable reverse index over one release to build table.

    A build normally belongs to one release. When the source data lists the
    same build under several releases, lookups return the release that was
    inserted first.
    """

    def __init__(self, name: str, release_to_builds: Mapping[str, Sequence[str]]):
        self.name = name
        build_to_releases: Dict[str, List[str]] = {}
        releases: List[str] = []
        for release, builds in release_to_builds.items():
            label = str(release).upper()
            releases.append(label)
            for build in builds:
                bucket = build_to_releases.setdefault(str(build), [])
                if label not in bucket:
                    bucket.append(label)
        self._build_to_releases = {build: tuple(labels) for build, labels in build_to_releases.items()}
        self._releases = tuple(releases)
        self._release_pattern: Optional[Pattern] = build_alternation(self._releases)

    @property
    def releases(self) -> tuple:
        return self._releases

    def builds(self) -> Iterator[str]:
        return iter(self._build_to_releases)

    def __contains__(self, build: str) -> bool:
        return build in self._build_to_releases

    def __len__(self) -> int:
        return len(self._build_to_releases)

    def releases_for_build(self, build: str) -> tuple:
        """Every release that shipped ``build`` in insertion order (empty when unknown)."""
        return self._build_to_releases.get(build, ())

    def resolve_build(self, build: str) -> str:
        """
        Resolve a build number to its release label.

        Raises:
            UnknownBuildError: If the build is not in the table
        """
        releases = self._build_to_releases.get(build)
        if not releases:
            raise UnknownBuildError(build, self.name)
        return releases[0]

    def identify_release(self, text: str) -> Optional[str]:
        """Find a known release label anywhere in ``text`` as a whole word (upper-cased)."""
        if self._release_pattern is None:
            return None
        match = self._release_pattern.search(text)
        return match.group(1).upper() if match else None

    def is_known_release(self, release: str) -> bool:
        return release.upper() in self._releases

    def __repr__(self):
        return f"BuildIndex({self.name!r}, releases={len(self._releases)}, builds={len(self)})"


def load_release_table(table_path: Path) -> Dict[str, List[str]]:
    """
    Read and validate one release to build table.

    Raises:
        BuildIndexError: If the file is missing or is not valid JSON
        ReleaseTableValidationError: If the content fails schema validation
    """
    try:
        with open(table_path, 'rb') as f:
            data = orjson.loads(f.read())
    except FileNotFoundError as e:
        raise BuildIndexError(f"Release table not found: {table_path}") from e
    except orjson.JSONDecodeError as e:
        raise BuildIndexError(f"Release table is not valid JSON: {table_path}: {e}") from e

    validate_release_table(data, table_path.name)
    return data


def get_data_directory(config: Optional[dict] = None) -> Path:
    """Directory holding the release tables (relative to the package)"""
    config = config or load_config()
    relative = config.get('build_index', {}).get('data_directory', 'data/windows')
    return Path(__file__).resolve().parent.parent / relative


class BuildIndexManager:
    """
    Manager for the release to build tables.

    Loads every configured table once and hands out read-only BuildIndex
    instances by table name.
    """

    def __init__(self):
        """Initialize manager (does not load data - call initialize() explicitly)."""
        self._initialized = False
        self._indexes: Dict[str, BuildIndex] = {}
        self._files_loaded: List[str] = []

    def initialize(self, data_dir: Optional[Path] = None,
                   tables: Optional[Mapping[str, str]] = None) -> 'BuildIndexManager':
        """
        Load and index every release table.

        Args:
            data_dir: Directory containing the table JSON files (from config.json if None)
            tables: Table name -> file name (from config.json if None)

        Returns:
            Self for chaining
        """
        if self._initialized:
            logger.debug("Build index manager already initialized", group="BUILD_INDEX")
            return self

        config = load_config()
        if data_dir is None:
            data_dir = get_data_directory(config)
        if tables is None:
            tables = config.get('build_index', {}).get('tables', {})

        logger.info(f"Loading {len(tables)} release tables from {data_dir}", group="BUILD_INDEX")

        for name, file_name in tables.items():
            table_path = Path(data_dir) / file_name
            self._indexes[name] = BuildIndex(name, load_release_table(table_path))
            self._files_loaded.append(file_name)
            logger.debug(f"Indexed {table_path.name}: {self._indexes[name]!r}", group="BUILD_INDEX")

        logger.info(
            f"Build index manager initialized: {len(self._indexes)} tables, "
            f"{sum(len(index) for index in self._indexes.values())} builds indexed",
            group="BUILD_INDEX"
        )
        self._initialized = True
        return self

    def initialize_from_tables(self, tables: Mapping[str, Mapping[str, Sequence[str]]]) -> 'BuildIndexManager':
        """Index in-memory tables (already validated by the caller)."""
        self._indexes = {name: BuildIndex(name, table) for name, table in tables.items()}
        self._files_loaded = []
        self._initialized = True
        return self

    def get_index(self, name: str) -> BuildIndex:
        if not self._initialized:
            self.initialize()
        try:
            return self._indexes[name]
        except KeyError:
            raise BuildIndexError(f"No release table named {name!r} is configured") from None

    def get_indexes(self) -> Dict[str, BuildIndex]:
        if not self._initialized:
            self.initialize()
        return dict(self._indexes)

    def is_initialized(self) -> bool:
        return self._initialized

    def get_stats(self) -> Dict[str, object]:
        return {
            'initialized': self._initialized,
            'tables': len(self._indexes),
            'files_loaded': list(self._files_loaded),
            'builds': {name: len(index) for name, index in self._indexes.items()},
            'releases': {name: len(index.releases) for name, index in self._indexes.items()},
        }


def get_global_build_index_manager() -> BuildIndexManager:
    """
    Get the global singleton build index manager instance.

    Returns:
        BuildIndexManager singleton (may not be initialized yet)
    """
    global _global_build_index_manager
    if _global_build_index_manager is None:
        _global_build_index_manager = BuildIndexManager()
    return _global_build_index_manager


def reset_global_build_index_manager():
    """Drop the singleton so the next access reloads the tables (used after a refresh)."""
    global _global_build_index_manager
    _global_build_index_manager = None
