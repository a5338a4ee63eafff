#!/usr/bin/env python3
"""
Release Table Refresh Utility

Refreshes the release -> build tables under src/os_identifier/data/windows
from the endoflife.date product cycles. Each cycle label is resolved with the
dispatcher to find its family and release, and the build number is taken
from the cycle's latest version (10.0.<build>). New builds are appended;
existing releases keep their order so build lookups stay stable.

Usage:
    python -m utilities.refresh_release_build_map
    python -m utilities.refresh_release_build_map --dry-run
"""

import argparse
import sys
from datetime import datetime, timezone
from pathlib import Path
from time import sleep
from typing import Any, Dict, List, Optional, Tuple

import orjson
import requests

from src.os_identifier.core.canonical_record import CanonicalRecord, OSFamily
from src.os_identifier.core.config_loader import TOOLNAME, VERSION, load_config
from src.os_identifier.core.resolution_errors import OSIdentifierError
from src.os_identifier.core.schema_validator import validate_release_table
from src.os_identifier.core.version_dispatcher import VersionDispatcher, reset_default_dispatcher
from src.os_identifier.logging.workflow_logger import end_release_refresh, get_logger, start_release_refresh
from src.os_identifier.storage.build_index_manager import (
    WINDOWS_10_TABLE,
    WINDOWS_11_TABLE,
    WINDOWS_SERVER_SEMI_ANNUAL_TABLE,
    WINDOWS_SERVER_TABLE,
    get_data_directory,
    load_release_table,
    reset_global_build_index_manager,
)

logger = get_logger()

ReleaseTables = Dict[str, Dict[str, List[str]]]


class ReleaseRefreshStats:
    """Track refresh operation statistics"""

    def __init__(self):
        self.start_time = datetime.now(timezone.utc)
        self.cycles_fetched: int = 0
        self.cycles_resolved: int = 0
        self.cycles_skipped: int = 0
        self.builds_added: int = 0
        self.releases_added: int = 0
        self.tables_written: int = 0
        self.errors: List[str] = []

    def report(self) -> str:
        """Generate human-readable statistics report"""
        elapsed = (datetime.now(timezone.utc) - self.start_time).total_seconds()
        lines = [
            "\n" + "=" * 80,
            "RELEASE TABLE REFRESH SUMMARY",
            "=" * 80,
            f"Cycles fetched:            {self.cycles_fetched:,}",
            f"Cycles resolved:           {self.cycles_resolved:,}",
            f"Cycles skipped:            {self.cycles_skipped:,}",
            f"Releases added:            {self.releases_added:,}",
            f"Builds added:              {self.builds_added:,}",
            f"Tables written:            {self.tables_written:,}",
            f"Elapsed time:              {elapsed:.1f}s",
        ]
        if self.errors:
            lines.append(f"\nErrors encountered:        {len(self.errors)}")
            for error in self.errors[:5]:
                lines.append(f"  - {error}")
            if len(self.errors) > 5:
                lines.append(f"  ... and {len(self.errors) - 5} more")
        lines.append("=" * 80 + "\n")
        return "\n".join(lines)


def fetch_cycles(endpoint: str, refresh_config: Dict[str, Any]) -> Optional[List[Dict[str, Any]]]:
    """Fetch the product cycles of one endoflife.date product, retrying on request errors."""
    headers = {
        "Accept": "application/json",
        "User-Agent": f"{TOOLNAME}/{VERSION}"
    }
    max_retries = refresh_config.get('max_attempts', 3)
    timeout = refresh_config.get('timeout', 30)

    for attempt in range(max_retries):
        try:
            logger.api_call(endpoint, group="data_refresh")
            response = requests.get(endpoint, headers=headers, timeout=timeout)
            response.raise_for_status()
            cycles = response.json()
            logger.api_response(endpoint, "Success", count=len(cycles), group="data_refresh")
            return cycles
        except requests.exceptions.RequestException as e:
            logger.error(f"endoflife.date request failed (Attempt {attempt + 1}/{max_retries}) - {e}",
                         group="data_refresh")
            if attempt < max_retries - 1:
                wait_time = refresh_config.get('retry_delay', 5)
                logger.warning(f"Waiting {wait_time} seconds before retry...", group="data_refresh")
                sleep(wait_time)
            else:
                logger.error(f"Maximum retry attempts ({max_retries}) reached for {endpoint}", group="data_refresh")
    return None


def extract_build(latest: Any) -> Optional[str]:
    """``10.0.26100`` -> ``26100``; anything else -> None."""
    if not isinstance(latest, str):
        return None
    parts = latest.split('.')
    if len(parts) >= 3 and len(parts[2]) == 5 and parts[2].isdigit():
        return parts[2]
    return None


def table_entry_for(record: CanonicalRecord) -> Optional[Tuple[str, str]]:
    """(table name, release label) a resolved cycle belongs to, or None for families without a table."""
    if record.family is OSFamily.WINDOWS_11:
        return WINDOWS_11_TABLE, record.release
    if record.family is OSFamily.WINDOWS_10:
        return WINDOWS_10_TABLE, record.release
    if record.family is OSFamily.WINDOWS_SERVER_SEMI_ANNUAL:
        return WINDOWS_SERVER_SEMI_ANNUAL_TABLE, record.release
    if record.family in (OSFamily.WINDOWS_SERVER_2019FF, OSFamily.WINDOWS_SERVER_2016):
        return WINDOWS_SERVER_TABLE, record.product.rsplit(' ', 1)[-1]
    return None


def merge_cycles(tables: ReleaseTables, cycles: List[Dict[str, Any]], dispatcher: VersionDispatcher,
                 stats: ReleaseRefreshStats) -> set:
    """Merge cycle builds into ``tables`` in place; returns the names of the changed tables."""
    changed = set()
    for cycle in cycles:
        stats.cycles_fetched += 1
        label = str(cycle.get('cycle', ''))
        build = extract_build(cycle.get('latest'))
        if build is None:
            stats.cycles_skipped += 1
            logger.debug(f"Skipping cycle {label!r}: no build in latest={cycle.get('latest')!r}",
                         group="data_refresh")
            continue

        try:
            record = dispatcher.resolve(label)
        except OSIdentifierError as e:
            stats.cycles_skipped += 1
            stats.errors.append(str(e))
            logger.warning(f"Skipping cycle {label!r}: {e}", group="data_refresh")
            continue

        entry = table_entry_for(record)
        if entry is None or entry[0] not in tables or not entry[1]:
            stats.cycles_skipped += 1
            continue

        stats.cycles_resolved += 1
        table_name, release = entry
        builds = tables[table_name].get(release)
        if builds is None:
            tables[table_name][release] = [build]
            stats.releases_added += 1
            stats.builds_added += 1
            changed.add(table_name)
            logger.info(f"New release {release} ({build}) in {table_name}", group="data_refresh")
        elif build not in builds:
            builds.append(build)
            stats.builds_added += 1
            changed.add(table_name)
            logger.info(f"New build {build} for {release} in {table_name}", group="data_refresh")
    return changed


def write_table(table_path: Path, table: Dict[str, List[str]]) -> None:
    """Validate then atomically replace one table file."""
    validate_release_table(table, table_path.name)
    temp_file = table_path.with_suffix('.tmp')
    try:
        temp_file.write_bytes(orjson.dumps(table, option=orjson.OPT_INDENT_2) + b"\n")
        temp_file.replace(table_path)
    except OSError:
        if temp_file.exists():
            temp_file.unlink()
        raise
    logger.file_operation("saved", str(table_path), group="data_refresh")


def refresh_release_tables(data_dir: Optional[Path] = None, dry_run: bool = False,
                           dispatcher: Optional[VersionDispatcher] = None) -> ReleaseRefreshStats:
    """Fetch every configured endpoint and merge the cycles into the release tables."""
    config = load_config()
    refresh_config = config.get('release_refresh', {})
    table_files = config.get('build_index', {}).get('tables', {})
    data_dir = Path(data_dir) if data_dir else get_data_directory(config)

    stats = ReleaseRefreshStats()
    tables: ReleaseTables = {name: load_release_table(data_dir / file_name)
                             for name, file_name in table_files.items()}
    dispatcher = dispatcher or VersionDispatcher()

    changed = set()
    for product, endpoint in refresh_config.get('endpoints', {}).items():
        cycles = fetch_cycles(endpoint, refresh_config)
        if cycles is None:
            stats.errors.append(f"Unable to fetch {product} cycles from {endpoint}")
            continue
        changed |= merge_cycles(tables, cycles, dispatcher, stats)

    if dry_run:
        logger.info(f"Dry run: {len(changed)} tables would change: {sorted(changed)}", group="data_refresh")
        return stats

    for table_name in sorted(changed):
        write_table(data_dir / table_files[table_name], tables[table_name])
        stats.tables_written += 1

    if changed:
        reset_global_build_index_manager()
        reset_default_dispatcher()
    return stats


def main():
    """Entry point for the release table refresh utility"""
    parser = argparse.ArgumentParser(
        description='Refresh the release to build tables from endoflife.date',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m utilities.refresh_release_build_map
  python -m utilities.refresh_release_build_map --dry-run
  python -m utilities.refresh_release_build_map --data-dir /tmp/windows_tables
        """
    )
    parser.add_argument('--dry-run', action='store_true', help='Report changes without writing the tables')
    parser.add_argument('--data-dir', help='Directory holding the release tables (default: packaged data)')
    args = parser.parse_args()

    start_release_refresh("dry run" if args.dry_run else "")
    try:
        stats = refresh_release_tables(data_dir=args.data_dir, dry_run=args.dry_run)
    except OSIdentifierError as e:
        logger.error(f"Release table refresh failed: {e}", group="data_refresh")
        return 1
    print(stats.report())
    end_release_refresh(f"{stats.builds_added} builds added")
    return 1 if stats.errors and stats.cycles_resolved == 0 else 0


if __name__ == "__main__":
    sys.exit(main())
