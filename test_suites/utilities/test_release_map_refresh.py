#!/usr/bin/env python3
"""
Test Suite: Release Table Refresh

Tests the endoflife.date refresh utility with mocked HTTP responses:
- build extraction from cycle versions
- merging resolved cycles into the release tables
- retry on request failures
- validated, atomic table writes

Standard Output Format: TEST_RESULTS: PASSED=X TOTAL=Y SUITE="Release Table Refresh"
"""
import shutil
import sys
import tempfile
from pathlib import Path
from unittest.mock import Mock, patch

import orjson
import requests

# Add project root to path
project_root = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(project_root))

from src.os_identifier.core.config_loader import load_config
from src.os_identifier.core.resolution_errors import ReleaseTableValidationError
from src.os_identifier.core.version_dispatcher import VersionDispatcher
from src.os_identifier.storage.build_index_manager import (
    WINDOWS_10_TABLE,
    WINDOWS_11_TABLE,
    WINDOWS_SERVER_TABLE,
    get_data_directory,
)
from utilities.refresh_release_build_map import (
    ReleaseRefreshStats,
    extract_build,
    fetch_cycles,
    merge_cycles,
    refresh_release_tables,
    write_table,
)

TESTS = []

SAMPLE_CYCLES = [
    {"cycle": "11-25h2-e", "latest": "10.0.26200"},
    {"cycle": "11-26h1-e", "latest": "10.0.28000"},
    {"cycle": "10-22h2", "latest": "10.0.19046"},
    {"cycle": "2025", "latest": "10.0.26100"},
    {"cycle": "2028", "latest": "10.0.30000"},
    {"cycle": "7-sp1", "latest": "6.1.7601"},
    {"cycle": "eol-1", "latest": "10.0.11111"},
]


def test(description):
    """Decorator registering a test function with the suite"""
    def decorator(func):
        TESTS.append((description, func))
        return func
    return decorator


def sample_tables():
    return {
        WINDOWS_11_TABLE: {"25H2": ["26200"]},
        WINDOWS_10_TABLE: {"22H2": ["19045"]},
        WINDOWS_SERVER_TABLE: {"2025": ["26100"]},
    }


def mock_response(payload):
    response = Mock()
    response.raise_for_status = Mock()
    response.json = Mock(return_value=payload)
    return response


@test("Builds - third version component of five digits")
def test_extract_build():
    assert extract_build("10.0.26100") == "26100"
    assert extract_build("10.0.22631.4460") == "22631"
    assert extract_build("6.1.7601") is None
    assert extract_build(None) is None
    assert extract_build(26100) is None


@test("Merge - new releases and builds land in their tables")
def test_merge_cycles():
    tables = sample_tables()
    stats = ReleaseRefreshStats()
    changed = merge_cycles(tables, SAMPLE_CYCLES, VersionDispatcher(build_indexes={}), stats)

    assert changed == {WINDOWS_11_TABLE, WINDOWS_10_TABLE, WINDOWS_SERVER_TABLE}
    assert tables[WINDOWS_11_TABLE] == {"25H2": ["26200"], "26H1": ["28000"]}
    assert tables[WINDOWS_10_TABLE] == {"22H2": ["19045", "19046"]}
    assert tables[WINDOWS_SERVER_TABLE] == {"2025": ["26100"], "2028": ["30000"]}

    assert stats.cycles_fetched == 7
    assert stats.cycles_resolved == 5
    assert stats.cycles_skipped == 2
    assert stats.releases_added == 2
    assert stats.builds_added == 3
    assert len(stats.errors) == 1


@test("Merge - cycles already present change nothing")
def test_merge_idempotent():
    tables = sample_tables()
    dispatcher = VersionDispatcher(build_indexes={})
    merge_cycles(tables, SAMPLE_CYCLES, dispatcher, ReleaseRefreshStats())
    changed = merge_cycles(tables, SAMPLE_CYCLES, dispatcher, ReleaseRefreshStats())
    assert changed == set()


@test("Fetch - request failures are retried")
def test_fetch_retry():
    failure = requests.exceptions.ConnectionError("connection reset")
    with patch("requests.get", side_effect=[failure, mock_response(SAMPLE_CYCLES)]) as mock_get:
        cycles = fetch_cycles("https://example.invalid/windows.json", {"max_attempts": 3, "retry_delay": 0})
    assert cycles == SAMPLE_CYCLES
    assert mock_get.call_count == 2


@test("Fetch - exhausted retries return None")
def test_fetch_exhausted():
    failure = requests.exceptions.Timeout("timed out")
    with patch("requests.get", side_effect=failure) as mock_get:
        cycles = fetch_cycles("https://example.invalid/windows.json", {"max_attempts": 2, "retry_delay": 0})
    assert cycles is None
    assert mock_get.call_count == 2


@test("Write - invalid tables are refused before touching the file")
def test_write_table_validation():
    with tempfile.TemporaryDirectory() as temp_dir:
        path = Path(temp_dir) / "windows_11_release_to_build.json"
        path.write_bytes(orjson.dumps({"24H2": ["26100"]}))
        try:
            write_table(path, {"24H2": ["not-a-build"]})
        except ReleaseTableValidationError:
            assert orjson.loads(path.read_bytes()) == {"24H2": ["26100"]}
            return
    raise AssertionError("Invalid table was written")


@test("Refresh - end to end against a copy of the packaged tables")
def test_refresh_end_to_end():
    config = load_config()
    source_dir = get_data_directory(config)
    with tempfile.TemporaryDirectory() as temp_dir:
        for file_name in config['build_index']['tables'].values():
            shutil.copy(source_dir / file_name, Path(temp_dir) / file_name)

        with patch("requests.get", return_value=mock_response(SAMPLE_CYCLES)):
            stats = refresh_release_tables(data_dir=Path(temp_dir), dispatcher=VersionDispatcher(build_indexes={}))

        windows_11 = orjson.loads((Path(temp_dir) / "windows_11_release_to_build.json").read_bytes())
        servers = orjson.loads((Path(temp_dir) / "windows_server_release_to_build.json").read_bytes())

    assert windows_11["26H1"] == ["28000"]
    assert servers["2028"] == ["30000"]
    assert stats.tables_written == 3
    # Both configured endpoints returned the same cycles
    assert stats.cycles_fetched == 2 * len(SAMPLE_CYCLES)


@test("Refresh - dry run leaves the tables untouched")
def test_refresh_dry_run():
    config = load_config()
    source_dir = get_data_directory(config)
    with tempfile.TemporaryDirectory() as temp_dir:
        for file_name in config['build_index']['tables'].values():
            shutil.copy(source_dir / file_name, Path(temp_dir) / file_name)
        before = (Path(temp_dir) / "windows_11_release_to_build.json").read_bytes()

        with patch("requests.get", return_value=mock_response(SAMPLE_CYCLES)):
            stats = refresh_release_tables(data_dir=Path(temp_dir), dry_run=True,
                                           dispatcher=VersionDispatcher(build_indexes={}))

        assert (Path(temp_dir) / "windows_11_release_to_build.json").read_bytes() == before
    assert stats.tables_written == 0
    assert stats.releases_added >= 2


def main():
    """Run all tests and output results"""
    print("=" * 80)
    print("RELEASE TABLE REFRESH TEST SUITE")
    print("=" * 80)

    passed = 0
    for description, func in TESTS:
        try:
            func()
            passed += 1
            print(f"  PASS: {description}")
        except AssertionError as e:
            print(f"  FAIL: {description}")
            print(f"    {e}")
        except Exception as e:
            print(f"  FAIL: {description}")
            print(f"    Unexpected error: {type(e).__name__}: {e}")

    print()
    print(f'TEST_RESULTS: PASSED={passed} TOTAL={len(TESTS)} SUITE="Release Table Refresh"')
    sys.exit(0 if passed == len(TESTS) else 1)


if __name__ == "__main__":
    main()
