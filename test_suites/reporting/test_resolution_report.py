#!/usr/bin/env python3
"""
Test Suite: Resolution Report

Tests batch resolution into DataFrames, summary statistics and the CSV /
JSON report files written by the report builder.

Standard Output Format: TEST_RESULTS: PASSED=X TOTAL=Y SUITE="Resolution Report"
"""
import sys
import tempfile
from pathlib import Path

import orjson
import pandas as pd

# Add project root to path
project_root = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(project_root))

from src.os_identifier.core.version_dispatcher import VersionDispatcher
from src.os_identifier.reporting.generate_resolution_report import (
    REPORT_COLUMNS,
    ResolutionReportBuilder,
    explode_display_names,
    generate_report,
    resolve_labels,
    summarize,
)

TESTS = []

SAMPLE_LABELS = ["11-24h2-e", "Windows Server 2019 Standard", "eol-1", "Windows 10 Pro 99999"]


def test(description):
    """Decorator registering a test function with the suite"""
    def decorator(func):
        TESTS.append((description, func))
        return func
    return decorator


def sample_frame() -> pd.DataFrame:
    return resolve_labels(SAMPLE_LABELS, VersionDispatcher(), show_progress=False)


@test("Batch - one row per label with the report columns")
def test_resolve_labels_rows():
    df = sample_frame()
    assert list(df.columns) == REPORT_COLUMNS
    assert len(df) == len(SAMPLE_LABELS)
    assert df['resolved'].tolist() == [True, True, False, False]
    assert df.loc[0, 'family'] == "windows_11"
    assert df.loc[0, 'display_names'][1] == "Microsoft Windows 11 Enterprise 24H2"
    assert df.loc[1, 'label_type'] == "free_text"
    assert df.loc[2, 'error_kind'] == "unknown_operating_system"


@test("Batch - summary counts families and failures")
def test_summary():
    summary = summarize(sample_frame())
    assert summary['total_labels'] == 4
    assert summary['resolved'] == 2
    assert summary['unresolved'] == 2
    assert summary['structured_labels'] == 2
    assert summary['by_family'] == {"windows_11": 1, "windows_server_2019ff": 1}
    assert summary['by_error_kind'] == {"unknown_operating_system": 2}
    assert summary['display_names'] == 4


@test("Batch - display names explode to one row each")
def test_explode_display_names():
    flat = explode_display_names(sample_frame())
    assert len(flat) == 4
    assert "display_name" in flat.columns
    assert flat['display_name'].tolist()[-1] == "Microsoft Windows Server 2019 Standard"


@test("Batch - empty input summarizes to zeros")
def test_empty_batch():
    summary = summarize(resolve_labels([], VersionDispatcher(), show_progress=False))
    assert summary['total_labels'] == 0
    assert summary['resolved'] == 0
    assert summary['by_family'] == {}


@test("Report - CSV joins list columns with the separator")
def test_csv_report():
    builder = ResolutionReportBuilder(dispatcher=VersionDispatcher(), separator=" | ")
    builder.add_labels(["11-24h2-e", "eol-1"], show_progress=False)
    with tempfile.TemporaryDirectory() as temp_dir:
        path = builder.write(str(Path(temp_dir) / "nested" / "report.csv"), "csv")
        df = pd.read_csv(path)
        assert not Path(temp_dir, "nested", "report.tmp").exists()
    assert len(df) == 2
    assert df.loc[0, 'display_names'].count(" | ") == 2
    assert df.loc[0, 'editions'] == "Education | Enterprise | Enterprise multi-session"


@test("Report - JSON carries metadata and records")
def test_json_report():
    builder = ResolutionReportBuilder(dispatcher=VersionDispatcher())
    builder.add_labels(["10-1607-e-lts"], show_progress=False)
    builder.add_labels(["eol-1"], show_progress=False)
    with tempfile.TemporaryDirectory() as temp_dir:
        path = builder.write(str(Path(temp_dir) / "report.json"), "json")
        payload = orjson.loads(Path(path).read_bytes())
    assert payload['metadata']['total_labels'] == 2
    assert payload['metadata']['resolved'] == 1
    assert payload['labels'][0]['service_channel'] == "LTSB"
    assert payload['labels'][1]['resolved'] is False


@test("Report - unsupported format is refused")
def test_unsupported_format():
    builder = ResolutionReportBuilder(dispatcher=VersionDispatcher())
    with tempfile.TemporaryDirectory() as temp_dir:
        try:
            builder.write(str(Path(temp_dir) / "report.xml"), "xml")
        except ValueError as e:
            assert "xml" in str(e)
            return
    raise AssertionError("XML report was written")


@test("Report - generate_report reads a label file")
def test_generate_report():
    with tempfile.TemporaryDirectory() as temp_dir:
        label_file = Path(temp_dir) / "labels.txt"
        label_file.write_text("# exported\n2019\n7-sp1\n", encoding='utf-8')
        path = generate_report(str(label_file), str(Path(temp_dir) / "report.csv"),
                               dispatcher=VersionDispatcher(), show_progress=False)
        df = pd.read_csv(path)
    assert df['input'].tolist() == ["2019", "7-sp1"]
    assert df['resolved'].all()


@test("Report - missing label file raises FileNotFoundError")
def test_generate_report_missing_input():
    with tempfile.TemporaryDirectory() as temp_dir:
        try:
            generate_report(str(Path(temp_dir) / "missing.txt"), str(Path(temp_dir) / "report.csv"))
        except FileNotFoundError:
            return
    raise AssertionError("Report generated without an input file")


def main():
    """Run all tests and output results"""
    print("=" * 80)
    print("RESOLUTION REPORT TEST SUITE")
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
    print(f'TEST_RESULTS: PASSED={passed} TOTAL={len(TESTS)} SUITE="Resolution Report"')
    sys.exit(0 if passed == len(TESTS) else 1)


if __name__ == "__main__":
    main()
