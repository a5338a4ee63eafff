#!/usr/bin/env python3
"""
Test Suite: Workflow Logger

Tests level filtering, group switches and aliases, stage banners and
run-directory file logging of the centralized logger.

Standard Output Format: TEST_RESULTS: PASSED=X TOTAL=Y SUITE="Workflow Logger"
"""
import io
import json
import sys
import tempfile
from contextlib import redirect_stdout
from pathlib import Path

# Add project root to path
project_root = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(project_root))

from src.os_identifier.logging.workflow_logger import (
    LogGroup,
    LogLevel,
    WorkflowLogger,
    get_logger,
    reinitialize_logger,
)
from src.os_identifier.storage.run_organization import create_run_directory, get_current_run_paths

TESTS = []


def test(description):
    """Decorator registering a test function with the suite"""
    def decorator(func):
        TESTS.append((description, func))
        return func
    return decorator


def make_logger(temp_dir: str, level: str = "INFO", groups=None) -> WorkflowLogger:
    config = {
        "logging": {
            "enabled": True,
            "level": level,
            "format": "[{level}] {message}",
            "groups": groups or {},
        }
    }
    config_path = Path(temp_dir) / "config.json"
    config_path.write_text(json.dumps(config), encoding='utf-8')
    return WorkflowLogger(str(config_path))


def capture(func, *args, **kwargs) -> str:
    buffer = io.StringIO()
    with redirect_stdout(buffer):
        func(*args, **kwargs)
    return buffer.getvalue()


@test("Levels - messages below the configured level are dropped")
def test_level_filtering():
    with tempfile.TemporaryDirectory() as temp_dir:
        logger = make_logger(temp_dir, level="WARNING")
        assert capture(logger.info, "hidden", group="dispatch") == ""
        assert capture(logger.warning, "shown", group="dispatch") == "[WARNING] shown\n"


@test("Levels - set_level overrides the configuration")
def test_set_level():
    with tempfile.TemporaryDirectory() as temp_dir:
        logger = make_logger(temp_dir)
        assert capture(logger.debug, "hidden", group="dispatch") == ""
        logger.set_level("debug")
        assert logger.level is LogLevel.DEBUG
        assert capture(logger.debug, "shown", group="dispatch") == "[DEBUG] shown\n"


@test("Groups - disabled group is silent")
def test_disabled_group():
    with tempfile.TemporaryDirectory() as temp_dir:
        logger = make_logger(temp_dir, groups={"DATA_REFRESH": {"enabled": False}})
        assert capture(logger.info, "hidden", group="data_refresh") == ""
        assert capture(logger.info, "shown", group="BUILD_INDEX") == "[INFO] shown\n"


@test("Groups - names and aliases resolve to log groups")
def test_group_aliases():
    assert WorkflowLogger._resolve_group("DISPATCH") is LogGroup.DISPATCH
    assert WorkflowLogger._resolve_group("reporting") is LogGroup.REPORT
    assert WorkflowLogger._resolve_group("initialization") is LogGroup.INIT
    assert WorkflowLogger._resolve_group(LogGroup.LABEL_PARSE) is LogGroup.LABEL_PARSE
    assert WorkflowLogger._resolve_group("something_else") is LogGroup.INIT


@test("Banners - stage start and end")
def test_stage_banners():
    with tempfile.TemporaryDirectory() as temp_dir:
        logger = make_logger(temp_dir)
        output = capture(logger.stage_start, "Batch Resolution", "3 labels", group="reporting")
        assert "=== Starting Batch Resolution - 3 labels ===" in output
        output = capture(logger.stage_end, "Batch Resolution", group="reporting")
        assert "=== Completed Batch Resolution ===" in output


@test("Helpers - data summary formats key/value pairs")
def test_data_summary():
    with tempfile.TemporaryDirectory() as temp_dir:
        logger = make_logger(temp_dir)
        output = capture(logger.data_summary, "Resolution", group="dispatch", labels=3, resolved=2)
        assert output == "[INFO] [Resolution]: labels=3, resolved=2\n"


@test("Config - missing file falls back to defaults")
def test_missing_config():
    with tempfile.TemporaryDirectory() as temp_dir:
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            logger = WorkflowLogger(str(Path(temp_dir) / "missing.json"))
        assert "Could not load config file" in buffer.getvalue()
        assert logger.enabled
        assert logger.level is LogLevel.INFO


@test("File logging - messages are mirrored into the run logs directory")
def test_file_logging():
    with tempfile.TemporaryDirectory() as temp_dir:
        run_path, run_id = create_run_directory("labels", is_test=True, runs_root=Path(temp_dir))
        paths = get_current_run_paths(run_path)
        assert "TEST_labels" in run_id
        assert paths["reports"].is_dir() and paths["logs"].is_dir()

        logger = make_logger(temp_dir)
        logger.set_run_logs_directory(str(paths["logs"]))
        capture(logger.start_file_logging, "resolution report")
        capture(logger.info, "written to file", group="reporting")
        log_path = Path(logger.current_log_path)
        logger.stop_file_logging()

        content = log_path.read_text(encoding='utf-8')
        assert log_path.name.endswith("_resolution_report.log")
        assert "[INFO] written to file" in content
        assert "# Completed:" in content


@test("File logging - no directory set is a warning, not an error")
def test_file_logging_without_directory():
    with tempfile.TemporaryDirectory() as temp_dir:
        logger = make_logger(temp_dir)
        output = capture(logger.start_file_logging, "no directory")
        assert "no log directory set" in output
        assert logger.log_file is None


@test("Global - reinitialize_logger replaces the shared instance")
def test_reinitialize_logger():
    original = get_logger()
    with tempfile.TemporaryDirectory() as temp_dir:
        config_path = Path(temp_dir) / "config.json"
        config_path.write_text(json.dumps({"logging": {"level": "ERROR"}}), encoding='utf-8')
        try:
            replaced = reinitialize_logger(str(config_path))
            assert replaced is get_logger()
            assert replaced is not original
            assert replaced.level is LogLevel.ERROR
        finally:
            reinitialize_logger()


def main():
    """Run all tests and output results"""
    print("=" * 80)
    print("WORKFLOW LOGGER TEST SUITE")
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
    print(f'TEST_RESULTS: PASSED={passed} TOTAL={len(TESTS)} SUITE="Workflow Logger"')
    sys.exit(0 if passed == len(TESTS) else 1)


if __name__ == "__main__":
    main()
