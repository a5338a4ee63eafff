#!/usr/bin/env python3
"""
Workflow Logger for the OS Identifier

Console logging split into groups that follow a label through the tool:
release table loading, label classification, recognizer dispatch, batch
reports and the release table refresh. Each group can be switched off or
colored from the ``logging`` section of config.json, and a run can mirror
everything it prints into a file under its run directory.
"""

import json
import os
import re
import sys
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, Any


class LogLevel(Enum):
    """Severity of a log line"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogGroup(Enum):
    """Stage of label resolution a log line belongs to"""
    INIT = "INIT"
    LABEL_PARSE = "LABEL_PARSE"
    DISPATCH = "DISPATCH"
    BUILD_INDEX = "BUILD_INDEX"
    REPORT = "REPORT"
    DATA_REFRESH = "DATA_REFRESH"


_GROUP_ALIASES = {
    "initialization": LogGroup.INIT,
    "init": LogGroup.INIT,
    "label_parse": LogGroup.LABEL_PARSE,
    "classification": LogGroup.LABEL_PARSE,
    "dispatch": LogGroup.DISPATCH,
    "resolution": LogGroup.DISPATCH,
    "build_index": LogGroup.BUILD_INDEX,
    "report": LogGroup.REPORT,
    "reporting": LogGroup.REPORT,
    "data_refresh": LogGroup.DATA_REFRESH,
    "refresh": LogGroup.DATA_REFRESH,
}

_SEVERITY = {
    LogLevel.DEBUG: 10,
    LogLevel.INFO: 20,
    LogLevel.WARNING: 30,
    LogLevel.ERROR: 40,
}

_ANSI_COLORS = {
    'blue': '\033[94m',
    'green': '\033[92m',
    'yellow': '\033[93m',
    'cyan': '\033[96m',
    'magenta': '\033[95m',
    'white': '\033[97m',
    'red': '\033[91m',
}
_ANSI_RESET = '\033[0m'
_ANSI_PATTERN = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')
_UNSAFE_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\s]')

_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / 'config.json'


def _utc_now(pattern: str) -> str:
    return datetime.now(timezone.utc).strftime(pattern)


class WorkflowLogger:
    """Grouped console logger with optional per-run log file"""

    def __init__(self, config_path: Optional[str] = None):
        settings = self._read_settings(config_path).get('logging', {})
        self.enabled = settings.get('enabled', True)
        self.level = LogLevel(settings.get('level', 'INFO'))
        self.format_string = settings.get('format', '[{timestamp}] [{level}] {message}')
        self.groups = settings.get('groups', {})

        self.log_directory = None
        self.log_file = None
        self.current_log_path = None
        self.use_colors = sys.stdout.isatty() and os.name != 'nt'

    @staticmethod
    def _read_settings(config_path: Optional[str]) -> Dict[str, Any]:
        """Read config.json, returning an empty mapping when it is unusable"""
        path = Path(config_path) if config_path else _DEFAULT_CONFIG_PATH
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            print(f"Warning: Could not load config file {path}: {e}")
            return {}

    def set_level(self, level: str):
        """Replace the configured minimum level, e.g. for --verbose"""
        self.level = LogLevel(level.upper())

    def set_run_logs_directory(self, run_logs_path: str):
        self.log_directory = run_logs_path

    @staticmethod
    def _resolve_group(group) -> LogGroup:
        if isinstance(group, LogGroup):
            return group
        name = str(group)
        if name.upper() in LogGroup.__members__:
            return LogGroup[name.upper()]
        return _GROUP_ALIASES.get(name.lower(), LogGroup.INIT)

    def _group_settings(self, group: LogGroup) -> Dict[str, Any]:
        return self.groups.get(group.value, {})

    def _is_active(self, group: LogGroup) -> bool:
        return self.enabled and self._group_settings(group).get('enabled', True)

    def _passes_level(self, level: LogLevel) -> bool:
        return _SEVERITY[level] >= _SEVERITY[self.level]

    def _paint(self, group: LogGroup, text: str) -> str:
        if not self.use_colors:
            return text
        color = _ANSI_COLORS.get(self._group_settings(group).get('color', 'white'), '')
        return f"{color}{text}{_ANSI_RESET}"

    def _emit(self, line: str):
        """Write one line to stdout and, when open, to the run log file"""
        try:
            print(line, flush=True)
        except UnicodeEncodeError:
            print(line.encode('ascii', errors='replace').decode('ascii'), flush=True)

        if self.log_file is None:
            return
        try:
            self.log_file.write(_ANSI_PATTERN.sub('', line) + '\n')
            self.log_file.flush()
        except OSError as e:
            print(f"Warning: Log file write failed: {e}")

    def log(self, level: LogLevel, group, message: str):
        resolved = self._resolve_group(group)
        if not self._is_active(resolved) or not self._passes_level(level):
            return
        line = self.format_string.format(
            timestamp=_utc_now('%Y-%m-%d %H:%M:%S'),
            level=level.value,
            message=message,
        )
        self._emit(line)

    def debug(self, message: str, group: str = "initialization"):
        self.log(LogLevel.DEBUG, group, message)

    def info(self, message: str, group: str = "initialization"):
        self.log(LogLevel.INFO, group, message)

    def warning(self, message: str, group: str = "initialization"):
        self.log(LogLevel.WARNING, group, message)

    def error(self, message: str, group: str = "dispatch"):
        self.log(LogLevel.ERROR, group, message)

    def _banner(self, group, text: str):
        resolved = self._resolve_group(group)
        if self._is_active(resolved):
            self._emit(self._paint(resolved, f"[{_utc_now('%Y-%m-%d %H:%M:%S')}] {text}"))

    def stage_start(self, stage_name: str, details: str = "", group: str = "initialization"):
        """Banner opening a stage; printed regardless of level"""
        suffix = f" - {details}" if details else ""
        self._banner(group, f"=== Starting {stage_name}{suffix} ===")

    def stage_end(self, stage_name: str, details: str = "", group: str = "initialization"):
        """Banner closing a stage"""
        suffix = f" - {details}" if details else ""
        self._banner(group, f"=== Completed {stage_name}{suffix} ===")

    def api_call(self, endpoint: str, params: Dict[str, Any] = None, group: str = "data_refresh"):
        query = f" with params: {params}" if params else ""
        self.info(f"Requesting {endpoint}{query}", group=group)

    def api_response(self, endpoint: str, status: str, count: int = None, group: str = "data_refresh"):
        received = f" ({count} records)" if count is not None else ""
        self.info(f"Response from {endpoint}: {status}{received}", group=group)

    def data_summary(self, operation: str, group: str = "dispatch", **kwargs):
        """One line of key=value counters for an operation"""
        pairs = ", ".join(f"{key}={value}" for key, value in kwargs.items())
        self.info(f"[{operation}]: {pairs}", group=group)

    def file_operation(self, operation: str, filepath: str, details: str = "", group: str = "reporting"):
        suffix = f" - {details}" if details else ""
        self.info(f"File {operation}: {filepath}{suffix}", group=group)

    def start_file_logging(self, run_parameters: str):
        """Mirror output into ``<logs>/<date>_<run_parameters>.log``

        Needs set_run_logs_directory() first. Reopening the same file is a no-op;
        a different file closes the current one.
        """
        if not self.enabled:
            return
        if not self.log_directory:
            print("Warning: File logging skipped - no log directory set (see set_run_logs_directory).")
            return

        file_name = f"{_utc_now('%Y.%m.%d')}_{_UNSAFE_FILENAME_CHARS.sub('_', run_parameters)}.log"
        log_path = os.path.join(self.log_directory, file_name)
        if self.log_file is not None:
            if self.current_log_path == log_path:
                return
            self.stop_file_logging()

        try:
            os.makedirs(self.log_directory, exist_ok=True)
            self.log_file = open(log_path, 'a', encoding='utf-8')
            self.log_file.write(f"# Started: {_utc_now('%Y-%m-%d %H:%M:%S')}\n")
            self.log_file.write(f"# Run: {run_parameters}\n\n")
            self.log_file.flush()
        except OSError as e:
            print(f"Warning: Log file could not be opened: {e}")
            self.log_file = None
            return

        self.current_log_path = log_path
        print(f"[{_utc_now('%Y-%m-%d %H:%M:%S')}] [INFO] Log file: {log_path}")

    def stop_file_logging(self):
        if self.log_file is None:
            return
        try:
            self.log_file.write(f"\n# Completed: {_utc_now('%Y-%m-%d %H:%M:%S')}\n")
            self.log_file.close()
        except OSError as e:
            print(f"Warning: Log file did not close cleanly: {e}")
        finally:
            self.log_file = None
            self.current_log_path = None


_logger_instance = None


def get_logger() -> WorkflowLogger:
    """Shared logger, created from the packaged config on first use"""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = WorkflowLogger()
    return _logger_instance


def reinitialize_logger(config_path: Optional[str] = None) -> WorkflowLogger:
    """Replace the shared logger with one built from another config file"""
    global _logger_instance
    _logger_instance = WorkflowLogger(config_path)
    return _logger_instance


def start_batch_resolution(details: str = ""):
    get_logger().stage_start("Batch Resolution", details, group="reporting")


def end_batch_resolution(details: str = ""):
    get_logger().stage_end("Batch Resolution", details, group="reporting")


def start_release_refresh(details: str = ""):
    get_logger().stage_start("Release Table Refresh", details, group="data_refresh")


def end_release_refresh(details: str = ""):
    get_logger().stage_end("Release Table Refresh", details, group="data_refresh")
