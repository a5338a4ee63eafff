"""
Directory organization utilities for run-based output management.
Manages the creation of report runs with timestamp-based naming.
"""

import datetime
from pathlib import Path
from typing import List, Optional, Tuple


def get_os_identifier_root() -> Path:
    """Get the root directory of the OS Identifier project"""
    current_file = Path(__file__).resolve()

    for parent in current_file.parents:
        if (parent / "run_tools.py").exists():
            return parent

    # Installed as a package: runs go under the working directory
    return Path.cwd()


def _clean_context(context: str) -> str:
    return "".join(c for c in context if c.isalnum() or c in ("-", "_", "."))


def create_run_directory(run_context: Optional[str] = None, is_test: bool = False,
                         subdirs: Optional[List[str]] = None,
                         runs_root: Optional[Path] = None) -> Tuple[Path, str]:
    """
    Create a new run directory with timestamp-based naming.

    Args:
        run_context: Optional context string (e.g. input file name) appended to the timestamp
        is_test: Whether this is a test run (adds 'TEST_' prefix to context)
        subdirs: Subdirectories to create (defaults to ["reports", "logs"])
        runs_root: Parent directory for runs (defaults to <project root>/runs)

    Returns:
        Tuple of (run_directory_path, run_id)
    """
    timestamp = datetime.datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    if run_context:
        context = f"TEST_{run_context}" if is_test else run_context
        run_id = f"{timestamp}_{_clean_context(context)}"
    elif is_test:
        run_id = f"{timestamp}_TEST_run"
    else:
        run_id = timestamp

    if runs_root is None:
        runs_root = get_os_identifier_root() / "runs"
    run_path = Path(runs_root) / run_id

    if subdirs is None:
        subdirs = ["reports", "logs"]

    for subdir in subdirs:
        (run_path / subdir).mkdir(parents=True, exist_ok=True)

    return run_path, run_id


def get_current_run_paths(run_path: Path) -> dict:
    """Standardized paths inside a run directory"""
    return {
        "reports": run_path / "reports",
        "logs": run_path / "logs",
        "run_root": run_path,
    }
