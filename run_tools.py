#!/usr/bin/env python3
"""
OS Identifier Entry Point

This script provides a convenient way to run the OS identifier from the project root.
It sets up the Python path so the package under src/ can be imported.
"""

import sys
from pathlib import Path

# Add the src directory to Python path so we can import the os_identifier package
project_root = Path(__file__).parent
src_path = project_root / "src"
sys.path.insert(0, str(src_path))

from os_identifier.core.os_identifier import main

if __name__ == "__main__":
    sys.exit(main())
