#!/usr/bin/env python3
"""
OS Identifier Package

Resolves operating system labels (structured release tags and free-text
inventory descriptions) into canonical vendor/product/release/edition names.
"""

import json
from pathlib import Path

def _get_version():
    """Get version from config.json"""
    try:
        config_path = Path(__file__).parent / "config.json"
        with open(config_path, 'r') as f:
            config = json.load(f)
        return config.get("application", {}).get("version", "unknown")
    except (OSError, json.JSONDecodeError):
        return "unknown"

__version__ = _get_version()
__author__ = "Hashmire"

__all__ = [
    'core',
    'recognizers',
    'storage',
    'reporting',
]
