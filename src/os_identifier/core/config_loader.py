"""Configuration access for config.json beside the package."""

import json
import os
from typing import Any, Dict


def load_config() -> Dict[str, Any]:
    """Load configuration from config.json"""
    config_path = os.path.join(os.path.dirname(__file__), '..', 'config.json')
    with open(config_path, 'r') as f:
        return json.load(f)


config = load_config()
VERSION = config['application']['version']
TOOLNAME = config['application']['toolname']
