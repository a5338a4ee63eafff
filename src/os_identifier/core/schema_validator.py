#!/usr/bin/env python3
"""
JSON Schema Validation for release to build tables

Every table under data/windows maps a release label to the builds that
shipped under it. Tables are validated on load and before the refresh
utility writes them back.
"""
from typing import Any, Dict

import jsonschema

from .resolution_errors import ReleaseTableValidationError
from ..logging.workflow_logger import get_logger

logger = get_logger()

RELEASE_TO_BUILD_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Release to build correspondence table",
    "type": "object",
    "minProperties": 1,
    "propertyNames": {"pattern": "^[0-9]{2}(?:[0-9]{2}|H[12])$"},
    "additionalProperties": {
        "type": "array",
        "minItems": 1,
        "uniqueItems": True,
        "items": {"type": "string", "pattern": "^[0-9]{5}$"}
    }
}


def validate_release_table(data: Any, context: str) -> None:
    """
    Validate a release to build table.

    Args:
        data: Parsed table content
        context: Description for error messages (usually the file name)

    Raises:
        ReleaseTableValidationError: If the table does not match the schema
    """
    try:
        jsonschema.validate(instance=data, schema=RELEASE_TO_BUILD_SCHEMA)
    except jsonschema.ValidationError as e:
        error_path = ' -> '.join(str(p) for p in e.path) if e.path else 'root'
        error_msg = f"Schema validation failed at {error_path}: {e.message} - {context}"
        logger.error(error_msg, group="BUILD_INDEX")
        raise ReleaseTableValidationError(error_msg) from e
