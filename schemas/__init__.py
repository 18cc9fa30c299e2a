"""
schemas/__init__.py

JSON Schema for guide layer archives and the validator used when loading them.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft202012Validator

# Schema file paths
SCHEMA_DIR = os.path.dirname(os.path.abspath(__file__))
GUIDE_ARCHIVE_SCHEMA_PATH = os.path.join(SCHEMA_DIR, "guide_archive_schema.json")

# Cached schema and validator
_guide_archive_schema: Optional[Dict] = None
_validator: Optional[Draft202012Validator] = None


def get_guide_archive_schema() -> Dict:
    """Load and return the guide archive schema."""
    global _guide_archive_schema
    if _guide_archive_schema is None:
        with open(GUIDE_ARCHIVE_SCHEMA_PATH, "r", encoding="utf-8") as f:
            _guide_archive_schema = json.load(f)
    return _guide_archive_schema


def _get_validator() -> Draft202012Validator:
    global _validator
    if _validator is None:
        _validator = Draft202012Validator(get_guide_archive_schema())
    return _validator


def validate_archive(data: Any) -> Tuple[bool, List[str]]:
    """
    Validate a guide archive against the schema.

    Loading does not stop on errors; the messages are for logging.

    Args:
        data: The decoded archive

    Returns:
        Tuple of (is_valid, list_of_error_messages)
    """
    errors = sorted(_get_validator().iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])
    if not errors:
        return True, []

    error_messages = []
    for error in errors:
        path = " -> ".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
        error_messages.append(f"{path}: {error.message}")

    return False, error_messages
