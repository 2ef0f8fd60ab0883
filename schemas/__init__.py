"""
schemas/__init__.py

JSON Schema for the persisted diagram element list and validation helpers.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft202012Validator

# Schema file paths
SCHEMA_DIR = os.path.dirname(os.path.abspath(__file__))
ELEMENT_SCHEMA_PATH = os.path.join(SCHEMA_DIR, "element_schema.json")

# Cached schema and validator
_element_schema: Optional[Dict] = None
_validator: Optional[Draft202012Validator] = None


def get_element_schema() -> Dict:
    """Load and return the element list schema."""
    global _element_schema
    if _element_schema is None:
        with open(ELEMENT_SCHEMA_PATH, "r", encoding="utf-8") as f:
            _element_schema = json.load(f)
    return _element_schema


def _get_validator() -> Draft202012Validator:
    global _validator
    if _validator is None:
        _validator = Draft202012Validator(get_element_schema())
    return _validator


def validate_element_list(data: Any) -> Tuple[bool, List[str]]:
    """Validate a decoded element list against the schema.

    Args:
        data: Parsed JSON payload.

    Returns:
        Tuple of (is_valid, list_of_error_messages).
    """
    errors = sorted(_get_validator().iter_errors(data), key=lambda e: tuple(str(p) for p in e.absolute_path))
    if not errors:
        return True, []

    error_messages = []
    for error in errors:
        path = " -> ".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
        error_messages.append(f"{path}: {error.message}")
    return False, error_messages


def element_defaults() -> Dict[str, Any]:
    """Defaults for optional element fields, as declared in the schema."""
    props = get_element_schema()["$defs"]["element"]["properties"]
    return {name: prop["default"] for name, prop in props.items() if "default" in prop}
