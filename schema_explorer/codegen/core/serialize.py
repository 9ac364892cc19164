"""
JSON serialization of the canonical model.

Keys become camelCase, None values are dropped and enums are written as
their values. Name-keyed maps keep their keys untouched.
"""

import json
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any

from .naming import to_camel_case


def to_json_data(value: Any) -> Any:
    """Convert model records into plain JSON-compatible data."""
    if is_dataclass(value) and not isinstance(value, type):
        result = {}
        for f in fields(value):
            item = getattr(value, f.name)
            if item is None:
                continue
            result[to_camel_case(f.name)] = to_json_data(item)
        return result
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): to_json_data(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [to_json_data(v) for v in value]
    return value


def to_json(value: Any, indent: int = 2) -> str:
    """Serialize model records to a JSON string."""
    return json.dumps(to_json_data(value), indent=indent, ensure_ascii=False) + "\n"
