"""
Sanitizing tool schemas for the Google Gemini API.

Gemini's ``Schema`` type rejects unknown JSON-schema keywords, so this module
strips the ones generic schemas carry and keeps ``required`` consistent with
``properties``.
"""

from typing import Dict, Any, Set, cast
from functools import singledispatch

_UNSUPPORTED_KEYS = frozenset({"additionalProperties", "$schema", "$id", "title"})


def sanitize(schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Performs all necessary, recursive sanitization steps on a tool schema.

    Args:
        schema: The tool parameter schema to sanitize.

    Returns:
        A sanitized schema dictionary ready for the Gemini API.
    """
    return cast(Dict[str, Any], _recursive_sanitize(schema, set()))


@singledispatch
def _recursive_sanitize(schema: Any, seen: Set[int]) -> Any:
    return schema


@_recursive_sanitize.register(dict)
def _(schema: dict, seen: Set[int]) -> dict:
    obj_id = id(schema)
    if obj_id in seen:
        return schema
    seen.add(obj_id)

    level = _ensure_required_params(schema)
    result = {}
    for key, value in level.items():
        if key in _UNSUPPORTED_KEYS:
            continue
        if key == "properties" and isinstance(value, dict):
            result[key] = {name: _recursive_sanitize(prop, seen) for name, prop in value.items()}
        else:
            result[key] = _recursive_sanitize(value, seen)

    seen.remove(obj_id)
    return result


@_recursive_sanitize.register(list)
def _(schema: list, seen: Set[int]) -> list:
    obj_id = id(schema)
    if obj_id in seen:
        return schema
    seen.add(obj_id)

    result = [_recursive_sanitize(item, seen) for item in schema]

    seen.remove(obj_id)
    return result


def _ensure_required_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """Drop ``required`` entries that are not defined in ``properties`` (single level)."""
    if "required" not in params or "properties" not in params:
        return params

    _params = params.copy()
    defined = set(_params["properties"].keys())
    valid_required = [name for name in _params["required"] if name in defined]

    if valid_required:
        _params["required"] = valid_required
    else:
        _params.pop("required", None)

    return _params
