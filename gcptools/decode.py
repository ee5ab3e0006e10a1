"""
Field accessors for decoding Google API JSON into records.

Google APIs omit fields holding default values and encode int64 as strings,
so absent keys decode to a zero value while a present key of the wrong type
raises ``ValueError`` (turned into an "Error parsing response" result by
``gcptools.api.decode``).
"""

from __future__ import annotations

from typing import Any


def obj(data: Any, key: str) -> dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"field '{key}' must be an object")
    return value


def optional_obj(data: Any, key: str) -> dict[str, Any] | None:
    if data.get(key) is None:
        return None
    return obj(data, key)


def objects(data: Any, key: str) -> list[dict[str, Any]]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise ValueError(f"field '{key}' must be a list of objects")
    return value


def string(data: Any, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field '{key}' must be a string")
    return value


def strings(data: Any, key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"field '{key}' must be a list of strings")
    return value


def string_map(data: Any, key: str) -> dict[str, str]:
    value = obj(data, key)
    return {str(k): str(v) for k, v in value.items()}


def integer(data: Any, key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValueError(f"field '{key}' must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            raise ValueError(f"field '{key}' must be an integer") from None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ValueError(f"field '{key}' must be an integer")


def floating(data: Any, key: str) -> float | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"field '{key}' must be a number")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        # NaN and Infinity arrive as strings.
        try:
            return float(value)
        except ValueError:
            raise ValueError(f"field '{key}' must be a number") from None
    raise ValueError(f"field '{key}' must be a number")


def boolean(data: Any, key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"field '{key}' must be a boolean")
    return value
