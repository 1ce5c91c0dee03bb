"""
Request payloads arrive as pydantic models holding str enums. Columns store the plain strings.
"""
from typing import Any


def enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


def plain_values(data: dict) -> dict:
    return {key: enum_value(value) for key, value in data.items()}
