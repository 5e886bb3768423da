"""Shared validation helpers for the domain entities."""

# Entities refuse construction without this key; only EntityFactory passes it.
FACTORY_KEY = object()


def require_factory(cls_name, key):
    if key is not FACTORY_KEY:
        raise TypeError(f"{cls_name} objects are created by EntityFactory only")


def check_id(field, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field}: {value!r}, not an integer")
    if value < 0:
        raise ValueError(f"{field}: {value}, {field} < 0")
    return value


def check_non_empty(field, value) -> str:
    if value is None or not isinstance(value, str) or len(value) == 0:
        raise ValueError(f"{field} is null or empty")
    return value
