# core/utils.py

from typing import Any


def _clean(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, list):
        # Blank entries are dropped from lists (ids, emails, targets)
        return [c for c in (_clean(v) for v in value) if c is not None]
    return value


def sanitize(data: dict) -> dict:
    """
    Sanitize payload data before it is written:
    - Strings are stripped; empty strings become None
    - Lists are cleaned element-wise and lose blank entries
    - Everything else (booleans, numbers, None) is kept as-is
    """
    return {k: _clean(v) for k, v in data.items()}
