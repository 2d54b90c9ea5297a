from __future__ import annotations

from typing import Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str, *, max_len: Optional[int] = None) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} must not be empty")
    value = str(value).strip()
    if max_len is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} must be at most {max_len} characters")
    return value


def require_non_negative_int(value, field_name: str) -> int:
    # bool is an int subclass; reject it so True never becomes index 1.
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if number < 0:
        raise ValidationError(f"{field_name} must be >= 0")
    return number


def require_optional_limit(value, field_name: str) -> Optional[int]:
    if value is None:
        return None
    return require_non_negative_int(value, field_name)


def require_bool(value, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a boolean")
    return value


def require_page_size(value, field_name: str, *, max_size: int) -> int:
    size = require_non_negative_int(value, field_name)
    if not 1 <= size <= max_size:
        raise ValidationError(f"{field_name} must be between 1 and {max_size}")
    return size
