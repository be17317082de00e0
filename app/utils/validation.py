"""
Input format checks shared by the administration and profile services
"""
import re

from app.core.constants import SLUG_PATTERN, UUID_PATTERN
from app.core.errors import ErrorCode, validation_error

_UUID_RE = re.compile(UUID_PATTERN)
_SLUG_RE = re.compile(SLUG_PATTERN)


def is_valid_uuid(value) -> bool:
    return isinstance(value, str) and bool(_UUID_RE.match(value))


def is_valid_slug(value) -> bool:
    return isinstance(value, str) and bool(_SLUG_RE.match(value))


def ensure_uuid(value: str, field: str = "user_id") -> str:
    """Return the normalized (lowercase) id or raise a 400 INVALID_UUID"""
    if not is_valid_uuid(value):
        raise validation_error(field, f"Invalid {field} format", ErrorCode.INVALID_UUID)
    return value.lower()
