"""Lightweight request validation helpers.

Every helper raises SearchPreconditionError, which the app turns into a
400 response.
"""

import math
from typing import Any, Iterable, Mapping, Optional

from sources.base import SearchPreconditionError


# Pagination limits
MAX_PAGE = 1000
MAX_LIMIT = 500


def sanitize_string(value: Any, max_length: int = 500, allow_newlines: bool = False) -> str:
    """
    Sanitize a string by removing control characters and limiting length.

    Args:
        value: String to sanitize
        max_length: Maximum allowed length
        allow_newlines: Whether to allow newlines

    Returns:
        Sanitized string
    """
    if not isinstance(value, str):
        return ""

    # Remove control characters (except newlines if allowed)
    if allow_newlines:
        result = ''.join(c for c in value if c >= ' ' or c in '\n\r\t')
    else:
        result = ''.join(c for c in value if c >= ' ')

    return result[:max_length].strip()


def optional_string(args: Mapping[str, Any], name: str, max_length: int = 500) -> Optional[str]:
    """String argument, or None when absent/blank."""
    value = args.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise SearchPreconditionError(f"Field '{name}' must be str")
    return sanitize_string(value, max_length) or None


def required_string(args: Mapping[str, Any], name: str, max_length: int = 500) -> str:
    value = optional_string(args, name, max_length)
    if value is None:
        raise SearchPreconditionError(f"Missing required field: {name}")
    return value


def optional_int(
    args: Mapping[str, Any],
    name: str,
    minimum: Optional[int] = None,
    maximum: Optional[int] = None,
) -> Optional[int]:
    """
    Integer argument within [minimum, maximum], or None when absent.

    Accepts ints and numeric strings (query parameters arrive as strings).
    """
    value = args.get(name)
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise SearchPreconditionError(f"Field '{name}' must be int")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise SearchPreconditionError(f"Field '{name}' must be int")
    if isinstance(value, float) and value != number:
        raise SearchPreconditionError(f"Field '{name}' must be int")

    if minimum is not None and number < minimum:
        raise SearchPreconditionError(f"Field '{name}' must be >= {minimum}")
    if maximum is not None and number > maximum:
        raise SearchPreconditionError(f"Field '{name}' must be <= {maximum}")
    return number


def optional_float(args: Mapping[str, Any], name: str) -> Optional[float]:
    value = args.get(name)
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise SearchPreconditionError(f"Field '{name}' must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise SearchPreconditionError(f"Field '{name}' must be a number")
    if not math.isfinite(number):
        raise SearchPreconditionError(f"Field '{name}' must be a finite number")
    return number


def optional_bool(args: Mapping[str, Any], name: str) -> Optional[bool]:
    value = args.get(name)
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ('true', '1', 'yes', 'on'):
            return True
        if lowered in ('false', '0', 'no', 'off'):
            return False
    raise SearchPreconditionError(f"Field '{name}' must be a boolean")


def choice(args: Mapping[str, Any], name: str, allowed: Iterable[str]) -> Optional[str]:
    value = optional_string(args, name)
    allowed = tuple(allowed)
    if value is not None and value not in allowed:
        raise SearchPreconditionError(f"Field '{name}' must be one of: {', '.join(allowed)}")
    return value


def validate_pagination(page: Any, limit: Any = None) -> tuple:
    """
    Validate and sanitize pagination parameters.

    Returns:
        (page, limit); page is 1-based, limit is capped at MAX_LIMIT
    """
    page_int = optional_int({'page': page}, 'page', minimum=1, maximum=MAX_PAGE) or 1
    limit_int = optional_int({'limit': limit}, 'limit', minimum=1)
    if limit_int is not None:
        limit_int = min(limit_int, MAX_LIMIT)
    return page_int, limit_int
