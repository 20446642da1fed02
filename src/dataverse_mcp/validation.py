"""
Input validation for tool arguments

Every validator raises ValidationError naming the offending field, and
returns the normalised value.
"""

import re
from typing import Any, Dict, Optional, Tuple, TypeVar
from urllib.parse import urlparse

import structlog

from .errors import ValidationError

logger = structlog.get_logger(__name__)

T = TypeVar("T")

GUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)
TABLE_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")

# Rejected in $filter / $orderby input
DANGEROUS_QUERY_PATTERNS = [
    re.compile(r"drop\s+table", re.IGNORECASE),
    re.compile(r"delete\s+from", re.IGNORECASE),
    re.compile(r"update\s+.*\s+set", re.IGNORECASE),
    re.compile(r"insert\s+into", re.IGNORECASE),
    re.compile(r"<script", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
]


def validate_required_string(value: Any, field_name: str) -> str:
    """Validate that a value is a non-empty string"""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required and must be a non-empty string")
    return value.strip()


def validate_optional_string(value: Any, field_name: str) -> Optional[str]:
    """Trimmed string, or None when the value is absent or blank"""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    return value.strip() or None


def validate_guid(value: Any, field_name: str = "id") -> str:
    """Validate that a value is a GUID in 8-4-4-4-12 form"""
    string_value = validate_required_string(value, field_name)
    if not GUID_PATTERN.match(string_value):
        raise ValidationError(
            f"{field_name} must be a valid GUID format (e.g., 12345678-1234-1234-1234-123456789012)"
        )
    return string_value


def validate_table_name(value: Any, field_name: str = "table") -> str:
    """Validate a table name: starts with a letter, then letters, digits or underscores"""
    string_value = validate_required_string(value, field_name)
    if not TABLE_NAME_PATTERN.match(string_value):
        raise ValidationError(
            f"{field_name} must be a valid table name (start with letter, contain only "
            "letters, numbers, and underscores)"
        )
    return string_value


def _as_integer(value: Any, field_name: str, requirement: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a {requirement} integer")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a {requirement} integer") from None
    if not number.is_integer():
        raise ValidationError(f"{field_name} must be a {requirement} integer")
    return int(number)


def validate_positive_integer(value: Any, field_name: str) -> int:
    number = _as_integer(value, field_name, "positive")
    if number <= 0:
        raise ValidationError(f"{field_name} must be a positive integer")
    return number


def validate_non_negative_integer(value: Any, field_name: str) -> int:
    number = _as_integer(value, field_name, "non-negative")
    if number < 0:
        raise ValidationError(f"{field_name} must be a non-negative integer")
    return number


def validate_odata_query(query: str, param_name: str) -> str:
    """
    Validate a $filter or $orderby expression.

    Rejects empty expressions and SQL/script injection lookalikes.
    """
    trimmed = query.strip()
    if not trimmed:
        raise ValidationError(f"{param_name} cannot be empty")

    for pattern in DANGEROUS_QUERY_PATTERNS:
        if pattern.search(trimmed):
            logger.warning(
                "Potentially dangerous pattern detected", parameter=param_name, query=trimmed
            )
            raise ValidationError(f"{param_name} contains potentially unsafe content")

    return trimmed


def validate_required(value: Optional[T], field_name: str) -> T:
    """Validate that a value is not None"""
    if value is None:
        raise ValidationError(f"{field_name} is required")
    return value


def validate_record_data(value: Any, field_name: str = "data") -> Dict[str, Any]:
    """Validate record field values: a JSON object keyed by column name"""
    data = validate_required(value, field_name)
    if not isinstance(data, dict):
        raise ValidationError(f"{field_name} must be a valid object")
    return data


def validate_url(value: Any, field_name: str, schemes: Optional[Tuple[str, ...]] = None) -> str:
    """Validate that a value is an absolute URL, optionally limited to the given schemes"""
    string_value = validate_required_string(value, field_name)
    parsed = urlparse(string_value)
    if not parsed.scheme or not parsed.netloc:
        raise ValidationError(f"{field_name} must be a valid URL")
    if schemes and parsed.scheme not in schemes:
        raise ValidationError(f"{field_name} must use one of: {', '.join(schemes)}")
    return string_value


def sanitize_odata_string(value: str) -> str:
    """Escape single quotes for use inside an OData string literal"""
    return value.replace("'", "''")
