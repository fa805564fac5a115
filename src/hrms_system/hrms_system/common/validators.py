from __future__ import annotations

import math
from typing import Any, Optional

from ..core.constants import MAX_YEAR, MIN_YEAR, RATING_MAX, RATING_MIN
from ..core.exceptions import ValidationError
from .number_utils import round_to_tenth


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def optional_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_id(value: Any, field_name: str) -> int:
    """Parse a positive integer identifier coming from a JSON payload."""

    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field_name}: {value}")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
    else:
        raise ValidationError(f"Invalid {field_name}: {value}")
    if parsed <= 0:
        raise ValidationError(f"Invalid {field_name}: {value}")
    return parsed


def require_min_int(value: Any, field_name: str, minimum: int) -> int:
    if isinstance(value, bool) or value is None or value == "":
        raise ValidationError(f"{field_name} must be at least {minimum}")
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be at least {minimum}")
    if parsed != float(value) or parsed < minimum:
        raise ValidationError(f"{field_name} must be at least {minimum}")
    return parsed


def require_non_negative_number(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field_name} must be a non-negative number")
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a non-negative number")
    if math.isnan(parsed) or parsed < 0:
        raise ValidationError(f"{field_name} must be a non-negative number")
    return parsed


def require_rating(value: Any) -> float:
    """Rating in [0, 5] at 0.1 resolution (3.7 ok, 3.73 rejected)."""

    if value is None or value == "":
        raise ValidationError("Rating is required")
    if isinstance(value, bool):
        raise ValidationError("Rating must be between 0 and 5")
    try:
        rating = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Rating must be between 0 and 5")
    if math.isnan(rating) or rating < RATING_MIN or rating > RATING_MAX:
        raise ValidationError("Rating must be between 0 and 5")

    rounded = round_to_tenth(rating)
    if rounded != rating:
        raise ValidationError("Rating must be in 0.1 increments (e.g., 3.7, 4.5)")
    return rounded


def parse_page(value: Any, default: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def parse_limit(value: Any, default: int) -> int:
    """Page size for list endpoints; 0 or garbage falls back to the default."""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def require_reference(value: Any, label: str) -> int:
    """Id of a referenced record from a JSON body ("Employee" -> "Invalid employee ID")."""

    if value is None or value == "":
        raise ValidationError(f"{label} is required")
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {label.lower()} ID")
    text = str(value).strip()
    if not text.isdigit() or int(text) <= 0:
        raise ValidationError(f"Invalid {label.lower()} ID")
    return int(text)


def parse_year(value: Any, *, default: int, maximum: int = MAX_YEAR) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValidationError(f"Invalid year: {value}")
    try:
        year = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid year: {value}")
    if year < MIN_YEAR or year > maximum:
        raise ValidationError(f"Invalid year: {value}")
    return year
