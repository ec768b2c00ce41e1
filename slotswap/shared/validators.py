"""Shared validation utilities"""

from datetime import datetime, timezone
from typing import Optional, Union

from ..errors import ValidationError

MAX_TITLE_LENGTH = 255


def parse_instant(value: Union[str, datetime, None], field: str = "time") -> Optional[datetime]:
    """
    Parse an ISO-8601 string (or datetime) into a naive UTC datetime.

    Aware values are converted to UTC before the tzinfo is dropped so that
    stored and incoming instants always compare on the same basis.

    Raises:
        ValidationError: If the value cannot be parsed
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError as e:
            raise ValidationError(f"Invalid {field} format") from e

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def validate_time_range(start: datetime, end: datetime) -> None:
    """A slot must start strictly before it ends"""
    if start >= end:
        raise ValidationError("startTime must be before endTime")


def validate_positive_id(value, label: str = "id") -> int:
    """Validate a numeric identifier coming from a path or body"""
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {label}") from e
    if isinstance(value, bool) or number <= 0:
        raise ValidationError(f"Invalid {label}")
    return number


def normalize_title(title: Optional[str]) -> Optional[str]:
    """
    Strip a slot title. Blank titles become None.

    Titles are stored as entered; escaping belongs to whatever renders them.
    """
    if title is None:
        return None
    cleaned = str(title).strip()
    if not cleaned:
        return None
    if len(cleaned) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Title exceeds maximum length of {MAX_TITLE_LENGTH} characters")
    return cleaned
