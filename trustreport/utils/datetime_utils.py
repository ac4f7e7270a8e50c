"""DateTime utilities for TrustReport.

Stored timestamps are UTC; dates printed in reports are converted to the
configured report timezone and rendered in Spanish ``dd/mm/yyyy`` form.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytz


def utc_now() -> datetime:
    """Get current UTC datetime.

    Returns:
        datetime: Current UTC datetime with timezone info
    """
    return datetime.now(timezone.utc)


def hours_ago(hours: float, reference: Optional[datetime] = None) -> datetime:
    return (reference or utc_now()) - timedelta(hours=hours)


def hours_from_now(hours: float, reference: Optional[datetime] = None) -> datetime:
    return (reference or utc_now()) + timedelta(hours=hours)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Coerce a stored timestamp into an aware datetime.

    Records written by other services may hold native datetimes or ISO-8601
    strings (with a trailing ``Z``); anything unparseable yields ``None``.

    Args:
        value: datetime, ISO string or None

    Returns:
        datetime: Timezone-aware datetime or None
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def convert_timezone(dt: datetime, target_timezone: str) -> datetime:
    """Convert datetime to different timezone.

    Args:
        dt: DateTime object
        target_timezone: Target timezone name

    Returns:
        datetime: Converted datetime object
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(pytz.timezone(target_timezone))


def format_date_es(value: Any, timezone_name: Optional[str] = None, default: str = "") -> str:
    """Format a timestamp as ``dd/mm/yyyy``.

    Args:
        value: datetime or ISO string
        timezone_name: Target timezone name; UTC when omitted
        default: Returned when the value cannot be parsed

    Returns:
        str: Formatted date
    """
    dt = parse_datetime(value)
    if dt is None:
        return default
    if timezone_name:
        dt = convert_timezone(dt, timezone_name)
    return dt.strftime("%d/%m/%Y")
