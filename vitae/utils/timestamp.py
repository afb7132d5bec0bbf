"""Timestamp formatting utilities."""

from datetime import datetime, timezone
from typing import Optional


def now() -> str:
    """Current local time as a compact sortable string (e.g., "20251113_184540")."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def now_exact() -> str:
    """Current UTC time as an ISO 8601 string with microseconds."""
    return utc_now().isoformat()


def utc_now() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def format_timestamp(iso_timestamp: str, relative: bool = False, reference: Optional[datetime] = None) -> str:
    """
    Format ISO 8601 timestamp to readable format.

    Args:
        iso_timestamp: ISO 8601 formatted timestamp string
        relative: If True, show relative time (e.g., "2h ago")
                 If False, show absolute time (e.g., "2025-11-13 18:45:40")
        reference: Point in time that relative output is measured from (default: now)

    Returns:
        Human-readable timestamp

    Examples:
        format_timestamp("2025-11-13T18:45:40.572549")
        # "2025-11-13 18:45:40"

        format_timestamp("2025-11-13T18:45:40.572549", relative=True)
        # "2h ago"
    """
    try:
        dt = datetime.fromisoformat(iso_timestamp)

        if relative:
            return _format_relative_time(dt, reference)
        else:
            return dt.strftime("%Y-%m-%d %H:%M:%S")

    except (ValueError, TypeError):
        # Return original if parsing fails
        return iso_timestamp


# Largest unit first: (seconds per unit, suffix)
RELATIVE_UNITS = [(86400, "d"), (3600, "h"), (60, "m"), (1, "s")]


def _format_relative_time(dt: datetime, reference: Optional[datetime] = None) -> str:
    """Compact distance from reference, in the largest whole unit (e.g., "2h ago", "3d from now")."""
    if reference is None:
        reference = datetime.now(dt.tzinfo) if dt.tzinfo else datetime.now()
    seconds = int((reference - dt).total_seconds())
    suffix = "ago" if seconds >= 0 else "from now"
    seconds = abs(seconds)

    for unit_seconds, unit in RELATIVE_UNITS:
        if seconds >= unit_seconds:
            return f"{seconds // unit_seconds}{unit} {suffix}"
    return f"0s {suffix}"
