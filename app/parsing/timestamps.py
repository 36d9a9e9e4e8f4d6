"""
app/parsing/timestamps.py

Lenient date/time parsing for uploaded transaction dates.
"""

from __future__ import annotations

from datetime import datetime, timezone

# Tried in order after ISO-8601. Month-first wins over day-first when both fit.
TIMESTAMP_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d/%m/%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
)


def parse_timestamp(value: str | None) -> datetime | None:
    """
    Parse one date string into a timezone-aware datetime.

    Naive values are interpreted as UTC. Returns None when the value is blank
    or matches none of the supported formats.
    """

    if value is None:
        return None
    raw = str(value).strip()
    if not raw:
        return None

    normalized = raw[:-1] + "+00:00" if raw.endswith(("Z", "z")) else raw
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        parsed = None

    if parsed is None:
        for fmt in TIMESTAMP_FORMATS:
            try:
                parsed = datetime.strptime(raw, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
