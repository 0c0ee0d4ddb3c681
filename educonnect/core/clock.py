from __future__ import annotations

import datetime


def utc_timestamp() -> int:
    """Current time as integer epoch seconds (UTC), the storage format for timestamps."""
    return int(datetime.datetime.now(datetime.UTC).timestamp())


def add_years(timestamp: int, years: int) -> int:
    """Same calendar date ``years`` later; Feb 29 falls back to Feb 28."""
    start = datetime.datetime.fromtimestamp(timestamp, datetime.UTC)
    try:
        shifted = start.replace(year=start.year + years)
    except ValueError:
        shifted = start.replace(year=start.year + years, day=28)
    return int(shifted.timestamp())
