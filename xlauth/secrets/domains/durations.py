"""Humantime-style duration parsing and formatting."""
import re

_DURATION_UNITS = {
    "ms": 0.001, "msec": 0.001,
    "s": 1.0, "sec": 1.0, "secs": 1.0, "second": 1.0, "seconds": 1.0,
    "m": 60.0, "min": 60.0, "mins": 60.0, "minute": 60.0, "minutes": 60.0,
    "h": 3600.0, "hr": 3600.0, "hrs": 3600.0, "hour": 3600.0, "hours": 3600.0,
}

_DURATION_PART = re.compile(r'\s*(\d+(?:\.\d+)?)\s*([a-z]+)', re.IGNORECASE)


def parse_duration(text: str) -> float:
    """
    Parse a humantime-style duration such as "5s", "1m30s" or "500ms".

    Args:
        text: Duration string; each number must carry a unit

    Returns:
        Duration in seconds

    Raises:
        ValueError: If the string is empty, has an unknown unit or is zero
    """
    position = 0
    total = 0.0
    stripped = text.strip()
    if not stripped:
        raise ValueError("duration is empty")

    while position < len(stripped):
        match = _DURATION_PART.match(stripped, position)
        if not match:
            raise ValueError(f"invalid duration '{text}' (expected e.g. 5s, 1m30s, 500ms)")
        unit = match.group(2).lower()
        if unit not in _DURATION_UNITS:
            raise ValueError(f"unknown time unit '{match.group(2)}' in '{text}'")
        total += float(match.group(1)) * _DURATION_UNITS[unit]
        position = match.end()

    if total <= 0:
        raise ValueError(f"duration must be positive: '{text}'")
    return total


def format_duration(seconds: float) -> str:
    """Render seconds the way they are written on the command line, e.g. "5s"."""
    return f"{seconds:g}s"
