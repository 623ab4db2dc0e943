"""
Helpers for Mars local solar time strings and rover position strings.

Mars local time appears in photo records as e.g. "Sol-01646M15:18:15.866";
rover positions as "(35.43,22.57,-9.46)", a JSON object with x/y/z keys
or a JSON array.
"""

import json
import re
from datetime import time
from typing import Any, Optional

from marspano.models.photo import Position3D


MARS_TIME_PATTERN = re.compile(r"^M?(\d{1,2}):(\d{2}):(\d{2})(?:\.(\d+))?$")


def parse_mars_time(value: Optional[str]) -> Optional[time]:
    """
    Parse a Mars local time of day.

    Accepts "M14:23:45", "14:23:45" and "M14:23:45.866".
    Returns None when the string is missing or malformed.
    """
    if value is None or not value.strip():
        return None

    match = MARS_TIME_PATTERN.match(value.strip())
    if not match:
        return None

    hours, minutes, seconds = (int(g) for g in match.groups()[:3])
    if hours > 23 or minutes > 59 or seconds > 59:
        return None

    fraction = match.group(4)
    microseconds = int(fraction[:6].ljust(6, "0")) if fraction else 0
    return time(hours, minutes, seconds, microseconds)


def extract_mars_time(timestamp: Optional[str]) -> Optional[time]:
    """Extract the time of day from a full Mars timestamp ("Sol-01646M15:18:15.866")."""
    if timestamp is None:
        return None
    idx = timestamp.find("M")
    if idx == -1:
        return None
    return parse_mars_time(timestamp[idx:])


def format_mars_time(value: time, include_prefix: bool = True) -> str:
    prefix = "M" if include_prefix else ""
    return f"{prefix}{value.hour:02d}:{value.minute:02d}:{value.second:02d}"


def parse_xyz(value: Any) -> Optional[Position3D]:
    """
    Parse a rover position; None if absent or malformed.

    Accepts "(x,y,z)", "x,y,z", JSON text (an x/y/z object or a 3-item
    array) and the same shapes already decoded into a dict or list.
    """
    if isinstance(value, str):
        cleaned = value.strip()
        if not cleaned:
            return None
        if cleaned[0] in "{[":
            try:
                value = json.loads(cleaned)
            except ValueError:
                return None
        else:
            value = cleaned.strip("()").split(",")

    if isinstance(value, dict):
        value = [value.get(axis) for axis in ("x", "y", "z")]
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        return None

    try:
        x, y, z = (float(v) for v in value)
    except (TypeError, ValueError):
        return None
    return Position3D(x, y, z)
