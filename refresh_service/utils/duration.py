"""Duration parsing for configuration values."""

import re

from datetime import timedelta
from typing import Union

UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1,
    "m": 60,
    "h": 3600,
}

DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
NUMBER = re.compile(r"^\d+(?:\.\d*)?$")


def parse_duration(value: Union[str, int, float, timedelta]) -> timedelta:
    """
    Parse a duration such as `720h`, `1h30m` or `15m`.

    Bare numbers are read as a count of seconds.

    Raises:
        ValueError: If the value is not a valid duration

    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)

    text = str(value).strip()
    if NUMBER.match(text):
        return timedelta(seconds=float(text))

    position = 0
    seconds = 0.0
    for match in DURATION_PART.finditer(text):
        if match.start() != position:
            break
        seconds += float(match.group(1)) * UNITS[match.group(2)]
        position = match.end()
    if not text or position != len(text):
        raise ValueError(f"Invalid duration: {value!r}")
    return timedelta(seconds=seconds)
