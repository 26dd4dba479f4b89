"""
Duration parsing for lifetime annotations and the reap interval.

Accepts the same syntax operators already use in pod manifests: a signed
sequence of decimal numbers, each with a unit suffix, such as ``300ms``,
``-1.5h`` or ``2h45m``. Valid units are ``ns``, ``us`` (or ``µs``), ``ms``,
``s``, ``m`` and ``h``.
"""

import re
from datetime import timedelta

_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

# Largest duration representable as signed 64-bit nanoseconds, about 2562047h
MAX_DURATION_SECONDS = (2 ** 63 - 1) / 1e9

_COMPONENT = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(value: str) -> timedelta:
    """Parse a duration string into a timedelta, raising ValueError if malformed"""
    if not isinstance(value, str):
        raise ValueError(f"invalid duration {value!r}")

    text = value.strip()
    sign = 1
    if text[:1] in ("-", "+"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    if text == "0":
        return timedelta(0)
    if not text:
        raise ValueError(f"invalid duration {value!r}")

    seconds = 0.0
    pos = 0
    while pos < len(text):
        match = _COMPONENT.match(text, pos)
        if not match:
            if text[pos].isdigit() or text[pos] == ".":
                raise ValueError(f"missing or unknown unit in duration {value!r}")
            raise ValueError(f"invalid duration {value!r}")
        number, unit = match.groups()
        seconds += float(number) * _UNITS[unit]
        pos = match.end()

    if seconds > MAX_DURATION_SECONDS:
        raise ValueError(f"duration {value!r} out of range")
    try:
        return timedelta(seconds=sign * seconds)
    except OverflowError as e:
        raise ValueError(f"duration {value!r} out of range") from e


def format_seconds(delta: timedelta) -> str:
    """Render a timedelta as whole seconds for log output"""
    return f"{delta.total_seconds():.0f}"
