"""Duration helpers shared by the configuration loader and the CLI.

Durations are plain integers counting nanoseconds. The configuration file and
the ``--interval`` flag use the compact notation of the surrounding sptp
tooling, e.g. ``"1s"``, ``"100ms"`` or ``"1m30s"``::

    >>> parse_duration("1m30s") == 90 * SECOND
    True
    >>> format_duration(100 * MILLISECOND)
    '100ms'

Fractional amounts are accepted (``"1.5s"``); precision below one nanosecond
is truncated. Values must fit a signed 64-bit count of nanoseconds
(:data:`MAX_DURATION`).
"""
from __future__ import annotations

import re

NANOSECOND = 1
MICROSECOND = 1000 * NANOSECOND
MILLISECOND = 1000 * MICROSECOND
SECOND = 1000 * MILLISECOND
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE

UNITS: dict[str, int] = {
    "ns": NANOSECOND,
    "us": MICROSECOND,
    "µs": MICROSECOND,  # micro sign
    "μs": MICROSECOND,  # greek mu
    "ms": MILLISECOND,
    "s": SECOND,
    "m": MINUTE,
    "h": HOUR,
}

MAX_DURATION = 2**63 - 1

_COMPONENT = re.compile(r"(?P<whole>[0-9]*)(?:\.(?P<frac>[0-9]*))?(?P<unit>[^0-9.]+)")


class DurationError(ValueError):
    """Raised when a duration string cannot be parsed."""


def parse_duration(text: str) -> int:
    """Parse *text* into a number of nanoseconds.

    A duration is an optionally signed sequence of decimal numbers, each with
    an optional fraction and a mandatory unit suffix (``ns``, ``us``, ``ms``,
    ``s``, ``m``, ``h``). The bare string ``"0"`` is accepted as zero.
    """
    original = text
    text = text.strip()
    if not text:
        raise DurationError("invalid duration ''")

    sign = 1
    if text[0] in "+-":
        if text[0] == "-":
            sign = -1
        text = text[1:]
    if text == "0":
        return 0
    if not text:
        raise DurationError(f"invalid duration {original!r}")

    total = 0
    position = 0
    while position < len(text):
        match = _COMPONENT.match(text, position)
        if match is None:
            raise DurationError(f"invalid duration {original!r}")
        whole = match.group("whole")
        frac = match.group("frac") or ""
        unit_name = match.group("unit")
        if not whole and not frac:
            raise DurationError(f"invalid duration {original!r}")
        unit = UNITS.get(unit_name)
        if unit is None:
            raise DurationError(f"unknown unit {unit_name!r} in duration {original!r}")
        total += int(whole or "0") * unit
        if frac:
            total += int(frac) * unit // 10 ** len(frac)
        position = match.end()
        if total > MAX_DURATION + (sign < 0):
            raise DurationError(f"invalid duration {original!r}: out of range")
    return sign * total


def format_duration(value: int) -> str:
    """Render *value* nanoseconds in the notation accepted by :func:`parse_duration`."""
    if value == 0:
        return "0s"
    sign = "-" if value < 0 else ""
    magnitude = abs(value)

    if magnitude < SECOND:
        if magnitude < MICROSECOND:
            return f"{sign}{magnitude}ns"
        if magnitude < MILLISECOND:
            return f"{sign}{_with_fraction(magnitude, MICROSECOND)}µs"
        return f"{sign}{_with_fraction(magnitude, MILLISECOND)}ms"

    hours, remainder = divmod(magnitude, HOUR)
    minutes, remainder = divmod(remainder, MINUTE)
    seconds = f"{_with_fraction(remainder, SECOND)}s"
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}"
    if minutes:
        return f"{sign}{minutes}m{seconds}"
    return f"{sign}{seconds}"


def _with_fraction(value: int, scale: int) -> str:
    whole, fraction = divmod(value, scale)
    if not fraction:
        return str(whole)
    digits = len(str(scale)) - 1
    return f"{whole}.{fraction:0{digits}d}".rstrip("0")


__all__ = [
    "DurationError",
    "HOUR",
    "MAX_DURATION",
    "MICROSECOND",
    "MILLISECOND",
    "MINUTE",
    "NANOSECOND",
    "SECOND",
    "format_duration",
    "parse_duration",
]
