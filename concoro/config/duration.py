"""Duration parsing for configuration values such as the email cooldown."""

import re
from datetime import timedelta

_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}

_ISO_PATTERN = re.compile(
    r"^P(?:(?P<days>\d+)D)?(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)S)?)?$"
)
_HUMAN_PART = re.compile(r"(\d+)([smhd])")


class DurationParseError(ValueError):
    """Raised when a duration string cannot be parsed."""


def parse_duration(value: str) -> int:
    """
    Parse a duration string to whole seconds.

    Accepts human-readable values (``6h``, ``30m``, ``1h30m``, ``2d``) and
    ISO-8601 durations (``PT6H``, ``P1D``, ``PT1H30M``).

    Args:
        value: Duration string

    Returns:
        Duration in seconds

    Raises:
        DurationParseError: If the string is empty, malformed or zero

    Examples:
        >>> parse_duration("6h")
        21600
        >>> parse_duration("PT30M")
        1800
    """
    text = (value or "").strip()
    if not text:
        raise DurationParseError("Duration string cannot be empty")

    if text.upper().startswith("P"):
        seconds = _parse_iso8601(text.upper())
    else:
        seconds = _parse_human(text.lower())

    if seconds == 0:
        raise DurationParseError(f"Duration cannot be zero: '{value}'")
    return seconds


def parse_timedelta(value: str) -> timedelta:
    """Parse a duration string into a ``timedelta``."""
    return timedelta(seconds=parse_duration(value))


def _parse_iso8601(text: str) -> int:
    match = _ISO_PATTERN.match(text)
    if not match or text in ("P", "PT"):
        raise DurationParseError(
            f"Invalid ISO-8601 duration: '{text}'. Expected e.g. 'PT6H', 'P1D', 'PT30M'"
        )
    parts = {name: int(num) for name, num in match.groupdict().items() if num}
    return (
        parts.get("days", 0) * 86400
        + parts.get("hours", 0) * 3600
        + parts.get("minutes", 0) * 60
        + parts.get("seconds", 0)
    )


def _parse_human(text: str) -> int:
    compact = re.sub(r"\s+", "", text)
    parts = _HUMAN_PART.findall(compact)
    if not parts or "".join(num + unit for num, unit in parts) != compact:
        raise DurationParseError(
            f"Invalid duration: '{text}'. Use digits with s, m, h or d (e.g. '6h', '1h30m')"
        )
    return sum(int(num) * _UNIT_SECONDS[unit] for num, unit in parts)


def validate_duration_range(seconds: int, min_seconds: int, max_seconds: int) -> None:
    """
    Check that a parsed duration lies within ``[min_seconds, max_seconds]``.

    Raises:
        DurationParseError: If the duration is out of range
    """
    if seconds < min_seconds:
        raise DurationParseError(
            f"Duration too short: {seconds}s. Minimum is {min_seconds}s."
        )
    if seconds > max_seconds:
        raise DurationParseError(
            f"Duration too long: {seconds}s. Maximum is {max_seconds}s."
        )
