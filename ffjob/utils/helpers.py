"""
Unit parsing and formatting.

The parsers read the value formats ffmpeg writes in its ``-progress`` output;
the formatters render them back for the terminal.
"""

import re
from typing import Optional

_BITRATE_PATTERN = re.compile(r"^(\d+\.?\d*)\s*([kmg]?)bits/s$", re.IGNORECASE)

_MULTIPLIERS = {"": 1, "k": 1000, "m": 1000_000, "g": 1000_000_000}

_SIZE_UNITS = ("B", "KiB", "MiB", "GiB", "TiB")


def format_size(size: float) -> str:
    """Render a byte count, e.g. ``format_size(786480) == "768.0 KiB"``."""
    value = float(size)
    for unit in _SIZE_UNITS[:-1]:
        if abs(value) < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} {_SIZE_UNITS[-1]}"


def format_duration(seconds: float) -> str:
    """Render seconds as ``HH:MM:SS``; fractions are dropped, negatives shown as zero."""
    minutes, secs = divmod(int(max(seconds, 0)), 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_bitrate(bits_per_second: int) -> str:
    """Render a bitrate the way ffmpeg does, e.g. ``"1534.2 kbit/s"``."""
    if bits_per_second >= 1_000_000:
        return f"{bits_per_second / 1_000_000:.1f} Mbit/s"
    if bits_per_second >= 1000:
        return f"{bits_per_second / 1000:.1f} kbit/s"
    return f"{bits_per_second} bit/s"


def parse_time_to_seconds(time_str: str) -> float:
    """
    Parse an ffmpeg timestamp to seconds.

    Accepts ``HH:MM:SS.ffffff``, ``MM:SS.ff`` and plain seconds. ffmpeg
    reports negative timestamps before the first packet, so a leading minus
    sign is honoured.

    Raises:
        ValueError: If the string is not a timestamp
    """
    time_str = time_str.strip()
    sign = -1.0 if time_str.startswith("-") else 1.0
    fields = time_str.lstrip("-").split(":")
    if len(fields) > 3:
        raise ValueError(f"Invalid timestamp: {time_str!r}")

    total = 0.0
    for field in fields:
        total = total * 60 + float(field)
    return sign * total


def parse_bitrate(bitrate_str: str) -> Optional[int]:
    """
    Parse an ffmpeg bitrate report to bits per second.

    Supports formats like "1234.5kbits/s", "2.1mbits/s" and "N/A".

    Args:
        bitrate_str: Bitrate string

    Returns:
        Bitrate in bits per second, None for "N/A"

    Raises:
        ValueError: If the string is not a bitrate
    """
    bitrate_str = bitrate_str.strip()
    if bitrate_str.upper() == "N/A":
        return None

    match = _BITRATE_PATTERN.match(bitrate_str)
    if not match:
        raise ValueError(f"Invalid bitrate: {bitrate_str!r}")

    value = float(match.group(1))
    return round(value * _MULTIPLIERS[match.group(2).lower()])


def parse_speed(speed_str: str) -> Optional[float]:
    """
    Parse an ffmpeg speed report ("1.5x", " 0.98x", "N/A").

    Raises:
        ValueError: If the string is not a speed
    """
    speed_str = speed_str.strip()
    if speed_str.upper() == "N/A":
        return None
    return float(speed_str.rstrip("xX"))
