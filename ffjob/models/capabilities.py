"""
Data models for ffmpeg capabilities.

This module contains the codec and container format records reported by
``ffmpeg -codecs`` and ``ffmpeg -formats``, and the parsers for that output.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CodecType(str, Enum):
    """Media type a codec handles."""

    VIDEO = "V"
    AUDIO = "A"
    SUBTITLE = "S"
    DATA = "D"
    ATTACHMENT = "T"


@dataclass(frozen=True)
class Codec:
    """One line of ``ffmpeg -codecs``."""

    name: str
    long_name: str
    can_decode: bool
    can_encode: bool
    type: Optional[CodecType]
    intra_frame_only: bool = False
    lossy: bool = False
    lossless: bool = False

    def __str__(self) -> str:
        return f"{self.name} ({self.long_name})"


@dataclass(frozen=True)
class Format:
    """One line of ``ffmpeg -formats``."""

    name: str
    long_name: str
    can_demux: bool
    can_mux: bool

    def __str__(self) -> str:
        return f"{self.name} ({self.long_name})"


def _after_separator(output: str) -> list[str]:
    """Return the table rows that follow the ``--`` legend separator."""
    lines = output.splitlines()
    for i, line in enumerate(lines):
        if line.strip() and set(line.strip()) == {"-"}:
            return [row for row in lines[i + 1 :] if row.strip()]
    return []


def parse_codecs(output: str) -> list[Codec]:
    """
    Parse the output of ``ffmpeg -codecs``.

    Rows look like ``" DEV.L. h264                 H.264 / AVC ..."``: six
    flag columns, the codec name, then a description.

    Args:
        output: Standard output of ``ffmpeg -codecs``

    Returns:
        Codecs in the order ffmpeg lists them
    """
    codecs = []
    for row in _after_separator(output):
        flags = row[1:7]
        rest = row[7:].split(None, 1)
        if len(flags) < 6 or not rest:
            continue

        type_flag = flags[2]
        codecs.append(
            Codec(
                name=rest[0],
                long_name=rest[1].strip() if len(rest) > 1 else "",
                can_decode=flags[0] == "D",
                can_encode=flags[1] == "E",
                type=CodecType(type_flag) if type_flag in CodecType._value2member_map_ else None,
                intra_frame_only=flags[3] == "I",
                lossy=flags[4] == "L",
                lossless=flags[5] == "S",
            )
        )
    return codecs


def parse_formats(output: str) -> list[Format]:
    """
    Parse the output of ``ffmpeg -formats``.

    Rows look like ``" DE mp4             MP4 (MPEG-4 Part 14)"``. Newer
    releases add a third ``d`` (device) column, which is skipped.

    Args:
        output: Standard output of ``ffmpeg -formats``

    Returns:
        Formats in the order ffmpeg lists them
    """
    formats = []
    for row in _after_separator(output):
        flags = row[1:3]
        rest = row[3:]
        if rest[:1] in ("d", ".") and rest[1:2] == " ":
            rest = rest[1:]

        parts = rest.split(None, 1)
        if len(flags) < 2 or not parts:
            continue

        formats.append(
            Format(
                name=parts[0],
                long_name=parts[1].strip() if len(parts) > 1 else "",
                can_demux=flags[0] == "D",
                can_mux=flags[1] == "E",
            )
        )
    return formats


def parse_version(output: str) -> str:
    """
    Return the first line of ``ffmpeg -version``.

    Args:
        output: Standard output of ``ffmpeg -version``

    Returns:
        e.g. ``"ffmpeg version 6.1.1 Copyright (c) 2000-2023 the FFmpeg developers"``
    """
    for line in output.splitlines():
        if line.strip():
            return line.strip()
    return ""
