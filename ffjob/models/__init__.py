"""Data models for ffjob."""

from ffjob.models.capabilities import (
    Codec,
    CodecType,
    Format,
    parse_codecs,
    parse_formats,
    parse_version,
)

__all__ = [
    "Codec",
    "CodecType",
    "Format",
    "parse_codecs",
    "parse_formats",
    "parse_version",
]
