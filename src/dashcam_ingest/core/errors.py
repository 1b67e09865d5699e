"""Labelled failure reasons for vendor parsing.

The default parsing and extraction paths report failure as ``None`` or an
empty list. These exceptions exist for callers that want to know *why*,
through the ``*_strict`` variants and ``MetadataStreamExtractor.read_stream``.
"""

from __future__ import annotations

from pathlib import Path


class VendorParserError(Exception):
    """Base exception for vendor parsing operations."""


class UnsupportedFormatError(VendorParserError):
    """Raised when a filename does not follow a vendor's grammar.

    Attributes:
        filename: The rejected file name.
    """

    def __init__(self, filename: str) -> None:
        self.filename = filename
        super().__init__(f"Unsupported file format: {filename}")


class MetadataExtractionError(VendorParserError):
    """Raised when an embedded metadata stream cannot be extracted.

    Attributes:
        path: Container that was being read.
        reason: Description of the failure.
    """

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Metadata extraction failed for {path}: {reason}")


class InvalidTimestampError(VendorParserError):
    """Raised when captured date/time fields are not a real calendar instant.

    Attributes:
        value: The offending timestamp text.
    """

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Invalid timestamp: {value}")


__all__ = [
    "InvalidTimestampError",
    "MetadataExtractionError",
    "UnsupportedFormatError",
    "VendorParserError",
]
