"""Base vendor parser interface.

Every supported dashcam vendor is described by one parser. A parser knows
its vendor's filename grammar, turns a filename into a
:class:`ParsedFileInfo`, and pulls GPS and accelerometer data out of the
recording through the shared metadata extractor and sensor decoder.

Filename parsing is cheap (no I/O beyond a stat call). Sensor extraction
spawns FFmpeg and is slow.

Example:
    >>> from dashcam_ingest.vendors.base import BaseVendorParser
    >>>
    >>> class MyParser(BaseVendorParser):
    ...     VENDOR_ID = "acme"
    ...     VENDOR_NAME = "ACME"
    ...     FILENAME_PATTERN = re.compile(r"(?P<year>\\d{4})...")
    ...     ...
    >>> parser = MyParser()
    >>> parser.parse_file(Path("/sd/Record/2024...mp4"))
"""

from __future__ import annotations

import re
import struct
from abc import ABC, abstractmethod
from datetime import datetime, tzinfo
from pathlib import Path
from typing import ClassVar

from dashcam_ingest.core.config import Config
from dashcam_ingest.core.errors import (
    InvalidTimestampError,
    MetadataExtractionError,
    UnsupportedFormatError,
    VendorParserError,
)
from dashcam_ingest.core.logger import get_logger
from dashcam_ingest.core.types import (
    AccelerometerSample,
    CameraChannel,
    GPSFix,
    ParsedFileInfo,
    ParserDescriptor,
    RecordingCategory,
    VendorFeature,
)
from dashcam_ingest.extractors.metadata_stream import MetadataStreamExtractor
from dashcam_ingest.processors.sensor_decoder import SensorStreamDecoder

logger = get_logger(__name__)

_TIMESTAMP_GROUPS = ("year", "month", "day", "hour", "minute", "second")


def compose_timestamp(match: re.Match[str], tz: tzinfo) -> datetime:
    """Build an aware datetime from a filename match.

    The match must define the named groups ``year``, ``month``, ``day``,
    ``hour``, ``minute`` and ``second``.

    Args:
        match: Successful filename match.
        tz: Zone the dashcam clock was set to.

    Returns:
        The recording start time.

    Raises:
        InvalidTimestampError: If the digits are not a real date and time.
    """
    parts = [int(match.group(name)) for name in _TIMESTAMP_GROUPS]
    try:
        return datetime(*parts, tzinfo=tz)
    except ValueError as e:
        raise InvalidTimestampError(match.group(0)) from e


def file_size(path: Path) -> int:
    """Return a file's size in bytes, or 0 if it cannot be stat'ed."""
    try:
        return path.stat().st_size
    except OSError:
        return 0


class BaseVendorParser(ABC):
    """Abstract base class for vendor parsers.

    Subclasses set the class attributes below and implement the hooks that
    differ per vendor: base identifier layout, channel table, category
    source, and how sensor data is laid out in the container.

    Attributes:
        VENDOR_ID: Stable machine identifier.
        VENDOR_NAME: Display name.
        FEATURES: Capabilities the vendor's hardware offers.
        FILENAME_PATTERN: Full-name grammar with timestamp named groups.
        SAMPLE_RATE_HZ: Fixed sensor record rate, or None to use the
            configured rate.
    """

    VENDOR_ID: ClassVar[str]
    VENDOR_NAME: ClassVar[str]
    FEATURES: ClassVar[frozenset[VendorFeature]] = frozenset()
    FILENAME_PATTERN: ClassVar[re.Pattern[str]]
    SAMPLE_RATE_HZ: ClassVar[float | None] = None

    def __init__(
        self,
        config: Config | None = None,
        *,
        extractor: MetadataStreamExtractor | None = None,
        decoder: SensorStreamDecoder | None = None,
    ) -> None:
        """Initialize the parser.

        Args:
            config: Configuration to use. Defaults to the shared instance.
            extractor: Metadata stream extractor. Built from config if None.
            decoder: Sensor stream decoder. Built from config if None.
        """
        self._config = config or Config.load()
        self._extractor = extractor or MetadataStreamExtractor(
            self._config.extraction.ffmpeg_path,
            ffprobe_path=self._config.extraction.ffprobe_path,
            timeout=self._config.extraction.timeout,
        )
        self._decoder = decoder or SensorStreamDecoder(
            sample_rate_hz=self.SAMPLE_RATE_HZ or self._config.sensors.sample_rate_hz,
        )
        self._descriptor = ParserDescriptor(
            vendor_id=self.VENDOR_ID,
            vendor_name=self.VENDOR_NAME,
            features=frozenset(self.FEATURES),
        )

    @property
    def descriptor(self) -> ParserDescriptor:
        """Get the parser's identity."""
        return self._descriptor

    @property
    def vendor_id(self) -> str:
        """Get the vendor identifier."""
        return self._descriptor.vendor_id

    @property
    def vendor_name(self) -> str:
        """Get the vendor display name."""
        return self._descriptor.vendor_name

    @property
    def timezone(self) -> tzinfo:
        """Get the zone filename timestamps are interpreted in."""
        return self._config.sensors.recording_tz

    def supported_features(self) -> frozenset[VendorFeature]:
        """Get the vendor's capabilities."""
        return self._descriptor.features

    def __repr__(self) -> str:
        return f"{type(self).__name__}(vendor_id={self.vendor_id!r})"

    # ------------------------------------------------------------------
    # Filename parsing
    # ------------------------------------------------------------------

    def matches(self, filename: str) -> bool:
        """Check whether a bare filename follows this vendor's grammar."""
        return self.FILENAME_PATTERN.fullmatch(filename) is not None

    def parse_file_strict(self, path: Path | str) -> ParsedFileInfo:
        """Parse a recording's identity from its filename.

        Args:
            path: Recording path. Only the name is parsed; the file is
                stat'ed for its size but need not exist.

        Returns:
            Parsed identity.

        Raises:
            UnsupportedFormatError: If the name does not follow the grammar.
            InvalidTimestampError: If the date or time is impossible.
        """
        path = Path(path).absolute()
        match = self.FILENAME_PATTERN.fullmatch(path.name)
        if match is None:
            raise UnsupportedFormatError(path.name)

        return ParsedFileInfo(
            path=path,
            timestamp=compose_timestamp(match, self.timezone),
            channel=self._channel_from_match(match),
            category=self._category_from_match(match, path),
            file_size=file_size(path),
            base_identifier=self._base_identifier(match),
        )

    def parse_file(self, path: Path | str) -> ParsedFileInfo | None:
        """Parse a recording's identity, returning None when it cannot.

        See :meth:`parse_file_strict` for the failure reasons.
        """
        try:
            return self.parse_file_strict(path)
        except VendorParserError as e:
            logger.debug("%s cannot parse %s: %s", self.vendor_name, path, e)
            return None

    def recording_start(self, path: Path | str) -> datetime | None:
        """Get the recording start time encoded in a filename."""
        match = self.FILENAME_PATTERN.fullmatch(Path(path).name)
        if match is None:
            return None
        try:
            return compose_timestamp(match, self.timezone)
        except InvalidTimestampError:
            return None

    @abstractmethod
    def _base_identifier(self, match: re.Match[str]) -> str:
        """Build the key shared by all channels of one recording."""
        ...

    @abstractmethod
    def _channel_from_match(self, match: re.Match[str]) -> CameraChannel:
        """Resolve the camera channel from the filename."""
        ...

    @abstractmethod
    def _category_from_match(self, match: re.Match[str], path: Path) -> RecordingCategory:
        """Resolve the recording category from the filename or its folder."""
        ...

    # ------------------------------------------------------------------
    # Sensor extraction
    # ------------------------------------------------------------------

    def extract_gps(self, path: Path | str) -> list[GPSFix]:
        """Extract GPS fixes embedded in a recording.

        Never raises; any failure yields an empty list.

        Args:
            path: Recording path. The name must follow the vendor grammar,
                since its timestamp dates the fixes.

        Returns:
            Fixes in stream order.
        """
        path = Path(path)
        base_time = self.recording_start(path)
        if base_time is None:
            logger.debug("No recording start in %s, skipping GPS", path.name)
            return []

        try:
            fixes = self._decode_gps(path, base_time)
        except (VendorParserError, OSError, ValueError, OverflowError, struct.error) as e:
            logger.debug("GPS extraction failed for %s: %s", path, e)
            return []

        logger.debug("Decoded %d GPS fixes from %s", len(fixes), path.name)
        return fixes

    def extract_acceleration(self, path: Path | str) -> list[AccelerometerSample]:
        """Extract accelerometer samples embedded in a recording.

        Never raises; any failure yields an empty list.
        """
        path = Path(path)
        base_time = self.recording_start(path)
        if base_time is None:
            logger.debug("No recording start in %s, skipping accelerometer", path.name)
            return []

        try:
            samples = self._decode_acceleration(path, base_time)
        except (VendorParserError, OSError, ValueError, OverflowError, struct.error) as e:
            logger.debug("Accelerometer extraction failed for %s: %s", path, e)
            return []

        logger.debug("Decoded %d accelerometer samples from %s", len(samples), path.name)
        return samples

    @abstractmethod
    def _decode_gps(self, path: Path, base_time: datetime) -> list[GPSFix]:
        """Read and decode the vendor's GPS stream."""
        ...

    @abstractmethod
    def _decode_acceleration(self, path: Path, base_time: datetime) -> list[AccelerometerSample]:
        """Read and decode the vendor's accelerometer data."""
        ...


__all__ = [
    "BaseVendorParser",
    "InvalidTimestampError",
    "MetadataExtractionError",
    "UnsupportedFormatError",
    "VendorParserError",
    "compose_timestamp",
    "file_size",
]
