"""Core type definitions for dashcam ingestion.

This module defines the enumerations and data classes shared by the vendor
parsers, the vendor detector, and the sensor stream decoder.

Example:
    >>> from dashcam_ingest.core.types import CameraChannel, RecordingCategory
    >>> CameraChannel.detect("F")
    <CameraChannel.FRONT: 'F'>
    >>> RecordingCategory.from_path("/sd/Record/event/20240115_143025_F.mp4")
    <RecordingCategory.IMPACT: 'impact'>
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dashcam_ingest.vendors.base import BaseVendorParser


class CameraChannel(Enum):
    """Physical camera that produced a recording.

    Values are the short codes dashcams most commonly put in filenames.
    """

    FRONT = "F"
    REAR = "R"
    LEFT = "L"
    RIGHT = "Ri"
    INTERIOR = "I"
    UNKNOWN = "U"

    @property
    def channel_index(self) -> int:
        """Zero-based channel slot, -1 for unknown."""
        return _CHANNEL_INDEX[self]

    @classmethod
    def detect(cls, code: str) -> CameraChannel:
        """Resolve a channel from a free-form filename fragment.

        This is the shared fallback used when a vendor's own code table has
        no entry. It tries an exact code match on the last underscore
        separated component first, then substring heuristics. "Ri" must be
        told apart from the plain "R" of the rear camera.

        Args:
            code: Channel code or filename.

        Returns:
            The detected channel, or UNKNOWN.
        """
        last = code.split("_")[-1].split(".")[0]

        for channel in cls:
            if last == channel.value:
                return channel

        if "F" in last:
            return cls.FRONT
        if "R" in last and "Ri" not in last:
            return cls.REAR
        if "L" in last:
            return cls.LEFT
        if "Ri" in last:
            return cls.RIGHT
        if "I" in last:
            return cls.INTERIOR
        return cls.UNKNOWN


_CHANNEL_INDEX = {
    CameraChannel.FRONT: 0,
    CameraChannel.REAR: 1,
    CameraChannel.LEFT: 2,
    CameraChannel.RIGHT: 3,
    CameraChannel.INTERIOR: 4,
    CameraChannel.UNKNOWN: -1,
}


class RecordingCategory(Enum):
    """Reason a recording segment exists.

    Attributes:
        NORMAL: Loop recording while driving.
        IMPACT: Triggered by the G-sensor.
        PARKING: Triggered by motion or impact while parked.
        MANUAL: Triggered by the driver.
        EMERGENCY: SOS recording.
        UNKNOWN: Could not be determined.
    """

    NORMAL = "normal"
    IMPACT = "impact"
    PARKING = "parking"
    MANUAL = "manual"
    EMERGENCY = "emergency"
    UNKNOWN = "unknown"

    @classmethod
    def from_path(cls, path: str | Path) -> RecordingCategory:
        """Resolve a category from the folder a file lives in.

        A directory segment equal to one of the known folder names selects
        the category. Matching is case-insensitive; the first rule that hits
        wins. The final component (the file name) is never examined.

        Args:
            path: File path (absolute or relative).

        Returns:
            The category, or UNKNOWN when no folder name matches.
        """
        segments = {part.lower() for part in Path(path).parts[:-1]}

        for names, category in _FOLDER_CATEGORIES:
            if segments & names:
                return category
        return cls.UNKNOWN


_FOLDER_CATEGORIES: tuple[tuple[frozenset[str], RecordingCategory], ...] = (
    (frozenset({"normal"}), RecordingCategory.NORMAL),
    (frozenset({"event", "impact"}), RecordingCategory.IMPACT),
    (frozenset({"parking", "park"}), RecordingCategory.PARKING),
    (frozenset({"manual"}), RecordingCategory.MANUAL),
    (frozenset({"emergency", "sos"}), RecordingCategory.EMERGENCY),
)


class VendorFeature(Enum):
    """Capabilities a dashcam vendor may offer."""

    GPS = "gps"
    ACCELEROMETER = "accelerometer"
    GYROSCOPE = "gyroscope"
    SPEEDOMETER = "speedometer"
    PARKING_MODE = "parking_mode"
    VOICE_RECORDING = "voice_recording"
    ADAS = "adas"
    CLOUD_SYNC = "cloud_sync"


class AccelFormat(Enum):
    """Binary encoding of an accelerometer stream.

    Attributes:
        FLOAT32: Three 32-bit floats per record, values already in g.
        INT16: Three signed 16-bit integers per record, 16384 units per g.
        AUTO: Decide from the buffer contents.
    """

    FLOAT32 = "float32"
    INT16 = "int16"
    AUTO = "auto"

    @property
    def record_size(self) -> int:
        """Bytes per three-axis record."""
        if self is AccelFormat.FLOAT32:
            return 12
        if self is AccelFormat.INT16:
            return 6
        raise ValueError("AUTO has no fixed record size")


@dataclass(frozen=True)
class ParserDescriptor:
    """Identity of a vendor parser.

    Attributes:
        vendor_id: Stable machine identifier (e.g. "blackvue").
        vendor_name: Display name (e.g. "BlackVue").
        features: Capabilities this vendor supports.
    """

    vendor_id: str
    vendor_name: str
    features: frozenset[VendorFeature] = field(default_factory=frozenset)


@dataclass
class ParsedFileInfo:
    """Identity of a single recording file, parsed from its name.

    Two files with the same ``base_identifier`` and different channels
    belong to the same recording event.

    Attributes:
        path: Absolute path to the file.
        timestamp: Recording start (timezone-aware).
        channel: Camera that produced the file.
        category: Why the segment was recorded.
        file_size: Size in bytes (0 if the file could not be stat'ed).
        base_identifier: Timestamp-derived key shared by all channels.
    """

    path: Path
    timestamp: datetime
    channel: CameraChannel
    category: RecordingCategory
    file_size: int
    base_identifier: str

    @property
    def filename(self) -> str:
        """Get the file name without directories."""
        return self.path.name

    def to_dict(self) -> dict[str, object]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "path": str(self.path),
            "timestamp": self.timestamp.isoformat(),
            "channel": self.channel.name.lower(),
            "category": self.category.value,
            "file_size": self.file_size,
            "base_identifier": self.base_identifier,
        }


@dataclass
class RecordingGroup:
    """All channels of one recording event.

    Files share a ``base_identifier`` and a category, and are kept in
    channel order (front, rear, left, right, interior, then unknown).

    Attributes:
        files: Parsed files of the event, one per channel.
    """

    files: list[ParsedFileInfo] = field(default_factory=list)

    @property
    def base_identifier(self) -> str:
        """Get the identifier shared by every channel."""
        return self.files[0].base_identifier if self.files else ""

    @property
    def category(self) -> RecordingCategory:
        """Get the category of the event."""
        return self.files[0].category if self.files else RecordingCategory.UNKNOWN

    @property
    def timestamp(self) -> datetime | None:
        """Get the recording start, or None for an empty group."""
        return self.files[0].timestamp if self.files else None

    @property
    def channels(self) -> list[CameraChannel]:
        """Get the channels present, in channel order."""
        return [info.channel for info in self.files]

    @property
    def total_file_size(self) -> int:
        """Get the combined size of every channel in bytes."""
        return sum(info.file_size for info in self.files)

    def channel(self, channel: CameraChannel) -> ParsedFileInfo | None:
        """Get the file recorded by a camera, if the event has one."""
        for info in self.files:
            if info.channel is channel:
                return info
        return None

    def has_channel(self, channel: CameraChannel) -> bool:
        """Check whether a camera contributed to the event."""
        return self.channel(channel) is not None

    def to_dict(self) -> dict[str, object]:
        """Convert to a JSON-serializable dictionary."""
        timestamp = self.timestamp
        return {
            "base_identifier": self.base_identifier,
            "category": self.category.value,
            "timestamp": timestamp.isoformat() if timestamp else None,
            "channels": [channel.name.lower() for channel in self.channels],
            "total_file_size": self.total_file_size,
            "files": [info.to_dict() for info in self.files],
        }


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of vendor detection over a directory sample.

    Attributes:
        parser: Selected vendor parser.
        confidence: Fraction of sampled files the parser matched (0.0-1.0).
        sample_count: Number of filenames that were sampled.
        match_count: Number of sampled filenames the parser matched.
    """

    parser: BaseVendorParser
    confidence: float
    sample_count: int = 0
    match_count: int = 0

    @property
    def vendor_id(self) -> str:
        """Get the selected vendor's identifier."""
        return self.parser.vendor_id


@dataclass(frozen=True)
class GPSFix:
    """A single position fix decoded from an NMEA stream.

    Attributes:
        timestamp: UTC time of the fix.
        latitude: Decimal degrees, negative south.
        longitude: Decimal degrees, negative west.
        altitude: Meters above mean sea level, if reported.
        speed: Ground speed in km/h, if reported.
        heading: Course over ground in degrees, if reported.
        horizontal_accuracy: Estimated accuracy in meters (HDOP x 10).
        satellite_count: Satellites used for the fix.
    """

    timestamp: datetime
    latitude: float
    longitude: float
    altitude: float | None = None
    speed: float | None = None
    heading: float | None = None
    horizontal_accuracy: float | None = None
    satellite_count: int | None = None

    def to_dict(self) -> dict[str, object]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "latitude": self.latitude,
            "longitude": self.longitude,
            "altitude": self.altitude,
            "speed": self.speed,
            "heading": self.heading,
            "horizontal_accuracy": self.horizontal_accuracy,
            "satellite_count": self.satellite_count,
        }


@dataclass(frozen=True)
class AccelerometerSample:
    """Three-axis acceleration in g at one instant."""

    timestamp: datetime
    x: float
    y: float
    z: float

    def to_dict(self) -> dict[str, object]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "x": self.x,
            "y": self.y,
            "z": self.z,
        }


__all__ = [
    "AccelFormat",
    "AccelerometerSample",
    "CameraChannel",
    "DetectionResult",
    "GPSFix",
    "ParsedFileInfo",
    "ParserDescriptor",
    "RecordingCategory",
    "RecordingGroup",
    "VendorFeature",
]
