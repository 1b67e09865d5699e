"""BlackVue dashcam parser.

BlackVue names every segment ``YYYYMMDD_HHMMSS_<channel>.<ext>``:

- ``20240115_143025_F.mp4``: front camera
- ``20240115_143025_R.mp4``: rear camera
- ``20240115_143025_Ri.mp4``: right camera (four-channel models)

The recording category is not part of the name; it comes from the folder
the card stores the file in (``Record/normal``, ``Record/event`` ...).

GPS is logged as NMEA text in the first data stream of the MP4. The
G-sensor writes packed three-axis records to a second data stream.
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path

from dashcam_ingest.core.types import (
    AccelerometerSample,
    AccelFormat,
    CameraChannel,
    GPSFix,
    RecordingCategory,
    VendorFeature,
)
from dashcam_ingest.utils.constants import (
    DEFAULT_ACCEL_STREAM_INDEX,
    DEFAULT_METADATA_STREAM_INDEX,
)
from dashcam_ingest.vendors.base import BaseVendorParser

_CHANNEL_CODES = {
    "F": CameraChannel.FRONT,
    "R": CameraChannel.REAR,
    "L": CameraChannel.LEFT,
    "I": CameraChannel.INTERIOR,
    "Ri": CameraChannel.RIGHT,
}


class BlackVueParser(BaseVendorParser):
    """Parser for BlackVue recordings.

    Attributes:
        GPS_STREAM_INDEX: Container stream holding NMEA text.
        ACCEL_STREAM_INDEX: Container stream holding G-sensor records.
    """

    VENDOR_ID = "blackvue"
    VENDOR_NAME = "BlackVue"
    FEATURES = frozenset(
        {
            VendorFeature.GPS,
            VendorFeature.ACCELEROMETER,
            VendorFeature.PARKING_MODE,
            VendorFeature.CLOUD_SYNC,
            VendorFeature.VOICE_RECORDING,
        }
    )
    FILENAME_PATTERN = re.compile(
        r"(?P<year>\d{4})(?P<month>\d{2})(?P<day>\d{2})"
        r"_(?P<hour>\d{2})(?P<minute>\d{2})(?P<second>\d{2})"
        r"_(?P<channel>[FRLIi]+)\.(?P<ext>\w+)"
    )

    GPS_STREAM_INDEX = DEFAULT_METADATA_STREAM_INDEX
    ACCEL_STREAM_INDEX = DEFAULT_ACCEL_STREAM_INDEX

    def _base_identifier(self, match: re.Match[str]) -> str:
        # "20240115_143025": everything before the channel code
        return match.string[: match.start("channel") - 1]

    def _channel_from_match(self, match: re.Match[str]) -> CameraChannel:
        code = match.group("channel")
        return _CHANNEL_CODES.get(code) or CameraChannel.detect(code)

    def _category_from_match(self, match: re.Match[str], path: Path) -> RecordingCategory:
        return RecordingCategory.from_path(path)

    def _decode_gps(self, path: Path, base_time: datetime) -> list[GPSFix]:
        records = self._extractor.extract_records(path, self.GPS_STREAM_INDEX)
        return self._decoder.decode_gps(records, base_time)

    def _decode_acceleration(self, path: Path, base_time: datetime) -> list[AccelerometerSample]:
        data = self._extractor.extract_bytes(path, self.ACCEL_STREAM_INDEX)
        if not data:
            return []
        fmt = AccelFormat(self._config.sensors.accel_format)
        return self._decoder.decode_accelerometer(data, base_time, fmt)


__all__ = ["BlackVueParser"]
