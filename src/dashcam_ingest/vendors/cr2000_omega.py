"""CR-2000 OMEGA dashcam parser.

Filenames spell out the timestamp and carry the trigger type:

    2025-10-07-09h-11m-09s_F_normal.mp4
    2025-10-07-09h-12m-40s_R_event.mp4
    2025-10-07-22h-03m-15s_i_motion.mp4

The channel is a single letter; lower-case ``i`` is the interior camera
used on some firmware. ``event`` and ``motion`` are both G-sensor
triggers and map to the impact category.

A single data stream carries one record per second. Each record starts
with the three accelerometer axes, followed by a short binary tag and the
RMC sentence for that second:

    0.01,-0.02,0.98,gJ$GPRMC,001109,A,3733.1234,N,...

The first three fields of every record are read as ``x,y,z`` whether or
not a sentence follows. Records that don't start with three numbers are
skipped and don't advance the one-second clock.
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path

from dashcam_ingest.core.types import (
    AccelerometerSample,
    CameraChannel,
    GPSFix,
    RecordingCategory,
    VendorFeature,
)
from dashcam_ingest.utils.constants import DEFAULT_METADATA_STREAM_INDEX
from dashcam_ingest.vendors.base import BaseVendorParser

_CHANNEL_CODES = {
    "F": CameraChannel.FRONT,
    "R": CameraChannel.REAR,
    "L": CameraChannel.LEFT,
    "I": CameraChannel.INTERIOR,
    "i": CameraChannel.INTERIOR,
}

_CATEGORY_TOKENS = {
    "normal": RecordingCategory.NORMAL,
    "event": RecordingCategory.IMPACT,
    "motion": RecordingCategory.IMPACT,
    "parking": RecordingCategory.PARKING,
}


class CR2000OmegaParser(BaseVendorParser):
    """Parser for CR-2000 OMEGA recordings."""

    VENDOR_ID = "cr2000omega"
    VENDOR_NAME = "CR-2000 OMEGA"
    FEATURES = frozenset(
        {
            VendorFeature.GPS,
            VendorFeature.ACCELEROMETER,
            VendorFeature.PARKING_MODE,
            VendorFeature.VOICE_RECORDING,
        }
    )
    FILENAME_PATTERN = re.compile(
        r"(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
        r"-(?P<hour>\d{2})h-(?P<minute>\d{2})m-(?P<second>\d{2})s"
        r"_(?P<channel>[FRLIi])_(?P<category>normal|event|parking|motion)\.(?P<ext>\w+)"
    )

    METADATA_STREAM_INDEX = DEFAULT_METADATA_STREAM_INDEX
    # one combined sensor/GPS record per second
    SAMPLE_RATE_HZ = 1.0

    def _base_identifier(self, match: re.Match[str]) -> str:
        return "{}-{}-{}-{}h-{}m-{}s".format(
            match.group("year"),
            match.group("month"),
            match.group("day"),
            match.group("hour"),
            match.group("minute"),
            match.group("second"),
        )

    def _channel_from_match(self, match: re.Match[str]) -> CameraChannel:
        return _CHANNEL_CODES.get(match.group("channel"), CameraChannel.UNKNOWN)

    def _category_from_match(self, match: re.Match[str], path: Path) -> RecordingCategory:
        return _CATEGORY_TOKENS.get(match.group("category"), RecordingCategory.UNKNOWN)

    def _decode_gps(self, path: Path, base_time: datetime) -> list[GPSFix]:
        records = self._extractor.extract_records(path, self.METADATA_STREAM_INDEX)
        return self._decoder.decode_gps(records, base_time)

    def _decode_acceleration(self, path: Path, base_time: datetime) -> list[AccelerometerSample]:
        records = self._extractor.extract_records(path, self.METADATA_STREAM_INDEX)
        return self._decoder.decode_axis_records(records, base_time)


__all__ = ["CR2000OmegaParser"]
