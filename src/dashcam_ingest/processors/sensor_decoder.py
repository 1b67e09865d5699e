"""Decoding of embedded dashcam sensor streams.

Turns extracted metadata into GPS fixes and accelerometer samples.

GPS records are NMEA text and are handed to :class:`NMEAParser`.
Accelerometer data comes in one of four shapes:

- packed binary, three little-endian 32-bit floats per sample (in g);
- packed binary, three little-endian signed 16-bit integers per sample,
  scaled at 16384 units per g (a +/-2g sensor);
- CSV text, either ``time,x,y,z`` or bare ``x,y,z``;
- text records that start with ``x,y,z`` and may carry more fields.

Samples without an explicit time are spaced ``1 / sample_rate_hz`` apart
from the recording start.

Example:
    >>> decoder = SensorStreamDecoder(sample_rate_hz=10.0)
    >>> samples = decoder.decode_binary(raw, start, AccelFormat.INT16)
    >>> samples[1].timestamp - samples[0].timestamp
    datetime.timedelta(microseconds=100000)
"""

from __future__ import annotations

import math
import struct
from collections.abc import Iterable
from datetime import datetime, timedelta

from dashcam_ingest.core.logger import get_logger
from dashcam_ingest.core.types import AccelerometerSample, AccelFormat, GPSFix
from dashcam_ingest.processors.nmea import NMEAParser
from dashcam_ingest.utils.constants import (
    CSV_HEADER_PREFIXES,
    DEFAULT_SAMPLE_RATE_HZ,
    FLOAT_PLAUSIBLE_G,
    GPS_SENTENCE_MARKERS,
    INT16_UNITS_PER_G,
)

logger = get_logger(__name__)

_FLOAT_TRIPLET = struct.Struct("<3f")
_INT16_TRIPLET = struct.Struct("<3h")


def find_gps_marker(record: str) -> int:
    """Return the index of the first GPS sentence marker, or -1."""
    positions = [record.find(marker) for marker in GPS_SENTENCE_MARKERS]
    found = [pos for pos in positions if pos >= 0]
    return min(found) if found else -1


class SensorStreamDecoder:
    """Decode GPS and accelerometer data from extracted streams.

    Attributes:
        sample_rate_hz: Accelerometer sample rate used for synthesized times.
    """

    def __init__(
        self,
        sample_rate_hz: float = DEFAULT_SAMPLE_RATE_HZ,
        nmea_parser: NMEAParser | None = None,
    ) -> None:
        if sample_rate_hz <= 0:
            raise ValueError(f"Sample rate must be positive: {sample_rate_hz}")
        self.sample_rate_hz = sample_rate_hz
        self._nmea = nmea_parser or NMEAParser()

    def _offset(self, index: int) -> timedelta:
        return timedelta(seconds=index / self.sample_rate_hz)

    # ------------------------------------------------------------------
    # GPS
    # ------------------------------------------------------------------

    def decode_gps(self, records: Iterable[str], base_time: datetime) -> list[GPSFix]:
        """Decode GPS fixes from cleaned metadata records.

        Each record is cut at its first GPS sentence marker; anything
        before the marker is framing and is dropped. Records without a
        marker are ignored.

        Args:
            records: Cleaned text records from the metadata stream.
            base_time: Recording start, supplying the date for sentences
                that carry none.

        Returns:
            Fixes in record order.
        """
        fixes: list[GPSFix] = []
        for record in records:
            start = find_gps_marker(record)
            if start < 0:
                continue
            sentence = record[start:]
            fixes.extend(self._nmea.parse(sentence.encode("ascii", errors="ignore"), base_time))
        return fixes

    # ------------------------------------------------------------------
    # Accelerometer: binary
    # ------------------------------------------------------------------

    @staticmethod
    def detect_format(data: bytes) -> AccelFormat | None:
        """Guess the binary encoding of an accelerometer buffer.

        The first record is read as three floats. If every magnitude is
        within the range a vehicle sensor can plausibly report, the buffer
        is taken to be float32; otherwise int16. Only the first record is
        inspected, so an int16 buffer whose first six bytes happen to form
        small floats will be misclassified. Prefer a configured format
        where the vendor's encoding is known.

        Args:
            data: Raw accelerometer bytes.

        Returns:
            FLOAT32 or INT16, or None if the buffer is shorter than one
            float record.
        """
        if len(data) < _FLOAT_TRIPLET.size:
            return None

        values = _FLOAT_TRIPLET.unpack_from(data, 0)
        if all(abs(v) < FLOAT_PLAUSIBLE_G for v in values):
            return AccelFormat.FLOAT32
        return AccelFormat.INT16

    def decode_binary(
        self,
        data: bytes,
        base_time: datetime,
        fmt: AccelFormat,
    ) -> list[AccelerometerSample]:
        """Decode fixed-width binary accelerometer records.

        A trailing partial record is ignored.

        Args:
            data: Raw accelerometer bytes.
            base_time: Time of the first sample.
            fmt: FLOAT32 or INT16.

        Returns:
            One sample per whole record.

        Raises:
            ValueError: If ``fmt`` is AUTO.
        """
        if fmt is AccelFormat.FLOAT32:
            layout, scale = _FLOAT_TRIPLET, 1.0
        elif fmt is AccelFormat.INT16:
            layout, scale = _INT16_TRIPLET, INT16_UNITS_PER_G
        else:
            raise ValueError("decode_binary needs a concrete format, not AUTO")

        whole = len(data) - len(data) % layout.size
        samples = []
        for index, (x, y, z) in enumerate(layout.iter_unpack(memoryview(data)[:whole])):
            samples.append(
                AccelerometerSample(
                    timestamp=base_time + self._offset(index),
                    x=x / scale,
                    y=y / scale,
                    z=z / scale,
                )
            )
        return samples

    def decode_accelerometer(
        self,
        data: bytes,
        base_time: datetime,
        fmt: AccelFormat = AccelFormat.AUTO,
    ) -> list[AccelerometerSample]:
        """Decode a binary accelerometer buffer, detecting the format if asked.

        Returns:
            Decoded samples; empty if the format cannot be determined.
        """
        if fmt is AccelFormat.AUTO:
            detected = self.detect_format(data)
            if detected is None:
                logger.debug("Accelerometer buffer too short to classify (%d bytes)", len(data))
                return []
            logger.debug("Detected accelerometer format: %s", detected.value)
            fmt = detected
        return self.decode_binary(data, base_time, fmt)

    # ------------------------------------------------------------------
    # Accelerometer: CSV
    # ------------------------------------------------------------------

    def decode_csv(self, data: bytes | str, base_time: datetime) -> list[AccelerometerSample]:
        """Decode CSV accelerometer text.

        Args:
            data: CSV text (bytes are decoded as UTF-8 with replacement).
            base_time: Recording start.

        Returns:
            Samples for every well-formed line.
        """
        text = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else data
        return self.decode_csv_lines(text.splitlines(), base_time)

    def decode_csv_lines(self, lines: Iterable[str], base_time: datetime) -> list[AccelerometerSample]:
        """Decode accelerometer samples from individual CSV lines.

        Lines with four or more fields are ``time,x,y,z``; a numeric time is
        an offset in seconds from ``base_time``. Lines with three fields are
        ``x,y,z``. When no usable time is present the offset is the line's
        index divided by the sample rate. Header lines (starting with
        "time" or "timestamp") and lines with non-numeric axes are skipped.

        Args:
            lines: CSV lines; each line's position is its record index.
            base_time: Recording start.

        Returns:
            Samples for every well-formed line.
        """
        samples = []
        for index, line in enumerate(lines):
            sample = self._parse_csv_line(line, index, base_time)
            if sample is not None:
                samples.append(sample)
        return samples

    def _parse_csv_line(self, line: str, index: int, base_time: datetime) -> AccelerometerSample | None:
        trimmed = line.strip()
        if not trimmed or trimmed.startswith(CSV_HEADER_PREFIXES):
            return None

        fields = [f.strip() for f in trimmed.split(",")]
        if len(fields) >= 4:
            offset = self._offset(index)
            time_value = _parse_number(fields[0])
            if time_value is not None:
                offset = timedelta(seconds=time_value)
            axes = fields[1:4]
        elif len(fields) == 3:
            offset = self._offset(index)
            axes = fields
        else:
            return None

        x, y, z = (_parse_number(v) for v in axes)
        if x is None or y is None or z is None:
            return None
        return AccelerometerSample(timestamp=base_time + offset, x=x, y=y, z=z)

    def decode_axis_records(
        self, records: Iterable[str], base_time: datetime
    ) -> list[AccelerometerSample]:
        """Decode records whose first three fields are the x, y and z axes.

        Anything after the third field (a GPS sentence, for instance) is
        ignored. Records whose leading fields are not numeric are skipped
        and do not advance the clock: sample ``i`` is placed ``i`` sample
        periods after ``base_time``, counting only emitted samples.

        Args:
            records: Cleaned text records.
            base_time: Recording start.

        Returns:
            Samples in record order.
        """
        samples: list[AccelerometerSample] = []
        for record in records:
            fields = record.split(",", 3)
            if len(fields) < 3:
                continue
            x, y, z = (_parse_number(v.strip()) for v in fields[:3])
            if x is None or y is None or z is None:
                continue
            samples.append(
                AccelerometerSample(timestamp=base_time + self._offset(len(samples)), x=x, y=y, z=z)
            )
        return samples


def _parse_number(value: str) -> float | None:
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


__all__ = [
    "SensorStreamDecoder",
    "find_gps_marker",
]
