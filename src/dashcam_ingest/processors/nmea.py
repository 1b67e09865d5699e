"""NMEA 0183 sentence parsing for dashcam GPS tracks.

Dashcams log their GPS receiver output verbatim. Two sentence types carry
everything needed for a track:

- RMC (``$GPRMC`` / ``$GNRMC``): time, date, position, speed and course.
- GGA (``$GPGGA`` / ``$GNGGA``): position plus altitude, satellite count
  and HDOP.

Receivers emit them in pairs for the same second, so each valid RMC
creates a fix and a following GGA fills in the altitude and accuracy of
that fix.

Example:
    >>> parser = NMEAParser()
    >>> fixes = parser.parse(
    ...     b"$GPRMC,053025,A,3744.1234,N,12704.5678,E,45.2,120.0,150124,,,A*6A",
    ...     base_date=datetime(2024, 1, 15, tzinfo=timezone.utc),
    ... )
    >>> fixes[0].latitude
    37.73539
"""

from __future__ import annotations

import dataclasses
import math
from datetime import datetime, timezone

from dashcam_ingest.core.logger import get_logger
from dashcam_ingest.core.types import GPSFix
from dashcam_ingest.utils.constants import (
    GGA_SENTENCE_MARKERS,
    GPS_SENTENCE_MARKERS,
    HDOP_TO_METERS,
    KNOTS_TO_KMH,
    NMEA_CENTURY,
)

logger = get_logger(__name__)


def _to_float(value: str) -> float | None:
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _to_int(value: str) -> int | None:
    try:
        return int(value)
    except ValueError:
        return None


def parse_coordinate(value: str, direction: str) -> float | None:
    """Convert an NMEA ``(D)DDMM.MMMM`` coordinate to decimal degrees.

    Args:
        value: Degrees and minutes, e.g. "3744.1234" or "12704.5678".
        direction: Hemisphere, one of N, S, E, W.

    Returns:
        Signed decimal degrees, or None if the fields are malformed.
    """
    if not value or direction not in ("N", "S", "E", "W"):
        return None

    degree_digits = 2 if direction in ("N", "S") else 3
    if len(value) <= degree_digits:
        return None

    degrees = _to_float(value[:degree_digits])
    minutes = _to_float(value[degree_digits:])
    if degrees is None or minutes is None:
        return None

    coordinate = degrees + minutes / 60.0
    if direction in ("S", "W"):
        coordinate = -coordinate
    return coordinate


def parse_datetime(time_field: str, date_field: str | None, base_date: datetime) -> datetime | None:
    """Combine an NMEA time (and optional date) into a UTC datetime.

    Args:
        time_field: ``HHMMSS`` with optional fractional seconds.
        date_field: ``DDMMYY`` from RMC, or None to use ``base_date``.
        base_date: Recording start, used for the calendar date when the
            sentence carries none.

    Returns:
        A timezone-aware UTC datetime, or None if invalid.
    """
    if len(time_field) < 6:
        return None

    hour = _to_int(time_field[0:2])
    minute = _to_int(time_field[2:4])
    seconds = _to_float(time_field[4:])
    if hour is None or minute is None or seconds is None:
        return None
    # 60 allows a leap second
    if not 0 <= seconds < 61:
        return None

    year, month, day = base_date.year, base_date.month, base_date.day
    if date_field and len(date_field) >= 6:
        d, m, y = _to_int(date_field[0:2]), _to_int(date_field[2:4]), _to_int(date_field[4:6])
        if d is not None and m is not None and y is not None:
            year, month, day = NMEA_CENTURY + y, m, d

    whole = int(seconds)
    micros = int(round((seconds - whole) * 1_000_000))
    try:
        return datetime(year, month, day, hour, minute, whole, min(micros, 999_999), tzinfo=timezone.utc)
    except ValueError:
        return None


def iter_sentences(text: str) -> list[str]:
    """Split text into individual ``$``-prefixed sentences.

    Sentences may be separated by newlines or glued together on one line.
    The ``*hh`` checksum suffix is removed.
    """
    sentences = []
    for line in text.splitlines():
        for chunk in line.split("$")[1:]:
            body = chunk.split("*", 1)[0].strip()
            if body:
                sentences.append(f"${body}")
    return sentences


class NMEAParser:
    """Parse NMEA RMC/GGA sentences into GPS fixes.

    Malformed sentences, void RMC fixes (status ``V``) and GGA sentences
    without a fix are skipped; parsing never raises.
    """

    def parse(self, data: bytes | str, base_date: datetime) -> list[GPSFix]:
        """Parse a block of NMEA text.

        Args:
            data: ASCII NMEA text (bytes or str).
            base_date: Recording start time, supplying the calendar date
                for sentences that have none.

        Returns:
            Fixes in input order.
        """
        text = data.decode("ascii", errors="replace") if isinstance(data, bytes) else data

        fixes: list[GPSFix] = []
        for sentence in iter_sentences(text):
            if sentence.startswith(GPS_SENTENCE_MARKERS):
                fix = self._parse_rmc(sentence, base_date)
                if fix is not None:
                    fixes.append(fix)
            elif sentence.startswith(GGA_SENTENCE_MARKERS) and fixes:
                gga = self._parse_gga(sentence, base_date)
                if gga is not None:
                    fixes[-1] = dataclasses.replace(fixes[-1], **gga)

        return fixes

    def parse_sentence(self, sentence: str, base_date: datetime) -> GPSFix | None:
        """Parse a single RMC sentence into a fix."""
        sentences = iter_sentences(sentence)
        if not sentences or not sentences[0].startswith(GPS_SENTENCE_MARKERS):
            return None
        return self._parse_rmc(sentences[0], base_date)

    def _parse_rmc(self, sentence: str, base_date: datetime) -> GPSFix | None:
        fields = sentence.split(",")
        if len(fields) < 10 or fields[2] != "A":
            return None

        timestamp = parse_datetime(fields[1], fields[9], base_date)
        latitude = parse_coordinate(fields[3], fields[4])
        longitude = parse_coordinate(fields[5], fields[6])
        if timestamp is None or latitude is None or longitude is None:
            logger.debug("Skipping malformed RMC sentence: %s", sentence)
            return None

        knots = _to_float(fields[7])
        return GPSFix(
            timestamp=timestamp,
            latitude=latitude,
            longitude=longitude,
            speed=knots * KNOTS_TO_KMH if knots is not None else None,
            heading=_to_float(fields[8]),
        )

    def _parse_gga(self, sentence: str, base_date: datetime) -> dict[str, float | int | None] | None:
        """Return the fields a GGA sentence adds to the preceding fix."""
        fields = sentence.split(",")
        if len(fields) < 11:
            return None

        quality = _to_int(fields[6])
        if quality is None or quality <= 0:
            return None

        if (
            parse_datetime(fields[1], None, base_date) is None
            or parse_coordinate(fields[2], fields[3]) is None
            or parse_coordinate(fields[4], fields[5]) is None
        ):
            return None

        hdop = _to_float(fields[8])
        return {
            "altitude": _to_float(fields[9]),
            "satellite_count": _to_int(fields[7]),
            "horizontal_accuracy": hdop * HDOP_TO_METERS if hdop is not None else None,
        }


__all__ = [
    "NMEAParser",
    "iter_sentences",
    "parse_coordinate",
    "parse_datetime",
]
