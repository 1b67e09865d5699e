"""Centralized constants for dashcam_ingest.

This module contains the magic numbers and default values used throughout
the package. Import from here to ensure consistency.

Example:
    >>> from dashcam_ingest.utils.constants import (
    ...     DETECTION_SAMPLE_SIZE,
    ...     INT16_UNITS_PER_G,
    ... )
    >>> g = raw / INT16_UNITS_PER_G
"""

from __future__ import annotations

# =============================================================================
# Vendor Detection
# =============================================================================
DETECTION_SAMPLE_SIZE = 10
DETECTION_CONFIDENCE_THRESHOLD = 0.5
SAMPLED_VIDEO_EXTENSIONS = ("mp4", "mov", "avi", "mkv")

# =============================================================================
# Filename Timestamps
# =============================================================================
# Dashcam clocks are set to local time; Korea has no DST.
DEFAULT_TIMEZONE_OFFSET_HOURS = 9

# =============================================================================
# Embedded Metadata Streams
# =============================================================================
DEFAULT_METADATA_STREAM_INDEX = 2
DEFAULT_ACCEL_STREAM_INDEX = 3

# Sentence markers that identify a position record
GPS_SENTENCE_MARKERS = ("$GPRMC", "$GNRMC")
GGA_SENTENCE_MARKERS = ("$GPGGA", "$GNGGA")

# A cleaned record without a GPS marker needs this many comma fields
MIN_RECORD_FIELDS = 3

# =============================================================================
# Accelerometer
# =============================================================================
DEFAULT_SAMPLE_RATE_HZ = 10.0
INT16_UNITS_PER_G = 16384.0  # +/-2g full scale
FLOAT_PLAUSIBLE_G = 20.0
CSV_HEADER_PREFIXES = ("timestamp", "time")

# =============================================================================
# NMEA
# =============================================================================
KNOTS_TO_KMH = 1.852
HDOP_TO_METERS = 10.0
NMEA_CENTURY = 2000

# =============================================================================
# External Tools
# =============================================================================
FFMPEG_CMD = "ffmpeg"
FFPROBE_CMD = "ffprobe"
FFPROBE_TIMEOUT = 30.0
