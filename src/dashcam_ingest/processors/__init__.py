"""Processor modules for dashcam telemetry.

This package decodes extracted metadata into GPS fixes (NMEA) and
accelerometer samples (binary or CSV).
"""

from dashcam_ingest.processors.nmea import NMEAParser
from dashcam_ingest.processors.sensor_decoder import SensorStreamDecoder

__all__ = [
    "NMEAParser",
    "SensorStreamDecoder",
]
