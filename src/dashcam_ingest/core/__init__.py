"""Core module for dashcam ingestion.

This module provides the shared type definitions, configuration, logging
and error taxonomy used by the extractors, processors and vendor parsers.
"""

from dashcam_ingest.core.config import (
    Config,
    DetectionConfig,
    ExtractionConfig,
    SensorConfig,
)
from dashcam_ingest.core.errors import (
    InvalidTimestampError,
    MetadataExtractionError,
    UnsupportedFormatError,
    VendorParserError,
)
from dashcam_ingest.core.logger import (
    configure_logging,
    get_log_file_path,
    get_logger,
    set_log_level,
)
from dashcam_ingest.core.types import (
    AccelerometerSample,
    AccelFormat,
    CameraChannel,
    DetectionResult,
    GPSFix,
    ParsedFileInfo,
    ParserDescriptor,
    RecordingCategory,
    RecordingGroup,
    VendorFeature,
)

__all__ = [
    # Config
    "Config",
    "DetectionConfig",
    "ExtractionConfig",
    "SensorConfig",
    # Errors
    "InvalidTimestampError",
    "MetadataExtractionError",
    "UnsupportedFormatError",
    "VendorParserError",
    # Logger
    "configure_logging",
    "get_log_file_path",
    "get_logger",
    "set_log_level",
    # Types
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
