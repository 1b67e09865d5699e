"""Extractors package.

This package provides the directory sampler used for vendor detection and
the FFmpeg-based extractor for embedded telemetry streams.
"""

from dashcam_ingest.extractors.folder_scanner import FolderScanner
from dashcam_ingest.extractors.metadata_stream import (
    MetadataStreamExtractor,
    is_metadata_record,
    split_records,
)

__all__ = [
    "FolderScanner",
    "MetadataStreamExtractor",
    "is_metadata_record",
    "split_records",
]
