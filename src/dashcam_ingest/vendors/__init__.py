"""Vendor parsers package.

Each dashcam vendor has one parser describing its filename grammar and
telemetry layout. The detector picks the right parser for a directory.

Example:
    >>> from dashcam_ingest.vendors import VendorDetector
    >>> detector = VendorDetector()
    >>> result = detector.detect_vendor("/Volumes/DASHCAM")
"""

from dashcam_ingest.vendors.base import BaseVendorParser
from dashcam_ingest.vendors.blackvue import BlackVueParser
from dashcam_ingest.vendors.cr2000_omega import CR2000OmegaParser
from dashcam_ingest.vendors.detector import (
    DetectionCache,
    VendorDetector,
    default_parsers,
)

__all__ = [
    "BaseVendorParser",
    "BlackVueParser",
    "CR2000OmegaParser",
    "DetectionCache",
    "VendorDetector",
    "default_parsers",
]
