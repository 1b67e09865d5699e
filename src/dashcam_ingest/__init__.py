"""Dashcam Ingest - vendor detection and telemetry extraction for dashcam recordings."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("dashcam-ingest")
except PackageNotFoundError:
    __version__ = "0.0.0.dev"

__author__ = "Dashcam Ingest Team"
