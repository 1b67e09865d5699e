"""Utility modules for dashcam ingestion.

This package provides the external command wrappers and shared constants.
"""

from dashcam_ingest.utils.command_runner import (
    BinaryCommandResult,
    CommandExecutionError,
    CommandNotFoundError,
    CommandResult,
    CommandRunner,
    CommandTimeoutError,
    FFmpegRunner,
    FFprobeRunner,
)

__all__ = [
    "BinaryCommandResult",
    "CommandExecutionError",
    "CommandNotFoundError",
    "CommandResult",
    "CommandRunner",
    "CommandTimeoutError",
    "FFmpegRunner",
    "FFprobeRunner",
]
