"""Extraction of embedded telemetry streams from dashcam containers.

Many dashcams store GPS and G-sensor telemetry as an extra data stream in
the MP4 next to the video and audio tracks. This module copies that
stream out byte-for-byte with FFmpeg and turns it into clean text records.

The stream is not guaranteed to be well-formed text: vendors frame each
record with binary length prefixes or padding that may include stray
newline bytes. Records are therefore split on carriage return first,
scrubbed down to printable ASCII, and kept only if they look like a GPS
sentence or a comma-separated sensor line.

Example:
    >>> extractor = MetadataStreamExtractor()
    >>> for record in extractor.extract_records(Path("clip.mp4"), stream_index=2):
    ...     print(record)
    $GPRMC,053025,A,3744.1234,N,12704.5678,E,45.2,120.0,150124,,,A*6A
    0.12,-0.03,1.01
"""

from __future__ import annotations

import json
from pathlib import Path

from dashcam_ingest.core.errors import MetadataExtractionError
from dashcam_ingest.core.logger import get_logger
from dashcam_ingest.utils.command_runner import (
    CommandExecutionError,
    CommandNotFoundError,
    CommandRunner,
    CommandTimeoutError,
    FFmpegRunner,
    FFprobeRunner,
)
from dashcam_ingest.utils.constants import (
    FFMPEG_CMD,
    FFPROBE_CMD,
    GPS_SENTENCE_MARKERS,
    MIN_RECORD_FIELDS,
)

logger = get_logger(__name__)


def _clean_record(raw: str) -> str:
    printable = "".join(ch for ch in raw if " " <= ch <= "~")
    return printable.strip()


def is_metadata_record(record: str) -> bool:
    """Check whether a cleaned record is worth keeping.

    A record is kept when it carries a GPS sentence marker or has at least
    three non-empty comma-separated fields.
    """
    if any(marker in record for marker in GPS_SENTENCE_MARKERS):
        return True
    fields = [f for f in record.split(",") if f]
    return len(fields) >= MIN_RECORD_FIELDS


def split_records(data: bytes) -> list[str]:
    """Split a raw metadata stream into clean text records.

    Undecodable bytes are replaced rather than rejected; the replacement
    characters are then removed with every other non-printable character.

    Args:
        data: Raw stream bytes.

    Returns:
        Cleaned, non-empty records in stream order.
    """
    text = data.decode("utf-8", errors="replace")

    candidates = text.split("\r")
    if len(candidates) <= 1:
        candidates = text.split("\n")

    records = []
    for raw in candidates:
        record = _clean_record(raw)
        if record and is_metadata_record(record):
            records.append(record)
    return records


class MetadataStreamExtractor:
    """Pull an embedded data stream out of a container with FFmpeg.

    One FFmpeg process is spawned per call and the call blocks until it
    exits. Callers processing many files should bound their own
    concurrency.

    Attributes:
        ffmpeg_path: FFmpeg executable name or path.
        ffprobe_path: FFprobe executable name or path.
        timeout: Seconds to wait for FFmpeg; None waits indefinitely.
    """

    def __init__(
        self,
        ffmpeg_path: str = FFMPEG_CMD,
        *,
        ffprobe_path: str = FFPROBE_CMD,
        timeout: float | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self.ffmpeg_path = ffmpeg_path
        self.ffprobe_path = ffprobe_path
        self.timeout = timeout
        self._runner = runner or CommandRunner()
        self._ffmpeg = FFmpegRunner(self._runner, ffmpeg_path=ffmpeg_path)
        self._ffprobe = FFprobeRunner(self._runner, ffprobe_path=ffprobe_path)

    def read_stream(self, path: Path, stream_index: int) -> bytes:
        """Copy one stream's bytes, raising on any failure.

        Args:
            path: Container file.
            stream_index: Absolute index of the data stream.

        Returns:
            Non-empty raw stream bytes.

        Raises:
            MetadataExtractionError: If the file is missing, FFmpeg is
                unavailable or fails, or the stream is empty.
        """
        path = Path(path)
        if not path.is_file():
            raise MetadataExtractionError(path, "file not found")

        try:
            data = self._ffmpeg.copy_stream(path, stream_index, timeout=self.timeout)
        except CommandNotFoundError as e:
            raise MetadataExtractionError(path, str(e)) from e
        except CommandExecutionError as e:
            raise MetadataExtractionError(
                path, f"stream {stream_index} could not be copied (exit {e.returncode})"
            ) from e
        except CommandTimeoutError as e:
            raise MetadataExtractionError(path, str(e)) from e

        if not data:
            raise MetadataExtractionError(path, f"stream {stream_index} is empty")
        return data

    def extract_bytes(self, path: Path, stream_index: int) -> bytes:
        """Copy one stream's bytes, returning ``b""`` on failure."""
        try:
            return self.read_stream(path, stream_index)
        except MetadataExtractionError as e:
            logger.debug("No metadata available: %s", e)
            return b""

    def extract_records(self, path: Path, stream_index: int) -> list[str]:
        """Extract clean text records from one stream.

        Args:
            path: Container file.
            stream_index: Absolute index of the data stream.

        Returns:
            Cleaned records, or an empty list when nothing could be read.
        """
        data = self.extract_bytes(path, stream_index)
        if not data:
            return []

        records = split_records(data)
        logger.debug("Extracted %d metadata records from %s", len(records), Path(path).name)
        return records

    def find_data_streams(self, path: Path) -> list[int]:
        """List indexes of non-audio/video data streams in a container.

        Useful when a vendor's stream index is not known in advance.

        Returns:
            Stream indexes with ``codec_type == "data"``; empty on failure.
        """
        try:
            streams = self._ffprobe.probe_streams(Path(path))
        except (
            FileNotFoundError,
            CommandNotFoundError,
            CommandExecutionError,
            CommandTimeoutError,
            json.JSONDecodeError,
        ) as e:
            logger.debug("Could not list streams of %s: %s", path, e)
            return []

        return [
            int(stream["index"])
            for stream in streams
            if stream.get("codec_type") == "data" and "index" in stream
        ]


__all__ = [
    "MetadataStreamExtractor",
    "is_metadata_record",
    "split_records",
]
