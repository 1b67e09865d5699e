"""Unit tests for metadata_stream module."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from dashcam_ingest.core.errors import MetadataExtractionError
from dashcam_ingest.extractors.metadata_stream import (
    MetadataStreamExtractor,
    is_metadata_record,
    split_records,
)
from dashcam_ingest.utils.command_runner import (
    BinaryCommandResult,
    CommandExecutionError,
    CommandNotFoundError,
    CommandResult,
    CommandRunner,
    CommandTimeoutError,
)

RMC = "$GPRMC,053025,A,3744.1234,N,12704.5678,E,45.2,120.0,150124,,,A*6A"


class TestIsMetadataRecord:
    """Tests for is_metadata_record function."""

    def test_gps_marker(self) -> None:
        """Test that GPS sentences are kept regardless of fields."""
        assert is_metadata_record("$GNRMC")
        assert is_metadata_record(f"xx{RMC}")

    def test_three_fields(self) -> None:
        """Test that three non-empty fields are enough."""
        assert is_metadata_record("0.1,0.2,1.0")

    def test_empty_fields_do_not_count(self) -> None:
        """Test that empty fields are not counted."""
        assert not is_metadata_record("a,,b")
        assert not is_metadata_record(",,,")

    def test_noise(self) -> None:
        """Test that plain text is dropped."""
        assert not is_metadata_record("BLACKVUE")


class TestSplitRecords:
    """Tests for split_records function."""

    def test_carriage_return_separator(self) -> None:
        """Test CR splitting with noise records dropped."""
        data = f"{RMC}\r0.1,0.2,1.0\r\x00\x01junk\r".encode()
        assert split_records(data) == [RMC, "0.1,0.2,1.0"]

    def test_line_feed_fallback(self) -> None:
        """Test LF splitting when there is no CR."""
        assert split_records(b"1,2,3\n4,5,6\n") == ["1,2,3", "4,5,6"]

    def test_stray_line_feeds_inside_cr_records(self) -> None:
        """Test that LF bytes inside CR-separated framing are scrubbed."""
        data = b"\x00\n" + RMC.encode() + b"\r\x0a1,2,3\r"
        assert split_records(data) == [RMC, "1,2,3"]

    def test_single_cr_record_uses_line_feeds(self) -> None:
        """Test that a CR split producing one record falls back to LF."""
        assert split_records(b"1,2,3\n4,5,6") == ["1,2,3", "4,5,6"]

    def test_undecodable_bytes(self) -> None:
        """Test that invalid UTF-8 does not stop decoding."""
        assert split_records(b"\xff\xfe1,2,3\r\x80$GPRMC,1\r") == ["1,2,3", "$GPRMC,1"]

    def test_whitespace_trimmed(self) -> None:
        """Test surrounding whitespace removal."""
        assert split_records(b"  1,2,3\t\r\r") == ["1,2,3"]

    def test_empty(self) -> None:
        """Test that no bytes give no records."""
        assert split_records(b"") == []


@pytest.fixture
def command_runner() -> MagicMock:
    """Provide a CommandRunner stand-in."""
    return MagicMock(spec=CommandRunner)


@pytest.fixture
def video(temp_dir: Path) -> Path:
    """Provide an existing container file."""
    path = temp_dir / "20240115_143025_F.mp4"
    path.write_bytes(b"\x00")
    return path


class TestMetadataStreamExtractor:
    """Tests for MetadataStreamExtractor class."""

    def test_read_stream(self, command_runner: MagicMock, video: Path) -> None:
        """Test a successful stream copy."""
        command_runner.run_binary.return_value = BinaryCommandResult(0, b"1,2,3\r4,5,6\r")
        extractor = MetadataStreamExtractor("/opt/ffmpeg", runner=command_runner, timeout=5.0)

        assert extractor.read_stream(video, 2) == b"1,2,3\r4,5,6\r"

        args = command_runner.run_binary.call_args
        assert args.args[0][0] == "/opt/ffmpeg"
        assert "0:2" in args.args[0]
        assert args.kwargs["timeout"] == 5.0

    def test_read_stream_missing_file(self, command_runner: MagicMock, temp_dir: Path) -> None:
        """Test that a missing container raises without running FFmpeg."""
        extractor = MetadataStreamExtractor(runner=command_runner)

        with pytest.raises(MetadataExtractionError) as exc_info:
            extractor.read_stream(temp_dir / "missing.mp4", 2)

        assert exc_info.value.reason == "file not found"
        command_runner.run_binary.assert_not_called()

    @pytest.mark.parametrize(
        "error",
        [
            CommandNotFoundError("ffmpeg"),
            CommandExecutionError("ffmpeg", 1),
            CommandTimeoutError("ffmpeg", 5.0),
        ],
    )
    def test_read_stream_failures(
        self, command_runner: MagicMock, video: Path, error: Exception
    ) -> None:
        """Test that command failures become MetadataExtractionError."""
        command_runner.run_binary.side_effect = error
        extractor = MetadataStreamExtractor(runner=command_runner)

        with pytest.raises(MetadataExtractionError):
            extractor.read_stream(video, 2)

    def test_read_stream_empty_output(self, command_runner: MagicMock, video: Path) -> None:
        """Test that an empty stream is an error."""
        command_runner.run_binary.return_value = BinaryCommandResult(0, b"")
        extractor = MetadataStreamExtractor(runner=command_runner)

        with pytest.raises(MetadataExtractionError, match="empty"):
            extractor.read_stream(video, 2)

    def test_soft_variants_swallow_failures(self, command_runner: MagicMock, video: Path) -> None:
        """Test that extract_bytes/extract_records return empty values."""
        command_runner.run_binary.side_effect = CommandExecutionError("ffmpeg", 1)
        extractor = MetadataStreamExtractor(runner=command_runner)

        assert extractor.extract_bytes(video, 2) == b""
        assert extractor.extract_records(video, 2) == []

    def test_extract_records(self, command_runner: MagicMock, video: Path) -> None:
        """Test record splitting of extracted bytes."""
        command_runner.run_binary.return_value = BinaryCommandResult(
            0, f"\x00\x07{RMC}\r0.1,0.2,1.0\r\x01\r".encode()
        )
        extractor = MetadataStreamExtractor(runner=command_runner)

        assert extractor.extract_records(video, 2) == [RMC, "0.1,0.2,1.0"]

    def test_find_data_streams(self, command_runner: MagicMock, video: Path) -> None:
        """Test listing data stream indexes via FFprobe."""
        streams = [
            {"index": 0, "codec_type": "video"},
            {"index": 1, "codec_type": "audio"},
            {"index": 2, "codec_type": "data"},
            {"index": 3, "codec_type": "data"},
        ]
        command_runner.run.return_value = CommandResult(0, json.dumps({"streams": streams}), "")
        extractor = MetadataStreamExtractor(runner=command_runner)

        assert extractor.find_data_streams(video) == [2, 3]

    def test_find_data_streams_failure(self, command_runner: MagicMock, video: Path) -> None:
        """Test that FFprobe failures give an empty list."""
        command_runner.run.side_effect = CommandExecutionError("ffprobe", 1)
        extractor = MetadataStreamExtractor(runner=command_runner)

        assert extractor.find_data_streams(video) == []

    def test_find_data_streams_launch_failure(self, video: Path, mocker) -> None:
        """Test that an FFprobe that cannot be started gives an empty list."""
        mocker.patch.object(CommandRunner, "ensure_command_exists")
        mocker.patch("subprocess.run", side_effect=PermissionError("denied"))

        assert MetadataStreamExtractor().find_data_streams(video) == []
