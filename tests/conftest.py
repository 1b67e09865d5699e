"""Shared pytest fixtures for dashcam_ingest tests.

This module provides common fixtures used across all test modules,
including configuration isolation, sample dashcam folder trees, stub
metadata extractors and canned telemetry payloads.

Example:
    def test_detects_blackvue(blackvue_card):
        detector = VendorDetector()
        assert detector.detect_vendor(blackvue_card).vendor_id == "blackvue"
"""

from __future__ import annotations

import os
import struct
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest

from dashcam_ingest.core.config import Config
from dashcam_ingest.extractors.metadata_stream import MetadataStreamExtractor

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

KST = timezone(timedelta(hours=9))


def touch(path: Path, size: int = 0) -> Path:
    """Create a file (and its parents) with ``size`` zero bytes."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\x00" * size)
    return path


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep the configuration singleton and environment out of each test.

    Removes any ``DASHCAM_INGEST_*`` variables and resets the cached
    configuration before and after every test.
    """
    for key in list(os.environ):
        if key.startswith("DASHCAM_INGEST_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(
        "dashcam_ingest.core.config.DEFAULT_CONFIG_FILE",
        Path("/nonexistent/dashcam_ingest/config.json"),
    )
    Config.reset()
    yield
    Config.reset()


@pytest.fixture
def make_file() -> Callable[..., Path]:
    """Provide the file creation helper to tests."""
    return touch


@pytest.fixture
def config() -> Config:
    """Provide a default configuration instance."""
    return Config()


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test files.

    Args:
        tmp_path: Pytest's built-in temporary path fixture.

    Returns:
        Path: Temporary directory path.
    """
    return tmp_path


@pytest.fixture
def blackvue_card(temp_dir: Path) -> Path:
    """Create a BlackVue-style SD card layout.

    Returns:
        Path: Card root containing ``Record/normal`` and ``Record/event``.
    """
    root = temp_dir / "BlackVue"
    touch(root / "Record" / "normal" / "20240115_143025_F.mp4", size=128)
    touch(root / "Record" / "normal" / "20240115_143025_R.mp4", size=64)
    touch(root / "Record" / "event" / "20240115_143125_F.mp4")
    touch(root / "Record" / "event" / "20240115_143125_R.mp4")
    touch(root / "Record" / ".thumbs" / "20240115_143025_F.mp4")
    touch(root / "Record" / "normal" / "20240115_143025_F.gps")
    return root


@pytest.fixture
def omega_card(temp_dir: Path) -> Path:
    """Create a CR-2000 OMEGA-style SD card layout."""
    root = temp_dir / "OMEGA"
    touch(root / "2025-10-07-09h-11m-09s_F_normal.mp4")
    touch(root / "2025-10-07-09h-11m-09s_R_normal.mp4")
    touch(root / "2025-10-07-09h-12m-40s_F_event.mp4")
    touch(root / "2025-10-07-22h-03m-15s_i_motion.mp4")
    return root


@pytest.fixture
def mock_extractor() -> MagicMock:
    """Provide a MetadataStreamExtractor stand-in with no data.

    Tests set ``extract_records.return_value`` or
    ``extract_bytes.return_value`` as needed.
    """
    extractor = MagicMock(spec=MetadataStreamExtractor)
    extractor.extract_records.return_value = []
    extractor.extract_bytes.return_value = b""
    return extractor


@pytest.fixture
def base_time() -> datetime:
    """Recording start used for decoded samples."""
    return datetime(2024, 1, 15, 14, 30, 25, tzinfo=KST)


@pytest.fixture
def int16_accel_bytes() -> bytes:
    """Two int16 records: (1g, 0, -1g) and (0, 0.5g, 0)."""
    return struct.pack("<3h", 16384, 0, -16384) + struct.pack("<3h", 0, 8192, 0)


@pytest.fixture
def float32_accel_bytes() -> bytes:
    """Two float32 records: (0.1, -0.2, 1.0) and (0.0, 0.0, 0.98)."""
    return struct.pack("<3f", 0.1, -0.2, 1.0) + struct.pack("<3f", 0.0, 0.0, 0.98)
