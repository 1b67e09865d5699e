"""Unit tests for vendor detection."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from dashcam_ingest.core.config import Config
from dashcam_ingest.core.types import CameraChannel, DetectionResult, RecordingCategory
from dashcam_ingest.vendors.base import BaseVendorParser
from dashcam_ingest.vendors.blackvue import BlackVueParser
from dashcam_ingest.vendors.cr2000_omega import CR2000OmegaParser
from dashcam_ingest.vendors.detector import DetectionCache, VendorDetector, default_parsers

BLACKVUE_NAMES = [f"20240115_1430{i:02d}_F.mp4" for i in range(10)]
OMEGA_NAMES = [f"2025-10-07-09h-11m-{i:02d}s_F_normal.mp4" for i in range(10)]


def populate(directory: Path, names: list[str]) -> Path:
    """Create empty files with the given names."""
    directory.mkdir(parents=True, exist_ok=True)
    for name in names:
        (directory / name).touch()
    return directory


def stub_parser(vendor_id: str, accepts: bool = True) -> MagicMock:
    """Create a parser stand-in that accepts or rejects every name."""
    parser = MagicMock(spec=BaseVendorParser)
    parser.vendor_id = vendor_id
    parser.vendor_name = vendor_id.title()
    parser.matches.return_value = accepts
    return parser


@pytest.fixture
def detector(config: Config) -> VendorDetector:
    """Provide a detector with the built-in parsers."""
    return VendorDetector(config=config)


class TestDetectionCache:
    """Tests for DetectionCache class."""

    def test_set_get_clear(self, temp_dir: Path) -> None:
        """Test basic cache operations."""
        cache = DetectionCache()
        result = DetectionResult(parser=stub_parser("a"), confidence=1.0)

        assert cache.get(temp_dir) is None
        cache.set(temp_dir, result)
        assert cache.get(temp_dir) is result
        assert temp_dir in cache
        assert len(cache) == 1

        cache.clear()
        assert len(cache) == 0


class TestRegistry:
    """Tests for parser registration and lookup."""

    def test_default_parsers(self, detector: VendorDetector) -> None:
        """Test the built-in parsers and their order."""
        assert [p.vendor_id for p in detector.all_parsers()] == ["blackvue", "cr2000omega"]
        assert [type(p) for p in default_parsers()] == [BlackVueParser, CR2000OmegaParser]

    def test_explicit_parsers(self, config: Config) -> None:
        """Test that an explicit list replaces the defaults."""
        detector = VendorDetector([CR2000OmegaParser(config)], config=config)
        assert [p.vendor_id for p in detector.all_parsers()] == ["cr2000omega"]

    def test_all_parsers_is_a_copy(self, detector: VendorDetector) -> None:
        """Test that callers cannot mutate the registry."""
        detector.all_parsers().clear()
        assert len(detector.all_parsers()) == 2

    def test_parser_for(self, detector: VendorDetector) -> None:
        """Test lookup by vendor identifier."""
        parser = detector.parser_for("cr2000omega")
        assert parser is not None and parser.vendor_name == "CR-2000 OMEGA"
        assert detector.parser_for("nextbase") is None

    def test_register_appends(self, detector: VendorDetector) -> None:
        """Test that new parsers go last."""
        extra = stub_parser("acme")
        detector.register_parser(extra)
        assert detector.all_parsers()[-1] is extra


class TestDetectVendor:
    """Tests for directory detection."""

    def test_blackvue_card(self, detector: VendorDetector, blackvue_card: Path) -> None:
        """Test detection over a nested card layout."""
        result = detector.detect_vendor(blackvue_card)

        assert result is not None
        assert result.vendor_id == "blackvue"
        assert result.confidence == 1.0
        assert result.sample_count == 4

    def test_omega_card(self, detector: VendorDetector, omega_card: Path) -> None:
        """Test detection of the second vendor."""
        result = detector.detect_vendor(omega_card)
        assert result is not None
        assert result.vendor_id == "cr2000omega"

    def test_majority_vendor_wins(self, detector: VendorDetector, temp_dir: Path) -> None:
        """Test 6 BlackVue, 3 OMEGA and 1 unknown file."""
        populate(temp_dir, BLACKVUE_NAMES[:6] + OMEGA_NAMES[:3] + ["holiday.mp4"])

        result = detector.detect_vendor(temp_dir)

        assert result is not None
        assert result.vendor_id == "blackvue"
        assert result.confidence == pytest.approx(0.6)
        assert (result.match_count, result.sample_count) == (6, 10)

    def test_below_threshold(self, detector: VendorDetector, temp_dir: Path) -> None:
        """Test that the best match at 4/10 is still rejected."""
        populate(temp_dir, BLACKVUE_NAMES[:4] + OMEGA_NAMES[:3] + ["a.mp4", "b.mp4", "c.mp4"])
        assert detector.detect_vendor(temp_dir) is None

    def test_threshold_is_inclusive(self, detector: VendorDetector, temp_dir: Path) -> None:
        """Test that exactly half the sample is enough."""
        populate(temp_dir, OMEGA_NAMES[:5] + [f"clip{i}.mp4" for i in range(5)])

        result = detector.detect_vendor(temp_dir)

        assert result is not None
        assert result.confidence == 0.5

    def test_sample_is_capped(self, detector: VendorDetector, temp_dir: Path) -> None:
        """Test that at most ten files are sampled."""
        populate(temp_dir, BLACKVUE_NAMES + [f"z{i}.mp4" for i in range(10)])

        result = detector.detect_vendor(temp_dir)

        assert result is not None
        assert result.sample_count == 10
        assert result.confidence == 1.0

    def test_only_video_extensions_sampled(
        self, detector: VendorDetector, temp_dir: Path
    ) -> None:
        """Test that sidecar files do not dilute confidence."""
        populate(temp_dir, BLACKVUE_NAMES[:2] + ["20240115_143000_F.gps", "notes.txt"])

        result = detector.detect_vendor(temp_dir)

        assert result is not None
        assert result.sample_count == 2

    def test_empty_directory(self, detector: VendorDetector, temp_dir: Path) -> None:
        """Test that a directory without videos gives no vendor."""
        assert detector.detect_vendor(temp_dir) is None

    def test_missing_directory(self, detector: VendorDetector, temp_dir: Path) -> None:
        """Test that a missing directory gives no vendor."""
        assert detector.detect_vendor(temp_dir / "missing") is None

    def test_unknown_home_directory(self, detector: VendorDetector) -> None:
        """Test that a ~user path is taken literally instead of raising."""
        assert detector.detect_vendor("~nosuchuser_zz/card") is None
        assert detector.parse_file("~nosuchuser_zz/20240115_143025_F.mp4") is not None

    def test_no_parser_matches(self, detector: VendorDetector, temp_dir: Path) -> None:
        """Test a directory of foreign names."""
        populate(temp_dir, ["a.mp4", "b.mp4"])
        assert detector.detect_vendor(temp_dir) is None

    def test_tie_goes_to_first_registered(self, config: Config, temp_dir: Path) -> None:
        """Test the deterministic tie-break."""
        populate(temp_dir, ["a.mp4", "b.mp4"])
        first, second = stub_parser("first"), stub_parser("second")

        result = VendorDetector([first, second], config=config).detect_vendor(temp_dir)
        reversed_result = VendorDetector([second, first], config=config).detect_vendor(temp_dir)

        assert result is not None and result.parser is first
        assert reversed_result is not None and reversed_result.parser is second

    def test_custom_threshold(self, temp_dir: Path) -> None:
        """Test the configured confidence threshold."""
        config = Config(detection={"confidence_threshold": 0.8})
        populate(temp_dir, BLACKVUE_NAMES[:7] + ["a.mp4", "b.mp4", "c.mp4"])

        assert VendorDetector(config=config).detect_vendor(temp_dir) is None

    def test_low_confidence_logged(
        self, detector: VendorDetector, temp_dir: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test the warning for a rejected best match."""
        populate(temp_dir, BLACKVUE_NAMES[:4] + [f"x{i}.mp4" for i in range(6)])

        with caplog.at_level(logging.WARNING, logger="dashcam_ingest"):
            detector.detect_vendor(temp_dir)

        assert "Low confidence for BlackVue: 40%" in caplog.text

    def test_success_logged(
        self, detector: VendorDetector, blackvue_card: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test the info message for a detection."""
        with caplog.at_level(logging.INFO, logger="dashcam_ingest"):
            detector.detect_vendor(blackvue_card)

        assert "Detected BlackVue" in caplog.text


class TestDetectionCaching:
    """Tests for per-directory caching."""

    def test_result_is_cached(self, detector: VendorDetector, temp_dir: Path) -> None:
        """Test that a second call reuses the first result."""
        populate(temp_dir, BLACKVUE_NAMES[:3])
        first = detector.detect_vendor(temp_dir)

        populate(temp_dir, OMEGA_NAMES)
        second = detector.detect_vendor(temp_dir)

        assert second is first
        assert len(detector.cache) == 1

    def test_cache_key_is_resolved_path(self, detector: VendorDetector, temp_dir: Path) -> None:
        """Test that equivalent spellings share a cache entry."""
        card = populate(temp_dir / "card", BLACKVUE_NAMES[:3])

        first = detector.detect_vendor(card)
        second = detector.detect_vendor(card / ".." / "card")

        assert second is first

    def test_negative_results_not_cached(self, detector: VendorDetector, temp_dir: Path) -> None:
        """Test that a directory can be detected once files arrive."""
        assert detector.detect_vendor(temp_dir) is None
        populate(temp_dir, BLACKVUE_NAMES[:3])

        assert detector.detect_vendor(temp_dir) is not None

    def test_register_parser_clears_cache(
        self, detector: VendorDetector, temp_dir: Path
    ) -> None:
        """Test that registry changes invalidate cached results."""
        populate(temp_dir, BLACKVUE_NAMES[:3])
        first = detector.detect_vendor(temp_dir)

        detector.register_parser(stub_parser("acme", accepts=False))

        assert len(detector.cache) == 0
        second = detector.detect_vendor(temp_dir)
        assert second is not None and second is not first

    def test_clear_cache(self, detector: VendorDetector, blackvue_card: Path) -> None:
        """Test explicit cache clearing."""
        detector.detect_vendor(blackvue_card)
        detector.clear_cache()
        assert len(detector.cache) == 0

    def test_concurrent_detection(self, detector: VendorDetector, blackvue_card: Path) -> None:
        """Test that parallel callers agree on the result."""
        results: list[DetectionResult | None] = []
        lock = threading.Lock()

        def worker() -> None:
            result = detector.detect_vendor(blackvue_card)
            with lock:
                results.append(result)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 8
        assert all(r is not None and r.vendor_id == "blackvue" for r in results)
        assert len(detector.cache) == 1


class TestFilenameDetection:
    """Tests for single-file detection."""

    def test_detect_vendor_for_filename(self, detector: VendorDetector) -> None:
        """Test that the first matching parser is returned."""
        blackvue = detector.detect_vendor_for_filename("20240115_143025_F.mp4")
        omega = detector.detect_vendor_for_filename("/sd/2025-10-07-09h-11m-09s_F_normal.mp4")

        assert blackvue is not None and blackvue.vendor_id == "blackvue"
        assert omega is not None and omega.vendor_id == "cr2000omega"
        assert detector.detect_vendor_for_filename("clip.mp4") is None

    def test_first_registered_wins(self, config: Config) -> None:
        """Test that no scoring happens for single files."""
        first, second = stub_parser("first"), stub_parser("second")
        detector = VendorDetector([first, second], config=config)

        assert detector.detect_vendor_for_filename("x.mp4") is first
        second.matches.assert_not_called()

    def test_parse_file(self, detector: VendorDetector, omega_card: Path) -> None:
        """Test parsing through the detected parser."""
        info = detector.parse_file(omega_card / "2025-10-07-22h-03m-15s_i_motion.mp4")

        assert info is not None
        assert info.base_identifier == "2025-10-07-22h-03m-15s"
        assert detector.parse_file(omega_card / "clip.mp4") is None


class TestScan:
    """Tests for grouping a directory into recording events."""

    def test_channels_grouped_by_event(
        self, detector: VendorDetector, blackvue_card: Path
    ) -> None:
        """Test that front and rear files of one moment form one event."""
        groups = detector.scan(blackvue_card)

        assert [(g.base_identifier, g.category) for g in groups] == [
            ("20240115_143125", RecordingCategory.IMPACT),
            ("20240115_143025", RecordingCategory.NORMAL),
        ]
        for group in groups:
            assert group.channels == [CameraChannel.FRONT, CameraChannel.REAR]

    def test_hidden_and_non_video_files_ignored(
        self, detector: VendorDetector, blackvue_card: Path
    ) -> None:
        """Test that the thumbnail copy and the .gps sidecar are not grouped."""
        normal = detector.scan(blackvue_card)[1]

        assert len(normal.files) == 2
        assert normal.total_file_size == 192
        assert all(".thumbs" not in info.path.parts for info in normal.files)

    def test_channel_accessors(self, detector: VendorDetector, blackvue_card: Path) -> None:
        """Test looking up an event's files by camera."""
        normal = detector.scan(blackvue_card)[1]

        front = normal.channel(CameraChannel.FRONT)
        assert front is not None and front.filename == "20240115_143025_F.mp4"
        assert normal.has_channel(CameraChannel.REAR)
        assert not normal.has_channel(CameraChannel.INTERIOR)
        assert normal.channel(CameraChannel.INTERIOR) is None

    def test_same_moment_different_category(
        self, detector: VendorDetector, temp_dir: Path
    ) -> None:
        """Test that the category is part of the event key."""
        populate(temp_dir / "Record" / "normal", ["20240115_143025_F.mp4"])
        populate(temp_dir / "Record" / "event", ["20240115_143025_R.mp4"])

        groups = detector.scan(temp_dir)

        assert len(groups) == 2
        assert {g.category for g in groups} == {
            RecordingCategory.NORMAL,
            RecordingCategory.IMPACT,
        }
        assert all(len(g.files) == 1 for g in groups)

    def test_channel_order_within_event(self, detector: VendorDetector, temp_dir: Path) -> None:
        """Test that files are ordered front, rear, ..., interior."""
        populate(
            temp_dir,
            [
                "2025-10-07-09h-11m-09s_i_normal.mp4",
                "2025-10-07-09h-11m-09s_R_normal.mp4",
                "2025-10-07-09h-11m-09s_F_normal.mp4",
            ],
        )

        (group,) = detector.scan(temp_dir)

        assert group.base_identifier == "2025-10-07-09h-11m-09s"
        assert group.channels == [
            CameraChannel.FRONT,
            CameraChannel.REAR,
            CameraChannel.INTERIOR,
        ]

    def test_omega_card(self, detector: VendorDetector, omega_card: Path) -> None:
        """Test events on a CR-2000 OMEGA card, newest first."""
        groups = detector.scan(omega_card)

        assert [(g.base_identifier, len(g.files)) for g in groups] == [
            ("2025-10-07-22h-03m-15s", 1),
            ("2025-10-07-09h-12m-40s", 1),
            ("2025-10-07-09h-11m-09s", 2),
        ]

    def test_undetected_vendor_parses_per_file(
        self, detector: VendorDetector, temp_dir: Path
    ) -> None:
        """Test that mixed cards fall back to per-file parsing."""
        populate(
            temp_dir,
            ["20240115_143025_F.mp4", "2025-10-07-09h-11m-09s_F_normal.mp4", "clip.mp4"],
        )
        assert detector.detect_vendor(temp_dir) is None

        groups = detector.scan(temp_dir)

        assert sorted(g.base_identifier for g in groups) == [
            "20240115_143025",
            "2025-10-07-09h-11m-09s",
        ]

    def test_empty_directory(self, detector: VendorDetector, temp_dir: Path) -> None:
        """Test that a directory without recordings has no events."""
        assert detector.scan(temp_dir) == []

    def test_missing_directory(self, detector: VendorDetector, temp_dir: Path) -> None:
        """Test that a missing directory raises."""
        with pytest.raises(NotADirectoryError):
            detector.scan(temp_dir / "missing")

    def test_to_dict(self, detector: VendorDetector, blackvue_card: Path) -> None:
        """Test the JSON form of an event."""
        data = detector.scan(blackvue_card)[1].to_dict()

        assert data["base_identifier"] == "20240115_143025"
        assert data["category"] == "normal"
        assert data["channels"] == ["front", "rear"]
        assert data["timestamp"] == "2024-01-15T14:30:25+09:00"
        assert [f["channel"] for f in data["files"]] == ["front", "rear"]
