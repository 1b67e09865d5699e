"""Vendor detection by filename sampling.

A dashcam SD card holds recordings from one vendor. The detector samples
a handful of video filenames from a directory tree, asks every registered
parser how many of them it recognizes, and picks the parser with the most
matches, provided it matched at least half of the sample.

Ties go to the parser registered first. Results are cached per directory
for the lifetime of the detector; registering a parser clears the cache.

Example:
    >>> detector = VendorDetector()
    >>> result = detector.detect_vendor(Path("/Volumes/DASHCAM"))
    >>> result.parser.vendor_name, result.confidence
    ('BlackVue', 1.0)
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from pathlib import Path

from dashcam_ingest.core.config import Config
from dashcam_ingest.core.logger import get_logger
from dashcam_ingest.core.types import (
    CameraChannel,
    DetectionResult,
    ParsedFileInfo,
    RecordingCategory,
    RecordingGroup,
)
from dashcam_ingest.extractors.folder_scanner import FolderScanner
from dashcam_ingest.vendors.base import BaseVendorParser
from dashcam_ingest.vendors.blackvue import BlackVueParser
from dashcam_ingest.vendors.cr2000_omega import CR2000OmegaParser

logger = get_logger(__name__)


def default_parsers(config: Config | None = None) -> list[BaseVendorParser]:
    """Create the built-in parsers in registration order."""
    return [BlackVueParser(config), CR2000OmegaParser(config)]


class DetectionCache:
    """Thread-safe map from directory to detection result.

    Every read and write goes through one lock, so a detector can be
    shared between threads.
    """

    def __init__(self) -> None:
        self._entries: dict[Path, DetectionResult] = {}
        self._lock = threading.Lock()

    def get(self, directory: Path) -> DetectionResult | None:
        """Get the cached result for a directory, if any."""
        with self._lock:
            return self._entries.get(directory)

    def set(self, directory: Path, result: DetectionResult) -> None:
        """Store the result for a directory."""
        with self._lock:
            self._entries[directory] = result

    def clear(self) -> None:
        """Drop every cached result."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, directory: object) -> bool:
        with self._lock:
            return directory in self._entries


class VendorDetector:
    """Identify which vendor produced a directory of recordings.

    Attributes:
        sample_size: Maximum filenames sampled per directory.
        confidence_threshold: Minimum matched fraction to accept a vendor.
    """

    def __init__(
        self,
        parsers: Iterable[BaseVendorParser] | None = None,
        *,
        config: Config | None = None,
    ) -> None:
        """Initialize the detector.

        Args:
            parsers: Parsers in priority order. Defaults to the built-in
                parsers.
            config: Configuration to use. Defaults to the shared instance.
        """
        self._config = config or Config.load()
        self._parsers: list[BaseVendorParser] = (
            list(parsers) if parsers is not None else default_parsers(self._config)
        )
        self._parsers_lock = threading.Lock()
        self._cache = DetectionCache()

        self.sample_size = self._config.detection.sample_size
        self.confidence_threshold = self._config.detection.confidence_threshold

    @property
    def cache(self) -> DetectionCache:
        """Get the per-directory result cache."""
        return self._cache

    def register_parser(self, parser: BaseVendorParser) -> None:
        """Add a parser after the existing ones and clear the cache."""
        with self._parsers_lock:
            self._parsers.append(parser)
        self._cache.clear()
        logger.debug("Registered parser: %s", parser.vendor_name)

    def all_parsers(self) -> list[BaseVendorParser]:
        """Get the registered parsers in registration order."""
        with self._parsers_lock:
            return list(self._parsers)

    def parser_for(self, vendor_id: str) -> BaseVendorParser | None:
        """Look up a registered parser by vendor identifier."""
        for parser in self.all_parsers():
            if parser.vendor_id == vendor_id:
                return parser
        return None

    def clear_cache(self) -> None:
        """Forget every cached directory result."""
        self._cache.clear()

    def detect_vendor(self, directory: Path | str) -> DetectionResult | None:
        """Detect the vendor of the recordings under a directory.

        Args:
            directory: Directory to sample (searched recursively).

        Returns:
            The best parser and its confidence, or None when the directory
            has no video files or no parser reaches the threshold.
        """
        key = Path(directory).resolve()

        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Using cached detection for %s", key)
            return cached

        scanner = FolderScanner(key, video_extensions=self._config.detection.video_extensions)
        filenames = scanner.sample_filenames(self.sample_size)
        if not filenames:
            logger.debug("No video files to sample in %s", key)
            return None

        best: BaseVendorParser | None = None
        best_count = 0
        for parser in self.all_parsers():
            count = sum(1 for name in filenames if parser.matches(name))
            # strictly greater: earlier parsers keep ties
            if count > best_count:
                best, best_count = parser, count

        if best is None:
            logger.warning("No vendor recognized any of %d files in %s", len(filenames), key)
            return None

        confidence = best_count / len(filenames)
        if confidence < self.confidence_threshold:
            logger.warning(
                "Low confidence for %s: %.0f%% of %d files in %s",
                best.vendor_name,
                confidence * 100,
                len(filenames),
                key,
            )
            return None

        result = DetectionResult(
            parser=best,
            confidence=confidence,
            sample_count=len(filenames),
            match_count=best_count,
        )
        self._cache.set(key, result)
        logger.info("Detected %s in %s (%.0f%% confidence)", best.vendor_name, key, confidence * 100)
        return result

    def detect_vendor_for_filename(self, filename: str) -> BaseVendorParser | None:
        """Find the first registered parser that recognizes a filename.

        Args:
            filename: Bare filename or path; only the name is examined.
        """
        name = Path(filename).name
        for parser in self.all_parsers():
            if parser.matches(name):
                return parser
        return None

    def parse_file(self, path: Path | str) -> ParsedFileInfo | None:
        """Parse a single recording with whichever parser recognizes it."""
        parser = self.detect_vendor_for_filename(str(path))
        if parser is None:
            logger.debug("No parser recognizes %s", Path(path).name)
            return None
        return parser.parse_file(path)

    def scan(self, directory: Path | str) -> list[RecordingGroup]:
        """Parse every recording under a directory and group the channels.

        Files sharing a base identifier and a category belong to one
        event, whatever camera recorded them. When the directory's vendor
        can be detected, only its parser is used; otherwise each file is
        parsed by whichever parser recognizes its name. Files no parser
        recognizes are left out.

        Args:
            directory: Directory to scan (searched recursively).

        Returns:
            Groups, newest first; files within a group in channel order.

        Raises:
            NotADirectoryError: If ``directory`` is not a directory.
        """
        root = Path(directory)
        if not root.is_dir():
            raise NotADirectoryError(f"Not a directory: {root}")

        detection = self.detect_vendor(root)
        parse = detection.parser.parse_file if detection is not None else self.parse_file

        scanner = FolderScanner(root, video_extensions=self._config.detection.video_extensions)
        grouped: dict[tuple[str, RecordingCategory], list[ParsedFileInfo]] = {}
        skipped = 0
        for path in scanner.scan():
            info = parse(path)
            if info is None:
                skipped += 1
                continue
            grouped.setdefault((info.base_identifier, info.category), []).append(info)

        if skipped:
            logger.debug("Skipped %d unrecognized files in %s", skipped, root)

        groups = [RecordingGroup(files=sorted(files, key=_channel_order)) for files in grouped.values()]
        groups.sort(key=lambda g: (g.timestamp, g.base_identifier, g.category.value), reverse=True)
        logger.info("Found %d recording events in %s", len(groups), root)
        return groups


def _channel_order(info: ParsedFileInfo) -> int:
    index = info.channel.channel_index
    return index if index >= 0 else len(CameraChannel)


__all__ = [
    "DetectionCache",
    "VendorDetector",
    "default_parsers",
]
