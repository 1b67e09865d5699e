"""Recursive sampling of dashcam recordings on disk.

Dashcam SD cards nest recordings in per-category folders (``Record/``,
``Event/``, ``Parking/`` ...). Vendor detection only needs the names of a
handful of files, so the scanner walks the tree lazily and stops as soon
as the requested number of candidates has been collected.

Example:
    >>> scanner = FolderScanner(Path("/Volumes/DASHCAM"))
    >>> scanner.sample_filenames(limit=10)
    ['20240115_143025_F.mp4', '20240115_143025_R.mp4', ...]
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from dashcam_ingest.core.logger import get_logger
from dashcam_ingest.utils.constants import SAMPLED_VIDEO_EXTENSIONS

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = get_logger(__name__)


class FolderScanner:
    """Walk a directory tree and yield video files.

    Hidden files and hidden directories (names starting with ".") are
    skipped, as are anything that is not a regular file. Directory entries
    are visited in sorted order so repeated scans see the same files first.

    Attributes:
        root_path: Root directory for scanning.
        video_extensions: Lower-case extensions (no dot) to accept.
    """

    def __init__(
        self,
        root_path: Path | str,
        *,
        video_extensions: Iterable[str] | None = None,
    ) -> None:
        self._root_path = Path(root_path)
        exts = video_extensions if video_extensions is not None else SAMPLED_VIDEO_EXTENSIONS
        self._video_extensions = frozenset(ext.lower().lstrip(".") for ext in exts)

    @property
    def root_path(self) -> Path:
        """Get the root directory path."""
        return self._root_path

    @property
    def video_extensions(self) -> frozenset[str]:
        """Get the accepted extensions."""
        return self._video_extensions

    def is_video_file(self, name: str) -> bool:
        """Check whether a file name has an accepted video extension."""
        _, dot, ext = name.rpartition(".")
        return bool(dot) and ext.lower() in self._video_extensions

    def scan(self) -> Iterator[Path]:
        """Yield video files under the root directory.

        A missing or unreadable root yields nothing; unreadable
        subdirectories are skipped.

        Yields:
            Path to each video file found.
        """
        if not self._root_path.is_dir():
            logger.debug("Not a directory, nothing to scan: %s", self._root_path)
            return

        for dirpath, dirnames, filenames in os.walk(self._root_path, onerror=self._on_walk_error):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))

            for name in sorted(filenames):
                if name.startswith(".") or not self.is_video_file(name):
                    continue
                path = Path(dirpath) / name
                if not path.is_file():
                    continue
                yield path

    def sample(self, limit: int) -> list[Path]:
        """Collect at most ``limit`` video files.

        Args:
            limit: Maximum number of files to return.

        Returns:
            The first video files in walk order.
        """
        sampled: list[Path] = []
        if limit <= 0:
            return sampled

        for path in self.scan():
            sampled.append(path)
            if len(sampled) >= limit:
                break
        return sampled

    def sample_filenames(self, limit: int) -> list[str]:
        """Collect at most ``limit`` video file names (no directories)."""
        return [path.name for path in self.sample(limit)]

    @staticmethod
    def _on_walk_error(error: OSError) -> None:
        logger.debug("Skipping unreadable directory: %s", error)


__all__ = ["FolderScanner"]
