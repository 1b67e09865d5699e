"""CLI-specific test fixtures.

This module provides fixtures for testing CLI commands using Click's
CliRunner with a wide Rich console, so table cells are never folded.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner
from rich.console import Console

from dashcam_ingest.core.types import AccelerometerSample, GPSFix

if TYPE_CHECKING:
    from datetime import datetime


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner.

    Returns:
        CliRunner: CLI runner capturing stdout and stderr.
    """
    return CliRunner()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch: pytest.MonkeyPatch) -> Console:
    """Replace the CLI console with one wide enough for any table.

    Returns:
        Console: The console the commands print to.
    """
    console = Console(width=240)
    monkeypatch.setattr("dashcam_ingest.__main__.console", console)
    return console


@pytest.fixture
def sample_fixes(base_time: datetime) -> list[GPSFix]:
    """Create two GPS fixes one second apart.

    Returns:
        list[GPSFix]: Fixes heading east at 45 km/h.
    """
    return [
        GPSFix(
            timestamp=base_time + timedelta(seconds=i),
            latitude=37.735390,
            longitude=127.076130 + i * 0.0001,
            speed=45.0,
            heading=90.0,
        )
        for i in range(2)
    ]


@pytest.fixture
def sample_accel(base_time: datetime) -> list[AccelerometerSample]:
    """Create three accelerometer samples at 10 Hz.

    Returns:
        list[AccelerometerSample]: Samples at rest (1g on Z).
    """
    return [
        AccelerometerSample(
            timestamp=base_time + timedelta(seconds=i / 10),
            x=0.0,
            y=0.0,
            z=1.0,
        )
        for i in range(3)
    ]
