"""Configuration for dashcam ingestion.

Settings are layered: explicit constructor arguments, then environment
variables, then an optional JSON file, then the defaults below.

Example:
    >>> from dashcam_ingest.core.config import Config
    >>> config = Config.load()
    >>> config.detection.sample_size
    10

    >>> # Environment override
    >>> # DASHCAM_INGEST_SENSORS__SAMPLE_RATE_HZ=50
    >>> Config.load(force_reload=True).sensors.sample_rate_hz
    50.0
"""

from __future__ import annotations

import threading
from datetime import timedelta, timezone, tzinfo
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from pydantic_settings.sources import JsonConfigSettingsSource

from dashcam_ingest.utils.constants import (
    DEFAULT_SAMPLE_RATE_HZ,
    DEFAULT_TIMEZONE_OFFSET_HOURS,
    DETECTION_CONFIDENCE_THRESHOLD,
    DETECTION_SAMPLE_SIZE,
    FFMPEG_CMD,
    FFPROBE_CMD,
    SAMPLED_VIDEO_EXTENSIONS,
)

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "dashcam_ingest"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.json"

# Module-level singleton state (kept off the model to avoid serialization)
_config_lock: threading.Lock = threading.Lock()
_config_instance: Config | None = None


class DetectionConfig(BaseModel):
    """Vendor detection settings.

    Attributes:
        sample_size: Maximum number of filenames sampled per directory.
        confidence_threshold: Minimum matched fraction to accept a vendor.
        video_extensions: Extensions (without dot) eligible for sampling.
    """

    sample_size: int = Field(default=DETECTION_SAMPLE_SIZE, ge=1)
    confidence_threshold: float = Field(default=DETECTION_CONFIDENCE_THRESHOLD, ge=0.0, le=1.0)
    video_extensions: list[str] = Field(default_factory=lambda: list(SAMPLED_VIDEO_EXTENSIONS))

    @field_validator("video_extensions", mode="after")
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        """Lower-case extensions and strip any leading dot."""
        return [ext.lower().lstrip(".") for ext in v]


class ExtractionConfig(BaseModel):
    """External demux tool settings.

    Attributes:
        ffmpeg_path: FFmpeg executable (name on PATH or absolute path).
        ffprobe_path: FFprobe executable used to list data streams.
        timeout: Seconds to wait for the demuxer; None waits indefinitely.
    """

    ffmpeg_path: str = FFMPEG_CMD
    ffprobe_path: str = FFPROBE_CMD
    timeout: float | None = Field(default=None, gt=0)


class SensorConfig(BaseModel):
    """Sensor decoding settings.

    Attributes:
        sample_rate_hz: Accelerometer sample rate used to synthesize times.
        accel_format: Binary accelerometer encoding, or "auto" to detect.
        timezone_offset_hours: UTC offset of dashcam filename timestamps.
    """

    sample_rate_hz: float = Field(default=DEFAULT_SAMPLE_RATE_HZ, gt=0)
    accel_format: Literal["auto", "float32", "int16"] = "auto"
    timezone_offset_hours: float = Field(default=DEFAULT_TIMEZONE_OFFSET_HOURS, ge=-14, le=14)

    @property
    def recording_tz(self) -> tzinfo:
        """Fixed-offset timezone for filename timestamps."""
        return timezone(timedelta(hours=self.timezone_offset_hours))


class Config(BaseSettings):
    """Main configuration for dashcam ingestion.

    Attributes:
        detection: Vendor detection settings.
        extraction: External demux tool settings.
        sensors: Sensor decoding settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="DASHCAM_INGEST_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    sensors: SensorConfig = Field(default_factory=SensorConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Order sources: init > environment > JSON file > defaults."""
        _ = dotenv_settings
        _ = file_secret_settings

        json_file = DEFAULT_CONFIG_FILE if DEFAULT_CONFIG_FILE.exists() else None
        return (
            init_settings,
            env_settings,
            JsonConfigSettingsSource(settings_cls, json_file=json_file),
        )

    @classmethod
    def load(cls, *, force_reload: bool = False) -> Config:
        """Load the shared configuration instance.

        Args:
            force_reload: Rebuild the instance even if one is cached.

        Returns:
            The process-wide configuration.
        """
        global _config_instance

        with _config_lock:
            if _config_instance is None or force_reload:
                _config_instance = cls()
            return _config_instance

    @classmethod
    def reset(cls) -> None:
        """Drop the cached instance. Mostly useful in tests."""
        global _config_instance

        with _config_lock:
            _config_instance = None

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary."""
        result: dict[str, Any] = self.model_dump()
        return result


__all__ = [
    "Config",
    "DEFAULT_CONFIG_DIR",
    "DEFAULT_CONFIG_FILE",
    "DetectionConfig",
    "ExtractionConfig",
    "SensorConfig",
]
