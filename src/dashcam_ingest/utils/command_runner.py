"""Command execution utilities for external tools.

This module wraps the FFmpeg and FFprobe invocations used to pull embedded
telemetry streams out of dashcam containers. Every call is synchronous and
blocks until the child process exits.
"""

from __future__ import annotations

import json
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dashcam_ingest.utils.constants import FFMPEG_CMD, FFPROBE_CMD, FFPROBE_TIMEOUT


@dataclass
class CommandResult:
    """Result of a text-mode command execution.

    Attributes:
        returncode: Exit code of the command (0 = success).
        stdout: Standard output from the command.
        stderr: Standard error output from the command.
    """

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        """Check if command completed successfully."""
        return self.returncode == 0


@dataclass
class BinaryCommandResult:
    """Result of a command whose stdout is captured as raw bytes.

    Attributes:
        returncode: Exit code of the command (0 = success).
        stdout: Raw standard output.
    """

    returncode: int
    stdout: bytes

    @property
    def success(self) -> bool:
        """Check if command completed successfully."""
        return self.returncode == 0


class CommandNotFoundError(Exception):
    """Raised when a required external command is not found.

    Attributes:
        command: The command that was not found.
    """

    INSTALL_HINTS = {
        "ffmpeg": "Install FFmpeg (e.g. brew install ffmpeg / apt install ffmpeg).",
        "ffprobe": "Install FFmpeg (e.g. brew install ffmpeg / apt install ffmpeg).",
    }

    def __init__(self, command: str) -> None:
        self.command = command
        msg = f"Command '{command}' not found."
        hint = self.INSTALL_HINTS.get(Path(command).name, "")
        if hint:
            msg += f" {hint}"
        super().__init__(msg)


class CommandTimeoutError(Exception):
    """Raised when command execution exceeds its timeout.

    Attributes:
        command: The command that timed out.
        timeout: The timeout value in seconds.
    """

    def __init__(self, command: str, timeout: float) -> None:
        self.command = command
        self.timeout = timeout
        super().__init__(f"Command '{command}' timed out after {timeout:.1f} seconds.")


class CommandExecutionError(Exception):
    """Raised when a command exits with a non-zero status."""

    def __init__(self, command: str, returncode: int, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        msg = f"Command '{command}' failed with code {returncode}"
        if stderr:
            msg += f": {stderr}"
        super().__init__(msg)


class CommandRunner:
    """Wrapper for executing external commands.

    Example:
        >>> runner = CommandRunner()
        >>> result = runner.run(["ffprobe", "-version"])
        >>> print(result.stdout)
    """

    @staticmethod
    def check_command_exists(command: str) -> bool:
        """Check if a command exists on PATH (or is an executable path)."""
        return shutil.which(command) is not None

    @staticmethod
    def ensure_command_exists(command: str) -> None:
        """Ensure a command exists.

        Raises:
            CommandNotFoundError: If the command is not found.
        """
        if not CommandRunner.check_command_exists(command):
            raise CommandNotFoundError(command)

    def run(
        self,
        args: list[str],
        *,
        timeout: float | None = 60.0,
        check: bool = False,
    ) -> CommandResult:
        """Run a command and capture its output as text.

        Args:
            args: Command and arguments to execute.
            timeout: Maximum time to wait (seconds); None waits forever.
            check: If True, raise on non-zero exit code.

        Returns:
            CommandResult containing the execution result.

        Raises:
            CommandNotFoundError: If the command is not found.
            CommandExecutionError: If check=True and the command fails.
            CommandTimeoutError: If the command times out.
        """
        command_name = args[0] if args else ""
        self.ensure_command_exists(command_name)

        try:
            completed = subprocess.run(
                args,
                timeout=timeout,
                capture_output=True,
                text=True,
                errors="replace",
            )
        except FileNotFoundError as e:
            raise CommandNotFoundError(command_name) from e
        except OSError as e:
            raise CommandExecutionError(command_name, -1, str(e)) from e
        except subprocess.TimeoutExpired as e:
            raise CommandTimeoutError(command_name, timeout or 0.0) from e

        result = CommandResult(
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )
        if check and not result.success:
            raise CommandExecutionError(command_name, result.returncode, result.stderr)
        return result

    def run_binary(
        self,
        args: list[str],
        *,
        timeout: float | None = None,
        check: bool = False,
    ) -> BinaryCommandResult:
        """Run a command and capture stdout as raw bytes.

        Standard error is discarded. This is the mode used for demuxing,
        where the tool's diagnostics are noise and stdout carries binary
        stream data.

        Args:
            args: Command and arguments to execute.
            timeout: Maximum time to wait (seconds); None waits forever.
            check: If True, raise on non-zero exit code.

        Returns:
            BinaryCommandResult with the exit code and captured bytes.

        Raises:
            CommandNotFoundError: If the command is not found or cannot start.
            CommandExecutionError: If check=True and the command fails.
            CommandTimeoutError: If the command times out.
        """
        command_name = args[0] if args else ""
        self.ensure_command_exists(command_name)

        try:
            completed = subprocess.run(
                args,
                timeout=timeout,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
            )
        except FileNotFoundError as e:
            raise CommandNotFoundError(command_name) from e
        except OSError as e:
            raise CommandExecutionError(command_name, -1, str(e)) from e
        except subprocess.TimeoutExpired as e:
            raise CommandTimeoutError(command_name, timeout or 0.0) from e

        result = BinaryCommandResult(returncode=completed.returncode, stdout=completed.stdout)
        if check and not result.success:
            raise CommandExecutionError(command_name, result.returncode)
        return result


class FFmpegRunner:
    """Specialized runner for FFmpeg stream copies.

    Example:
        >>> runner = FFmpegRunner()
        >>> data = runner.copy_stream(Path("20240115_143025_F.mp4"), 2)
    """

    def __init__(
        self,
        command_runner: CommandRunner | None = None,
        ffmpeg_path: str = FFMPEG_CMD,
    ) -> None:
        """Initialize FFmpeg runner.

        Args:
            command_runner: CommandRunner instance to use. If None, creates one.
            ffmpeg_path: FFmpeg executable name or path.
        """
        self._runner = command_runner or CommandRunner()
        self.ffmpeg_path = ffmpeg_path

    def build_copy_args(self, path: Path, stream_index: int) -> list[str]:
        """Build the argument vector that copies one stream to stdout.

        The stream is mapped by absolute index and written without
        re-encoding using FFmpeg's raw ``data`` muxer.
        """
        return [
            self.ffmpeg_path,
            "-v",
            "error",
            "-i",
            str(path),
            "-map",
            f"0:{stream_index}",
            "-c",
            "copy",
            "-f",
            "data",
            "-",
        ]

    def copy_stream(
        self,
        path: Path,
        stream_index: int,
        *,
        timeout: float | None = None,
    ) -> bytes:
        """Copy the bytes of one embedded stream.

        Args:
            path: Container file.
            stream_index: Absolute stream index inside the container.
            timeout: Maximum time to wait (seconds); None waits forever.

        Returns:
            The stream's raw bytes (possibly empty).

        Raises:
            CommandNotFoundError: If FFmpeg is not installed.
            CommandExecutionError: If FFmpeg exits with an error.
            CommandTimeoutError: If FFmpeg times out.
        """
        args = self.build_copy_args(path, stream_index)
        result = self._runner.run_binary(args, timeout=timeout, check=True)
        return result.stdout


class FFprobeRunner:
    """Specialized runner for FFprobe stream listings."""

    def __init__(
        self,
        command_runner: CommandRunner | None = None,
        ffprobe_path: str = FFPROBE_CMD,
    ) -> None:
        self._runner = command_runner or CommandRunner()
        self.ffprobe_path = ffprobe_path

    def probe_streams(self, path: Path, *, timeout: float = FFPROBE_TIMEOUT) -> list[dict[str, Any]]:
        """List the streams of a container.

        Args:
            path: Container file.
            timeout: Maximum time to wait (seconds).

        Returns:
            FFprobe's stream dictionaries, in index order.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            CommandNotFoundError: If FFprobe is not installed.
            CommandExecutionError: If probing fails.
            json.JSONDecodeError: If output cannot be parsed.
        """
        if not path.exists():
            raise FileNotFoundError(f"Video file not found: {path}")

        args = [
            self.ffprobe_path,
            "-v",
            "error",
            "-print_format",
            "json",
            "-show_streams",
            str(path),
        ]
        result = self._runner.run(args, timeout=timeout, check=True)
        parsed: dict[str, Any] = json.loads(result.stdout or "{}")
        streams: list[dict[str, Any]] = parsed.get("streams", [])
        return streams


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
