"""CLI entrypoint for dashcam-ingest."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from dashcam_ingest import __version__
from dashcam_ingest.core.config import DEFAULT_CONFIG_FILE, Config
from dashcam_ingest.core.logger import configure_logging
from dashcam_ingest.core.types import VendorFeature
from dashcam_ingest.vendors.base import BaseVendorParser
from dashcam_ingest.vendors.detector import VendorDetector

# Rich console for formatted output
console = Console()


@dataclass
class CLIContext:
    """Context object passed between CLI commands."""

    config: Config
    detector: VendorDetector
    verbose: bool
    quiet: bool


pass_context = click.make_pass_decorator(CLIContext, ensure=True)


def _format_size(size_bytes: int) -> str:
    """Format a byte count for display.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Human-readable size (e.g., "1.5 MB").
    """
    size = float(size_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def _print_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def _resolve_parser(cli_ctx: CLIContext, path: Path) -> BaseVendorParser:
    """Find the parser for a recording or exit with an error."""
    parser = cli_ctx.detector.detect_vendor_for_filename(path.name)
    if parser is None:
        console.print(f"[red]Error:[/red] No vendor recognizes {path.name}")
        sys.exit(1)
    return parser


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output (DEBUG level logging).",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    default=False,
    help="Minimal output (only errors and results).",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, quiet: bool) -> None:
    """Dashcam Ingest - identify dashcam recordings and extract telemetry.

    Detects which dashcam vendor produced a folder of recordings, parses
    recording identity from filenames, and decodes the GPS track and
    G-sensor data embedded in each video.
    """
    config = Config.load()

    if verbose:
        configure_logging(level=logging.DEBUG, console_output=True)
    elif quiet:
        configure_logging(level=logging.ERROR, console_output=True)
    else:
        configure_logging(level=logging.WARNING, console_output=True)

    ctx.obj = CLIContext(
        config=config,
        detector=VendorDetector(config=config),
        verbose=verbose,
        quiet=quiet,
    )


@main.command()
@click.argument(
    "directory",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@pass_context
def detect(cli_ctx: CLIContext, directory: Path) -> None:
    """Detect the dashcam vendor of a folder of recordings.

    Samples video filenames under DIRECTORY (recursively) and reports the
    vendor whose naming scheme matches most of them. Exits with status 1
    when no vendor can be identified.

    Examples:

        # Identify an SD card
        dashcam-ingest detect /Volumes/DASHCAM
    """
    result = cli_ctx.detector.detect_vendor(directory)
    if result is None:
        console.print(f"[yellow]No dashcam vendor identified in {directory}[/yellow]")
        sys.exit(1)

    console.print(
        f"[green]✓[/green] [bold]{result.parser.vendor_name}[/bold] "
        f"({result.vendor_id}) - {result.confidence:.0%} confidence "
        f"[dim]({result.match_count}/{result.sample_count} files)[/dim]"
    )


@main.command()
@click.argument(
    "directory",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option("--json", "as_json", is_flag=True, default=False, help="Output as JSON.")
@pass_context
def scan(cli_ctx: CLIContext, directory: Path, as_json: bool) -> None:
    """List the recording events in a folder.

    Parses every video under DIRECTORY and groups the cameras of each
    event (same moment, same category) into one row, newest first.
    Exits with status 1 when no recording is recognized.

    Examples:

        dashcam-ingest scan /Volumes/DASHCAM

        dashcam-ingest scan /Volumes/DASHCAM --json
    """
    groups = cli_ctx.detector.scan(directory)

    if as_json:
        _print_json([group.to_dict() for group in groups])
    elif groups:
        table = Table(title=f"Recordings - {directory.name}")
        table.add_column("Recording ID", style="cyan")
        table.add_column("Timestamp")
        table.add_column("Category")
        table.add_column("Channels")
        table.add_column("Size", justify="right")
        for group in groups:
            timestamp = group.timestamp
            table.add_row(
                group.base_identifier,
                timestamp.isoformat() if timestamp else "-",
                group.category.value,
                ", ".join(channel.name.lower() for channel in group.channels),
                _format_size(group.total_file_size),
            )
        console.print(table)
        console.print(f"[dim]{len(groups)} events[/dim]")

    if not groups:
        if not as_json:
            console.print(f"[yellow]No recordings recognized in {directory}[/yellow]")
        sys.exit(1)


@main.command()
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option("--json", "as_json", is_flag=True, default=False, help="Output as JSON.")
@pass_context
def parse(cli_ctx: CLIContext, files: Sequence[Path], as_json: bool) -> None:
    """Parse recording identity from filenames.

    Prints timestamp, camera channel and recording category for each FILE.
    Files no vendor recognizes are reported and cause exit status 1.

    Examples:

        dashcam-ingest parse Record/20240115_143025_F.mp4

        dashcam-ingest parse --json *.mp4
    """
    parsed = []
    unrecognized = []
    for path in files:
        info = cli_ctx.detector.parse_file(path)
        if info is None:
            unrecognized.append(path)
        else:
            parsed.append(info)

    if as_json:
        _print_json([info.to_dict() for info in parsed])
    else:
        table = Table(title="Recordings")
        table.add_column("File", style="cyan")
        table.add_column("Timestamp")
        table.add_column("Channel")
        table.add_column("Category")
        table.add_column("Size", justify="right")
        table.add_column("Recording ID", style="dim")
        for info in parsed:
            table.add_row(
                info.filename,
                info.timestamp.isoformat(),
                info.channel.name.lower(),
                info.category.value,
                _format_size(info.file_size),
                info.base_identifier,
            )
        console.print(table)

    for path in unrecognized:
        console.print(f"[red]✗[/red] Unrecognized filename: {path.name}")
    if unrecognized:
        sys.exit(1)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, default=False, help="Output as JSON.")
@pass_context
def gps(cli_ctx: CLIContext, file: Path, as_json: bool) -> None:
    """Extract the GPS track embedded in a recording.

    Requires FFmpeg.

    Examples:

        dashcam-ingest gps Record/20240115_143025_F.mp4 --json
    """
    parser = _resolve_parser(cli_ctx, file)
    fixes = parser.extract_gps(file)

    if as_json:
        _print_json([fix.to_dict() for fix in fixes])
        return

    if not fixes:
        console.print(f"[yellow]No GPS data found in {file.name}[/yellow]")
        return

    table = Table(title=f"GPS - {file.name}")
    table.add_column("Time (UTC)")
    table.add_column("Latitude", justify="right")
    table.add_column("Longitude", justify="right")
    table.add_column("Speed (km/h)", justify="right")
    table.add_column("Heading", justify="right")
    table.add_column("Altitude (m)", justify="right")
    for fix in fixes:
        table.add_row(
            fix.timestamp.strftime("%H:%M:%S"),
            f"{fix.latitude:.6f}",
            f"{fix.longitude:.6f}",
            f"{fix.speed:.1f}" if fix.speed is not None else "-",
            f"{fix.heading:.1f}" if fix.heading is not None else "-",
            f"{fix.altitude:.1f}" if fix.altitude is not None else "-",
        )
    console.print(table)
    console.print(f"[dim]{len(fixes)} fixes[/dim]")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, default=False, help="Output as JSON.")
@pass_context
def accel(cli_ctx: CLIContext, file: Path, as_json: bool) -> None:
    """Extract the G-sensor data embedded in a recording.

    Requires FFmpeg.

    Examples:

        dashcam-ingest accel Record/20240115_143025_F.mp4
    """
    parser = _resolve_parser(cli_ctx, file)
    samples = parser.extract_acceleration(file)

    if as_json:
        _print_json([sample.to_dict() for sample in samples])
        return

    if not samples:
        console.print(f"[yellow]No accelerometer data found in {file.name}[/yellow]")
        return

    table = Table(title=f"Accelerometer - {file.name}")
    table.add_column("Time")
    table.add_column("X (g)", justify="right")
    table.add_column("Y (g)", justify="right")
    table.add_column("Z (g)", justify="right")
    for sample in samples:
        table.add_row(
            sample.timestamp.strftime("%H:%M:%S.%f")[:-3],
            f"{sample.x:+.3f}",
            f"{sample.y:+.3f}",
            f"{sample.z:+.3f}",
        )
    console.print(table)
    console.print(f"[dim]{len(samples)} samples[/dim]")


@main.command()
@pass_context
def vendors(cli_ctx: CLIContext) -> None:
    """List supported dashcam vendors and their features."""
    table = Table(title="Supported Vendors")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="bold")
    for feature in VendorFeature:
        table.add_column(feature.value.replace("_", " ").title(), justify="center")

    for parser in cli_ctx.detector.all_parsers():
        features = parser.supported_features()
        marks = ["[green]✓[/green]" if f in features else "[dim]-[/dim]" for f in VendorFeature]
        table.add_row(parser.vendor_id, parser.vendor_name, *marks)

    console.print(table)


@main.command()
@pass_context
def config(cli_ctx: CLIContext) -> None:
    """View current configuration.

    Examples:

        dashcam-ingest config

        # Override via environment
        DASHCAM_INGEST_SENSORS__ACCEL_FORMAT=int16 dashcam-ingest config
    """
    cfg = cli_ctx.config

    console.print()
    console.print("[bold]Dashcam Ingest Configuration[/bold]")
    console.print("=" * 50)
    console.print()

    console.print("[bold cyan]Detection[/bold cyan]")
    console.print(f"  Sample Size:  {cfg.detection.sample_size}")
    console.print(f"  Threshold:    {cfg.detection.confidence_threshold:.0%}")
    console.print(f"  Extensions:   {', '.join(cfg.detection.video_extensions)}")
    console.print()

    console.print("[bold cyan]Extraction[/bold cyan]")
    console.print(f"  FFmpeg:   {cfg.extraction.ffmpeg_path}")
    console.print(f"  FFprobe:  {cfg.extraction.ffprobe_path}")
    timeout = f"{cfg.extraction.timeout}s" if cfg.extraction.timeout else "none"
    console.print(f"  Timeout:  {timeout}")
    console.print()

    console.print("[bold cyan]Sensors[/bold cyan]")
    console.print(f"  Sample Rate:    {cfg.sensors.sample_rate_hz} Hz")
    console.print(f"  Accel Format:   {cfg.sensors.accel_format}")
    console.print(f"  UTC Offset:     {cfg.sensors.timezone_offset_hours:+g}h")
    console.print()

    console.print("[bold cyan]Config File[/bold cyan]")
    console.print(f"  Location:  {DEFAULT_CONFIG_FILE}")
    console.print()


if __name__ == "__main__":
    main()
