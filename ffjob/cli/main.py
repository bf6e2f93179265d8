"""
CLI interface for ffjob.

This module provides the command-line interface using Typer and Rich.
"""

import asyncio
import shlex
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import ConfigManager, FFJobConfig, get_config_manager
from ..executor import FFmpeg, FFmpegExecutor
from ..job import FFmpegJob, TwoPassFFmpegJob
from ..ui import ConsoleProgressListener
from ..utils import FFJobError, get_logger, log_performance, setup_logger

app = typer.Typer(
    name="ffjob",
    help="Run ffmpeg jobs with live progress and two-pass log cleanup",
    add_completion=False,
)

console = Console()

logger = get_logger(__name__)

PASSTHROUGH = {"allow_extra_args": True, "ignore_unknown_options": True}


def _prepare(
    config_file: Optional[Path],
    verbose: bool,
    log_file: Optional[Path],
    ffmpeg_path: Optional[str] = None,
) -> FFJobConfig:
    """Load configuration and configure logging."""
    config = get_config_manager(config_file).config
    if ffmpeg_path:
        config.executor.ffmpeg_path = ffmpeg_path

    setup_logger(
        level=config.logging.level,
        log_file=log_file or config.logging.log_file,
        verbose=verbose,
        console=Console(stderr=True),
    )
    return config


@log_performance()
async def _run_job(job: FFmpegJob) -> None:
    await job.run()


def _execute(job: FFmpegJob, listener: Optional[ConsoleProgressListener], verbose: bool) -> None:
    """Run a job to completion, translating failures into exit codes."""
    try:
        if listener is not None:
            with listener:
                asyncio.run(_run_job(job))
        else:
            asyncio.run(_run_job(job))

    except KeyboardInterrupt:
        console.print(f"\n[yellow]⚠ Job cancelled by user[/yellow] (state: {job.state.value})")
        sys.exit(130)
    except FFJobError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        if e.__cause__ is not None and verbose:
            console.print(f"[dim]Caused by: {e.__cause__!r}[/dim]")
        sys.exit(1)

    console.print(f"[green]✓[/green] Job {job.name} {job.state.value}")
    if isinstance(job, TwoPassFFmpegJob):
        if job.removed_logs:
            console.print(f"[dim]Removed {len(job.removed_logs)} pass log file(s)[/dim]")
        if job.cleanup_error is not None:
            console.print(f"[yellow]⚠[/yellow] {job.cleanup_error}")


@app.command("run", context_settings=PASSTHROUGH)
def run_command(
    ctx: typer.Context,
    ffmpeg_path: Optional[str] = typer.Option(None, "--ffmpeg", help="ffmpeg executable"),
    duration: Optional[float] = typer.Option(
        None, "--duration", "-d", help="Expected output duration in seconds (for the bar)"
    ),
    no_progress: bool = typer.Option(False, "--no-progress", help="Do not show progress"),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", exists=True, dir_okay=False, help="Custom configuration file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: Optional[Path] = typer.Option(None, "--log", help="Log file path"),
) -> None:
    """
    Run one ffmpeg invocation.

    Everything after the options is passed to ffmpeg, e.g.
    ffjob run -- -y -i in.mp4 -c:v libx264 out.mp4
    """
    args = list(ctx.args)
    if not args:
        console.print("[red]✗ No ffmpeg arguments given[/red]")
        sys.exit(2)

    config = _prepare(config_file, verbose, log_file, ffmpeg_path)
    executor = FFmpegExecutor(config=config.executor)

    listener = None if no_progress else ConsoleProgressListener(console, duration=duration)
    job = executor.create_job(args, listener=listener)
    _execute(job, listener, verbose)


@app.command("two-pass")
def two_pass_command(
    pass1: str = typer.Option(..., "--pass1", help="Arguments of pass 1, as one quoted string"),
    pass2: str = typer.Option(..., "--pass2", help="Arguments of pass 2, as one quoted string"),
    prefix: Optional[str] = typer.Option(
        None, "--prefix", help="Pass log prefix (default from config: ffmpeg2pass)"
    ),
    ffmpeg_path: Optional[str] = typer.Option(None, "--ffmpeg", help="ffmpeg executable"),
    duration: Optional[float] = typer.Option(
        None, "--duration", "-d", help="Expected output duration in seconds (for the bar)"
    ),
    no_progress: bool = typer.Option(False, "--no-progress", help="Do not show progress"),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", exists=True, dir_okay=False, help="Custom configuration file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: Optional[Path] = typer.Option(None, "--log", help="Log file path"),
) -> None:
    """
    Run a two-pass encode and remove the pass log files afterwards.
    """
    config = _prepare(config_file, verbose, log_file, ffmpeg_path)
    executor = FFmpegExecutor(config=config.executor)

    listener = None if no_progress else ConsoleProgressListener(console, duration=duration)
    job = executor.create_two_pass_job(
        shlex.split(pass1),
        shlex.split(pass2),
        passlog_prefix=prefix,
        listener=listener,
    )
    _execute(job, listener, verbose)


def _query(config_file: Optional[Path], ffmpeg_path: Optional[str]) -> FFmpeg:
    config = _prepare(config_file, False, None, ffmpeg_path)
    return FFmpeg(config=config.executor)


@app.command("version")
def version_command(
    ffmpeg_path: Optional[str] = typer.Option(None, "--ffmpeg", help="ffmpeg executable"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, dir_okay=False),
) -> None:
    """
    Display ffjob and ffmpeg versions.
    """
    from .. import __version__

    ffmpeg = _query(config_file, ffmpeg_path)
    try:
        ffmpeg_version = asyncio.run(ffmpeg.version())
    except FFJobError as e:
        ffmpeg_version = f"[red]unavailable ({e})[/red]"

    console.print(
        Panel.fit(
            f"[bold cyan]ffjob[/bold cyan] [dim]{__version__}[/dim]\n{ffmpeg_version}",
            border_style="cyan",
        )
    )


@app.command("codecs")
def codecs_command(
    encoders_only: bool = typer.Option(False, "--encoders", help="Only codecs that can encode"),
    ffmpeg_path: Optional[str] = typer.Option(None, "--ffmpeg", help="ffmpeg executable"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, dir_okay=False),
) -> None:
    """
    List the codecs ffmpeg supports.
    """
    ffmpeg = _query(config_file, ffmpeg_path)
    try:
        codecs = asyncio.run(ffmpeg.codecs())
    except FFJobError as e:
        console.print(f"[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)

    table = Table(show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="yellow")
    table.add_column("Decode")
    table.add_column("Encode")
    table.add_column("Description", style="dim")

    for codec in codecs:
        if encoders_only and not codec.can_encode:
            continue
        table.add_row(
            codec.name,
            codec.type.name.lower() if codec.type else "?",
            "✓" if codec.can_decode else "",
            "✓" if codec.can_encode else "",
            codec.long_name,
        )

    console.print(table)


@app.command("formats")
def formats_command(
    ffmpeg_path: Optional[str] = typer.Option(None, "--ffmpeg", help="ffmpeg executable"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, dir_okay=False),
) -> None:
    """
    List the container formats ffmpeg supports.
    """
    ffmpeg = _query(config_file, ffmpeg_path)
    try:
        formats = asyncio.run(ffmpeg.formats())
    except FFJobError as e:
        console.print(f"[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)

    table = Table(show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("Demux")
    table.add_column("Mux")
    table.add_column("Description", style="dim")

    for fmt in formats:
        table.add_row(
            fmt.name,
            "✓" if fmt.can_demux else "",
            "✓" if fmt.can_mux else "",
            fmt.long_name,
        )

    console.print(table)


@app.command("config")
def config_command(
    action: str = typer.Argument(..., help="init, show or path"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="File written by 'init' (default: ./.ffjob.yaml)"
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Let 'init' replace a file"),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", exists=True, dir_okay=False, help="File read by 'show'"
    ),
) -> None:
    """
    Manage the configuration file.

    init writes the defaults, show prints the effective settings and path
    prints which file would be loaded.
    """
    manager = get_config_manager(config_file)

    if action == "init":
        target = output or Path(".ffjob.yaml")
        try:
            manager.init_default_config(target, force=force)
        except FFJobError as e:
            console.print(f"[red]✗ Error:[/red] {e}")
            sys.exit(1)
        console.print(f"[green]✓[/green] Wrote default configuration to {target}")

    elif action == "show":
        try:
            config = manager.config
        except FFJobError as e:
            console.print(f"[red]✗ Error:[/red] {e}")
            sys.exit(1)

        for title, section in (("executor", config.executor), ("logging", config.logging)):
            table = Table(title=title, show_header=True, title_justify="left")
            table.add_column("Setting", style="cyan")
            table.add_column("Value")
            for key, value in section.model_dump().items():
                table.add_row(key, "-" if value is None else str(value))
            console.print(table)

    elif action == "path":
        candidates = [manager.config_path] if manager.config_path else []
        candidates += ConfigManager.DEFAULT_CONFIG_LOCATIONS
        found = next((p for p in candidates if p.exists()), None)
        console.print(str(found) if found else "[dim]none (built-in defaults)[/dim]")

    else:
        console.print(f"[red]✗ Unknown action:[/red] {action} (expected init, show or path)")
        sys.exit(1)


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
