import typer
from pathlib import Path
from typing import Optional

from rich.console import Console

from batchsum.config.loader import load_config
from batchsum.config.models import coerce_concurrency
from batchsum.infrastructure.logging import setup_logging
from batchsum.infrastructure.event_bus import EventBus
from batchsum.pipeline.orchestrator import Orchestrator
from batchsum.ui.progress import ProgressReporter

app = typer.Typer(help="batchsum - checksum work folders and mark them done or failed")


@app.callback()
def callback():
    """Batch MD5 checksums of pending work folders."""


@app.command()
def run(
    input_dir_arg: Optional[Path] = typer.Argument(
        None,
        help="Directory containing pending work folders (default: config input_dir)"
    ),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to YAML config"),
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", "-j", help="Max concurrent file hashes per folder (values < 1 become 1)"
    ),
    log_path: Optional[Path] = typer.Option(None, "--log-path", help="Path to log file (overrides config)"),
    strict_durability: bool = typer.Option(
        False, "--strict-durability", help="Mark folders failed when their log could not be fsynced"
    ),
    no_progress: bool = typer.Option(False, "--no-progress", help="Disable the progress display"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging with per-file results"),
):
    """Hash every file of each pending folder, write log.json, then rename the folder."""
    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValueError) as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    # Apply CLI overrides
    if concurrency is not None: config.general.concurrency = coerce_concurrency(concurrency)
    if log_path is not None: config.general.log_path = str(log_path)
    if strict_durability: config.general.strict_durability = True
    if no_progress: config.general.show_progress = False
    if verbose: config.general.debug = True

    input_dir = (input_dir_arg or Path(config.input_dir)).resolve()
    if not input_dir.is_dir():
        typer.secho(f"Error: Input directory does not exist: {input_dir}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    console = Console(stderr=True)
    log_path_value = Path(config.general.log_path) if config.general.log_path else None
    logger = setup_logging(input_dir, debug=config.general.debug, log_path=log_path_value, console=console)
    logger.info(f"batchsum started: input_dir={input_dir}")
    logger.info(
        f"Config: concurrency={config.general.concurrency}, chunk_size={config.general.chunk_size}, "
        f"strict_durability={config.general.strict_durability}, debug={config.general.debug}"
    )

    bus = EventBus()
    if config.general.show_progress:
        ProgressReporter(bus, console=console, show_files=config.general.debug)

    orchestrator = Orchestrator(config=config, event_bus=bus)

    try:
        summary = orchestrator.run(input_dir)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user (Ctrl+C)")
        typer.secho("\nStopped by user (Ctrl+C)", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=130)
    except Exception as e:
        logger.exception("Fatal error during batch")
        typer.secho(f"Fatal Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.echo(
        f"Processed {len(summary.outcomes)} folders: "
        f"{summary.folders_done} done, {summary.folders_failed} failed, {summary.folders_errored} errors"
    )


if __name__ == "__main__":
    app()
