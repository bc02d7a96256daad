import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logging(
    input_dir: Path,
    debug: bool = False,
    log_path: Optional[Path] = None,
    console: Optional[Console] = None,
) -> logging.Logger:
    """
    Setup logging configuration for batchsum.

    Writes batchsum.log next to the work folders (or to log_path) and mirrors
    records to the terminal through rich. Returns configured logger instance.

    Args:
        input_dir: Directory holding the work folders
        debug: If True, enable DEBUG level logging (per-file results)
        log_path: Optional path to log file (overrides input_dir)
        console: Optional rich console for terminal output; None disables it
    """
    log_file = Path(log_path) if log_path else (input_dir / "batchsum.log")
    log_file.parent.mkdir(parents=True, exist_ok=True)

    level = logging.DEBUG if debug else logging.INFO

    handlers = [logging.FileHandler(log_file, encoding='utf-8')]
    if console is not None:
        handlers.append(RichHandler(console=console, show_path=False, markup=False))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True  # Override any existing configuration
    )
    # RichHandler renders its own time and level columns
    for handler in handlers[1:]:
        handler.setFormatter(logging.Formatter('%(message)s'))

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized: {log_file} (debug={'ON' if debug else 'OFF'})")

    return logger
