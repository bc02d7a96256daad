"""Domain events for the checksum batch pipeline.

Events flow through the EventBus and decouple the pipeline from progress
reporting. See `infrastructure/event_bus.py` for the pub/sub mechanism.
"""

from pathlib import Path
from typing import Optional
from pydantic import BaseModel
from .models import BatchSummary, FolderOutcome, ResultRecord


class Event(BaseModel):
    """Base class for all domain events."""

    pass


class BatchStarted(Event):
    """Emitted once the pending folders of the input directory are known."""

    input_dir: Path
    folders_found: int


class FolderStarted(Event):
    """Emitted when a folder's files have been listed and hashing begins."""

    folder: Path
    files_found: int


class FileProcessed(Event):
    """Emitted from worker threads as each file finishes."""

    folder: Path
    record: ResultRecord


class FolderFinished(Event):
    """Emitted after a folder has been renamed to its terminal name."""

    outcome: FolderOutcome


class FolderFailed(Event):
    """Emitted when a folder-level error prevented normal completion."""

    folder: Path
    error_message: str
    outcome: Optional[FolderOutcome] = None


class BatchFinished(Event):
    """Emitted when every folder has been attempted."""

    summary: BatchSummary
