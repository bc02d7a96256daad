import threading
from typing import Optional

from rich.console import Console
from rich.progress import Progress, BarColumn, SpinnerColumn, TextColumn, TimeRemainingColumn
from rich.table import Table

from batchsum.domain.events import (
    BatchFinished, BatchStarted, FileProcessed, FolderFailed, FolderFinished, FolderStarted
)
from batchsum.domain.models import BatchSummary, Verdict
from batchsum.infrastructure.event_bus import EventBus


class ProgressReporter:
    """Subscribes to EventBus and renders batch progress with rich.

    One bar tracks folders, a second tracks files of the current folder.
    FileProcessed arrives on worker threads; rich's Progress is thread-safe,
    the counters here are guarded by a lock.
    """

    def __init__(self, bus: EventBus, console: Optional[Console] = None, show_files: bool = False):
        self.bus = bus
        self.console = console or Console()
        self.show_files = show_files
        self.files_ok = 0
        self.files_failed = 0
        self._lock = threading.Lock()
        self._progress: Optional[Progress] = None
        self._folders_task = None
        self._files_task = None
        self._setup_subscriptions()

    def _setup_subscriptions(self):
        self.bus.subscribe(BatchStarted, self.on_batch_started)
        self.bus.subscribe(FolderStarted, self.on_folder_started)
        self.bus.subscribe(FileProcessed, self.on_file_processed)
        self.bus.subscribe(FolderFinished, self.on_folder_finished)
        self.bus.subscribe(FolderFailed, self.on_folder_failed)
        self.bus.subscribe(BatchFinished, self.on_batch_finished)

    def on_batch_started(self, event: BatchStarted):
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total}"),
            TimeRemainingColumn(),
            console=self.console,
        )
        self._progress.start()
        self._folders_task = self._progress.add_task("Folders", total=event.folders_found)

    def on_folder_started(self, event: FolderStarted):
        if self._progress is None:
            return
        if self._files_task is not None:
            self._progress.remove_task(self._files_task)
        self._files_task = self._progress.add_task(f"  {event.folder.name}", total=event.files_found)

    def on_file_processed(self, event: FileProcessed):
        with self._lock:
            if event.record.ok:
                self.files_ok += 1
            else:
                self.files_failed += 1
        if self._progress is not None and self._files_task is not None:
            self._progress.advance(self._files_task)
        if self.show_files:
            status = "green" if event.record.ok else "red"
            self.console.print(
                f"    processed {event.record.filename} -> [{status}]{event.record.status.value}[/{status}]"
            )

    def on_folder_finished(self, event: FolderFinished):
        self._advance_folders()

    def on_folder_failed(self, event: FolderFailed):
        self.console.print(f"[red]folder {event.folder.name}: {event.error_message}[/red]")
        self._advance_folders()

    def on_batch_finished(self, event: BatchFinished):
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
        self.console.print(build_summary_table(event.summary))

    def _advance_folders(self):
        if self._progress is not None and self._folders_task is not None:
            self._progress.advance(self._folders_task)


def build_summary_table(summary: BatchSummary) -> Table:
    table = Table(title=f"batchsum: {summary.input_dir}", show_lines=False)
    table.add_column("Folder")
    table.add_column("Result")
    table.add_column("Files", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Renamed to")

    for outcome in summary.outcomes:
        if outcome.destination is None:
            result = "[red]error[/red]"
        elif outcome.verdict is Verdict.DONE:
            result = "[green]done[/green]"
        else:
            result = "[yellow]failed[/yellow]"
        table.add_row(
            outcome.source.name,
            result,
            str(outcome.files_total),
            str(outcome.files_failed),
            outcome.destination.name if outcome.destination else "-",
        )

    table.caption = (
        f"done={summary.folders_done} failed={summary.folders_failed} "
        f"errors={summary.folders_errored} in {summary.duration_seconds:.1f}s"
    )
    return table
