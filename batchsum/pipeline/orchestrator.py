"""Batch orchestrator for the per-folder checksum pipeline.

Folders are processed one at a time. For each folder:

- list the files (non-directory entries only)
- hash them through BoundedWorkerPool
- order the results and compute the verdict
- publish log.json with DurableLogWriter
- rename the folder with FolderFinalizer

The folder is renamed only after its log is published. If the log cannot be
written the folder is still finalized as failed, so it never stays pending.
A folder-level error is logged and reported, and the batch moves on.
"""

import time
import logging
from pathlib import Path
from typing import Optional

from batchsum.config.models import AppConfig
from batchsum.domain.errors import (
    FinalizationError,
    FolderProcessingError,
    LogPersistenceError,
    LogSerializationError,
)
from batchsum.domain.events import (
    BatchFinished,
    BatchStarted,
    FileProcessed,
    FolderFailed,
    FolderFinished,
    FolderStarted,
)
from batchsum.domain.models import BatchSummary, FolderOutcome, Verdict
from batchsum.infrastructure.event_bus import EventBus
from batchsum.infrastructure.file_hasher import FileHasher
from batchsum.infrastructure.folder_scanner import FolderScanner
from batchsum.infrastructure.housekeeping import HousekeepingService
from batchsum.pipeline.aggregator import aggregate
from batchsum.pipeline.finalizer import FolderFinalizer
from batchsum.pipeline.log_writer import DurableLogWriter
from batchsum.pipeline.worker_pool import BoundedWorkerPool


class Orchestrator:
    """Checksum batch orchestrator.

    Components are injectable so tests can swap in failing writers or
    finalizers; by default they are built from the config.

    Args:
        config: AppConfig with general and naming settings.
        event_bus: EventBus for progress events.
    """

    def __init__(
        self,
        config: AppConfig,
        event_bus: EventBus,
        scanner: Optional[FolderScanner] = None,
        hasher: Optional[FileHasher] = None,
        log_writer: Optional[DurableLogWriter] = None,
        finalizer: Optional[FolderFinalizer] = None,
        housekeeper: Optional[HousekeepingService] = None,
    ):
        naming = config.naming
        self.config = config
        self.event_bus = event_bus
        self.scanner = scanner or FolderScanner(naming.pending_prefix, skip_names=(naming.tmp_log_name,))
        self.hasher = hasher or FileHasher(chunk_size=config.general.chunk_size)
        self.log_writer = log_writer or DurableLogWriter(naming.log_name, naming.tmp_log_name)
        self.finalizer = finalizer or FolderFinalizer(naming)
        self.housekeeper = housekeeper or HousekeepingService(naming.tmp_log_name)
        self.logger = logging.getLogger(__name__)

    def process_folder(self, folder: Path) -> FolderOutcome:
        """Hashes, logs and finalizes one pending folder.

        Raises:
            FolderScanError: the folder could not be listed (left untouched).
            FinalizationError: the terminal rename failed (left untouched).
        """
        tasks = self.scanner.list_files(folder)
        self.logger.info(f"Processing {folder.name}: {len(tasks)} files")
        self.event_bus.publish(FolderStarted(folder=folder, files_found=len(tasks)))

        def on_result(record):
            self.logger.debug(f"  {folder.name}/{record.filename} -> {record.status.value}")
            self.event_bus.publish(FileProcessed(folder=folder, record=record))

        pool = BoundedWorkerPool(self.hasher, self.config.general.concurrency, on_result=on_result)
        folder_log, verdict = aggregate(pool.run(tasks))

        outcome = FolderOutcome(
            source=folder,
            verdict=verdict,
            files_total=len(folder_log),
            files_failed=folder_log.failed_count,
        )

        log_error: Optional[FolderProcessingError] = None
        try:
            outcome.log_durable = self.log_writer.write(folder, folder_log)
            outcome.log_published = True
        except (LogSerializationError, LogPersistenceError) as e:
            log_error = e
            self.logger.error(f"Failed to write log for {folder}: {e}")

        if outcome.log_published and not outcome.log_durable and self.config.general.strict_durability:
            self.logger.warning(f"Log for {folder.name} was not synced; marking folder failed (strict durability)")
            outcome.verdict = Verdict.FAILED

        try:
            destination = self.finalizer.finalize(folder, outcome.verdict, log_failed=log_error is not None)
        except FinalizationError as e:
            if log_error is not None:
                raise FinalizationError(f"logging error: {log_error}; folder rename error: {e}", folder=folder) from e
            raise

        outcome.destination = destination
        if log_error is not None:
            outcome.verdict = Verdict.FAILED
            outcome.error_message = f"failed to write log: {log_error}"
            self.event_bus.publish(FolderFailed(folder=folder, error_message=outcome.error_message, outcome=outcome))
        else:
            self.event_bus.publish(FolderFinished(outcome=outcome))
        return outcome

    def run(self, input_dir: Path) -> BatchSummary:
        """Processes every pending folder under input_dir, one at a time.

        Raises:
            InputDirectoryError: input_dir is missing or unreadable.
        """
        started = time.monotonic()
        folders = self.scanner.find_pending_folders(input_dir)
        self.logger.info(f"Found {len(folders)} '{self.config.naming.pending_prefix}' folders to process in {input_dir}")

        removed = self.housekeeper.cleanup_temp_logs(folders)
        if removed:
            self.logger.info(f"Housekeeping removed {removed} stale temporary logs")

        self.event_bus.publish(BatchStarted(input_dir=input_dir, folders_found=len(folders)))

        summary = BatchSummary(input_dir=input_dir)
        for folder in folders:
            summary.outcomes.append(self._process_safely(folder))

        summary.duration_seconds = time.monotonic() - started
        self.logger.info(
            f"Batch finished: done={summary.folders_done}, failed={summary.folders_failed}, "
            f"errors={summary.folders_errored}, duration={summary.duration_seconds:.2f}s"
        )
        self.event_bus.publish(BatchFinished(summary=summary))
        return summary

    def _process_safely(self, folder: Path) -> FolderOutcome:
        try:
            return self.process_folder(folder)
        except FolderProcessingError as e:
            self.logger.error(f"folder {folder}: processing error: {e}")
            outcome = FolderOutcome(source=folder, verdict=Verdict.FAILED, error_message=str(e))
            self.event_bus.publish(FolderFailed(folder=folder, error_message=str(e), outcome=outcome))
            return outcome
