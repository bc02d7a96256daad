"""Bounded fan-out of file hashing within one folder.

At most ``concurrency`` hash operations run at once. The limit is a
BoundedSemaphore owned by the pool: the dispatcher acquires a slot before
submitting a task and the task releases it in ``finally``. Results are only
read after a join over every dispatched future.
"""

import logging
import threading
import concurrent.futures
from typing import Callable, List, Optional, Sequence

from batchsum.config.models import coerce_concurrency
from batchsum.domain.models import FileTask, ResultRecord, utc_timestamp
from batchsum.infrastructure.file_hasher import FileHasher

ResultCallback = Callable[[ResultRecord], None]


class BoundedWorkerPool:
    """Runs FileHasher over a folder's files with a hard cap on in-flight work.

    Args:
        hasher: Stateless FileHasher shared by all workers.
        concurrency: Maximum simultaneous hash operations; values < 1 become 1.
        on_result: Optional callback invoked on the worker thread per finished file.
    """

    def __init__(
        self,
        hasher: FileHasher,
        concurrency: int,
        on_result: Optional[ResultCallback] = None,
    ):
        self.hasher = hasher
        self.concurrency = coerce_concurrency(concurrency)
        self.on_result = on_result
        self.logger = logging.getLogger(__name__)

    def run(self, tasks: Sequence[FileTask]) -> List[ResultRecord]:
        """Hashes every task and returns one record per task, in no particular order."""
        if not tasks:
            return []

        slots = threading.BoundedSemaphore(self.concurrency)
        futures: List[concurrent.futures.Future] = []

        def work(task: FileTask) -> ResultRecord:
            try:
                record = self._hash_guarded(task)
                if self.on_result is not None:
                    try:
                        self.on_result(record)
                    except Exception as e:
                        self.logger.warning(f"Result callback failed for {task.name}: {e}")
                return record
            finally:
                slots.release()

        workers = min(self.concurrency, len(tasks))
        with concurrent.futures.ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="batchsum-hash"
        ) as executor:
            for task in tasks:
                slots.acquire()
                try:
                    futures.append(executor.submit(work, task))
                except BaseException:
                    slots.release()
                    raise

            concurrent.futures.wait(futures, return_when=concurrent.futures.ALL_COMPLETED)

        return [future.result() for future in futures]

    def _hash_guarded(self, task: FileTask) -> ResultRecord:
        # A hasher bug must cost one file, not the folder
        try:
            return self.hasher.hash_file(task)
        except Exception as e:
            self.logger.error(f"Unexpected failure hashing {task.path}: {e}")
            return ResultRecord.failure(task.name, f"unexpected error: {e}", utc_timestamp())
