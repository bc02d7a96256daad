import hashlib
from batchsum.domain.models import FileTask, ResultRecord, utc_timestamp

DEFAULT_CHUNK_SIZE = 64 * 1024


class FileHasher:
    """Streams a file through MD5 without holding it in memory.

    Holds no per-call state, so one instance is shared by every worker thread.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.chunk_size = chunk_size

    def hash_file(self, task: FileTask) -> ResultRecord:
        """Returns a success record with the hex digest, or an error record."""
        now = utc_timestamp()
        try:
            f = open(task.path, "rb")
        except OSError as e:
            return ResultRecord.failure(task.name, f"failed to open file: {e}", now)

        with f:
            hasher = hashlib.md5()
            try:
                for chunk in iter(lambda: f.read(self.chunk_size), b""):
                    hasher.update(chunk)
            except OSError as e:
                return ResultRecord.failure(task.name, f"failed to read file: {e}", now)

        return ResultRecord.success(task.name, hasher.hexdigest(), now)
