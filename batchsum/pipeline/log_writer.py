"""Crash-safe persistence of a folder's log.

The log is written to a temporary file in the same folder, flushed to disk,
closed and then published with ``os.replace``. Readers either see no log or
the complete one. Any failure before the publish removes the temporary file
and leaves an existing final log untouched.
"""

import os
import json
import logging
from pathlib import Path

from batchsum.domain.errors import LogPersistenceError, LogSerializationError
from batchsum.domain.models import FolderLog


def serialize_log(folder_log: FolderLog) -> bytes:
    """Indented JSON array; fields in record order, absent digest/error omitted."""
    try:
        payload = [
            record.model_dump(mode="json", exclude_none=True)
            for record in folder_log.records
        ]
        return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise LogSerializationError(f"marshal results: {e}") from e


class DurableLogWriter:
    def __init__(self, log_name: str = "log.json", tmp_log_name: str = "log.tmp"):
        self.log_name = log_name
        self.tmp_log_name = tmp_log_name
        self.logger = logging.getLogger(__name__)

    def final_path(self, folder: Path) -> Path:
        return folder / self.log_name

    def tmp_path(self, folder: Path) -> Path:
        return folder / self.tmp_log_name

    def write(self, folder: Path, folder_log: FolderLog) -> bool:
        """Publishes the log inside folder.

        Returns True when the data was fsynced before publishing, False when the
        sync failed and only the warning was logged.

        Raises:
            LogSerializationError: the records could not be encoded.
            LogPersistenceError: create, write, close or publish failed.
        """
        data = serialize_log(folder_log)
        tmp_path = self.tmp_path(folder)
        final_path = self.final_path(folder)

        try:
            tmp_file = open(tmp_path, "wb")
        except OSError as e:
            raise LogPersistenceError(f"create tmp log: {e}", folder=folder) from e

        durable = True
        try:
            try:
                tmp_file.write(data)
            except OSError as e:
                raise LogPersistenceError(f"write tmp log: {e}", folder=folder) from e
            durable = self._sync(tmp_file, tmp_path)
        except BaseException:
            self._close_quietly(tmp_file)
            self._discard(tmp_path)
            raise

        try:
            tmp_file.close()
        except OSError as e:
            self._discard(tmp_path)
            raise LogPersistenceError(f"close tmp log: {e}", folder=folder) from e

        try:
            os.replace(tmp_path, final_path)
        except OSError as e:
            self._discard(tmp_path)
            raise LogPersistenceError(f"rename tmp->final: {e}", folder=folder) from e

        self.logger.debug(f"Published {final_path} ({len(folder_log)} records)")
        return durable

    def _sync(self, tmp_file, tmp_path: Path) -> bool:
        try:
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
            return True
        except OSError as e:
            self.logger.warning(f"fsync failed for {tmp_path}: {e}")
            return False

    def _close_quietly(self, tmp_file) -> None:
        try:
            tmp_file.close()
        except OSError as e:
            self.logger.debug(f"Ignoring close error on abandoned tmp log: {e}")

    def _discard(self, tmp_path: Path) -> None:
        try:
            tmp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Failed to remove tmp log {tmp_path}: {e}")
