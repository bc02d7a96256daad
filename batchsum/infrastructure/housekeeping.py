import logging
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)


class HousekeepingService:
    """Removes leftovers of interrupted runs from pending folders."""

    def __init__(self, tmp_log_name: str):
        self.tmp_log_name = tmp_log_name

    def cleanup_temp_logs(self, folders: Iterable[Path]) -> int:
        """Deletes stale temporary logs. Returns how many were removed."""
        removed = 0
        for folder in folders:
            tmp_log = folder / self.tmp_log_name
            if not tmp_log.is_file():
                continue
            try:
                tmp_log.unlink()
                removed += 1
                logger.info(f"Removed stale temporary log: {tmp_log}")
            except OSError as e:
                logger.warning(f"Cannot remove stale temporary log {tmp_log}: {e}")
        return removed
