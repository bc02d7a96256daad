from typing import Iterable, Tuple
from batchsum.domain.models import FolderLog, ResultRecord, Verdict


def _filename_key(record: ResultRecord) -> bytes:
    # Byte-wise order
    return record.filename.encode("utf-8")


def order_results(records: Iterable[ResultRecord]) -> FolderLog:
    """Sorts records by filename so logs do not depend on completion order."""
    return FolderLog(records=tuple(sorted(records, key=_filename_key)))


def compute_verdict(folder_log: FolderLog) -> Verdict:
    """DONE iff every record succeeded. An empty folder is DONE."""
    if all(record.ok for record in folder_log.records):
        return Verdict.DONE
    return Verdict.FAILED


def aggregate(records: Iterable[ResultRecord]) -> Tuple[FolderLog, Verdict]:
    folder_log = order_results(records)
    return folder_log, compute_verdict(folder_log)
