from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, model_validator


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """RFC 3339 UTC timestamp with second precision, e.g. 2024-05-01T12:00:00Z."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class FileStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class FolderState(str, Enum):
    """Lifecycle of a work folder. Encoded on disk by the folder name prefix."""

    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not FolderState.PENDING

    def can_transition_to(self, target: "FolderState") -> bool:
        return target in _TRANSITIONS[self]


_TRANSITIONS: Dict[FolderState, FrozenSet[FolderState]] = {
    FolderState.PENDING: frozenset({FolderState.DONE, FolderState.FAILED}),
    FolderState.DONE: frozenset(),
    FolderState.FAILED: frozenset(),
}


class FileTask(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    path: Path


class ResultRecord(BaseModel):
    """Outcome of hashing one file. Field order is the serialized field order."""

    model_config = ConfigDict(frozen=True)

    filename: str
    status: FileStatus
    md5: Optional[str] = None
    error: Optional[str] = None
    timestamp: str

    @model_validator(mode="after")
    def validate_payload(self):
        if self.status is FileStatus.SUCCESS:
            if not self.md5 or self.error is not None:
                raise ValueError("success records carry a digest and no error")
        else:
            if not self.error or self.md5 is not None:
                raise ValueError("error records carry a non-empty error and no digest")
        return self

    @property
    def ok(self) -> bool:
        return self.status is FileStatus.SUCCESS

    @classmethod
    def success(cls, filename: str, md5: str, timestamp: str) -> "ResultRecord":
        return cls(filename=filename, status=FileStatus.SUCCESS, md5=md5, timestamp=timestamp)

    @classmethod
    def failure(cls, filename: str, error: str, timestamp: str) -> "ResultRecord":
        return cls(filename=filename, status=FileStatus.ERROR, error=error, timestamp=timestamp)


class Verdict(str, Enum):
    DONE = "done"
    FAILED = "failed"

    @property
    def target_state(self) -> FolderState:
        return FolderState.DONE if self is Verdict.DONE else FolderState.FAILED


class FolderLog(BaseModel):
    """Records of one folder, sorted by filename."""

    model_config = ConfigDict(frozen=True)

    records: Tuple[ResultRecord, ...] = ()

    def __len__(self) -> int:
        return len(self.records)

    @property
    def failed_count(self) -> int:
        return sum(1 for record in self.records if not record.ok)


class FolderOutcome(BaseModel):
    source: Path
    destination: Optional[Path] = None
    verdict: Verdict
    files_total: int = 0
    files_failed: int = 0
    log_published: bool = False
    log_durable: bool = False
    error_message: Optional[str] = None


class BatchSummary(BaseModel):
    input_dir: Path
    outcomes: List[FolderOutcome] = Field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def folders_done(self) -> int:
        return sum(1 for o in self.outcomes if o.destination is not None and o.verdict is Verdict.DONE)

    @property
    def folders_failed(self) -> int:
        return sum(1 for o in self.outcomes if o.destination is not None and o.verdict is Verdict.FAILED)

    @property
    def folders_errored(self) -> int:
        """Folders that could not be finalized and were left in place."""
        return sum(1 for o in self.outcomes if o.destination is None)
