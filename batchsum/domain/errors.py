"""Exception hierarchy for batchsum.

Per-file problems never surface as exceptions outside the hasher; they are
recorded as ``error`` results. The exceptions here cover startup problems and
folder-level failures that the orchestrator reports before moving on.
"""

from pathlib import Path
from typing import Optional


class BatchsumError(Exception):
    """Base exception for all batchsum errors."""
    pass


class InputDirectoryError(BatchsumError):
    """Raised when the input directory is missing or is not a directory."""
    pass


class FolderProcessingError(BatchsumError):
    """Base class for failures that abort processing of a single folder."""

    def __init__(self, message: str, folder: Optional[Path] = None):
        super().__init__(message)
        self.folder = folder


class FolderScanError(FolderProcessingError):
    """Raised when a work folder cannot be listed."""
    pass


class LogSerializationError(FolderProcessingError):
    """Raised when the folder log cannot be encoded."""
    pass


class LogPersistenceError(FolderProcessingError):
    """Raised when the folder log cannot be created, written, closed or published."""
    pass


class FinalizationError(FolderProcessingError):
    """Raised when the terminal folder rename fails. The folder is left as it was."""
    pass
