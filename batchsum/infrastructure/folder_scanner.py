import os
from pathlib import Path
from typing import Iterable, List
from batchsum.domain.errors import FolderScanError, InputDirectoryError
from batchsum.domain.models import FileTask

def display_name(raw_name: str) -> str:
    """UTF-8 form of a directory entry name; undecodable bytes become U+FFFD."""
    return os.fsencode(raw_name).decode("utf-8", "replace")


class FolderScanner:
    """Finds pending work folders and the files inside them."""

    def __init__(self, pending_prefix: str, skip_names: Iterable[str] = ()):
        self.pending_prefix = pending_prefix
        self.skip_names = frozenset(skip_names)

    def find_pending_folders(self, input_dir: Path) -> List[Path]:
        """Returns directories directly under input_dir carrying the pending marker, sorted by name."""
        if not input_dir.exists():
            raise InputDirectoryError(f"Input directory does not exist: {input_dir}")
        if not input_dir.is_dir():
            raise InputDirectoryError(f"Input path is not a directory: {input_dir}")

        try:
            entries = list(os.scandir(input_dir))
        except OSError as e:
            raise InputDirectoryError(f"Cannot read input directory {input_dir}: {e}") from e

        folders = [
            Path(entry.path)
            for entry in entries
            if entry.name.startswith(self.pending_prefix) and entry.is_dir(follow_symlinks=False)
        ]
        folders.sort(key=lambda p: p.name)
        return folders

    def list_files(self, folder: Path) -> List[FileTask]:
        """Lists non-directory entries of a folder. Nested directories are left alone.

        The task name is the UTF-8 display form of the entry name; the path
        keeps the on-disk name so the file can still be opened.
        """
        try:
            entries = list(os.scandir(folder))
        except OSError as e:
            raise FolderScanError(f"read folder: {e}", folder=folder) from e

        tasks = []
        for entry in entries:
            if entry.name in self.skip_names:
                continue
            try:
                if entry.is_dir():
                    continue
            except OSError:
                # Unstat-able entries still get a task so the failure is recorded
                pass
            tasks.append(FileTask(name=display_name(entry.name), path=Path(entry.path)))

        tasks.sort(key=lambda t: t.name)
        return tasks
