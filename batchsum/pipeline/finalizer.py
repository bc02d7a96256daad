"""Terminal rename of a work folder.

A folder's state lives in its name prefix. FolderFinalizer makes the only
allowed transition, pending -> done or pending -> failed, with one
``os.rename``. An existing folder at the target name is never overwritten:
a UTC timestamp suffix (and a counter if needed) makes the name unique.
"""

import os
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Optional

from batchsum.config.models import NamingConfig
from batchsum.domain.errors import FinalizationError
from batchsum.domain.models import FolderState, Verdict

COLLISION_SUFFIX_FORMAT = "%Y%m%dT%H%M%SZ"


class FolderFinalizer:
    def __init__(
        self,
        naming: Optional[NamingConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.naming = naming or NamingConfig()
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.logger = logging.getLogger(__name__)

    @property
    def _markers(self) -> Dict[FolderState, str]:
        return {
            FolderState.PENDING: self.naming.pending_prefix,
            FolderState.DONE: self.naming.done_prefix,
            FolderState.FAILED: self.naming.failed_prefix,
        }

    def state_of(self, name: str) -> Optional[FolderState]:
        """State encoded by a folder name, or None when it carries no known marker."""
        # Longest marker first so overlapping prefixes resolve to the specific one
        for state, marker in sorted(self._markers.items(), key=lambda item: -len(item[1])):
            if name.startswith(marker):
                return state
        return None

    def identifier_of(self, name: str) -> str:
        """Stable folder identifier: the name without its pending marker.

        Names without the pending marker fall back to everything after the
        first underscore.
        """
        if name.startswith(self.naming.pending_prefix):
            return name[len(self.naming.pending_prefix):]
        _, sep, rest = name.partition("_")
        return rest if sep else name

    def target_name(self, name: str, verdict: Verdict) -> str:
        return f"{self._markers[verdict.target_state]}{self.identifier_of(name)}"

    def _unique_target(self, parent: Path, base: str) -> Path:
        """parent/base, disambiguated if that name is taken."""
        target = parent / base
        if not os.path.lexists(target):
            return target

        stamped = f"{base}_{self.clock().astimezone(timezone.utc).strftime(COLLISION_SUFFIX_FORMAT)}"
        target = parent / stamped
        counter = 1
        while os.path.lexists(target):
            counter += 1
            target = parent / f"{stamped}-{counter}"
        return target

    def finalize(self, folder: Path, verdict: Verdict, log_failed: bool = False) -> Path:
        """Renames folder to its terminal name and returns the new path.

        A failed log publication forces the FAILED verdict so the folder never
        stays pending.

        Raises:
            FinalizationError: the folder is not pending or the rename failed.
                The folder keeps its current name.
        """
        if log_failed:
            verdict = Verdict.FAILED

        current = self.state_of(folder.name)
        if current is not None and not current.can_transition_to(verdict.target_state):
            raise FinalizationError(
                f"{folder.name} is already {current.value}; refusing transition to {verdict.target_state.value}",
                folder=folder,
            )

        base = self.target_name(folder.name, verdict)
        target = self._unique_target(folder.parent, base)
        if target.name != base:
            self.logger.warning(f"Target exists, renaming with suffix: {folder.name} -> {target.name}")

        try:
            os.rename(folder, target)
        except OSError as e:
            raise FinalizationError(f"os.rename {folder} -> {target}: {e}", folder=folder) from e

        self.logger.info(f"Finalized {folder.name} -> {target.name} ({verdict.value})")
        return target
