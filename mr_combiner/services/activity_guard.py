"""
Project Activity Guard.

Keeps the set of projects with a combination in progress so that at most one
run per project executes at a time.
"""

import threading
from contextlib import contextmanager
from typing import FrozenSet, Iterator, Set

from mr_combiner.utils.logging import get_logger

logger = get_logger(__name__)


class ActivityGuard:
    """Thread-safe set of active project IDs with atomic admission."""

    def __init__(self):
        self._lock = threading.Lock()
        self._active: Set[int] = set()

    def try_admit(self, project_id: int) -> bool:
        """
        Reserve a project for a new run.

        Returns:
            True if the project was idle and is now reserved, False otherwise
        """
        with self._lock:
            if project_id in self._active:
                return False
            self._active.add(project_id)
        logger.info(f"Project {project_id} admitted", extra={"project_id": project_id})
        return True

    def release(self, project_id: int) -> None:
        """Drop the reservation for a project; no-op if it is not held."""
        with self._lock:
            self._active.discard(project_id)
        logger.debug(f"Project {project_id} released", extra={"project_id": project_id})

    def is_active(self, project_id: int) -> bool:
        with self._lock:
            return project_id in self._active

    def active_projects(self) -> FrozenSet[int]:
        with self._lock:
            return frozenset(self._active)

    @contextmanager
    def holding(self, project_id: int) -> Iterator[None]:
        """
        Scope an already admitted reservation.

        The reservation is released when the block exits, whatever the exit
        path. Admission itself happens beforehand via ``try_admit``.
        """
        try:
            yield
        finally:
            self.release(project_id)
