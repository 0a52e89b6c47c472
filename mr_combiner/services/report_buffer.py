"""
Report Buffer component.

Collects the progress and error lines of a combination run, keyed by the IID
of the triggering merge request, until they are flushed as a single comment.
"""

import threading
from typing import Dict, List, Optional

from mr_combiner.utils.logging import get_logger

logger = get_logger(__name__)


class ReportBuffer:
    """Ordered message log per merge request, drained exactly once."""

    def __init__(self):
        self._lock = threading.Lock()
        self._messages: Dict[int, List[str]] = {}

    def append(self, request_id: int, message: str) -> None:
        """
        Add a line to the report of a merge request.

        The line is mirrored to the operational log.
        """
        with self._lock:
            self._messages.setdefault(request_id, []).append(message)
        logger.info(message, extra={"request_id": request_id})

    def drain_and_format(self, request_id: int) -> Optional[str]:
        """
        Remove and return the buffered lines joined by newlines.

        Returns:
            The formatted report, or None when nothing was buffered
        """
        with self._lock:
            messages = self._messages.pop(request_id, None)
        if messages is None:
            return None
        return "\n".join(messages)

    def messages(self, request_id: int) -> List[str]:
        """Copy of the lines buffered so far for a merge request."""
        with self._lock:
            return list(self._messages.get(request_id, []))

    def __contains__(self, request_id: int) -> bool:
        with self._lock:
            return request_id in self._messages
