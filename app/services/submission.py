"""
Submission guard - Blocks a form from being submitted twice while a request is in flight.
"""
from contextlib import asynccontextmanager
from typing import Optional

from .errors import SubmissionInProgress


class SubmissionGuard:
    """Tracks in-flight submissions per (session, form) key."""

    def __init__(self):
        self._in_flight: set[tuple[str, str]] = set()

    def is_busy(self, session_id: str, form_key: str) -> bool:
        return (session_id, form_key) in self._in_flight

    @asynccontextmanager
    async def hold(self, session_id: str, form_key: str):
        """Hold the form for the duration of the block, released on success or failure."""
        key = (session_id, form_key)
        if key in self._in_flight:
            raise SubmissionInProgress("Submission already in progress")
        self._in_flight.add(key)
        try:
            yield
        finally:
            self._in_flight.discard(key)


# Global guard
_guard: Optional[SubmissionGuard] = None


def get_submission_guard() -> SubmissionGuard:
    global _guard
    if _guard is None:
        _guard = SubmissionGuard()
    return _guard
