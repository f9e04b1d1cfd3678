"""Registry of active capture sessions."""

import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from speakr_common.exceptions import (
    RecordingAlreadyExistsError,
    RecordingNotFoundError,
)

from speakr_transcriber.domain.models import RecordingSession


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionRegistry:
    """
    Maps recording ids to active sessions.

    Every check-and-modify happens under one lock, so two concurrent stops of
    the same recording cannot both succeed.
    """

    def __init__(
        self,
        max_age_seconds: float | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Args:
            max_age_seconds: Age after which a session counts as abandoned and
                is returned by `pop_expired`. None keeps sessions forever.
            clock: Returns the current UTC time.
        """
        self._sessions: dict[str, RecordingSession] = {}
        self._lock = threading.Lock()
        self._max_age = (
            timedelta(seconds=max_age_seconds) if max_age_seconds is not None else None
        )
        self._clock = clock

    def reserve(self, session: RecordingSession) -> None:
        """
        Registers a session.

        Raises:
            RecordingAlreadyExistsError: If the id is already active.
        """
        with self._lock:
            if session.recording_id in self._sessions:
                raise RecordingAlreadyExistsError(session.recording_id)
            self._sessions[session.recording_id] = session

    def pop(self, recording_id: str) -> RecordingSession:
        """
        Removes and returns a session.

        Raises:
            RecordingNotFoundError: If the id is not active.
        """
        with self._lock:
            session = self._sessions.pop(recording_id, None)
        if session is None:
            raise RecordingNotFoundError(recording_id)
        return session

    def pop_expired(self) -> list[RecordingSession]:
        """Removes and returns every session older than the configured maximum age."""
        if self._max_age is None:
            return []
        cutoff = self._clock() - self._max_age
        with self._lock:
            expired = [s for s in self._sessions.values() if s.started_at <= cutoff]
            for session in expired:
                del self._sessions[session.recording_id]
        return expired

    def release(self, recording_id: str) -> None:
        """Drops a reservation if present."""
        with self._lock:
            self._sessions.pop(recording_id, None)

    def get(self, recording_id: str) -> RecordingSession | None:
        with self._lock:
            return self._sessions.get(recording_id)

    def active_ids(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
