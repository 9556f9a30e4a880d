"""Session Lifecycle Manager - idle expiry and purging of session override state.

A session is active while it has been idle for less than its timeout, in
the warning state during the last stretch before expiry, and expired after
that. Expired sessions are purged by a sweep that runs on every access;
a session may sit logically expired until the next access, which is harmless
because purging is idempotent.

Tracking is lazy: a session only exists here once it has made an override.
"""

from datetime import datetime, timedelta
from typing import Callable, Optional

import structlog

from meeting_speakers.config import Settings, get_settings
from meeting_speakers.errors import SessionNotFoundError
from meeting_speakers.models import (
    SessionOverrideTracker,
    SessionState,
    SessionStatus,
    SpeakerMapping,
    ensure_utc,
    utc_now,
)
from meeting_speakers.services.override_tracker import OverrideTracker

logger = structlog.get_logger()

# Called with (session_id, transcription_id) after a session is purged
PurgeListener = Callable[[str, str], None]


class SessionLifecycleManager:
    """Owns session expiry around an OverrideTracker."""

    def __init__(
        self,
        tracker: OverrideTracker,
        session_timeout: timedelta = timedelta(hours=2),
        warning_threshold: timedelta = timedelta(minutes=5),
        extension_step: timedelta = timedelta(minutes=15),
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the manager.

        Args:
            tracker: Override tracker whose sessions this manager expires
            session_timeout: Idle time after which a session expires
            warning_threshold: Window before expiry reported as the warning state
            extension_step: Time added by one default "extend session"
            clock: Source of the current UTC time
        """
        self.tracker = tracker
        self.session_timeout = session_timeout
        self.warning_threshold = warning_threshold
        self.extension_step = extension_step
        self._clock = clock
        self._extensions: dict[str, timedelta] = {}
        self._listeners: list[PurgeListener] = []

    @classmethod
    def from_settings(
        cls,
        tracker: OverrideTracker,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> "SessionLifecycleManager":
        """Build a manager with timings from application settings."""
        settings = settings or get_settings()
        return cls(
            tracker,
            session_timeout=settings.session_timeout,
            warning_threshold=settings.warning_threshold,
            extension_step=settings.extension_step,
            clock=clock,
        )

    def add_purge_listener(self, listener: PurgeListener) -> None:
        """Register a callback run after every purge."""
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # State computation
    # ------------------------------------------------------------------

    def effective_timeout(self, session_id: str) -> timedelta:
        """Base timeout plus all extensions granted to the session."""
        return self.session_timeout + self._extensions.get(session_id, timedelta(0))

    def remaining(self, session: SessionOverrideTracker, now: Optional[datetime] = None) -> timedelta:
        """Time left before the session expires (negative once expired)."""
        now = now or self._clock()
        idle = now - ensure_utc(session.last_activity)
        return self.effective_timeout(session.session_id) - idle

    def state_of(self, session: SessionOverrideTracker, now: Optional[datetime] = None) -> SessionState:
        """Classify a session as active, warning or expired."""
        remaining = self.remaining(session, now)
        if remaining <= timedelta(0):
            return SessionState.EXPIRED
        if remaining <= self.warning_threshold:
            return SessionState.WARNING
        return SessionState.ACTIVE

    def sweep(self) -> list[str]:
        """Purge every expired session.

        Returns:
            Ids of the purged sessions
        """
        now = self._clock()
        expired = [
            session.session_id
            for session in self.tracker.trackers()
            if self.state_of(session, now) == SessionState.EXPIRED
        ]
        for session_id in expired:
            logger.info("session_expired", session_id=session_id)
            self._purge(session_id)
        return expired

    # ------------------------------------------------------------------
    # Tracked operations
    # ------------------------------------------------------------------

    def apply_override(
        self,
        session_id: str,
        transcription_id: str,
        speaker_id: str,
        new_name: str,
        new_role: str = "",
    ) -> list[SpeakerMapping]:
        """Sweep, then apply an override (creating the session if needed)."""
        self.sweep()
        return self.tracker.apply_override(
            session_id, transcription_id, speaker_id, new_name, new_role
        )

    def revert_override(self, session_id: str, speaker_id: str) -> list[SpeakerMapping]:
        """Sweep, then revert one speaker's override."""
        self.sweep()
        return self.tracker.revert_override(session_id, speaker_id)

    def revert_all(self, session_id: str) -> list[str]:
        """Sweep, then revert every override in the session."""
        self.sweep()
        return self.tracker.revert_all(session_id)

    def get_override_info(self, session_id: str) -> Optional[SessionOverrideTracker]:
        """Sweep, then return the session's tracker, counting as activity."""
        self.sweep()
        self.tracker.touch(session_id)
        return self.tracker.get_override_info(session_id)

    def get_session_status(self, session_id: str) -> Optional[SessionStatus]:
        """Sweep, then describe the session; None if it has none or has expired.

        Reading status does not count as activity.
        """
        self.sweep()
        session = self.tracker.get_override_info(session_id)
        if session is None:
            return None

        now = self._clock()
        extension = self._extensions.get(session_id, timedelta(0))
        return SessionStatus(
            session_id=session.session_id,
            transcription_id=session.transcription_id,
            state=self.state_of(session, now),
            last_activity=session.last_activity,
            session_started=session.session_started,
            remaining=self.remaining(session, now),
            extension_minutes=int(extension.total_seconds() // 60),
            override_count=session.override_count,
            active_override_count=len(session.overridden_speaker_ids),
        )

    def extend_session(self, session_id: str, minutes: Optional[int] = None) -> SessionStatus:
        """Add time to the session's timeout without touching its last activity.

        Extensions accumulate, so repeated extensions compose predictably.

        Raises:
            SessionNotFoundError: If the session is unknown or already expired
        """
        self.sweep()
        if self.tracker.get_override_info(session_id) is None:
            raise SessionNotFoundError(session_id)

        step = timedelta(minutes=minutes) if minutes is not None else self.extension_step
        if step <= timedelta(0):
            raise ValueError("Extension must be positive")
        self._extensions[session_id] = self._extensions.get(session_id, timedelta(0)) + step
        logger.info(
            "session_extended",
            session_id=session_id,
            extension_minutes=int(self._extensions[session_id].total_seconds() // 60),
        )
        return self.get_session_status(session_id)

    # ------------------------------------------------------------------
    # Explicit purging
    # ------------------------------------------------------------------

    def clear_session(self, session_id: str) -> bool:
        """Purge a session immediately, whatever its state.

        Returns:
            False if the session did not exist
        """
        cleared = self._purge(session_id)
        self.sweep()
        return cleared

    clear_all_data = clear_session

    def delete_transcription(self, transcription_id: str) -> bool:
        """Delete a transcription's saved mappings and every session bound to it.

        Returns:
            True if saved mappings existed
        """
        self.sweep()
        for session_id in self.tracker.drop_transcription(transcription_id):
            self._extensions.pop(session_id, None)
            self._notify(session_id, transcription_id)
        return self.tracker.registry.delete(transcription_id)

    def _purge(self, session_id: str) -> bool:
        session = self.tracker.get_override_info(session_id)
        self._extensions.pop(session_id, None)
        if not self.tracker.clear_session(session_id):
            return False
        self._notify(session_id, session.transcription_id)
        return True

    def _notify(self, session_id: str, transcription_id: str) -> None:
        for listener in self._listeners:
            listener(session_id, transcription_id)
