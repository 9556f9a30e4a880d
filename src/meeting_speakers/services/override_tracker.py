"""Override Tracker - session-scoped, reversible corrections of speaker mappings.

Each session keeps only the latest action per speaker, so memory stays
bounded no matter how often a name is toggled. The action always carries the
values that were in place before the speaker was first overridden, so a
revert can restore them.
"""

from datetime import datetime
from typing import Callable, Optional

import structlog

from meeting_speakers.errors import SessionNotFoundError, SpeakerMappingError, SpeakerNotFoundError
from meeting_speakers.models import (
    OverriddenSpeakerMapping,
    OverrideAction,
    OverrideActionType,
    SessionOverrideTracker,
    SpeakerFields,
    SpeakerMapping,
    SpeakerSource,
    utc_now,
)
from meeting_speakers.services.mapping_registry import MappingRegistry

logger = structlog.get_logger()


class OverrideTracker:
    """Applies and reverts session overrides against a MappingRegistry."""

    def __init__(
        self,
        registry: MappingRegistry,
        baseline_role: str = "Participant",
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the tracker.

        Args:
            registry: Saved mappings the overrides apply to
            baseline_role: Role given to a speaker synthesized for an override
            clock: Source of the current UTC time
        """
        self.registry = registry
        self.baseline_role = baseline_role
        self._clock = clock
        self._trackers: dict[str, SessionOverrideTracker] = {}

    @property
    def session_ids(self) -> list[str]:
        """Sessions with live override state."""
        return list(self._trackers)

    def trackers(self) -> list[SessionOverrideTracker]:
        """All live session trackers."""
        return list(self._trackers.values())

    def get_override_info(self, session_id: str) -> Optional[SessionOverrideTracker]:
        """Get the tracker for a session, or None if it has none."""
        return self._trackers.get(session_id)

    def touch(self, session_id: str) -> bool:
        """Record activity on a session without changing its overrides."""
        tracker = self._trackers.get(session_id)
        if tracker is None:
            return False
        tracker.last_activity = self._clock()
        return True

    def effective_mappings(self, session_id: str) -> list[SpeakerMapping]:
        """Current mappings for the session's transcription, overrides applied."""
        tracker = self._require_tracker(session_id)
        mapping_set = self.registry.get(tracker.transcription_id)
        return list(mapping_set.mappings) if mapping_set else []

    # ------------------------------------------------------------------
    # Override / revert
    # ------------------------------------------------------------------

    def apply_override(
        self,
        session_id: str,
        transcription_id: str,
        speaker_id: str,
        new_name: str,
        new_role: str = "",
    ) -> list[SpeakerMapping]:
        """Override a speaker's name and role for this session.

        A speaker with no saved mapping gets a baseline one first, named after
        its raw label, so every override has something to revert to.

        Returns:
            The transcription's mappings with the override applied

        Raises:
            SessionNotFoundError: If the session is bound to another transcription
        """
        now = self._clock()
        tracker = self._get_or_create_tracker(session_id, transcription_id, now)

        mapping_set = self.registry.get(transcription_id)
        mappings = list(mapping_set.mappings) if mapping_set else []

        index = next((i for i, m in enumerate(mappings) if m.speaker_id == speaker_id), -1)
        if index < 0:
            mappings.append(self._baseline_mapping(speaker_id, transcription_id))
            index = len(mappings) - 1
            logger.debug(
                "baseline_mapping_created",
                session_id=session_id,
                transcription_id=transcription_id,
                speaker_id=speaker_id,
            )

        current = mappings[index]
        if isinstance(current, OverriddenSpeakerMapping) and current.is_overridden:
            original = current.original_fields
        else:
            original = current.fields
        new_value = SpeakerFields(name=new_name, role=new_role)

        mappings[index] = OverriddenSpeakerMapping(
            speaker_id=speaker_id,
            name=new_name,
            role=new_role,
            source=current.source,
            transcription_id=transcription_id,
            original_name=original.name,
            original_role=original.role,
            session_id=session_id,
            session_timestamp=now,
        )
        tracker.actions[speaker_id] = OverrideAction(
            speaker_id=speaker_id,
            action=OverrideActionType.OVERRIDE,
            original_value=original,
            new_value=new_value,
            timestamp=now,
        )
        tracker.last_activity = now

        self.registry.put(transcription_id, mappings)
        logger.info(
            "override_applied",
            session_id=session_id,
            transcription_id=transcription_id,
            speaker_id=speaker_id,
        )
        return mappings

    def revert_override(self, session_id: str, speaker_id: str) -> list[SpeakerMapping]:
        """Restore the values a speaker had before it was overridden.

        Reverting a speaker whose latest action is already a revert changes
        nothing.

        Returns:
            The transcription's mappings after the revert

        Raises:
            SessionNotFoundError: If the session is unknown
            SpeakerNotFoundError: If the session never overrode this speaker
        """
        tracker = self._require_tracker(session_id)
        action = tracker.actions.get(speaker_id)
        if action is None:
            raise SpeakerNotFoundError(
                speaker_id, f"No override for speaker {speaker_id} in session {session_id}"
            )

        now = self._clock()
        tracker.last_activity = now

        transcription_id = tracker.transcription_id
        mapping_set = self.registry.get(transcription_id)
        mappings = list(mapping_set.mappings) if mapping_set else []
        if not action.is_override:
            return mappings

        restored = action.original_value
        index = next((i for i, m in enumerate(mappings) if m.speaker_id == speaker_id), -1)
        current = mappings[index] if index >= 0 else None
        reverted = SpeakerMapping(
            speaker_id=speaker_id,
            name=restored.name,
            role=restored.role,
            source=current.source if current else SpeakerSource.AUTO_DETECTED,
            transcription_id=transcription_id,
        )
        if index >= 0:
            mappings[index] = reverted
        else:
            mappings.append(reverted)

        tracker.actions[speaker_id] = OverrideAction(
            speaker_id=speaker_id,
            action=OverrideActionType.REVERT,
            original_value=current.fields if current else action.new_value,
            new_value=restored,
            timestamp=now,
        )

        self.registry.put(transcription_id, mappings)
        logger.info(
            "override_reverted",
            session_id=session_id,
            transcription_id=transcription_id,
            speaker_id=speaker_id,
        )
        return mappings

    def revert_all(self, session_id: str) -> list[str]:
        """Revert every speaker currently overridden in the session.

        Reverts are independent; one failing does not stop the rest.

        Returns:
            Speaker ids that were reverted

        Raises:
            SessionNotFoundError: If the session is unknown
        """
        tracker = self._require_tracker(session_id)
        reverted: list[str] = []
        for speaker_id in tracker.overridden_speaker_ids:
            try:
                self.revert_override(session_id, speaker_id)
            except SpeakerMappingError as e:
                logger.warning(
                    "override_revert_failed",
                    session_id=session_id,
                    speaker_id=speaker_id,
                    error=e.message,
                )
                continue
            reverted.append(speaker_id)
        return reverted

    # ------------------------------------------------------------------
    # Purging
    # ------------------------------------------------------------------

    def clear_session(self, session_id: str) -> bool:
        """Remove a session's tracker and the mappings of its transcription.

        Returns:
            False if the session did not exist
        """
        tracker = self._trackers.pop(session_id, None)
        if tracker is None:
            return False

        if tracker.transcription_id:
            self.registry.delete(tracker.transcription_id)
        logger.info(
            "session_cleared",
            session_id=session_id,
            transcription_id=tracker.transcription_id,
        )
        return True

    def drop_transcription(self, transcription_id: str) -> list[str]:
        """Remove every tracker bound to a transcription.

        Returns:
            Session ids whose trackers were removed
        """
        dropped = [
            sid for sid, tracker in self._trackers.items()
            if tracker.transcription_id == transcription_id
        ]
        for session_id in dropped:
            del self._trackers[session_id]
        return dropped

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_tracker(self, session_id: str) -> SessionOverrideTracker:
        tracker = self._trackers.get(session_id)
        if tracker is None:
            raise SessionNotFoundError(session_id)
        return tracker

    def _get_or_create_tracker(
        self,
        session_id: str,
        transcription_id: str,
        now: datetime,
    ) -> SessionOverrideTracker:
        tracker = self._trackers.get(session_id)
        if tracker is None:
            tracker = SessionOverrideTracker(
                session_id=session_id,
                transcription_id=transcription_id,
                session_started=now,
                last_activity=now,
            )
            self._trackers[session_id] = tracker
            logger.info("session_started", session_id=session_id, transcription_id=transcription_id)
        elif tracker.transcription_id != transcription_id:
            raise SessionNotFoundError(
                session_id,
                f"Session {session_id} is not bound to transcription {transcription_id}",
            )
        return tracker

    def _baseline_mapping(self, speaker_id: str, transcription_id: str) -> SpeakerMapping:
        return SpeakerMapping(
            speaker_id=speaker_id,
            name=speaker_id,
            role=self.baseline_role,
            source=SpeakerSource.AUTO_DETECTED,
            transcription_id=transcription_id,
        )
