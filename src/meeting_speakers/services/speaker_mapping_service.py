"""Speaker Mapping Service - the operations the presentation layer calls.

Wires one edit-form MappingStore (with its EditModeController) to the saved
mapping registry and the session override machinery. One instance per
application; nothing here is module-level state.
"""

from datetime import datetime
from typing import Any, Callable, Optional, Union

import structlog

from meeting_speakers.config import Settings, get_settings
from meeting_speakers.errors import SpeakerMappingError
from meeting_speakers.models import (
    FieldError,
    MappingField,
    OverriddenSpeakerMapping,
    SessionOverrideTracker,
    SessionStatus,
    SpeakerMapping,
    SpeakerMappingSet,
    TranscriptionResult,
    utc_now,
)
from meeting_speakers.services.edit_mode import EditModeController
from meeting_speakers.services.mapping_registry import MappingRegistry
from meeting_speakers.services.mapping_store import MappingStore
from meeting_speakers.services.override_tracker import OverrideTracker
from meeting_speakers.services.session_lifecycle import SessionLifecycleManager
from meeting_speakers.services.speaker_resolution import (
    Summarizer,
    apply_speaker_mappings,
    resolve_mappings,
)
from meeting_speakers.services.validation import MappingValidator

logger = structlog.get_logger()


class SpeakerMappingService:
    """Facade over the mapping store, edit controller, overrides and session lifecycle."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the service.

        Args:
            settings: Application settings (global settings if not provided)
            clock: Source of the current UTC time
        """
        self.settings = settings or get_settings()
        self.validator = MappingValidator.from_settings(self.settings)
        self.store = MappingStore()
        self.editor = EditModeController(self.store, self.validator)
        self.registry = MappingRegistry(self.validator, clock=clock)
        self.tracker = OverrideTracker(
            self.registry,
            baseline_role=self.settings.baseline_role,
            clock=clock,
        )
        self.lifecycle = SessionLifecycleManager.from_settings(
            self.tracker, self.settings, clock=clock
        )
        self.lifecycle.add_purge_listener(self._on_session_purged)

    # ------------------------------------------------------------------
    # Edit form
    # ------------------------------------------------------------------

    def initialize_mappings(
        self,
        speaker_labels: list[str],
        existing_mappings: Optional[list[SpeakerMapping]],
        transcription_id: str,
    ) -> None:
        """Load the edit form for a transcription.

        When ``existing_mappings`` is None the registry's saved set is used.
        """
        self.lifecycle.sweep()
        if existing_mappings is None:
            saved = self.registry.get(transcription_id)
            existing_mappings = list(saved.mappings) if saved else []
        self.editor.reset()
        self.store.initialize(speaker_labels, existing_mappings, transcription_id)

    def initialize_from_transcription(
        self,
        result: TranscriptionResult,
        existing_mappings: Optional[list[SpeakerMapping]] = None,
    ) -> None:
        """Load the edit form from a transcription result."""
        self.initialize_mappings(
            result.unique_speaker_labels, existing_mappings, result.transcription_id
        )

    @property
    def mappings(self) -> list[SpeakerMapping]:
        """Edit-form entries in display order."""
        return self.store.mappings

    @property
    def error(self) -> Optional[str]:
        """The store's current error message, if any."""
        return self.store.error_message

    @property
    def has_changes(self) -> bool:
        """Whether the edit form differs from what it was initialized with."""
        return self.store.has_changes()

    def update_mapping(self, speaker_id: str, field: Union[MappingField, str], value: str) -> None:
        """Set a name or role; unknown ids leave state unchanged and set ``error``."""
        self.store.update(speaker_id, field, value)

    def add_speaker(self) -> None:
        """Add a blank, manually added speaker."""
        self.store.add()

    def remove_speaker(self, index: int) -> None:
        """Ask for confirmation to remove the speaker at ``index``."""
        self.editor.request_remove(index)

    def confirm_remove(self) -> None:
        """Remove the speaker awaiting confirmation."""
        self.editor.confirm_remove()

    def cancel_remove(self) -> None:
        """Abandon a pending removal."""
        self.editor.cancel_remove()

    def start_edit(self, speaker_id: str) -> None:
        self.editor.start_edit(speaker_id)

    def save_edit(self, speaker_id: str) -> None:
        self.editor.save_edit(speaker_id)

    def commit_edit(self, speaker_id: str) -> list[FieldError]:
        return self.editor.commit_edit(speaker_id)

    def cancel_edit(self, speaker_id: str) -> None:
        self.editor.cancel_edit(speaker_id)

    def save_mappings(self) -> Optional[SpeakerMappingSet]:
        """Validate the edit form and save it to the registry.

        On success the form is re-initialized from the saved set, so it no
        longer reports unsaved changes.

        Returns:
            The saved set, or None if validation failed or saving was refused
        """
        self.lifecycle.sweep()
        if not self.store.mappings or not self.editor.validate_all():
            return None

        transcription_id = self.store.transcription_id or ""
        try:
            saved = self.registry.save(transcription_id, self.store.mappings)
        except SpeakerMappingError as e:
            self.store.error = e
            return None

        self.store.initialize(self.store.detected_speakers, list(saved.mappings), transcription_id)
        self.editor.cancel_remove()
        return saved

    # ------------------------------------------------------------------
    # Session overrides
    # ------------------------------------------------------------------

    def apply_override(
        self,
        session_id: str,
        speaker_id: str,
        name: str,
        role: str = "",
    ) -> list[SpeakerMapping]:
        """Override a speaker for the session, on the edit form's transcription."""
        return self.lifecycle.apply_override(
            session_id, self.store.transcription_id or "", speaker_id, name, role
        )

    def revert_override(self, session_id: str, speaker_id: str) -> list[SpeakerMapping]:
        return self.lifecycle.revert_override(session_id, speaker_id)

    def revert_all(self, session_id: str) -> None:
        """Revert every override in the session (the "Revert to Original" control)."""
        reverted = self.lifecycle.revert_all(session_id)
        logger.info("overrides_reverted", session_id=session_id, count=len(reverted))

    def get_override_info(self, session_id: str) -> Optional[SessionOverrideTracker]:
        return self.lifecycle.get_override_info(session_id)

    def get_session_status(self, session_id: str) -> Optional[SessionStatus]:
        return self.lifecycle.get_session_status(session_id)

    def extend_session(self, session_id: str, minutes: Optional[int] = None) -> SessionStatus:
        return self.lifecycle.extend_session(session_id, minutes)

    def clear_session(self, session_id: str) -> bool:
        """Purge all data for a session (the "clear all data" control)."""
        return self.lifecycle.clear_session(session_id)

    def delete_mappings(self, transcription_id: str) -> bool:
        """Delete a transcription's saved mappings and any sessions bound to it."""
        return self.lifecycle.delete_transcription(transcription_id)

    # ------------------------------------------------------------------
    # Summarizer hand-off
    # ------------------------------------------------------------------

    def resolved_mapping(self, session_id: Optional[str] = None) -> list[SpeakerMapping]:
        """Edit-form mappings with the session's active overrides applied."""
        overrides: list[SpeakerMapping] = []
        if session_id is not None:
            info = self.lifecycle.get_override_info(session_id)
            if info is not None and info.transcription_id == self.store.transcription_id:
                overrides = [
                    m for m in self.tracker.effective_mappings(session_id)
                    if isinstance(m, OverriddenSpeakerMapping) and m.is_overridden
                ]
        return resolve_mappings(self.store.mappings, overrides)

    def resolve_transcript(self, transcript: str, session_id: Optional[str] = None) -> str:
        """Transcript text with speaker labels replaced by resolved names."""
        return apply_speaker_mappings(transcript, self.resolved_mapping(session_id))

    def summarize(
        self,
        summarizer: Summarizer,
        transcript: str,
        session_id: Optional[str] = None,
    ) -> Any:
        """Pass the transcript and resolved mapping to a summarizer."""
        return summarizer.summarize(transcript, self.resolved_mapping(session_id))

    def _on_session_purged(self, session_id: str, transcription_id: str) -> None:
        if transcription_id and transcription_id == self.store.transcription_id:
            self.editor.reset()
            self.store.reset()
            logger.info(
                "edit_form_reset",
                session_id=session_id,
                transcription_id=transcription_id,
            )
