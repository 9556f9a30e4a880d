"""Edit-Mode Controller - per-speaker edit sessions and two-step removal.

Each speaker is either idle or editing. Starting an edit snapshots the
current name/role; cancelling writes the snapshot back, saving discards it.
Removal goes through a pending confirmation so nothing is deleted without
an explicit confirm.
"""

from dataclasses import dataclass
from typing import Optional, Union

import structlog

from meeting_speakers.errors import LastEntityError, SpeakerNotFoundError
from meeting_speakers.models import FieldError, SpeakerFields
from meeting_speakers.services.mapping_store import MappingStore
from meeting_speakers.services.validation import MappingValidator

logger = structlog.get_logger()


@dataclass(frozen=True)
class EditSession:
    """Snapshot taken when editing of one speaker starts."""

    speaker_id: str
    original_snapshot: SpeakerFields


@dataclass(frozen=True)
class NoPendingDelete:
    """No removal awaiting confirmation."""

    open: bool = False


@dataclass(frozen=True)
class PendingDelete:
    """A removal awaiting confirmation."""

    speaker_index: int
    speaker_id: str
    speaker_name: str
    open: bool = True


DeleteConfirmation = Union[NoPendingDelete, PendingDelete]

NO_PENDING_DELETE = NoPendingDelete()


class EditModeController:
    """Layers edit sessions, validation errors and delete confirmation on a MappingStore."""

    def __init__(self, store: MappingStore, validator: Optional[MappingValidator] = None):
        """Initialize the controller.

        Args:
            store: The mapping store being edited
            validator: Field rules used by ``commit_edit`` and ``validate_all``
        """
        self.store = store
        self.validator = validator or MappingValidator()
        self._sessions: dict[str, EditSession] = {}
        self.validation_errors: dict[str, list[FieldError]] = {}
        self.delete_confirmation: DeleteConfirmation = NO_PENDING_DELETE

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def is_editing(self, speaker_id: str) -> bool:
        """Whether a speaker is in the editing state."""
        return speaker_id in self._sessions

    @property
    def editing_speaker_ids(self) -> list[str]:
        """Speakers currently being edited."""
        return list(self._sessions)

    @property
    def has_active_edits(self) -> bool:
        """Whether any speaker is being edited."""
        return bool(self._sessions)

    @property
    def has_validation_errors(self) -> bool:
        """Whether any speaker has outstanding validation errors."""
        return bool(self.validation_errors)

    def get_validation_errors(self, speaker_id: str) -> list[FieldError]:
        """Outstanding validation errors for one speaker."""
        return self.validation_errors.get(speaker_id, [])

    def reset(self) -> None:
        """Abandon all edit sessions, errors and pending removals."""
        self._sessions.clear()
        self.validation_errors.clear()
        self.delete_confirmation = NO_PENDING_DELETE

    # ------------------------------------------------------------------
    # Edit sessions
    # ------------------------------------------------------------------

    def start_edit(self, speaker_id: str) -> bool:
        """Move a speaker from idle to editing, snapshotting its current values.

        Starting an edit that is already in progress keeps the first snapshot.

        Returns:
            False when the speaker id is unknown to the store
        """
        if speaker_id in self._sessions:
            return True

        mapping = self.store.find(speaker_id)
        if mapping is None:
            self.store.error = SpeakerNotFoundError(speaker_id)
            return False

        self._sessions[speaker_id] = EditSession(
            speaker_id=speaker_id,
            original_snapshot=mapping.fields,
        )
        self.validation_errors.pop(speaker_id, None)
        logger.debug("edit_started", speaker_id=speaker_id)
        return True

    def save_edit(self, speaker_id: str) -> None:
        """Keep the edited values and return to idle.

        Does not validate; use ``commit_edit`` to gate the save on the field rules.
        """
        self._sessions.pop(speaker_id, None)
        self.validation_errors.pop(speaker_id, None)

    def commit_edit(self, speaker_id: str) -> list[FieldError]:
        """Validate the speaker and save the edit only if it passes.

        Returns:
            The validation errors; empty means the edit was saved
        """
        mapping = self.store.find(speaker_id)
        if mapping is None:
            self.store.error = SpeakerNotFoundError(speaker_id)
            return []

        errors = self.validator.validate(mapping)
        if errors:
            self.validation_errors[speaker_id] = errors
            return errors

        self.save_edit(speaker_id)
        return []

    def cancel_edit(self, speaker_id: str) -> None:
        """Restore the snapshot taken at ``start_edit`` and return to idle.

        A no-op for a speaker that is not being edited.
        """
        session = self._sessions.pop(speaker_id, None)
        if session is None:
            return

        self.store.set_fields(speaker_id, session.original_snapshot)
        self.validation_errors.pop(speaker_id, None)
        logger.debug("edit_cancelled", speaker_id=speaker_id)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, speaker_id: str) -> list[FieldError]:
        """Validate one speaker and record the result."""
        mapping = self.store.find(speaker_id)
        if mapping is None:
            return []

        errors = self.validator.validate(mapping)
        if errors:
            self.validation_errors[speaker_id] = errors
        else:
            self.validation_errors.pop(speaker_id, None)
        return errors

    def validate_all(self) -> bool:
        """Validate every speaker, replacing the recorded errors.

        Returns:
            True when every speaker passes
        """
        self.validation_errors = self.validator.validate_all(self.store.mappings)
        return not self.validation_errors

    # ------------------------------------------------------------------
    # Two-step removal
    # ------------------------------------------------------------------

    def request_remove(self, index: int) -> bool:
        """Open a removal confirmation for the speaker at ``index``.

        Returns:
            False (with the error recorded on the store) when the speaker is
            the last one remaining or the index is out of range
        """
        mappings = self.store.mappings
        if not 0 <= index < len(mappings):
            self.store.error = SpeakerNotFoundError(str(index), f"No speaker at position {index}")
            return False
        if not self.store.can_remove():
            self.store.error = LastEntityError()
            return False

        mapping = mappings[index]
        self.delete_confirmation = PendingDelete(
            speaker_index=index,
            speaker_id=mapping.speaker_id,
            speaker_name=mapping.display_name,
        )
        return True

    def confirm_remove(self) -> bool:
        """Carry out the pending removal and close the confirmation.

        The speaker is looked up by id, so a collection reordered since the
        request still loses only the speaker that was confirmed.

        Returns:
            False when nothing was pending or the store refused the removal
        """
        pending = self.delete_confirmation
        self.delete_confirmation = NO_PENDING_DELETE
        if not isinstance(pending, PendingDelete):
            return False

        removed = self.store.remove(pending.speaker_id)
        if removed:
            self._sessions.pop(pending.speaker_id, None)
            self.validation_errors.pop(pending.speaker_id, None)
        return removed

    def cancel_remove(self) -> None:
        """Close any pending confirmation without removing anything."""
        self.delete_confirmation = NO_PENDING_DELETE
