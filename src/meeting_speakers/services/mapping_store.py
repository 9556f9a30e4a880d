"""Mapping Store - the editable speaker mapping collection for one transcription.

Responsible for:
- Merging detected speaker labels with previously saved mappings
- Field updates, adding manual speakers, guarded removal
- Computing "has unsaved changes" against the initialization snapshot

Recoverable failures never raise: they are recorded as the store's single
current ``error`` and cleared by the next successful mutation, so callers in
an interactive loop always stay usable.
"""

import re
from typing import Iterable, Optional, Union

import structlog

from meeting_speakers.errors import LastEntityError, SpeakerMappingError, SpeakerNotFoundError
from meeting_speakers.models import MappingField, SpeakerFields, SpeakerMapping, SpeakerSource

logger = structlog.get_logger()

SPEAKER_ID_PATTERN = re.compile(r"^Speaker (\d+)$")


def next_speaker_number(speaker_ids: Iterable[str]) -> int:
    """One more than the highest N among ids shaped like ``Speaker N`` (1 if none)."""
    numbers = [
        int(match.group(1))
        for match in (SPEAKER_ID_PATTERN.match(sid) for sid in speaker_ids)
        if match
    ]
    return max(numbers, default=0) + 1


class MappingStore:
    """Canonical speaker mapping collection for a single transcription."""

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        """Drop all state, as if never initialized."""
        self.transcription_id: Optional[str] = None
        self.mappings: list[SpeakerMapping] = []
        self.detected_speakers: list[str] = []
        self.existing_mappings: list[SpeakerMapping] = []
        self.next_speaker_id: int = 1
        self.error: Optional[SpeakerMappingError] = None
        self._original: dict[str, SpeakerFields] = {}

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def initialize(
        self,
        detected_speaker_ids: list[str],
        existing_mappings: Optional[list[SpeakerMapping]] = None,
        transcription_id: str = "",
    ) -> list[SpeakerMapping]:
        """Build the collection from detected labels and saved mappings.

        Detected speakers adopt a saved name/role when one exists. Manually
        added speakers from the saved set that were not detected are appended
        after them.

        Args:
            detected_speaker_ids: Raw labels from the transcription result
            existing_mappings: Previously saved mappings, if any
            transcription_id: Owning transcription

        Returns:
            The merged mapping list
        """
        existing_mappings = list(existing_mappings or [])
        detected = list(dict.fromkeys(detected_speaker_ids))
        existing_by_id = {m.speaker_id: m for m in existing_mappings}

        merged: list[SpeakerMapping] = []
        for speaker_id in detected:
            existing = existing_by_id.get(speaker_id)
            merged.append(SpeakerMapping(
                speaker_id=speaker_id,
                name=existing.name if existing else "",
                role=existing.role if existing else "",
                source=existing.source if existing else SpeakerSource.AUTO_DETECTED,
                transcription_id=transcription_id,
            ))

        seen = set(detected)
        for existing in existing_mappings:
            if existing.is_manual and existing.speaker_id not in seen:
                seen.add(existing.speaker_id)
                merged.append(SpeakerMapping(
                    speaker_id=existing.speaker_id,
                    name=existing.name,
                    role=existing.role,
                    source=SpeakerSource.MANUALLY_ADDED,
                    transcription_id=transcription_id,
                ))

        self.transcription_id = transcription_id
        self.detected_speakers = detected
        self.existing_mappings = existing_mappings
        self.mappings = merged
        self._original = {m.speaker_id: m.fields for m in merged}
        self.next_speaker_id = next_speaker_number(m.speaker_id for m in merged)
        self.error = None

        logger.debug(
            "mappings_initialized",
            transcription_id=transcription_id,
            speaker_count=len(merged),
            next_speaker_id=self.next_speaker_id,
        )
        return self.mappings

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def speaker_ids(self) -> list[str]:
        """Speaker ids in display order."""
        return [m.speaker_id for m in self.mappings]

    @property
    def original_speaker_ids(self) -> list[str]:
        """Speaker ids present at initialization."""
        return list(self._original)

    @property
    def error_message(self) -> Optional[str]:
        """Message of the current error, if any."""
        return self.error.message if self.error else None

    def find(self, speaker_id: str) -> Optional[SpeakerMapping]:
        """Get the entry for a speaker id, if present."""
        for mapping in self.mappings:
            if mapping.speaker_id == speaker_id:
                return mapping
        return None

    def index_of(self, speaker_id: str) -> int:
        """Position of a speaker id, or -1."""
        for index, mapping in enumerate(self.mappings):
            if mapping.speaker_id == speaker_id:
                return index
        return -1

    def original_fields(self, speaker_id: str) -> Optional[SpeakerFields]:
        """Name/role of a speaker at initialization, if it existed then."""
        return self._original.get(speaker_id)

    def can_remove(self) -> bool:
        """Whether removing one entry keeps the collection non-empty."""
        return len(self.mappings) > 1

    def has_changes(self, current: Optional[list[SpeakerMapping]] = None) -> bool:
        """Whether ``current`` (default: the live collection) differs from initialization.

        True when a speaker present at initialization is gone, or when any
        entry's name or role differs from its initialization value, or when
        a speaker added since then has been given a name. Always recomputed.
        """
        current = self.mappings if current is None else current
        current_ids = {m.speaker_id for m in current}

        if any(sid not in current_ids for sid in self._original):
            return True

        for mapping in current:
            original = self._original.get(mapping.speaker_id)
            if original is None:
                if mapping.is_mapped:
                    return True
            elif mapping.name != original.name or mapping.role != original.role:
                return True
        return False

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def update(self, speaker_id: str, field: Union[MappingField, str], value: str) -> bool:
        """Replace the name or role of one entry.

        Returns:
            False (and records the error) when the id or the field is unknown
        """
        try:
            field = MappingField(field)
        except ValueError:
            return self._fail(SpeakerMappingError(f"Unknown field: {field}"))

        mapping = self.find(speaker_id)
        if mapping is None:
            return self._fail(SpeakerNotFoundError(speaker_id))

        setattr(mapping, field.value, value)
        self.error = None
        return True

    def set_fields(self, speaker_id: str, fields: SpeakerFields) -> bool:
        """Write a whole name/role pair back into one entry."""
        mapping = self.find(speaker_id)
        if mapping is None:
            return self._fail(SpeakerNotFoundError(speaker_id))

        mapping.name = fields.name
        mapping.role = fields.role
        self.error = None
        return True

    def add(self) -> SpeakerMapping:
        """Append a blank, manually added speaker with the next free ``Speaker N`` id."""
        mapping = SpeakerMapping(
            speaker_id=f"Speaker {self.next_speaker_id}",
            source=SpeakerSource.MANUALLY_ADDED,
            transcription_id=self.transcription_id or "",
        )
        # Skip over an id that collides with a non-numbered label
        while self.find(mapping.speaker_id) is not None:
            self.next_speaker_id += 1
            mapping.speaker_id = f"Speaker {self.next_speaker_id}"

        self.mappings.append(mapping)
        self.next_speaker_id += 1
        self.error = None
        logger.debug("speaker_added", speaker_id=mapping.speaker_id)
        return mapping

    def remove(self, speaker_id: str) -> bool:
        """Remove one entry immediately.

        Interactive callers go through the confirmation flow of
        ``EditModeController.request_remove`` rather than calling this directly.

        Returns:
            False (and records the error) when the id is unknown or it is
            the last remaining entry
        """
        index = self.index_of(speaker_id)
        if index < 0:
            return self._fail(SpeakerNotFoundError(speaker_id))
        return self.remove_at(index)

    def remove_at(self, index: int) -> bool:
        """Remove the entry at a display position; see ``remove``."""
        if not 0 <= index < len(self.mappings):
            return self._fail(SpeakerNotFoundError(
                str(index), f"No speaker at position {index}"
            ))
        if not self.can_remove():
            return self._fail(LastEntityError())

        removed = self.mappings.pop(index)
        self.error = None
        logger.debug("speaker_removed", speaker_id=removed.speaker_id)
        return True

    def _fail(self, error: SpeakerMappingError) -> bool:
        self.error = error
        logger.info("mapping_operation_rejected", reason=type(error).__name__)
        return False
