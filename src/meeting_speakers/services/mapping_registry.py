"""Saved speaker mappings per transcription, held in memory only."""

from datetime import datetime
from typing import Callable, Iterable, Optional

import structlog

from meeting_speakers.errors import DuplicateSpeakerError, MappingValidationError
from meeting_speakers.models import SpeakerMapping, SpeakerMappingSet, utc_now
from meeting_speakers.services.validation import MappingValidator, find_duplicate_speaker_ids

logger = structlog.get_logger()


class MappingRegistry:
    """In-memory store of saved mapping sets, keyed by transcription id."""

    def __init__(
        self,
        validator: Optional[MappingValidator] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.validator = validator or MappingValidator()
        self._clock = clock
        self._sets: dict[str, SpeakerMappingSet] = {}

    def __contains__(self, transcription_id: str) -> bool:
        return transcription_id in self._sets

    def __len__(self) -> int:
        return len(self._sets)

    @property
    def transcription_ids(self) -> list[str]:
        """Transcriptions that currently have saved mappings."""
        return list(self._sets)

    def save(self, transcription_id: str, mappings: Iterable[SpeakerMapping]) -> SpeakerMappingSet:
        """Validate and save the mappings for a transcription, replacing any previous set.

        Raises:
            ValueError: If no mappings are given
            DuplicateSpeakerError: If a speaker id appears more than once
            MappingValidationError: If any mapping breaks the field rules
        """
        mappings = list(mappings)
        if not mappings:
            raise ValueError("At least one mapping is required")

        duplicates = find_duplicate_speaker_ids(mappings)
        if duplicates:
            raise DuplicateSpeakerError(duplicates)

        errors = self.validator.validate_all(mappings)
        if errors:
            raise MappingValidationError([e for field_errors in errors.values() for e in field_errors])

        mapping_set = self.put(transcription_id, [
            m.model_copy(update={"transcription_id": transcription_id}) for m in mappings
        ])
        logger.info(
            "mappings_saved",
            transcription_id=transcription_id,
            speaker_count=mapping_set.mapped_speaker_count,
        )
        return mapping_set

    def put(self, transcription_id: str, mappings: list[SpeakerMapping]) -> SpeakerMappingSet:
        """Store a mapping list as-is, without validation."""
        mapping_set = SpeakerMappingSet(
            transcription_id=transcription_id,
            mappings=mappings,
            last_updated=self._clock(),
        )
        self._sets[transcription_id] = mapping_set
        return mapping_set

    def get(self, transcription_id: str) -> Optional[SpeakerMappingSet]:
        """Get the saved set for a transcription, if any."""
        return self._sets.get(transcription_id)

    def delete(self, transcription_id: str) -> bool:
        """Forget the saved set for a transcription.

        Returns:
            True if a set was removed
        """
        removed = self._sets.pop(transcription_id, None) is not None
        if removed:
            logger.info("mappings_deleted", transcription_id=transcription_id)
        return removed
