"""Field-level validation results."""

from pydantic import Field

from meeting_speakers.models.base import SpeakerModel
from meeting_speakers.models.speaker_mapping import MappingField


class FieldError(SpeakerModel):
    """A single rule violation on one field of a mapping."""

    field: MappingField
    message: str = Field(..., description="Human-readable message for inline display")
