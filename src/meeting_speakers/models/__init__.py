"""Data models for the Meeting Speaker Mapping System.

All entities use Pydantic for validation and serialization. Nothing here is
ever written to disk; every instance lives for at most one session.
"""

from meeting_speakers.models.base import SpeakerModel, utc_now, ensure_utc
from meeting_speakers.models.speaker_mapping import (
    MappingField,
    OverriddenSpeakerMapping,
    SpeakerFields,
    SpeakerMapping,
    SpeakerMappingSet,
    SpeakerSource,
)
from meeting_speakers.models.validation import FieldError
from meeting_speakers.models.override import (
    OverrideAction,
    OverrideActionType,
    SessionOverrideTracker,
    SessionState,
    SessionStatus,
)
from meeting_speakers.models.transcription import TranscriptionResult

__all__ = [
    # Base
    "SpeakerModel",
    "utc_now",
    "ensure_utc",
    # Speaker Mapping
    "MappingField",
    "OverriddenSpeakerMapping",
    "SpeakerFields",
    "SpeakerMapping",
    "SpeakerMappingSet",
    "SpeakerSource",
    # Validation
    "FieldError",
    # Override
    "OverrideAction",
    "OverrideActionType",
    "SessionOverrideTracker",
    "SessionState",
    "SessionStatus",
    # Transcription
    "TranscriptionResult",
]
