"""Error taxonomy for speaker mapping operations.

All of these are recoverable: the worst outcome of any of them is that the
operation did not apply and state is unchanged.
"""

from meeting_speakers.models.validation import FieldError


class SpeakerMappingError(Exception):
    """Base class for speaker mapping errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MappingValidationError(SpeakerMappingError):
    """One or more fields failed validation."""

    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        details = "; ".join(e.message for e in self.errors) or "invalid mapping"
        super().__init__(f"Validation failed: {details}")


class LastEntityError(SpeakerMappingError):
    """Attempted to remove the only remaining speaker."""

    def __init__(self, message: str = (
        "Cannot remove the last remaining speaker. At least one speaker is required."
    )):
        super().__init__(message)


class SpeakerNotFoundError(SpeakerMappingError):
    """Operation referenced an unknown speaker id."""

    def __init__(self, speaker_id: str, message: str | None = None):
        self.speaker_id = speaker_id
        super().__init__(message or f"Speaker not found: {speaker_id}")


class SessionNotFoundError(SpeakerMappingError):
    """Operation referenced an unknown or expired session."""

    def __init__(self, session_id: str, message: str | None = None):
        self.session_id = session_id
        super().__init__(message or f"Session {session_id} not found")


class DuplicateSpeakerError(SpeakerMappingError):
    """A mapping set contained the same speaker id more than once."""

    def __init__(self, speaker_ids: list[str]):
        self.speaker_ids = list(speaker_ids)
        super().__init__(f"Duplicate speaker IDs found: {', '.join(self.speaker_ids)}")
