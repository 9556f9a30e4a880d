"""Validation Engine - pure field checks for speaker mappings.

Blank values are valid (they mean "not yet specified"); only values that are
too short once trimmed, or longer than the configured maximum, are rejected.
"""

from collections import Counter
from typing import Iterable, Optional, Union

from meeting_speakers.config import Settings, get_settings
from meeting_speakers.models import FieldError, MappingField, SpeakerFields, SpeakerMapping


Candidate = Union[SpeakerFields, SpeakerMapping]


class MappingValidator:
    """Checks candidate name/role pairs against the field rules."""

    def __init__(
        self,
        min_length: int = 2,
        max_name_length: int = 100,
        max_role_length: int = 50,
    ):
        """Initialize the validator.

        Args:
            min_length: Minimum trimmed length of a non-blank name or role
            max_name_length: Maximum length of a name
            max_role_length: Maximum length of a role
        """
        self.min_length = min_length
        self.max_name_length = max_name_length
        self.max_role_length = max_role_length

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "MappingValidator":
        """Build a validator from application settings."""
        settings = settings or get_settings()
        return cls(
            min_length=settings.min_field_length,
            max_name_length=settings.max_name_length,
            max_role_length=settings.max_role_length,
        )

    def validate(self, candidate: Candidate) -> list[FieldError]:
        """Validate one name/role pair.

        Args:
            candidate: Anything with ``name`` and ``role`` attributes

        Returns:
            Field errors, empty when the candidate passes
        """
        errors: list[FieldError] = []
        for field, value, max_length in (
            (MappingField.NAME, candidate.name, self.max_name_length),
            (MappingField.ROLE, candidate.role, self.max_role_length),
        ):
            error = self._check_field(field, value or "", max_length)
            if error is not None:
                errors.append(error)
        return errors

    def validate_all(self, mappings: Iterable[SpeakerMapping]) -> dict[str, list[FieldError]]:
        """Validate every mapping.

        Returns:
            Errors keyed by speaker id; only failing speakers appear, so an
            empty dict means everything passed
        """
        results: dict[str, list[FieldError]] = {}
        for mapping in mappings:
            errors = self.validate(mapping)
            if errors:
                results[mapping.speaker_id] = errors
        return results

    def _check_field(self, field: MappingField, value: str, max_length: int) -> Optional[FieldError]:
        label = field.value.capitalize()
        trimmed = value.strip()
        if trimmed and len(trimmed) < self.min_length:
            return FieldError(
                field=field,
                message=f"{label} must be at least {self.min_length} characters long",
            )
        if len(value) > max_length:
            return FieldError(
                field=field,
                message=f"{label} cannot exceed {max_length} characters",
            )
        return None


def find_duplicate_speaker_ids(mappings: Iterable[SpeakerMapping]) -> list[str]:
    """Speaker ids that appear more than once, in first-seen order."""
    counts = Counter(m.speaker_id for m in mappings)
    return [speaker_id for speaker_id, count in counts.items() if count > 1]


_default_validator = MappingValidator()


def validate(candidate: Candidate) -> list[FieldError]:
    """Validate one name/role pair with the default rules."""
    return _default_validator.validate(candidate)


def validate_all(mappings: Iterable[SpeakerMapping]) -> dict[str, list[FieldError]]:
    """Validate every mapping with the default rules."""
    return _default_validator.validate_all(mappings)
