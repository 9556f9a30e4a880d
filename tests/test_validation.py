"""Tests for the mapping field rules."""

import pytest

from meeting_speakers.config import Settings
from meeting_speakers.models import MappingField, SpeakerFields, SpeakerMapping
from meeting_speakers.services.validation import (
    MappingValidator,
    find_duplicate_speaker_ids,
    validate,
    validate_all,
)


@pytest.fixture
def validator():
    """Validator with the default rules."""
    return MappingValidator()


class TestValidate:
    """Tests for single-candidate validation."""

    def test_blank_values_are_valid(self, validator):
        """Empty name and role mean 'not yet specified' and pass."""
        assert validator.validate(SpeakerFields(name="", role="")) == []

    def test_whitespace_only_is_treated_as_blank(self, validator):
        """Whitespace trims to nothing and is not too short."""
        assert validator.validate(SpeakerFields(name="   ", role=" ")) == []

    def test_single_character_name_rejected(self, validator):
        """A one-character name is too short."""
        errors = validator.validate(SpeakerFields(name="A", role=""))

        assert len(errors) == 1
        assert errors[0].field == MappingField.NAME
        assert errors[0].message == "Name must be at least 2 characters long"

    def test_single_character_role_rejected(self, validator):
        """A one-character role is too short."""
        errors = validator.validate(SpeakerFields(name="Alice", role="X"))

        assert [e.field for e in errors] == ["role"]
        assert errors[0].message == "Role must be at least 2 characters long"

    def test_length_checked_after_trimming(self, validator):
        """Padding does not make a short value long enough."""
        errors = validator.validate(SpeakerFields(name="  A  ", role=""))
        assert len(errors) == 1

    def test_both_fields_reported(self, validator):
        """Errors on both fields are returned together, name first."""
        errors = validator.validate(SpeakerFields(name="A", role="B"))
        assert [e.field for e in errors] == ["name", "role"]

    def test_two_characters_pass(self, validator):
        """The minimum length itself is accepted."""
        assert validator.validate(SpeakerFields(name="Al", role="PM")) == []

    def test_name_too_long(self, validator):
        """Names are capped at 100 characters."""
        errors = validator.validate(SpeakerFields(name="x" * 101, role=""))

        assert len(errors) == 1
        assert errors[0].message == "Name cannot exceed 100 characters"

    def test_role_too_long(self, validator):
        """Roles are capped at 50 characters."""
        errors = validator.validate(SpeakerFields(name="", role="r" * 51))
        assert errors[0].message == "Role cannot exceed 50 characters"

    def test_accepts_speaker_mapping(self, validator):
        """Full mappings can be validated directly."""
        mapping = SpeakerMapping(speaker_id="Speaker 1", name="A")
        assert len(validator.validate(mapping)) == 1

    def test_custom_minimum(self):
        """The minimum length follows configuration."""
        validator = MappingValidator(min_length=3)
        errors = validator.validate(SpeakerFields(name="Al"))

        assert errors[0].message == "Name must be at least 3 characters long"

    def test_from_settings(self):
        """Limits are taken from settings."""
        settings = Settings.model_validate({"SPEAKERS_MAX_ROLE_LENGTH": 10})
        validator = MappingValidator.from_settings(settings)

        assert validator.max_role_length == 10
        assert validator.min_length == 2

    def test_module_level_validate(self):
        """The module-level helper uses the default rules."""
        assert validate(SpeakerFields(name="A")) != []
        assert validate(SpeakerFields(name="Alice")) == []


class TestValidateAll:
    """Tests for aggregate validation."""

    def test_empty_when_everything_passes(self, validator):
        """No failing speakers yields an empty dict."""
        mappings = [
            SpeakerMapping(speaker_id="Speaker 1", name="Alice"),
            SpeakerMapping(speaker_id="Speaker 2"),
        ]
        assert validator.validate_all(mappings) == {}

    def test_only_failing_speakers_reported(self, validator):
        """Results are keyed by speaker id and omit passing speakers."""
        mappings = [
            SpeakerMapping(speaker_id="Speaker 1", name="Alice"),
            SpeakerMapping(speaker_id="Speaker 2", name="B"),
            SpeakerMapping(speaker_id="Speaker 3", role="C"),
        ]

        results = validator.validate_all(mappings)

        assert set(results) == {"Speaker 2", "Speaker 3"}
        assert results["Speaker 2"][0].field == "name"
        assert results["Speaker 3"][0].field == "role"

    def test_module_level_validate_all(self):
        """The module-level helper aggregates the same way."""
        assert validate_all([SpeakerMapping(speaker_id="S", name="x")]).keys() == {"S"}


class TestDuplicateSpeakerIds:
    """Tests for duplicate detection."""

    def test_no_duplicates(self):
        mappings = [SpeakerMapping(speaker_id="A"), SpeakerMapping(speaker_id="B")]
        assert find_duplicate_speaker_ids(mappings) == []

    def test_duplicates_reported_once(self):
        mappings = [
            SpeakerMapping(speaker_id="A"),
            SpeakerMapping(speaker_id="B"),
            SpeakerMapping(speaker_id="A"),
            SpeakerMapping(speaker_id="A"),
        ]
        assert find_duplicate_speaker_ids(mappings) == ["A"]
