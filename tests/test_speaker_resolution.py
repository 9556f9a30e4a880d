"""Tests for resolving speaker labels into names and roles."""

from meeting_speakers.models import OverriddenSpeakerMapping, SpeakerMapping
from meeting_speakers.services.speaker_resolution import (
    apply_speaker_mappings,
    resolve_mappings,
    speaker_label,
)


class TestSpeakerLabel:
    """Tests for the resolved display label."""

    def test_name_and_role(self):
        mapping = SpeakerMapping(speaker_id="Speaker 1", name="Alice", role="Lead")
        assert speaker_label(mapping) == "Alice (Lead)"

    def test_name_only(self):
        mapping = SpeakerMapping(speaker_id="Speaker 1", name="Alice")
        assert speaker_label(mapping) == "Alice"


class TestApplySpeakerMappings:
    """Tests for transcript label replacement."""

    def test_replaces_labels(self):
        transcript = "Speaker 1: Hello.\nSpeaker 2: Hi there.\nSpeaker 1: Let's start."
        mappings = [
            SpeakerMapping(speaker_id="Speaker 1", name="Alice", role="Lead"),
            SpeakerMapping(speaker_id="Speaker 2", name="Bob"),
        ]

        result = apply_speaker_mappings(transcript, mappings)

        assert result == "Alice (Lead): Hello.\nBob: Hi there.\nAlice (Lead): Let's start."

    def test_case_insensitive(self):
        mappings = [SpeakerMapping(speaker_id="Speaker 1", name="Alice")]
        assert apply_speaker_mappings("SPEAKER 1: Hi", mappings) == "Alice: Hi"

    def test_unmapped_speakers_untouched(self):
        mappings = [SpeakerMapping(speaker_id="Speaker 1")]
        assert apply_speaker_mappings("Speaker 1: Hi", mappings) == "Speaker 1: Hi"

    def test_does_not_match_longer_labels(self):
        """Speaker 1 does not match inside Speaker 10."""
        mappings = [SpeakerMapping(speaker_id="Speaker 1", name="Alice")]
        transcript = "Speaker 10: Hi\nSpeaker 1: Hello"

        assert apply_speaker_mappings(transcript, mappings) == "Speaker 10: Hi\nAlice: Hello"

    def test_special_characters_in_names(self):
        r"""Replacement text is inserted literally, backslashes included."""
        mappings = [SpeakerMapping(speaker_id="Speaker 1", name=r"A\1 B")]
        assert apply_speaker_mappings("Speaker 1: Hi", mappings) == r"A\1 B: Hi"


class TestResolveMappings:
    """Tests for combining edit-form mappings with overrides."""

    def test_overrides_win(self):
        mappings = [
            SpeakerMapping(speaker_id="Speaker 1", name="Alice"),
            SpeakerMapping(speaker_id="Speaker 2", name="Bob"),
        ]
        overrides = [
            OverriddenSpeakerMapping(
                speaker_id="Speaker 2", name="Robert", original_name="Bob", session_id="s1"
            ),
        ]

        resolved = resolve_mappings(mappings, overrides)

        assert [m.name for m in resolved] == ["Alice", "Robert"]

    def test_extra_overrides_appended(self):
        mappings = [SpeakerMapping(speaker_id="Speaker 1", name="Alice")]
        overrides = [OverriddenSpeakerMapping(speaker_id="Speaker 3", name="Carol", session_id="s1")]

        resolved = resolve_mappings(mappings, overrides)

        assert [m.speaker_id for m in resolved] == ["Speaker 1", "Speaker 3"]

    def test_no_overrides(self):
        mappings = [SpeakerMapping(speaker_id="Speaker 1", name="Alice")]
        assert resolve_mappings(mappings) == mappings
