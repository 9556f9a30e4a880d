"""Transcription result entity - what the speech-to-text collaborator hands us."""

from pydantic import Field

from meeting_speakers.models.base import SpeakerModel


class TranscriptionResult(SpeakerModel):
    """Output of an external transcription call.

    Only the text and the raw speaker labels matter to the mapping core.
    """

    transcription_id: str
    transcribed_text: str = ""
    speaker_labels: list[str] = Field(
        default_factory=list,
        description="Raw speaker labels in order of first appearance"
    )

    @property
    def unique_speaker_labels(self) -> list[str]:
        """Speaker labels with duplicates removed, order preserved."""
        return list(dict.fromkeys(self.speaker_labels))
