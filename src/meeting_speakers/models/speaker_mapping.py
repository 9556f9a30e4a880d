"""Speaker mapping entities - connect raw speaker labels to display names and roles."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, SerializeAsAny

from meeting_speakers.models.base import SpeakerModel, utc_now


class SpeakerSource(str, Enum):
    """Where a mapping entry came from."""
    AUTO_DETECTED = "AutoDetected"
    MANUALLY_ADDED = "ManuallyAdded"


class MappingField(str, Enum):
    """Editable fields of a mapping."""
    NAME = "name"
    ROLE = "role"


class SpeakerFields(SpeakerModel):
    """A name/role pair, the unit that edits and overrides operate on."""

    name: str = ""
    role: str = ""

    def serialize(self) -> str:
        """Serialize as ``name|role``."""
        return f"{self.name}|{self.role}"

    @classmethod
    def parse(cls, value: str) -> "SpeakerFields":
        """Parse a ``name|role`` string."""
        name, _, role = value.partition("|")
        return cls(name=name, role=role)


class SpeakerMapping(SpeakerModel):
    """Maps a speaker label from transcription to a display name and role.

    An empty name means the speaker is not mapped yet.
    """

    speaker_id: str = Field(
        ..., description="Speaker label as assigned by transcription (e.g. 'Speaker 1')"
    )
    name: str = Field(default="", description="Display name, empty when unmapped")
    role: str = Field(default="", description="Role or title, optional")
    source: SpeakerSource = Field(default=SpeakerSource.AUTO_DETECTED)
    transcription_id: str = Field(default="", description="Owning transcription")

    @property
    def is_mapped(self) -> bool:
        """Whether a display name has been assigned."""
        return self.name.strip() != ""

    @property
    def is_manual(self) -> bool:
        """Whether the user created this entry without a transcript label."""
        return self.source == SpeakerSource.MANUALLY_ADDED

    @property
    def display_name(self) -> str:
        """Name to show for this speaker, falling back to the label."""
        return self.name or self.speaker_id

    @property
    def fields(self) -> SpeakerFields:
        """Current name/role pair."""
        return SpeakerFields(name=self.name, role=self.role)


class OverriddenSpeakerMapping(SpeakerMapping):
    """A mapping whose name/role were replaced for the length of a session.

    Keeps the values it replaced so the override can always be reverted.
    """

    original_name: Optional[str] = None
    original_role: Optional[str] = None
    is_overridden: bool = True
    session_id: str
    session_timestamp: datetime = Field(default_factory=utc_now)

    @property
    def original_fields(self) -> SpeakerFields:
        """Name/role pair this override replaced."""
        return SpeakerFields(
            name=self.original_name if self.original_name is not None else self.name,
            role=self.original_role if self.original_role is not None else self.role,
        )


class SpeakerMappingSet(SpeakerModel):
    """All saved mappings for one transcription."""

    transcription_id: str
    mappings: list[SerializeAsAny[SpeakerMapping]] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=utc_now)

    @property
    def mapped_speaker_count(self) -> int:
        """Number of speakers in the set that have a name."""
        return sum(1 for m in self.mappings if m.is_mapped)

    def find(self, speaker_id: str) -> Optional[SpeakerMapping]:
        """Get the mapping for a speaker id, if present."""
        for mapping in self.mappings:
            if mapping.speaker_id == speaker_id:
                return mapping
        return None
