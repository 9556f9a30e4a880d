"""Session override entities - the per-session log of overrides and reverts."""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import ConfigDict, Field

from meeting_speakers.models.base import SpeakerModel, utc_now
from meeting_speakers.models.speaker_mapping import SpeakerFields
from meeting_speakers.utils.time_utils import format_countdown, format_duration


class OverrideActionType(str, Enum):
    """Kind of action recorded against a speaker."""
    OVERRIDE = "Override"
    REVERT = "Revert"


class OverrideAction(SpeakerModel):
    """One immutable entry of a session's override log.

    Later actions on the same speaker supersede earlier ones; only the
    latest action per speaker determines its effective state.
    """

    model_config = ConfigDict(use_enum_values=True, frozen=True)

    speaker_id: str
    action: OverrideActionType
    original_value: SpeakerFields
    new_value: SpeakerFields
    timestamp: datetime = Field(default_factory=utc_now)
    field_modified: str = Field(default="name,role")

    @property
    def is_override(self) -> bool:
        """Whether this action leaves the speaker overridden."""
        return self.action == OverrideActionType.OVERRIDE


class SessionOverrideTracker(SpeakerModel):
    """Override state for one session, keyed by speaker id (latest action wins)."""

    session_id: str
    transcription_id: str
    actions: dict[str, OverrideAction] = Field(default_factory=dict)
    session_started: datetime = Field(default_factory=utc_now)
    last_activity: datetime = Field(default_factory=utc_now)

    @property
    def override_count(self) -> int:
        """Number of speakers with a tracked action."""
        return len(self.actions)

    @property
    def overridden_speaker_ids(self) -> list[str]:
        """Speakers whose latest action is an override."""
        return [sid for sid, action in self.actions.items() if action.is_override]

    def is_overridden(self, speaker_id: str) -> bool:
        """Whether a speaker is currently overridden in this session."""
        action = self.actions.get(speaker_id)
        return action is not None and action.is_override


class SessionState(str, Enum):
    """Lifecycle state of a session."""
    ACTIVE = "active"
    WARNING = "warning"
    EXPIRED = "expired"


class SessionStatus(SpeakerModel):
    """Read model describing a live session."""

    session_id: str
    transcription_id: str
    state: SessionState
    last_activity: datetime
    session_started: datetime
    remaining: timedelta = Field(..., description="Time left before the session expires")
    extension_minutes: int = Field(default=0, ge=0)
    override_count: int = Field(default=0, ge=0)
    active_override_count: int = Field(default=0, ge=0)

    @property
    def active(self) -> bool:
        """Whether the session has not expired."""
        return self.state != SessionState.EXPIRED

    @property
    def has_overrides(self) -> bool:
        """Whether any speaker currently carries an override."""
        return self.active_override_count > 0

    @property
    def countdown(self) -> str:
        """Time left formatted for a countdown display."""
        return format_countdown(self.remaining)

    def session_duration(self, now: Optional[datetime] = None) -> timedelta:
        """Time elapsed since the session started."""
        return (now or utc_now()) - self.session_started

    def session_duration_display(self, now: Optional[datetime] = None) -> str:
        """Elapsed session time, e.g. "1h 5m"."""
        return format_duration(self.session_duration(now))
