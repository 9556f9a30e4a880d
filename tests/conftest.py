"""Shared fixtures for the speaker mapping tests."""

import os
from datetime import datetime, timedelta, timezone

import pytest

from meeting_speakers.config import Settings
from meeting_speakers.models import SpeakerMapping, SpeakerSource


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = datetime(2025, 1, 19, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    """A clock frozen at 2025-01-19 12:00 UTC."""
    return FakeClock()


@pytest.fixture
def settings(monkeypatch):
    """Default settings, independent of the process environment."""
    for name in list(os.environ):
        if name.startswith("SPEAKERS_"):
            monkeypatch.delenv(name)
    return Settings(_env_file=None)


@pytest.fixture
def saved_mappings():
    """Previously saved mappings for transcription t1."""
    return [
        SpeakerMapping(
            speaker_id="Speaker 1",
            name="Alice Smith",
            role="Product Manager",
            source=SpeakerSource.AUTO_DETECTED,
            transcription_id="t1",
        ),
        SpeakerMapping(
            speaker_id="Speaker 5",
            name="Bob Jones",
            role="Engineer",
            source=SpeakerSource.MANUALLY_ADDED,
            transcription_id="t1",
        ),
    ]
