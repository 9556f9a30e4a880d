"""Tests for session expiry and purging."""

from datetime import timedelta

import pytest

from meeting_speakers.errors import SessionNotFoundError
from meeting_speakers.models import SessionState
from meeting_speakers.services.mapping_registry import MappingRegistry
from meeting_speakers.services.override_tracker import OverrideTracker
from meeting_speakers.services.session_lifecycle import SessionLifecycleManager


@pytest.fixture
def registry(clock):
    return MappingRegistry(clock=clock)


@pytest.fixture
def lifecycle(registry, clock):
    tracker = OverrideTracker(registry, clock=clock)
    return SessionLifecycleManager(tracker, clock=clock)


@pytest.fixture
def session(lifecycle):
    """Session s1 with one override on transcription t1."""
    lifecycle.apply_override("s1", "t1", "Speaker 1", "Alice", "Lead")
    return "s1"


class TestSessionStatus:
    """Tests for status reporting."""

    def test_active_session(self, lifecycle, session, clock):
        status = lifecycle.get_session_status(session)

        assert status.state == SessionState.ACTIVE
        assert status.active
        assert status.last_activity == clock.now
        assert status.override_count == 1
        assert status.active_override_count == 1
        assert status.has_overrides
        assert status.remaining == timedelta(hours=2)
        assert status.countdown == "2:00:00"

    def test_unknown_session(self, lifecycle):
        assert lifecycle.get_session_status("missing") is None

    def test_warning_state(self, lifecycle, session, clock):
        clock.advance(minutes=116)

        status = lifecycle.get_session_status(session)

        assert status.state == SessionState.WARNING
        assert status.active
        assert status.countdown == "04:00"

    def test_warning_boundary(self, lifecycle, session, clock):
        clock.advance(minutes=114, seconds=59)
        assert lifecycle.get_session_status(session).state == SessionState.ACTIVE

        clock.advance(seconds=1)
        assert lifecycle.get_session_status(session).state == SessionState.WARNING

    def test_status_read_is_not_activity(self, lifecycle, session, clock):
        clock.advance(minutes=60)
        lifecycle.get_session_status(session)
        clock.advance(minutes=61)

        assert lifecycle.get_session_status(session) is None

    def test_reverted_override_still_counted(self, lifecycle, session):
        lifecycle.revert_override(session, "Speaker 1")

        status = lifecycle.get_session_status(session)
        assert status.override_count == 1
        assert status.active_override_count == 0
        assert not status.has_overrides

    def test_session_duration(self, lifecycle, session, clock):
        clock.advance(minutes=65)

        status = lifecycle.get_session_status(session)
        assert status.session_duration(clock.now) == timedelta(minutes=65)
        assert status.session_duration_display(clock.now) == "1h 5m"


class TestExpiry:
    """Tests for lazy expiry."""

    def test_expired_session_purged_on_access(self, lifecycle, session, registry, clock):
        """A session idle past its timeout is gone on the next access."""
        clock.advance(hours=2, seconds=1)

        assert lifecycle.get_session_status(session) is None
        assert lifecycle.get_override_info(session) is None
        assert registry.get("t1") is None

    def test_expires_exactly_at_timeout(self, lifecycle, session, clock):
        clock.advance(hours=2)
        assert lifecycle.get_session_status(session) is None

    def test_activity_resets_timer(self, lifecycle, session, clock):
        """An override in the warning window brings the session back to active."""
        clock.advance(minutes=117)
        assert lifecycle.get_session_status(session).state == SessionState.WARNING

        lifecycle.apply_override(session, "t1", "Speaker 2", "Bob")

        status = lifecycle.get_session_status(session)
        assert status.state == SessionState.ACTIVE
        assert status.remaining == timedelta(hours=2)

    def test_override_info_is_activity(self, lifecycle, session, clock):
        clock.advance(minutes=100)
        lifecycle.get_override_info(session)
        clock.advance(minutes=100)

        assert lifecycle.get_session_status(session) is not None

    def test_sweep_only_purges_expired(self, lifecycle, session, clock):
        clock.advance(minutes=90)
        lifecycle.apply_override("s2", "t2", "Speaker 1", "Carol")
        clock.advance(minutes=31)

        assert lifecycle.sweep() == ["s1"]
        assert lifecycle.tracker.session_ids == ["s2"]

    def test_new_session_after_expiry(self, lifecycle, session, clock):
        clock.advance(hours=3)

        lifecycle.apply_override(session, "t2", "Speaker 1", "Dana")

        assert lifecycle.get_session_status(session).transcription_id == "t2"

    def test_revert_on_expired_session(self, lifecycle, session, clock):
        clock.advance(hours=3)

        with pytest.raises(SessionNotFoundError):
            lifecycle.revert_override(session, "Speaker 1")


class TestExtendSession:
    """Tests for session extensions."""

    def test_default_extension(self, lifecycle, session):
        status = lifecycle.extend_session(session)

        assert status.extension_minutes == 15
        assert status.remaining == timedelta(minutes=135)

    def test_extensions_accumulate(self, lifecycle, session, clock):
        lifecycle.extend_session(session)
        lifecycle.extend_session(session, 30)
        clock.advance(hours=2, minutes=30)

        status = lifecycle.get_session_status(session)
        assert status.extension_minutes == 45
        assert status.remaining == timedelta(minutes=15)

    def test_extension_keeps_last_activity(self, lifecycle, session, clock):
        last_activity = clock.now
        clock.advance(minutes=10)

        status = lifecycle.extend_session(session)

        assert status.last_activity == last_activity

    def test_extension_delays_expiry(self, lifecycle, session, clock):
        lifecycle.extend_session(session, 60)
        clock.advance(hours=2, minutes=30)

        assert lifecycle.get_session_status(session) is not None

    def test_unknown_session(self, lifecycle):
        with pytest.raises(SessionNotFoundError):
            lifecycle.extend_session("missing")

    def test_non_positive_extension(self, lifecycle, session):
        with pytest.raises(ValueError):
            lifecycle.extend_session(session, 0)


class TestClearSession:
    """Tests for explicit purging."""

    def test_clear_twice(self, lifecycle, session):
        assert lifecycle.clear_session(session) is True
        assert lifecycle.clear_session(session) is False

    def test_clear_all_data_alias(self, lifecycle, session):
        assert lifecycle.clear_all_data(session) is True
        assert lifecycle.get_session_status(session) is None

    def test_clear_drops_extensions(self, lifecycle, session, clock):
        lifecycle.extend_session(session, 60)
        lifecycle.clear_session(session)

        lifecycle.apply_override(session, "t1", "Speaker 1", "Alice")

        assert lifecycle.get_session_status(session).extension_minutes == 0

    def test_purge_listeners_notified(self, lifecycle, session, clock):
        purged = []
        lifecycle.add_purge_listener(lambda sid, tid: purged.append((sid, tid)))

        lifecycle.apply_override("s2", "t2", "Speaker 1", "Bob")
        lifecycle.clear_session("s2")
        clock.advance(hours=3)
        lifecycle.sweep()

        assert purged == [("s2", "t2"), ("s1", "t1")]

    def test_listener_not_called_for_unknown(self, lifecycle):
        purged = []
        lifecycle.add_purge_listener(lambda sid, tid: purged.append(sid))

        lifecycle.clear_session("missing")

        assert purged == []

    def test_delete_transcription(self, lifecycle, session, registry):
        purged = []
        lifecycle.add_purge_listener(lambda sid, tid: purged.append(sid))

        assert lifecycle.delete_transcription("t1")
        assert purged == ["s1"]
        assert lifecycle.get_session_status(session) is None
        assert registry.get("t1") is None
        assert not lifecycle.delete_transcription("t1")


class TestFromSettings:
    """Tests for settings-driven construction."""

    def test_timings_from_settings(self, registry, clock):
        from meeting_speakers.config import Settings

        settings = Settings.model_validate({
            "SPEAKERS_SESSION_TIMEOUT_MINUTES": 30,
            "SPEAKERS_WARNING_THRESHOLD_MINUTES": 10,
            "SPEAKERS_EXTENSION_MINUTES": 5,
        })
        lifecycle = SessionLifecycleManager.from_settings(
            OverrideTracker(registry, clock=clock), settings, clock=clock
        )

        assert lifecycle.session_timeout == timedelta(minutes=30)
        assert lifecycle.warning_threshold == timedelta(minutes=10)
        assert lifecycle.extension_step == timedelta(minutes=5)
