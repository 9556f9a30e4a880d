"""Utility functions for the Meeting Speaker Mapping System."""

from meeting_speakers.utils.time_utils import format_countdown, format_duration

__all__ = [
    "format_countdown",
    "format_duration",
]
