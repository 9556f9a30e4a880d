"""Speaker resolution - turns edited mappings and overrides into what a summarizer consumes.

Responsible for:
- Merging edit-form mappings with a session's effective overrides
- Replacing speaker labels in transcript text with names and roles
- Handing transcript + resolved mapping to a summarizer collaborator
"""

import re
from typing import Any, Iterable, Optional, Protocol

from meeting_speakers.models import SpeakerMapping


class Summarizer(Protocol):
    """External summarization collaborator."""

    def summarize(self, transcript: str, mappings: list[SpeakerMapping]) -> Any:
        ...


def speaker_label(mapping: SpeakerMapping) -> str:
    """Label to use for a speaker in resolved text: ``Name (Role)`` or ``Name``."""
    if mapping.role.strip():
        return f"{mapping.name} ({mapping.role})"
    return mapping.name


def apply_speaker_mappings(transcript: str, mappings: Iterable[SpeakerMapping]) -> str:
    """Replace ``<speaker id>:`` labels with resolved names.

    Matching is case-insensitive. Speakers without a name keep their label.

    Args:
        transcript: Transcript text with raw speaker labels
        mappings: Mappings to apply

    Returns:
        Transcript text with labels replaced
    """
    result = transcript
    for mapping in mappings:
        if not mapping.is_mapped:
            continue
        pattern = re.compile(rf"(?<!\w){re.escape(mapping.speaker_id)}:", re.IGNORECASE)
        replacement = f"{speaker_label(mapping)}:"
        result = pattern.sub(lambda _: replacement, result)
    return result


def resolve_mappings(
    mappings: Iterable[SpeakerMapping],
    overrides: Optional[Iterable[SpeakerMapping]] = None,
) -> list[SpeakerMapping]:
    """Combine edit-form mappings with a session's effective mappings.

    Entries present in ``overrides`` win for their speaker id; speakers only
    known to the overrides are appended.
    """
    by_id = {m.speaker_id: m for m in (overrides or [])}
    resolved: list[SpeakerMapping] = []
    for mapping in mappings:
        resolved.append(by_id.pop(mapping.speaker_id, mapping))
    resolved.extend(by_id.values())
    return resolved
