"""Services for the Meeting Speaker Mapping System.

Components:
- MappingValidator: Field rules for names and roles
- MappingStore: Editable mapping collection for one transcription
- EditModeController: Per-speaker edit sessions and two-step removal
- MappingRegistry: Saved mappings per transcription (memory only)
- OverrideTracker: Session-scoped, reversible overrides
- SessionLifecycleManager: Idle expiry and purging of session state
- SpeakerMappingService: Facade used by the presentation layer
"""

from meeting_speakers.services.validation import MappingValidator
from meeting_speakers.services.mapping_store import MappingStore
from meeting_speakers.services.edit_mode import (
    EditModeController,
    EditSession,
    NoPendingDelete,
    PendingDelete,
)
from meeting_speakers.services.mapping_registry import MappingRegistry
from meeting_speakers.services.override_tracker import OverrideTracker
from meeting_speakers.services.session_lifecycle import SessionLifecycleManager
from meeting_speakers.services.speaker_resolution import (
    Summarizer,
    apply_speaker_mappings,
    resolve_mappings,
)
from meeting_speakers.services.speaker_mapping_service import SpeakerMappingService

__all__ = [
    "MappingValidator",
    "MappingStore",
    "EditModeController",
    "EditSession",
    "NoPendingDelete",
    "PendingDelete",
    "MappingRegistry",
    "OverrideTracker",
    "SessionLifecycleManager",
    "Summarizer",
    "apply_speaker_mappings",
    "resolve_mappings",
    "SpeakerMappingService",
]
