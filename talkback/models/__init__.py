"""Data models for the Talkback application."""

from .audio import AudioBlob, AudioHandle, AudioStats
from .session import Session, new_session_id
from .pipeline import (
    PipelineState,
    BusyState,
    TRANSITIONS,
    can_transition,
    busy_state_for,
    busy_label,
)
from .events import StateChange, PipelineFailure, StageResult

__all__ = [
    "AudioBlob",
    "AudioHandle",
    "AudioStats",
    "Session",
    "new_session_id",
    "PipelineState",
    "BusyState",
    "TRANSITIONS",
    "can_transition",
    "busy_state_for",
    "busy_label",
    "StateChange",
    "PipelineFailure",
    "StageResult",
]
