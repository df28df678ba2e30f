"""Pipeline state machine definitions."""

from enum import Enum
from typing import Dict, FrozenSet


class PipelineState(Enum):
    """Stage the orchestrator is currently in."""
    IDLE = "idle"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"
    COMPLETING = "completing"
    SYNTHESIZING = "synthesizing"
    PLAYING = "playing"
    ERROR = "error"


class BusyState(Enum):
    """What the UI needs to know: free, listening, or working."""
    IDLE = "idle"
    RECORDING = "recording"
    THINKING = "thinking"


# Allowed transitions. ERROR is reachable from every in-flight state and
# always falls back to IDLE.
TRANSITIONS: Dict[PipelineState, FrozenSet[PipelineState]] = {
    PipelineState.IDLE: frozenset({PipelineState.RECORDING}),
    PipelineState.RECORDING: frozenset({PipelineState.TRANSCRIBING, PipelineState.ERROR}),
    PipelineState.TRANSCRIBING: frozenset({PipelineState.COMPLETING, PipelineState.ERROR}),
    PipelineState.COMPLETING: frozenset({PipelineState.SYNTHESIZING, PipelineState.ERROR}),
    PipelineState.SYNTHESIZING: frozenset({PipelineState.PLAYING, PipelineState.ERROR}),
    PipelineState.PLAYING: frozenset({PipelineState.IDLE, PipelineState.ERROR}),
    PipelineState.ERROR: frozenset({PipelineState.IDLE}),
}

BUTTON_LABELS = {
    BusyState.IDLE: "Start Recording",
    BusyState.RECORDING: "Stop Recording",
    BusyState.THINKING: "Thinking...",
}


def can_transition(current: PipelineState, target: PipelineState) -> bool:
    return target in TRANSITIONS[current]


def busy_state_for(state: PipelineState) -> BusyState:
    """Project a pipeline state onto the busy indicator."""
    if state is PipelineState.IDLE:
        return BusyState.IDLE
    if state is PipelineState.RECORDING:
        return BusyState.RECORDING
    return BusyState.THINKING


def busy_label(busy_state: BusyState) -> str:
    return BUTTON_LABELS[busy_state]
