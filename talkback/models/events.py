"""Event models published by the pipeline orchestrator."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .pipeline import BusyState, PipelineState


@dataclass
class StateChange:
    """Emitted on every state machine transition."""
    previous: PipelineState
    current: PipelineState
    busy_state: BusyState
    session_id: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def busy(self) -> bool:
        return self.busy_state is not BusyState.IDLE


@dataclass
class PipelineFailure:
    """A stage failed; the session was dropped and the pipeline re-armed."""
    message: str
    failed_state: PipelineState
    error: Optional[BaseException] = None
    session_id: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class StageResult:
    """Intermediate output worth showing to the user (transcript, reply)."""
    stage: PipelineState
    text: str
    session_id: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)
