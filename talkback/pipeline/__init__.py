"""Pipeline orchestration for Talkback."""

from .orchestrator import PipelineOrchestrator, describe_failure
from .publisher import PipelinePublisher

__all__ = [
    "PipelineOrchestrator",
    "PipelinePublisher",
    "describe_failure",
]
