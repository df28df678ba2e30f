"""Pipeline publisher module for pub/sub event publishing."""

import logging
from typing import Any, Callable, Dict
from pubsub import pub

from ..models.events import PipelineFailure, StageResult, StateChange

logger = logging.getLogger(__name__)

STATE_TOPIC = "pipeline.state"
ERROR_TOPIC = "pipeline.error"
INFO_TOPIC = "pipeline.info"
RESULT_TOPIC = "pipeline.result"


class PipelinePublisher:
    """Publishes orchestrator events using pubsub.pub so UI code can subscribe."""
    
    def __init__(self, topic_prefix: str = ""):
        """Initialize pipeline publisher.
        
        Args:
            topic_prefix: Optional prefix for every topic (e.g. "test." to isolate tests)
        """
        self.state_topic = f"{topic_prefix}{STATE_TOPIC}"
        self.error_topic = f"{topic_prefix}{ERROR_TOPIC}"
        self.info_topic = f"{topic_prefix}{INFO_TOPIC}"
        self.result_topic = f"{topic_prefix}{RESULT_TOPIC}"
        logger.info(f"PipelinePublisher initialized with topics: {self.state_topic}, {self.error_topic}, "
                    f"{self.info_topic}, {self.result_topic}")
    
    def publish_state(self, change: StateChange) -> None:
        pub.sendMessage(self.state_topic, event=change)
    
    def publish_failure(self, failure: PipelineFailure) -> None:
        pub.sendMessage(self.error_topic, event=failure)
        logger.debug(f"Published failure: {failure.message}")
    
    def publish_info(self, message: str) -> None:
        pub.sendMessage(self.info_topic, event=message)
    
    def publish_result(self, result: StageResult) -> None:
        pub.sendMessage(self.result_topic, event=result)
    
    def get_callbacks(self) -> Dict[str, Callable[[Any], None]]:
        """Get callback keyword arguments for PipelineOrchestrator.
        
        Returns:
            Mapping suitable for ``PipelineOrchestrator(..., **callbacks)``
        """
        return {
            "state_callback": self.publish_state,
            "error_callback": self.publish_failure,
            "info_callback": self.publish_info,
            "result_callback": self.publish_result,
        }
