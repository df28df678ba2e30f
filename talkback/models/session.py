"""Per-cycle session data."""

import logging
import random
import string
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .audio import AudioBlob, AudioHandle

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    """Timestamp-based session ID with a random suffix (YYYYMMDD_HHMMSS_xxxx)."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    random_suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=4))
    return f"{timestamp}_{random_suffix}"


@dataclass
class Session:
    """Data for exactly one recording -> playback cycle.

    Each field is written by one stage and read by the next. Only the
    orchestrator mutates a Session.
    """
    session_id: str = field(default_factory=new_session_id)
    started_at: datetime = field(default_factory=datetime.now)
    audio_input: Optional[AudioHandle] = None
    transcript: Optional[str] = None
    reply_text: Optional[str] = None
    audio_output: Optional[AudioBlob] = None

    def release_audio_input(self) -> None:
        """Drop the captured audio once it has been transcribed."""
        if self.audio_input is not None:
            self.audio_input.discard()
            self.audio_input = None

    def discard(self) -> None:
        """Release every resource held by the session."""
        self.release_audio_input()
        self.transcript = None
        self.reply_text = None
        self.audio_output = None
        logger.debug(f"Session {self.session_id} discarded")
