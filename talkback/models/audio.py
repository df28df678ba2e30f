"""Audio-related data models."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_FILENAME = "audio.m4a"
DEFAULT_UPLOAD_CONTENT_TYPE = "audio/m4a"


@dataclass(frozen=True)
class AudioBlob:
    """In-memory audio payload as sent to or received from the network."""
    data: bytes
    filename: str = DEFAULT_UPLOAD_FILENAME
    content_type: str = DEFAULT_UPLOAD_CONTENT_TYPE

    def __len__(self) -> int:
        return len(self.data)


@dataclass
class AudioHandle:
    """Reference to captured audio sitting in platform storage."""
    path: Path
    filename: str
    content_type: str
    temporary: bool = True
    discarded: bool = False

    def read(self) -> AudioBlob:
        """Load the captured file into an AudioBlob."""
        data = Path(self.path).read_bytes()
        return AudioBlob(data=data, filename=self.filename, content_type=self.content_type)

    def discard(self) -> None:
        """Release the handle, deleting the file if it was only a scratch copy."""
        if self.discarded:
            return
        self.discarded = True
        if self.temporary:
            try:
                os.remove(self.path)
                logger.debug(f"Removed temporary recording: {self.path}")
            except FileNotFoundError:
                pass


@dataclass
class AudioStats:
    """Capture statistics for the current or last recording."""
    is_recording: bool
    duration_seconds: float
    sample_rate: int
    chunk_size: int
    total_chunks: int
    peak_level: float = 0.0
