"""Abstract capability interfaces for the platform audio services."""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from ..models.audio import AudioBlob, AudioHandle, AudioStats


class RecordingController(ABC):
    """Microphone capture into a readable file."""

    @abstractmethod
    def start(self) -> None:
        """Begin capturing to a fresh sink.
        
        Raises:
            PermissionDenied: capture is not allowed
            DeviceUnavailable: no capture device could be opened
        """
        pass

    @abstractmethod
    def stop(self) -> AudioHandle:
        """Finalize the capture and return a handle to the recording.
        
        Raises:
            DeviceError: start() never succeeded
        """
        pass

    def get_recording_stats(self) -> Optional[AudioStats]:
        """Live capture statistics for level meters; None when not tracked."""
        return None


class PlaybackController(ABC):
    """Audio output."""

    @abstractmethod
    def play(self, audio: AudioBlob, on_complete: Callable[[], None],
             on_error: Optional[Callable[[Exception], None]] = None) -> None:
        """Start playing audio and return immediately.

        on_complete fires (possibly from another thread) when playback ends
        naturally; on_error fires instead if the output fails mid-stream.

        Raises:
            DecodeError: the container cannot be played
        """
        pass


class PermissionGate(ABC):
    """Platform permission check for microphone access."""

    @abstractmethod
    def has_capture_permission(self) -> bool:
        pass

    @abstractmethod
    async def request_permission(self) -> bool:
        """Ask the platform for capture permission. Returns True if granted."""
        pass
