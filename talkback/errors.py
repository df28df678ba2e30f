"""Error taxonomy shared by every stage of the voice pipeline."""

from typing import Optional


class TalkbackError(Exception):
    """Base class for every failure raised by talkback."""


class MissingCredential(TalkbackError):
    """No API credential was found in the environment or configuration."""


class PipelineBusy(TalkbackError):
    """A new recording was requested while a previous session is still running."""


# Capture

class CaptureError(TalkbackError):
    """Recording could not be started or finalized."""


class PermissionDenied(CaptureError):
    """The platform refused access to the microphone."""


class DeviceUnavailable(CaptureError):
    """No capture device could be opened."""


class DeviceError(CaptureError):
    """The capture device was used in an invalid state."""


# Playback

class PlaybackError(TalkbackError):
    """Synthesized audio could not be played."""


class DecodeError(PlaybackError):
    """The platform cannot decode the audio container."""


# Network

class ApiError(TalkbackError):
    """A remote API call failed."""


class NetworkError(ApiError):
    """Connection failure or timeout before a response arrived."""


class HttpError(ApiError):
    """The endpoint answered with a non-2xx status."""

    def __init__(self, status: int, body: str, url: Optional[str] = None):
        self.status = status
        self.body = body
        self.url = url
        super().__init__(f"HTTP {status} from {url or 'endpoint'}: {body[:200]}")


class MalformedResponse(ApiError):
    """The response body did not have the expected shape."""


class EmptyAudio(ApiError):
    """Speech synthesis returned a zero-length payload."""
