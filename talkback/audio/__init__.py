"""Audio capability interfaces.

The PyAudio implementations live in ``talkback.audio.capture``,
``talkback.audio.playback`` and ``talkback.audio.permissions``.
"""

from .base import RecordingController, PlaybackController, PermissionGate

__all__ = [
    'RecordingController',
    'PlaybackController',
    'PermissionGate',
]
