"""Terminal user interface."""

from .keyboard_input import KeyboardInputHandler
from .voice_screen import VoiceScreen

__all__ = [
    "KeyboardInputHandler",
    "VoiceScreen",
]
