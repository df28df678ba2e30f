"""Network clients for transcription, completion and speech synthesis."""

from .base import OpenAIClient
from .transcription_client import TranscriptionClient
from .completion_client import CompletionClient
from .speech_client import SpeechClient
from .parsers import parse_transcription, parse_completion, parse_speech

__all__ = [
    "OpenAIClient",
    "TranscriptionClient",
    "CompletionClient",
    "SpeechClient",
    "parse_transcription",
    "parse_completion",
    "parse_speech",
]
