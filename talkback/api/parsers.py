"""Response parsers for the transcription, completion and speech endpoints."""

import json
import logging
from typing import Any

from ..errors import EmptyAudio, MalformedResponse
from ..models.audio import AudioBlob

logger = logging.getLogger(__name__)

# Extensions for the content types the speech endpoint can return.
AUDIO_EXTENSIONS = {
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/opus": "opus",
    "audio/ogg": "opus",
    "audio/aac": "aac",
    "audio/flac": "flac",
    "audio/pcm": "pcm",
}


def _load_json(body: bytes, what: str) -> Any:
    try:
        return json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise MalformedResponse(f"{what} response is not valid JSON: {e}") from e


def parse_transcription(body: bytes) -> str:
    """Extract ``text`` from a transcription response.

    Never returns empty text: a missing, non-string or blank ``text`` field
    raises MalformedResponse.
    """
    payload = _load_json(body, "Transcription")
    if not isinstance(payload, dict) or "text" not in payload:
        raise MalformedResponse("Transcription response has no 'text' field")
    text = payload["text"]
    if not isinstance(text, str):
        raise MalformedResponse(f"Transcription 'text' is {type(text).__name__}, expected string")
    if not text.strip():
        raise MalformedResponse("Transcription response contained no speech")
    return text


def parse_completion(body: bytes) -> str:
    """Extract ``choices[0].message.content`` from a chat completion response."""
    payload = _load_json(body, "Completion")
    try:
        content = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise MalformedResponse("Completion response has no choices[0].message.content") from e
    if not isinstance(content, str):
        raise MalformedResponse(f"Completion content is {type(content).__name__}, expected string")
    content = content.strip()
    if not content:
        raise MalformedResponse("Completion response content is empty")
    return content


def parse_speech(body: bytes, content_type: str = "") -> AudioBlob:
    """Wrap the raw bytes of a speech response in an AudioBlob."""
    if not body:
        raise EmptyAudio("Speech synthesis returned zero bytes")
    mime = content_type.split(";")[0].strip().lower() or "audio/mpeg"
    extension = AUDIO_EXTENSIONS.get(mime, "mp3")
    return AudioBlob(data=body, filename=f"speech.{extension}", content_type=mime)
