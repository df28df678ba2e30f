"""Text-to-speech client for the OpenAI speech endpoint."""

import logging
import time
from typing import Optional

from .base import OpenAIClient
from .parsers import parse_speech
from ..models.audio import AudioBlob

logger = logging.getLogger(__name__)


class SpeechClient(OpenAIClient):
    """Turns reply text into audio bytes."""

    endpoint = "/audio/speech"

    def __init__(self, api_key: str, model: str = "tts-1", voice: str = "alloy",
                 response_format: Optional[str] = None, **kwargs):
        """Initialize speech client.
        
        Args:
            api_key: OpenAI API key
            model: TTS model
            voice: Voice name
            response_format: Container to request ("wav", "mp3", ...). When
                None the field is left out and the endpoint default applies.
        """
        super().__init__(api_key, **kwargs)
        self.model = model
        self.voice = voice
        self.response_format = response_format
        logger.info(f"SpeechClient initialized with model: {model}, voice: {voice}")

    def build_payload(self, text: str) -> dict:
        payload = {"model": self.model, "input": text, "voice": self.voice}
        if self.response_format:
            payload["response_format"] = self.response_format
        return payload

    async def synthesize(self, text: str) -> AudioBlob:
        """Synthesize speech for text.

        Raises:
            EmptyAudio: the endpoint returned no bytes
        """
        start_time = time.time()
        body, content_type = await self._post(json=self.build_payload(text))
        audio = parse_speech(body, content_type)
        logger.info(f"Synthesized {len(audio)} bytes of {audio.content_type} in {time.time() - start_time:.2f}s")
        return audio
