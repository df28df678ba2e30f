"""Speech-to-text client for the OpenAI transcription endpoint."""

import logging
import time

import aiohttp

from .base import OpenAIClient
from .parsers import parse_transcription
from ..models.audio import AudioBlob

logger = logging.getLogger(__name__)


class TranscriptionClient(OpenAIClient):
    """Uploads recorded audio as multipart form data and returns the text."""

    endpoint = "/audio/transcriptions"

    def __init__(self, api_key: str, model: str = "whisper-1", **kwargs):
        super().__init__(api_key, **kwargs)
        self.model = model
        logger.info(f"TranscriptionClient initialized with model: {model}")

    def _form(self, audio: AudioBlob) -> aiohttp.FormData:
        form = aiohttp.FormData()
        form.add_field("file", audio.data, filename=audio.filename, content_type=audio.content_type)
        form.add_field("model", self.model)
        return form

    async def transcribe(self, audio: AudioBlob) -> str:
        """Transcribe an audio blob.
        
        Args:
            audio: Non-empty recording in a container the endpoint accepts
            
        Returns:
            Transcribed text, never empty
            
        Raises:
            ValueError: audio is empty
            NetworkError, HttpError, MalformedResponse: see OpenAIClient
        """
        if not audio.data:
            raise ValueError("Cannot transcribe an empty audio blob")
        
        start_time = time.time()
        body, _ = await self._post(data=self._form(audio))
        text = parse_transcription(body)
        logger.info(f"Transcribed {len(audio)} bytes in {time.time() - start_time:.2f}s")
        logger.debug(f"Transcript: '{text}'")
        return text
