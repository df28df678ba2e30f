"""Chat completion client for sending a prompt and getting a reply."""

import logging
import time

from .base import OpenAIClient
from .parsers import parse_completion

logger = logging.getLogger(__name__)


class CompletionClient(OpenAIClient):
    """Single-turn chat client. No history is kept between calls."""

    endpoint = "/chat/completions"

    def __init__(self, api_key: str, model: str = "gpt-3.5-turbo", **kwargs):
        """Initialize completion client.
        
        Args:
            api_key: OpenAI API key
            model: Chat model to use
        """
        super().__init__(api_key, **kwargs)
        self.model = model
        logger.info(f"CompletionClient initialized with model: {model}")

    def build_payload(self, prompt: str) -> dict:
        return {
            "model": self.model,
            "messages": [
                {
                    "role": "user",
                    "content": prompt
                }
            ]
        }

    async def complete(self, prompt: str) -> str:
        """Send a prompt and get the generated reply.
        
        Args:
            prompt: User message
            
        Returns:
            Reply text from the model
        """
        start_time = time.time()
        body, _ = await self._post(json=self.build_payload(prompt))
        reply = parse_completion(body)
        logger.info(f"Completion received in {time.time() - start_time:.2f}s ({len(reply)} chars)")
        return reply
