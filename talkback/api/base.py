"""Shared HTTP plumbing for the OpenAI audio and chat endpoints."""

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

import aiohttp

from ..errors import HttpError, MissingCredential, NetworkError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_TIMEOUT_SECONDS = 30.0


class OpenAIClient:
    """Base class: bearer auth, per-call timeout and error translation."""

    endpoint = ""

    def __init__(self, api_key: str, base_url: str = DEFAULT_BASE_URL,
                 timeout: float = DEFAULT_TIMEOUT_SECONDS):
        """Initialize client.
        
        Args:
            api_key: OpenAI API key
            base_url: API root, e.g. https://api.openai.com/v1
            timeout: Total seconds allowed for one request
        """
        if not api_key:
            raise MissingCredential(f"{type(self).__name__} requires an API key")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.endpoint}"

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    async def _post(self, *, json: Optional[Dict[str, Any]] = None,
                    data: Optional[aiohttp.FormData] = None) -> Tuple[bytes, str]:
        """POST to the endpoint and return the raw body bytes together with the content type.

        Raises:
            NetworkError: connection failure or timeout
            HttpError: non-2xx status
        """
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        logger.debug(f"POST {self.url} (timeout={self.timeout}s)")
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.url, headers=self._headers(), json=json, data=data) as response:
                    body = await response.read()
                    if response.status < 200 or response.status >= 300:
                        text = body.decode("utf-8", errors="replace")
                        logger.error(f"{self.url} returned HTTP {response.status}")
                        raise HttpError(response.status, text, url=self.url)
                    logger.debug(f"{self.url} returned {len(body)} bytes")
                    return body, response.headers.get("Content-Type", "")
        except asyncio.TimeoutError as e:
            logger.error(f"Request to {self.url} timed out after {self.timeout}s")
            raise NetworkError(f"Request to {self.url} timed out after {self.timeout}s") from e
        except aiohttp.ClientError as e:
            logger.error(f"Request to {self.url} failed: {e}")
            raise NetworkError(f"Request to {self.url} failed: {e}") from e
