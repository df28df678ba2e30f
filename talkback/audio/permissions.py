"""Microphone permission check for desktop platforms."""

import asyncio
import logging

import pyaudio

from .base import PermissionGate

logger = logging.getLogger(__name__)


class PyAudioPermissionGate(PermissionGate):
    """Desktop systems have no runtime prompt; capture is allowed when a
    default input device exists."""

    def has_capture_permission(self) -> bool:
        pyaudio_instance = pyaudio.PyAudio()
        try:
            info = pyaudio_instance.get_default_input_device_info()
            logger.debug(f"Default input device: {info.get('name')}")
            return int(info.get('maxInputChannels', 0)) > 0
        except (OSError, IOError) as e:
            logger.debug(f"Microphone not available: {e}")
            return False
        finally:
            pyaudio_instance.terminate()

    async def request_permission(self) -> bool:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.has_capture_permission)
