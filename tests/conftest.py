"""Pytest configuration and fixtures for Talkback tests."""

import asyncio
import io
import json
import logging
import threading
import wave
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import Mock, patch

import numpy as np
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from talkback.audio.base import PermissionGate, PlaybackController, RecordingController
from talkback.errors import DeviceError
from talkback.models.audio import AudioBlob, AudioHandle, AudioStats
from talkback.pipeline import PipelineOrchestrator


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without network or hardware")
    config.addinivalue_line("markers", "integration: tests that wire several components together")


@pytest.fixture
def sample_audio_chunk():
    """Generate 1024 samples of 16-bit audio (440Hz sine)."""
    sample_rate = 16000
    duration = 1024 / sample_rate
    t = np.linspace(0, duration, 1024, False)
    wave_data = np.sin(2 * np.pi * 440 * t)
    audio_data = (wave_data * 32767 * 0.5).astype(np.int16)
    return audio_data.tobytes()


@pytest.fixture
def wav_bytes(sample_audio_chunk):
    """A small valid mono 16kHz WAV file."""
    buffer = io.BytesIO()
    with wave.open(buffer, 'wb') as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(16000)
        for _ in range(4):
            wf.writeframes(sample_audio_chunk)
    return buffer.getvalue()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()
        
        mock_stream.read.return_value = b'\x00' * 2048  # Silent audio
        mock_stream.write.return_value = None
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None
        
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_sample_size.return_value = 2
        mock_pyaudio_instance.get_format_from_width.return_value = 8
        mock_pyaudio_instance.get_default_input_device_info.return_value = {
            'name': 'Mock Microphone',
            'maxInputChannels': 1,
        }
        
        mock_pyaudio_class.return_value = mock_pyaudio_instance
        
        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


# Fakes for the capability interfaces

class FakeRecorder(RecordingController):
    """Writes a fixed payload to a temp file on stop()."""

    def __init__(self, directory: Path, data: bytes = b"fake-m4a-audio",
                 start_error: Optional[Exception] = None,
                 stop_error: Optional[Exception] = None):
        self.directory = directory
        self.data = data
        self.start_error = start_error
        self.stop_error = stop_error
        self.is_recording = False
        self.start_calls = 0
        self.stop_calls = 0
        self.handles: List[AudioHandle] = []

    def start(self) -> None:
        self.start_calls += 1
        if self.start_error is not None:
            raise self.start_error
        self.is_recording = True

    def stop(self) -> AudioHandle:
        self.stop_calls += 1
        if self.stop_error is not None:
            raise self.stop_error
        if not self.is_recording:
            raise DeviceError("Capture device was never started")
        self.is_recording = False
        path = self.directory / f"recording_{self.stop_calls}.m4a"
        path.write_bytes(self.data)
        handle = AudioHandle(path=path, filename="audio.m4a", content_type="audio/m4a", temporary=True)
        self.handles.append(handle)
        return handle

    def get_recording_stats(self) -> Optional[AudioStats]:
        if not self.is_recording:
            return None
        return AudioStats(is_recording=True, duration_seconds=1.5, sample_rate=16000,
                          chunk_size=1024, total_chunks=24, peak_level=0.5)


class FakePlayer(PlaybackController):
    """Records what it was asked to play and reports completion."""

    def __init__(self, raise_error: Optional[Exception] = None,
                 report_error: Optional[Exception] = None,
                 threaded: bool = False):
        self.raise_error = raise_error
        self.report_error = report_error
        self.threaded = threaded
        self.played: List[AudioBlob] = []

    def play(self, audio, on_complete, on_error=None) -> None:
        self.played.append(audio)
        if self.raise_error is not None:
            raise self.raise_error
        if self.report_error is not None:
            on_error(self.report_error)
        elif self.threaded:
            threading.Thread(target=on_complete, daemon=True).start()
        else:
            on_complete()


class FakePermissionGate(PermissionGate):

    def __init__(self, granted: bool = True, grant_on_request: bool = True):
        self.granted = granted
        self.grant_on_request = grant_on_request
        self.requests = 0

    def has_capture_permission(self) -> bool:
        return self.granted

    async def request_permission(self) -> bool:
        self.requests += 1
        self.granted = self.grant_on_request
        return self.granted


class FakeTranscriber:

    def __init__(self, text: str = "hello", error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls: List[AudioBlob] = []

    async def transcribe(self, audio: AudioBlob) -> str:
        self.calls.append(audio)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.text


class FakeCompleter:

    def __init__(self, reply: str = "hello there", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: List[str] = []

    async def complete(self, prompt: str) -> str:
        self.calls.append(prompt)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeSynthesizer:

    def __init__(self, audio: Optional[AudioBlob] = None, error: Optional[Exception] = None):
        self.audio = audio or AudioBlob(data=b"\x01\x02\x03", filename="speech.mp3", content_type="audio/mpeg")
        self.error = error
        self.calls: List[str] = []

    async def synthesize(self, text: str) -> AudioBlob:
        self.calls.append(text)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.audio


class PipelineHarness:
    """Orchestrator wired to fakes, with every emitted event captured."""

    def __init__(self, tmp_path: Path, **overrides):
        self.recorder = overrides.pop("recorder", None) or FakeRecorder(tmp_path)
        self.transcriber = overrides.pop("transcriber", None) or FakeTranscriber()
        self.completer = overrides.pop("completer", None) or FakeCompleter()
        self.synthesizer = overrides.pop("synthesizer", None) or FakeSynthesizer()
        self.player = overrides.pop("player", None) or FakePlayer()
        self.permission_gate = overrides.pop("permission_gate", None) or FakePermissionGate()
        if overrides:
            raise TypeError(f"Unknown harness overrides: {sorted(overrides)}")

        self.state_changes = []
        self.failures = []
        self.infos = []
        self.results = []

        self.orchestrator = PipelineOrchestrator(
            self.recorder,
            self.transcriber,
            self.completer,
            self.synthesizer,
            self.player,
            self.permission_gate,
            state_callback=self.state_changes.append,
            error_callback=self.failures.append,
            info_callback=self.infos.append,
            result_callback=self.results.append,
        )

    @property
    def states(self):
        return [change.current for change in self.state_changes]

    @property
    def busy_flags(self):
        return [change.busy for change in self.state_changes]

    async def run_cycle(self):
        """Start, stop, and wait for the pipeline to settle."""
        await self.orchestrator.toggle_recording()
        await self.orchestrator.toggle_recording()
        await self.orchestrator.wait_until_idle()


@pytest.fixture
def fakes():
    """Access to the fake collaborator classes."""
    return {
        "recorder": FakeRecorder,
        "player": FakePlayer,
        "permission_gate": FakePermissionGate,
        "transcriber": FakeTranscriber,
        "completer": FakeCompleter,
        "synthesizer": FakeSynthesizer,
    }


@pytest.fixture
def make_harness(tmp_path):
    """Factory for PipelineHarness; keyword arguments replace individual fakes."""
    def factory(**overrides) -> PipelineHarness:
        return PipelineHarness(tmp_path, **overrides)
    return factory


# Local stand-in for the OpenAI endpoints

class FakeOpenAIServer:
    """aiohttp application serving canned responses and recording requests."""

    def __init__(self):
        self.responses: Dict[str, Tuple[int, bytes, str]] = {
            "/v1/audio/transcriptions": (200, json.dumps({"text": "hi"}).encode(), "application/json"),
            "/v1/chat/completions": (
                200,
                json.dumps({"choices": [{"message": {"content": "hello there"}}]}).encode(),
                "application/json",
            ),
            "/v1/audio/speech": (200, b"\x01\x02\x03", "audio/mpeg"),
        }
        self.delays: Dict[str, float] = {}
        self.requests: List[Dict[str, Any]] = []
        self.base_url = ""

    def respond(self, path: str, status: int = 200, body: Any = b"", content_type: str = "application/json"):
        if isinstance(body, (dict, list)):
            body = json.dumps(body).encode()
        elif isinstance(body, str):
            body = body.encode()
        self.responses[f"/v1{path}"] = (status, body, content_type)

    def requests_to(self, path: str) -> List[Dict[str, Any]]:
        return [r for r in self.requests if r["path"] == f"/v1{path}"]

    async def _handle(self, request: web.Request) -> web.Response:
        record: Dict[str, Any] = {
            "path": request.path,
            "authorization": request.headers.get("Authorization"),
            "content_type": request.content_type,
        }
        if request.content_type == "multipart/form-data":
            form = await request.post()
            upload = form["file"]
            record["form"] = {
                "model": form.get("model"),
                "filename": upload.filename,
                "file_content_type": upload.content_type,
                "file": upload.file.read(),
            }
        else:
            record["json"] = await request.json()
        self.requests.append(record)

        delay = self.delays.get(request.path)
        if delay:
            await asyncio.sleep(delay)

        status, body, content_type = self.responses[request.path]
        return web.Response(status=status, body=body, content_type=content_type)

    def build_app(self) -> web.Application:
        app = web.Application()
        for path in self.responses:
            app.router.add_post(path, self._handle)
        return app


@pytest_asyncio.fixture
async def fake_api():
    """Running FakeOpenAIServer; clients should use ``fake_api.base_url``."""
    api = FakeOpenAIServer()
    server = TestServer(api.build_app())
    await server.start_server()
    api.base_url = str(server.make_url("/v1"))
    yield api
    await server.close()
