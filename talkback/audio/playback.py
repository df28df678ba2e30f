"""Audio playback with PyAudio for synthesized speech."""

import os
import pyaudio
import tempfile
import wave
import logging
from threading import Thread
from typing import Callable, Optional

from .base import PlaybackController
from ..errors import DecodeError, PlaybackError
from ..models.audio import AudioBlob

logger = logging.getLogger(__name__)


class PyAudioPlayer(PlaybackController):
    """Plays WAV audio on the default output device.

    PyAudio only moves PCM frames, so the synthesis endpoint must be asked
    for ``RESPONSE_FORMAT`` output; ``from_config`` does this unless
    ``synthesis.response_format`` names another container, which is then
    rejected here with DecodeError.
    """
    
    RESPONSE_FORMAT = "wav"
    
    def __init__(self, chunk_size: int = 1024):
        self.chunk_size = chunk_size
        self.playback_thread: Optional[Thread] = None
    
    def play(self, audio: AudioBlob, on_complete: Callable[[], None],
             on_error: Optional[Callable[[Exception], None]] = None) -> None:
        """Write audio to a temp file, open it and stream it on a background thread."""
        sink_path = self._write_sink(audio)
        try:
            wav_file = wave.open(sink_path, 'rb')
        except (wave.Error, EOFError) as e:
            os.remove(sink_path)
            raise DecodeError(f"Cannot decode {audio.content_type} audio: {e}") from e
        
        try:
            pyaudio_instance = pyaudio.PyAudio()
            stream = pyaudio_instance.open(
                format=pyaudio_instance.get_format_from_width(wav_file.getsampwidth()),
                channels=wav_file.getnchannels(),
                rate=wav_file.getframerate(),
                output=True,
            )
        except (OSError, IOError) as e:
            wav_file.close()
            os.remove(sink_path)
            raise PlaybackError(f"Could not open output device: {e}") from e
        
        logger.info(f"Playing {audio.filename}: {wav_file.getnframes()} frames at {wav_file.getframerate()}Hz")
        self.playback_thread = Thread(
            target=self._stream_frames,
            args=(wav_file, pyaudio_instance, stream, sink_path, on_complete, on_error),
            daemon=True,
        )
        self.playback_thread.name = "AudioPlaybackThread"
        self.playback_thread.start()
    
    def _write_sink(self, audio: AudioBlob) -> str:
        extension = os.path.splitext(audio.filename)[1] or ".wav"
        with tempfile.NamedTemporaryFile(prefix="tts_audio", suffix=extension, delete=False) as f:
            f.write(audio.data)
            return f.name
    
    def _stream_frames(self, wav_file, pyaudio_instance, stream, sink_path: str,
                       on_complete: Callable[[], None],
                       on_error: Optional[Callable[[Exception], None]]) -> None:
        """Internal method: playback loop in background thread."""
        failure: Optional[Exception] = None
        try:
            data = wav_file.readframes(self.chunk_size)
            while data:
                stream.write(data)
                data = wav_file.readframes(self.chunk_size)
        except (OSError, IOError) as e:
            logger.error(f"Playback failed: {e}")
            failure = PlaybackError(f"Playback failed: {e}")
        finally:
            stream.stop_stream()
            stream.close()
            pyaudio_instance.terminate()
            wav_file.close()
            os.remove(sink_path)
        
        if failure is None:
            logger.info("Playback finished")
            on_complete()
        elif on_error is not None:
            on_error(failure)
        else:
            # Without an error callback the caller still has to be released.
            on_complete()
