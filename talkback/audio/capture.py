"""Microphone capture with PyAudio, written to a WAV file on stop."""

import os
import pyaudio
import tempfile
import wave
import logging
from pathlib import Path
from threading import Thread, Event, Lock
from typing import Optional, List
from datetime import datetime
import numpy as np

from .base import RecordingController
from ..errors import DeviceError, DeviceUnavailable
from ..models.audio import AudioHandle, AudioStats


logger = logging.getLogger(__name__)


class PyAudioRecorder(RecordingController):
    """Records from the default input device on a background thread."""
    
    def __init__(
        self,
        recordings_dir: Optional[str] = None,
        sample_rate: int = 16000,
        chunk_size: int = 1024,
        channels: int = 1,
        format: int = pyaudio.paInt16,
    ):
        """Initialize recorder with specified parameters.
        
        Args:
            recordings_dir: Where finished recordings are kept. None writes to
                a temp file, which is deleted once discarded.
            sample_rate: Audio sample rate in Hz
            chunk_size: Size of each audio chunk in samples
            channels: Number of audio channels (1 for mono)
            format: Audio format (16-bit signed int)
        """
        self.recordings_dir = Path(recordings_dir) if recordings_dir else None
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format
        
        # Recording thread management
        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False
        
        # Captured frames and statistics
        self._frames_lock = Lock()
        self.frames: List[bytes] = []
        self.start_time: Optional[datetime] = None
        self.total_chunks = 0
        self.peak_level = 0.0
        
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream = None
    
    def start(self) -> None:
        """Open the input stream and start recording in a background thread."""
        if self.is_recording:
            raise DeviceError("Recording already in progress")
        
        logger.info("Starting audio recording")
        try:
            self.__open_audio_stream()
        except (OSError, IOError) as e:
            self._release_audio()
            raise DeviceUnavailable(f"Could not open capture device: {e}") from e
        
        self.stop_event.clear()
        self.start_time = datetime.now()
        self.total_chunks = 0
        self.peak_level = 0.0
        with self._frames_lock:
            self.frames = []
        
        self.recording_thread = Thread(target=self._record_continuously, daemon=True)
        self.recording_thread.name = "AudioCaptureThread"
        self.recording_thread.start()
        self.is_recording = True
    
    def stop(self) -> AudioHandle:
        """Stop recording, write the WAV file and return a handle to it."""
        if not self.is_recording:
            raise DeviceError("Capture device was never started")
        
        logger.info("Stopping audio recording")
        self.stop_event.set()
        
        if self.recording_thread and self.recording_thread.is_alive():
            self.recording_thread.join(timeout=2.0)
            if self.recording_thread.is_alive():
                logger.warning("Recording thread did not stop cleanly")
        
        self.is_recording = False
        sample_width = self.pyaudio_instance.get_sample_size(self.format) if self.pyaudio_instance else 2
        self._release_audio()
        logger.info(f"Recording stopped. Total chunks: {self.total_chunks}")
        
        with self._frames_lock:
            frames = self.frames
            self.frames = []
        if not frames:
            raise DeviceError("No audio was captured")
        
        return self._write_wav(frames, sample_width)
    
    def __open_audio_stream(self) -> None:
        self.pyaudio_instance = pyaudio.PyAudio()
        self.stream = self.pyaudio_instance.open(
            format=self.format,
            channels=self.channels,
            rate=self.sample_rate,
            input=True,
            frames_per_buffer=self.chunk_size,
            stream_callback=None
        )
        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.chunk_size} samples/chunk")
    
    def _record_continuously(self) -> None:
        """Internal method: continuous recording loop in background thread."""
        while not self.stop_event.is_set():
            try:
                audio_chunk = self.stream.read(self.chunk_size, exception_on_overflow=False)
            except (OSError, IOError) as e:
                logger.error(f"Capture read failed: {e}")
                break
            self.total_chunks += 1
            self._update_peak(audio_chunk)
            with self._frames_lock:
                self.frames.append(audio_chunk)
    
    def _update_peak(self, audio_chunk: bytes) -> None:
        samples = np.frombuffer(audio_chunk, dtype=np.int16)
        if samples.size:
            level = float(np.abs(samples.astype(np.int32)).max()) / 32768.0
            self.peak_level = max(self.peak_level, level)
    
    def _release_audio(self) -> None:
        if self.stream is not None:
            try:
                self.stream.stop_stream()
                self.stream.close()
            finally:
                self.stream = None
        if self.pyaudio_instance is not None:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None
    
    def _write_wav(self, frames: List[bytes], sample_width: int) -> AudioHandle:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"recording_{timestamp}.wav"
        if self.recordings_dir is not None:
            self.recordings_dir.mkdir(parents=True, exist_ok=True)
            path = self.recordings_dir / filename
            temporary = False
        else:
            fd, tmp_path = tempfile.mkstemp(prefix=f"recording_{timestamp}_", suffix=".wav")
            os.close(fd)
            path = Path(tmp_path)
            temporary = True
        
        with wave.open(str(path), 'wb') as wf:
            wf.setnchannels(self.channels)
            wf.setsampwidth(sample_width)
            wf.setframerate(self.sample_rate)
            for chunk in frames:
                wf.writeframes(chunk)
        
        logger.info(f"Audio saved to {path}")
        return AudioHandle(path=path, filename="audio.wav", content_type="audio/wav", temporary=temporary)
    
    def get_recording_stats(self) -> AudioStats:
        """Get current recording statistics."""
        duration = 0.0
        if self.start_time:
            duration = (datetime.now() - self.start_time).total_seconds()
        
        return AudioStats(
            is_recording=self.is_recording,
            duration_seconds=duration,
            sample_rate=self.sample_rate,
            chunk_size=self.chunk_size,
            total_chunks=self.total_chunks,
            peak_level=self.peak_level,
        )
