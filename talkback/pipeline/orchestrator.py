"""Pipeline orchestrator: record -> transcribe -> complete -> synthesize -> play.

The orchestrator owns the one Session that may be active at a time and an
explicit PipelineState. Network clients only return values; every write to
the Session happens here. The stage chain runs as a single asyncio task
with one error boundary, so any failure skips the remaining stages, goes
through ERROR and re-arms in IDLE.
"""

import asyncio
import logging
from typing import Callable, Optional

from ..api import CompletionClient, SpeechClient, TranscriptionClient
from ..audio.base import PermissionGate, PlaybackController, RecordingController
from ..config import TalkbackConfig
from ..errors import CaptureError, PermissionDenied, PipelineBusy, TalkbackError
from ..models.audio import AudioBlob
from ..models.events import PipelineFailure, StageResult, StateChange
from ..models.pipeline import BusyState, PipelineState, busy_state_for, can_transition
from ..models.session import Session

logger = logging.getLogger(__name__)

STAGE_FAILURE_MESSAGES = {
    PipelineState.RECORDING: "failed to prepare recorder",
    PipelineState.TRANSCRIBING: "transcription failed",
    PipelineState.COMPLETING: "completion failed",
    PipelineState.SYNTHESIZING: "speech synthesis failed",
    PipelineState.PLAYING: "playback failed",
}


def describe_failure(state: PipelineState, error: BaseException) -> str:
    """Short, stage-specific message for the user."""
    if isinstance(error, PermissionDenied):
        return "permission denied"
    if isinstance(error, CaptureError) and state is PipelineState.TRANSCRIBING:
        return "failed to stop recording"
    return STAGE_FAILURE_MESSAGES.get(state, "unexpected error")


class PipelineOrchestrator:
    """Drives one voice request at a time through every stage."""
    
    def __init__(self,
                 recorder: RecordingController,
                 transcriber: TranscriptionClient,
                 completer: CompletionClient,
                 synthesizer: SpeechClient,
                 player: PlaybackController,
                 permission_gate: Optional[PermissionGate] = None,
                 state_callback: Optional[Callable[[StateChange], None]] = None,
                 error_callback: Optional[Callable[[PipelineFailure], None]] = None,
                 info_callback: Optional[Callable[[str], None]] = None,
                 result_callback: Optional[Callable[[StageResult], None]] = None):
        """Initialize orchestrator.
        
        Args:
            recorder: Microphone capture
            transcriber: Anything with ``async transcribe(AudioBlob) -> str``
            completer: Anything with ``async complete(str) -> str``
            synthesizer: Anything with ``async synthesize(str) -> AudioBlob``
            player: Audio output
            permission_gate: Checked before every recording; None skips the check
            state_callback: Called on every state transition
            error_callback: Called once per failed cycle with a user-facing message
            info_callback: Called with short status notices ("Recording started")
            result_callback: Called with the transcript and the reply as they arrive
        """
        self.recorder = recorder
        self.transcriber = transcriber
        self.completer = completer
        self.synthesizer = synthesizer
        self.player = player
        self.permission_gate = permission_gate
        
        self.state_callback = state_callback
        self.error_callback = error_callback
        self.info_callback = info_callback
        self.result_callback = result_callback
        
        self._state = PipelineState.IDLE
        self._session: Optional[Session] = None
        self._pipeline_task: Optional[asyncio.Task] = None
        self._pending_stop: Optional[asyncio.Future] = None
        self._capture_active = False
        self._toggle_lock = asyncio.Lock()
    
    @classmethod
    def from_config(cls, config: TalkbackConfig,
                    recorder: Optional[RecordingController] = None,
                    player: Optional[PlaybackController] = None,
                    permission_gate: Optional[PermissionGate] = None,
                    **callbacks) -> "PipelineOrchestrator":
        """Build the network clients from configuration; PyAudio devices unless given.

        Raises:
            MissingCredential: no API key configured
        """
        api_key = config.get_api_key()
        common = {
            "base_url": config.get('openai.base_url'),
            "timeout": config.get_timeout(),
        }
        response_format = config.get('synthesis.response_format')
        transcriber = TranscriptionClient(api_key, model=config.get('transcription.model'), **common)
        completer = CompletionClient(api_key, model=config.get('completion.model'), **common)
        
        if recorder is None:
            from ..audio.capture import PyAudioRecorder
            recorder = PyAudioRecorder(
                recordings_dir=config.get_recordings_dir(),
                sample_rate=config.get('audio.sample_rate', 16000),
                chunk_size=config.get('audio.chunk_size', 1024),
                channels=config.get('audio.channels', 1),
            )
        if player is None:
            from ..audio.playback import PyAudioPlayer
            player = PyAudioPlayer(chunk_size=config.get('audio.chunk_size', 1024))
            # PyAudio plays PCM only; the endpoint defaults to mp3
            response_format = response_format or PyAudioPlayer.RESPONSE_FORMAT
        if permission_gate is None:
            from ..audio.permissions import PyAudioPermissionGate
            permission_gate = PyAudioPermissionGate()
        
        synthesizer = SpeechClient(
            api_key,
            model=config.get('synthesis.model'),
            voice=config.get('synthesis.voice'),
            response_format=response_format,
            **common
        )
        
        return cls(recorder, transcriber, completer, synthesizer, player, permission_gate, **callbacks)
    
    @property
    def state(self) -> PipelineState:
        return self._state
    
    @property
    def busy_state(self) -> BusyState:
        return busy_state_for(self._state)
    
    @property
    def busy(self) -> bool:
        return self._state is not PipelineState.IDLE
    
    @property
    def session(self) -> Optional[Session]:
        return self._session
    
    async def toggle_recording(self) -> PipelineState:
        """Start a recording when idle, or stop it and run the pipeline.
        
        Returns:
            State after the toggle (RECORDING, TRANSCRIBING, or IDLE if
            starting failed)
            
        Raises:
            PipelineBusy: a previous request is still being processed
        """
        async with self._toggle_lock:
            if self._state is PipelineState.IDLE:
                await self._start_recording()
            elif self._state is PipelineState.RECORDING:
                self._stop_recording()
            else:
                raise PipelineBusy(f"Pipeline is busy ({self._state.value}), wait until it is idle")
            return self._state
    
    async def wait_until_idle(self) -> None:
        """Wait for the running stage chain, if any, to finish."""
        task = self._pipeline_task
        if task is not None:
            await task
    
    async def shutdown(self) -> None:
        """Abandon the current cycle: stop capture, cancel network work, drop the session."""
        task = self._pipeline_task
        if task is not None and not task.done():
            logger.info("Cancelling in-flight pipeline")
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        
        stopping, self._pending_stop = self._pending_stop, None
        if stopping is not None:
            # recorder.stop() outlives the cancelled chain; its file belongs to no session
            try:
                handle = await stopping
                handle.discard()
            except CaptureError as e:
                logger.warning(f"Error finishing recorder stop during shutdown: {e}")
        
        if self._capture_active:
            self._capture_active = False
            try:
                handle = await self._run_blocking(self.recorder.stop)
                handle.discard()
            except CaptureError as e:
                logger.warning(f"Error stopping recorder during shutdown: {e}")
        
        self._discard_session()
        if self._state is not PipelineState.IDLE:
            self._set_state(PipelineState.IDLE)
        logger.info("Pipeline shut down")
    
    # Stages
    
    async def _start_recording(self) -> None:
        self._session = Session()
        self._transition(PipelineState.RECORDING)
        try:
            await self._ensure_permission()
            await self._run_blocking(self.recorder.start)
        except Exception as e:
            self._fail(e)
            return
        self._capture_active = True
        logger.info(f"Recording started for session: {self._session.session_id}")
        self._notify_info("Recording started")
    
    def _stop_recording(self) -> None:
        self._transition(PipelineState.TRANSCRIBING)
        self._pipeline_task = asyncio.create_task(self._run_pipeline(self._session))
    
    async def _run_pipeline(self, session: Session) -> None:
        """Run every stage after the recording stops. The only error boundary for the chain."""
        try:
            session.audio_input = await self._stop_capture()
            self._notify_info("Recording stopped")
            
            audio = await self._run_blocking(session.audio_input.read)
            session.transcript = await self.transcriber.transcribe(audio)
            session.release_audio_input()
            self._publish_result(PipelineState.TRANSCRIBING, session.transcript)
            
            self._transition(PipelineState.COMPLETING)
            session.reply_text = await self.completer.complete(session.transcript)
            self._publish_result(PipelineState.COMPLETING, session.reply_text)
            
            self._transition(PipelineState.SYNTHESIZING)
            session.audio_output = await self.synthesizer.synthesize(session.reply_text)
            
            self._transition(PipelineState.PLAYING)
            await self._play(session.audio_output)
        except Exception as e:
            self._fail(e)
            return
        
        logger.info(f"Session {session.session_id} completed")
        self._discard_session()
        self._transition(PipelineState.IDLE)
    
    async def _stop_capture(self):
        """Finalize the recording. Cancellation does not interrupt the recorder."""
        self._capture_active = False
        stopping = asyncio.get_running_loop().run_in_executor(None, self.recorder.stop)
        self._pending_stop = stopping
        try:
            handle = await asyncio.shield(stopping)
        except Exception:
            self._pending_stop = None
            raise
        # On cancellation the future stays pending for shutdown() to collect
        self._pending_stop = None
        return handle
    
    async def _ensure_permission(self) -> None:
        if self.permission_gate is None:
            return
        if await self._run_blocking(self.permission_gate.has_capture_permission):
            return
        logger.info("Requesting capture permission")
        if not await self.permission_gate.request_permission():
            raise PermissionDenied("Microphone permission denied")
    
    async def _play(self, audio: AudioBlob) -> None:
        """Hand audio to the player and wait for its completion callback."""
        loop = asyncio.get_running_loop()
        finished = loop.create_future()
        
        def resolve(error: Optional[Exception]) -> None:
            if finished.done():
                return
            if error is None:
                finished.set_result(None)
            else:
                finished.set_exception(error)
        
        # Callbacks may arrive on the player's thread.
        self.player.play(
            audio,
            on_complete=lambda: loop.call_soon_threadsafe(resolve, None),
            on_error=lambda error: loop.call_soon_threadsafe(resolve, error),
        )
        await finished
    
    # State handling
    
    def _transition(self, target: PipelineState) -> None:
        if not can_transition(self._state, target):
            raise RuntimeError(f"Invalid pipeline transition: {self._state.value} -> {target.value}")
        self._set_state(target)
    
    def _set_state(self, target: PipelineState) -> None:
        previous = self._state
        self._state = target
        session_id = self._session.session_id if self._session else None
        logger.info(f"Pipeline state: {previous.value} -> {target.value}")
        if self.state_callback:
            self.state_callback(StateChange(
                previous=previous,
                current=target,
                busy_state=busy_state_for(target),
                session_id=session_id,
            ))
    
    def _fail(self, error: Exception) -> None:
        failed_state = self._state
        message = describe_failure(failed_state, error)
        session_id = self._session.session_id if self._session else None
        
        if isinstance(error, TalkbackError):
            logger.error(f"{message} ({failed_state.value}): {error}")
        else:
            logger.error(f"{message} ({failed_state.value}): unexpected {type(error).__name__}: {error}",
                         exc_info=error)
        
        self._transition(PipelineState.ERROR)
        self._discard_session()
        self._transition(PipelineState.IDLE)
        
        if self.error_callback:
            self.error_callback(PipelineFailure(
                message=message,
                failed_state=failed_state,
                error=error,
                session_id=session_id,
            ))
    
    def _discard_session(self) -> None:
        if self._session is not None:
            self._session.discard()
            self._session = None
    
    def _notify_info(self, message: str) -> None:
        if self.info_callback:
            self.info_callback(message)
    
    def _publish_result(self, stage: PipelineState, text: str) -> None:
        if self.result_callback:
            session_id = self._session.session_id if self._session else None
            self.result_callback(StageResult(stage=stage, text=text, session_id=session_id))
    
    async def _run_blocking(self, func):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func)
