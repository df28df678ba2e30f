"""Terminal screen: one key toggles recording, status is drawn with rich."""

import asyncio
import logging
from concurrent.futures import Future
from typing import Optional

from pubsub import pub
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .keyboard_input import KeyboardInputHandler
from ..errors import PipelineBusy
from ..models.audio import AudioStats
from ..models.events import PipelineFailure, StageResult, StateChange
from ..models.pipeline import BusyState, PipelineState, busy_label
from ..pipeline import PipelineOrchestrator, PipelinePublisher

logger = logging.getLogger(__name__)

TOGGLE_KEYS = (" ", "\r", "\n")
QUIT_KEYS = ("q", "\x03")
LEVEL_REFRESH_SECONDS = 0.25
LEVEL_BAR_WIDTH = 20

BUSY_STYLES = {
    BusyState.IDLE: "bold green",
    BusyState.RECORDING: "bold red",
    BusyState.THINKING: "bold yellow",
}


class VoiceScreen:
    """Terminal front end for the pipeline orchestrator."""
    
    def __init__(self, orchestrator: PipelineOrchestrator, publisher: PipelinePublisher,
                 console: Optional[Console] = None):
        self.orchestrator = orchestrator
        self.publisher = publisher
        self.console = console or Console()
        
        self.busy_state = BusyState.IDLE
        self.last_transcript: Optional[str] = None
        self.last_reply: Optional[str] = None
        self.last_error: Optional[str] = None
        self.notice: Optional[str] = None
        self.recording_stats: Optional[AudioStats] = None
        
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.quit_event: Optional[asyncio.Event] = None
        self.input_handler = KeyboardInputHandler(self.on_key)
    
    def subscribe(self) -> None:
        pub.subscribe(self.on_state, self.publisher.state_topic)
        pub.subscribe(self.on_error, self.publisher.error_topic)
        pub.subscribe(self.on_info, self.publisher.info_topic)
        pub.subscribe(self.on_result, self.publisher.result_topic)
    
    def unsubscribe(self) -> None:
        pub.unsubscribe(self.on_state, self.publisher.state_topic)
        pub.unsubscribe(self.on_error, self.publisher.error_topic)
        pub.unsubscribe(self.on_info, self.publisher.info_topic)
        pub.unsubscribe(self.on_result, self.publisher.result_topic)
    
    # Pub/sub listeners, called on the event loop thread
    
    def on_state(self, event: StateChange) -> None:
        if event.current is PipelineState.RECORDING:
            self.last_error = None
        else:
            self.recording_stats = None
        if event.busy_state is not self.busy_state:
            self.busy_state = event.busy_state
            self.render()
    
    def on_error(self, event: PipelineFailure) -> None:
        self.last_error = event.message
        self.render()
    
    def on_info(self, event: str) -> None:
        self.notice = event
        self.render()
    
    def on_result(self, event: StageResult) -> None:
        if event.stage is PipelineState.TRANSCRIBING:
            self.last_transcript = event.text
            self.last_reply = None
        else:
            self.last_reply = event.text
        self.render()
    
    def render(self) -> None:
        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column()
        table.add_row("Status", f"[{BUSY_STYLES[self.busy_state]}]{busy_label(self.busy_state)}[/]")
        if self.notice:
            table.add_row("Notice", self.notice)
        if self.last_transcript:
            table.add_row("You", self.last_transcript)
        if self.last_reply:
            table.add_row("Reply", self.last_reply)
        if self.recording_stats and self.busy_state is BusyState.RECORDING:
            table.add_row("Level", self._level_text(self.recording_stats))
        if self.last_error:
            table.add_row("Error", f"[red]{self.last_error}[/red]")
        
        self.console.clear()
        self.console.print(Panel(table, title="Talkback", subtitle="space/enter = toggle, q = quit"))
    
    def refresh_level(self) -> None:
        """Pull capture statistics from the recorder and redraw while recording."""
        if self.busy_state is not BusyState.RECORDING:
            return
        stats = self.orchestrator.recorder.get_recording_stats()
        if stats is None:
            return
        self.recording_stats = stats
        self.render()
    
    @staticmethod
    def _level_text(stats: AudioStats) -> str:
        peak = min(max(stats.peak_level, 0.0), 1.0)
        peak_bar = "\u2588" * int(peak * LEVEL_BAR_WIDTH)
        return f"[{peak_bar:<{LEVEL_BAR_WIDTH}}] {peak:.3f}  {stats.duration_seconds:.1f}s"
    
    async def _refresh_levels(self) -> None:
        while True:
            await asyncio.sleep(LEVEL_REFRESH_SECONDS)
            self.refresh_level()
    
    # Keyboard thread
    
    def on_key(self, key: str) -> bool:
        """Called from the keyboard thread. Returns False to stop reading keys."""
        if key in QUIT_KEYS:
            self.loop.call_soon_threadsafe(self.quit_event.set)
            return False
        if key in TOGGLE_KEYS:
            future = asyncio.run_coroutine_threadsafe(self.orchestrator.toggle_recording(), self.loop)
            future.add_done_callback(self._on_toggle_done)
        return True
    
    def _on_toggle_done(self, future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is None:
            return
        if isinstance(error, PipelineBusy):
            self.loop.call_soon_threadsafe(self.on_info, "Still thinking, please wait")
        else:
            logger.error(f"Toggle failed: {error}", exc_info=error)
            self.loop.call_soon_threadsafe(self.on_info, f"Error: {error}")
    
    async def run(self) -> None:
        """Run until the user quits."""
        self.loop = asyncio.get_running_loop()
        self.quit_event = asyncio.Event()
        self.subscribe()
        self.render()
        self.input_handler.start()
        meter = asyncio.create_task(self._refresh_levels())
        try:
            await self.quit_event.wait()
        finally:
            meter.cancel()
            self.input_handler.stop()
            await self.orchestrator.shutdown()
            self.unsubscribe()
