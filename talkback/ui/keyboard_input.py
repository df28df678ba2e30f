"""Single-keypress reader for the push-to-talk terminal UI."""

import contextlib
import logging
import os
import sys
import threading
import time
from typing import Callable, Iterator, Optional, TextIO

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.1


class KeyboardInputHandler:
    """Read single keypresses on a background thread and hand them to a callback.

    The terminal is switched to cbreak mode once for the lifetime of the
    reader thread and restored when it exits, so keys arrive without Enter
    and echo while the pipeline runs.
    """

    def __init__(self, callback: Callable[[str], bool], stream: Optional[TextIO] = None):
        """Initialize keyboard handler.

        Args:
            callback: Takes a lower-cased key and returns False to stop reading
            stream: Input stream; defaults to sys.stdin
        """
        self.callback = callback
        self.stream = stream or sys.stdin
        self.running = False
        self.thread: Optional[threading.Thread] = None
        self.finished = threading.Event()

    def start(self) -> None:
        if self.running:
            return

        self.running = True
        self.finished.clear()
        self.thread = threading.Thread(target=self._input_loop, name="KeyboardInputThread", daemon=True)
        self.thread.start()
        logger.info("Keyboard input handler started")

    def stop(self) -> None:
        self.running = False
        if self.thread and self.thread is not threading.current_thread():
            self.thread.join(timeout=1.0)
        logger.info("Keyboard input handler stopped")

    def _input_loop(self) -> None:
        try:
            with self._key_mode():
                while self.running:
                    key = self._poll_key(POLL_INTERVAL)
                    if key is None:
                        continue
                    logger.debug(f"Key detected: {key!r}")
                    if not self.callback(key):
                        logger.info("Callback returned False, leaving input loop")
                        break
        finally:
            self.running = False
            self.finished.set()
            logger.info("Keyboard input loop ended")

    @contextlib.contextmanager
    def _key_mode(self) -> Iterator[None]:
        """Put a Unix tty into cbreak mode for the duration of the block."""
        if sys.platform == "win32" or not self.stream.isatty():
            yield
            return

        import termios
        import tty

        fd = self.stream.fileno()
        saved = termios.tcgetattr(fd)
        tty.setcbreak(fd)
        try:
            yield
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, saved)

    def _poll_key(self, timeout: float) -> Optional[str]:
        """Wait up to ``timeout`` seconds for one key; None if nothing was typed."""
        if sys.platform == "win32":
            return self._poll_key_windows(timeout)

        import select

        ready, _, _ = select.select([self.stream], [], [], timeout)
        if not ready:
            return None
        # Unbuffered read so select() sees any keys still pending
        data = os.read(self.stream.fileno(), 1)
        if not data:
            # EOF on a closed or redirected stdin
            self.running = False
            return None
        return data.decode('utf-8', errors='ignore').lower() or None

    def _poll_key_windows(self, timeout: float) -> Optional[str]:
        import msvcrt

        if not msvcrt.kbhit():
            time.sleep(timeout)
            return None
        return msvcrt.getch().decode('utf-8', errors='ignore').lower()
