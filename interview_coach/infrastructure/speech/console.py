"""
Console stand-ins for the speech services.

ConsoleCapture treats every typed line as one finalized speech fragment and
ConsolePlayback prints what the interviewer would say.
"""
import asyncio
import logging
import sys
import threading
from typing import Callable, Optional, TextIO

logger = logging.getLogger("speech_console")

STOP_COMMANDS = ("", "/stop")


class ConsoleCapture:
    """
    Capture service backed by standard input.

    Lines are read on a daemon thread and delivered on the event loop. An
    empty line, "/stop" or end of input calls on_stop_requested.
    """

    def __init__(self, stream: Optional[TextIO] = None,
                 on_stop_requested: Optional[Callable[[], None]] = None):
        self.stream = stream or sys.stdin
        self.on_stop_requested = on_stop_requested
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._reader: Optional[threading.Thread] = None
        self._active = False
        self._on_result = None
        self._on_end = None
        self._lines: Optional["asyncio.Queue[Optional[str]]"] = None
        self._input_closed = False

    def start(self, on_result, on_error, on_end) -> None:
        self._on_result = on_result
        self._on_end = on_end
        self._active = True
        self._ensure_reader()

    def take_lines(self) -> "asyncio.Queue[Optional[str]]":
        """
        Route every further typed line to a queue instead of the recognizer.

        Used for the conversation after the interview. None marks the end of input.
        """
        self._active = False
        self._lines = asyncio.Queue()
        if self._input_closed:
            self._lines.put_nowait(None)
        else:
            self._ensure_reader()
        return self._lines

    def _ensure_reader(self) -> None:
        if self._reader is None:
            self._loop = asyncio.get_running_loop()
            self._reader = threading.Thread(target=self._read_lines, name="console-capture", daemon=True)
            self._reader.start()

    def stop(self) -> None:
        self._active = False

    def _read_lines(self) -> None:
        while True:
            line = self.stream.readline()
            if not line:
                self._loop.call_soon_threadsafe(self._deliver, None)
                return
            self._loop.call_soon_threadsafe(self._deliver, line.rstrip("\n"))

    def _deliver(self, line: Optional[str]) -> None:
        if line is None:
            self._input_closed = True
        if self._lines is not None:
            self._lines.put_nowait(line)
            return
        if line is None or line.strip() in STOP_COMMANDS:
            logger.info("Stop requested from console")
            if self.on_stop_requested is not None:
                self.on_stop_requested()
            return
        if not self._active:
            logger.debug(f"Console input while not listening dropped: {line!r}")
            print("(still thinking, please wait for the next question)")
            return
        self._on_result(line, True)


class ConsolePlayback:
    """Playback service that prints instead of speaking."""

    def __init__(self, prefix: str = "🤖 Interviewer:"):
        self.prefix = prefix
        self.spoken = []

    async def speak(self, text: str) -> None:
        self.spoken.append(text)
        print(f"\n{self.prefix} {text}\n")

    def cancel(self) -> None:
        pass
