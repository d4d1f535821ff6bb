"""
Speech capture/playback adapter.

Wraps an opaque capture service (speech-to-text) and playback service
(text-to-speech) behind a small callback interface used by the interview
session. The adapter owns all capture timing: the silence window that turns
finalized fragments into one utterance, and the delayed restart when the
capture service ends on its own.
"""
import asyncio
import logging
from typing import Callable, Optional, Protocol

from ...config import SILENCE_SECONDS, CAPTURE_RESTART_DELAY, BENIGN_CAPTURE_ERRORS
from ...interview.errors import CaptureError

logger = logging.getLogger("speech_adapter")

ResultCallback = Callable[[str, bool], None]
ErrorCallback = Callable[[str], None]
EndCallback = Callable[[], None]


class CaptureService(Protocol):
    """Continuous speech recognizer reporting interim and final results."""

    def start(self, on_result: ResultCallback, on_error: ErrorCallback, on_end: EndCallback) -> None:
        ...

    def stop(self) -> None:
        ...


class PlaybackService(Protocol):
    """Speaks text aloud; speak() returns when playback has finished."""

    async def speak(self, text: str) -> None:
        ...

    def cancel(self) -> None:
        ...


class SpeechAdapter:
    """
    Event-driven front for capture and playback.

    Callbacks (all optional, assigned by the consumer):
        on_fragment(text)        every finalized fragment
        on_partial(text)         live transcript including interim text
        on_utterance(text)       silence window elapsed with accumulated text
        on_playback_ended()      playback finished normally
        on_capture_error(error)  capture failed with a CaptureError
    """

    def __init__(self,
                 capture: CaptureService,
                 playback: PlaybackService,
                 silence_seconds: float = SILENCE_SECONDS,
                 restart_delay: float = CAPTURE_RESTART_DELAY):
        if silence_seconds <= 0:
            raise ValueError("silence_seconds must be positive")
        self.capture = capture
        self.playback = playback
        self.silence_seconds = silence_seconds
        self.restart_delay = restart_delay

        self.on_fragment: Optional[Callable[[str], None]] = None
        self.on_partial: Optional[Callable[[str], None]] = None
        self.on_utterance: Optional[Callable[[str], None]] = None
        self.on_playback_ended: Optional[Callable[[], None]] = None
        self.on_capture_error: Optional[Callable[[CaptureError], None]] = None

        self._should_listen = False
        self._capture_active = False
        self._processing = False
        self._accumulated = ""
        self._silence_handle: Optional[asyncio.TimerHandle] = None
        self._restart_handle: Optional[asyncio.TimerHandle] = None
        self._playback_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def is_listening(self) -> bool:
        return self._should_listen

    @property
    def is_speaking(self) -> bool:
        return self._playback_task is not None and not self._playback_task.done()

    @property
    def is_processing(self) -> bool:
        return self._processing

    def set_processing(self, flag: bool) -> None:
        """While a turn is processed the capture service is not auto-restarted."""
        self._processing = flag

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------

    def start_capture(self) -> None:
        self._should_listen = True
        self._cancel_restart()

        if self._capture_active:
            # Restart cleanly: stop the running recognizer and start again after a short delay
            self._stop_service()
            self._restart_handle = asyncio.get_running_loop().call_later(
                self.restart_delay, self._restart_if_wanted
            )
        else:
            self._start_service()

    def stop_capture(self) -> None:
        self._should_listen = False
        self._cancel_silence_timer()
        self._cancel_restart()
        self._stop_service()

    def _start_service(self) -> None:
        if not self._should_listen:
            return
        self._accumulated = ""
        self._notify(self.on_partial, "")
        self._capture_active = True
        logger.debug("Starting capture service")
        try:
            self.capture.start(self._handle_result, self._handle_error, self._handle_end)
        except RuntimeError as e:
            logger.error(f"Failed to start capture service: {e}")
            self._capture_active = False

    def _stop_service(self) -> None:
        if self._capture_active:
            logger.debug("Stopping capture service")
            self._capture_active = False
            self.capture.stop()

    def _restart_if_wanted(self) -> None:
        self._restart_handle = None
        if self._should_listen and not self._processing:
            self._start_service()

    def _cancel_restart(self) -> None:
        if self._restart_handle is not None:
            self._restart_handle.cancel()
            self._restart_handle = None

    def _cancel_silence_timer(self) -> None:
        if self._silence_handle is not None:
            self._silence_handle.cancel()
            self._silence_handle = None

    def _handle_result(self, text: str, is_final: bool) -> None:
        if not self._should_listen:
            logger.debug(f"Dropping capture result while not listening: {text!r}")
            return

        if is_final:
            fragment = text.strip()
            if not fragment:
                return
            self._accumulated += fragment + " "
            self._notify(self.on_fragment, fragment)
            self._notify(self.on_partial, self._accumulated.strip())

            # Every final fragment pushes the end of the utterance back
            self._cancel_silence_timer()
            self._silence_handle = asyncio.get_running_loop().call_later(
                self.silence_seconds, self._silence_elapsed
            )
        elif text:
            self._notify(self.on_partial, (self._accumulated + text).strip())

    def _silence_elapsed(self) -> None:
        self._silence_handle = None
        utterance = self._accumulated.strip()
        if not utterance:
            return
        self._accumulated = ""
        self.stop_capture()
        logger.info(f"Utterance complete after {self.silence_seconds}s of silence: {utterance[:80]!r}")
        self._notify(self.on_utterance, utterance)

    def _handle_error(self, code: str) -> None:
        self._capture_active = False
        error = CaptureError(code, benign=code in BENIGN_CAPTURE_ERRORS)
        if error.benign:
            # Capture ends on its own after these; _handle_end restarts it
            logger.debug(f"Ignoring benign capture error: {code}")
            return

        logger.error(str(error))
        self._should_listen = False
        self._cancel_silence_timer()
        self._cancel_restart()
        self._notify(self.on_capture_error, error)

    def _handle_end(self) -> None:
        self._capture_active = False
        if self._should_listen and not self._processing:
            logger.debug(f"Capture ended unexpectedly, restarting in {self.restart_delay}s")
            self._cancel_restart()
            self._restart_handle = asyncio.get_running_loop().call_later(
                self.restart_delay, self._restart_if_wanted
            )

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    def play(self, text: str) -> asyncio.Task:
        """Start speaking `text`; on_playback_ended fires when it finishes."""
        self.cancel_playback()
        self._playback_task = asyncio.get_running_loop().create_task(self._run_playback(text))
        return self._playback_task

    async def _run_playback(self, text: str) -> None:
        try:
            await self.playback.speak(text)
        except asyncio.CancelledError:
            logger.debug("Playback cancelled")
            raise
        except Exception as e:
            logger.error(f"Playback failed: {e}")
        if self._playback_task is asyncio.current_task():
            self._playback_task = None
        self._notify(self.on_playback_ended)

    def cancel_playback(self) -> None:
        task = self._playback_task
        self._playback_task = None
        if task is not None and not task.done():
            task.cancel()
            self.playback.cancel()

    def close(self) -> None:
        """Cancel capture and playback; the adapter may be started again afterwards."""
        self.stop_capture()
        self.cancel_playback()

    @staticmethod
    def _notify(callback: Optional[Callable], *args) -> None:
        if callback is not None:
            callback(*args)
