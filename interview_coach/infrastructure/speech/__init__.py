"""Speech capture and playback."""

from .adapter import SpeechAdapter, CaptureService, PlaybackService
from .console import ConsoleCapture, ConsolePlayback

__all__ = ["SpeechAdapter", "CaptureService", "PlaybackService", "ConsoleCapture", "ConsolePlayback"]
