"""
Text-to-speech playback using Google Cloud TTS.
"""
import asyncio
import logging
import os
import tempfile
from typing import Optional

from google.api_core import exceptions as google_exceptions
from google.cloud import texttospeech

from ...config import TTS_VOICE, LANGUAGE_CODE, TTS_SAMPLE_RATE, TTS_SPEAKING_RATE

logger = logging.getLogger("speech_tts")

# Tried in order: macOS first, then Linux
AUDIO_PLAYERS = (["afplay"], ["aplay", "-q"])


class GoogleTTSPlayback:
    """
    Playback service that synthesizes speech with Google Cloud TTS and plays
    the WAV through the platform audio player.

    Falls back to printing the text when synthesis fails or no player exists.
    """

    def __init__(self, voice: str = TTS_VOICE, language_code: str = LANGUAGE_CODE,
                 speaking_rate: float = TTS_SPEAKING_RATE, client: Optional[texttospeech.TextToSpeechClient] = None):
        self.voice = voice
        self.language_code = language_code
        self.speaking_rate = speaking_rate
        self._client = client
        self._process: Optional[asyncio.subprocess.Process] = None

    @property
    def client(self) -> texttospeech.TextToSpeechClient:
        if self._client is None:
            self._client = texttospeech.TextToSpeechClient()
        return self._client

    def synthesize(self, text: str) -> bytes:
        """Return LINEAR16 WAV audio for `text`."""
        response = self.client.synthesize_speech(
            input=texttospeech.SynthesisInput(text=text),
            voice=texttospeech.VoiceSelectionParams(language_code=self.language_code, name=self.voice),
            audio_config=texttospeech.AudioConfig(
                audio_encoding=texttospeech.AudioEncoding.LINEAR16,
                sample_rate_hertz=TTS_SAMPLE_RATE,
                speaking_rate=self.speaking_rate,
            ),
        )
        return response.audio_content

    async def speak(self, text: str) -> None:
        if not text.strip():
            return

        try:
            audio = await asyncio.to_thread(self.synthesize, text)
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Google TTS failed: {e}")
            print(f"🤖 {text}")
            return

        with tempfile.NamedTemporaryFile(suffix=".wav", delete=False) as tmp_file:
            wav_path = tmp_file.name
            tmp_file.write(audio)

        try:
            if not await self._play_file(wav_path):
                print(f"🤖 {text}")
        finally:
            try:
                os.unlink(wav_path)
            except OSError:
                pass

    async def _play_file(self, wav_path: str) -> bool:
        for player in AUDIO_PLAYERS:
            try:
                self._process = await asyncio.create_subprocess_exec(
                    *player, wav_path,
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.DEVNULL,
                )
            except FileNotFoundError:
                continue

            try:
                return_code = await self._process.wait()
            finally:
                self._process = None
            if return_code == 0:
                return True
            logger.warning(f"{player[0]} exited with status {return_code}")
        return False

    def cancel(self) -> None:
        """Stop the player process, if one is running."""
        if self._process is not None and self._process.returncode is None:
            logger.debug("Terminating audio player")
            self._process.terminate()
