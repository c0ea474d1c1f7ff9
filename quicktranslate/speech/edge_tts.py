"""
Edge-TTS Speech Provider Implementation

Uses Microsoft Edge's text-to-speech API via the edge-tts library.
Provides neural voices for free without API key.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, Dict, Optional

import aiofiles

try:
    import edge_tts
    EDGE_TTS_AVAILABLE = True
except ImportError:
    EDGE_TTS_AVAILABLE = False

from .base import SpeechProvider, SpeechError

logger = logging.getLogger(__name__)

# player(audio_bytes, language_code)
AudioPlayer = Callable[[bytes, str], Awaitable[None]]


class FileAudioPlayer:
    """Writes each utterance to an MP3 file and logs where it went.

    Stands in for a platform audio device; hand the files to any player.
    """

    def __init__(self, output_dir: str):
        self.output_dir = Path(output_dir)
        self.last_path: Optional[Path] = None

    async def __call__(self, audio: bytes, language_code: str) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        path = self.output_dir / f"speech_{language_code}_{stamp}.mp3"
        async with aiofiles.open(path, 'wb') as f:
            await f.write(audio)
        self.last_path = path
        logger.info(f"Speech audio written to {path}")


class EdgeTTSSpeaker(SpeechProvider):
    """
    Speech provider using Microsoft Edge's neural voices.

    Language codes are mapped to voices through `voices`; the synthesized MP3
    is handed to `player`.
    """

    def __init__(self, voices: Dict[str, str], player: AudioPlayer,
                 rate: str = "+0%", volume: str = "+0%", pitch: str = "+0Hz"):
        if not EDGE_TTS_AVAILABLE:
            raise SpeechError(
                "edge-tts library not installed. Install with: pip install edge-tts",
                provider=self.name,
                recoverable=False
            )
        self.voices = dict(voices)
        self.player = player
        self.rate = rate
        self.volume = volume
        self.pitch = pitch

    @property
    def name(self) -> str:
        return "edge-tts"

    def voice_for(self, language_code: str) -> str:
        voice = self.voices.get(language_code)
        if not voice:
            raise SpeechError(f"No voice configured for '{language_code}'", provider=self.name)
        return voice

    async def synthesize(self, text: str, voice: str) -> bytes:
        """
        Synthesize text to MP3 audio bytes.

        Args:
            text: Text to synthesize
            voice: Voice name (e.g., "en-US-AriaNeural")
        """
        if not text.strip():
            raise SpeechError("Cannot synthesize empty text", provider=self.name)

        try:
            communicate = edge_tts.Communicate(
                text=text,
                voice=voice,
                rate=self.rate,
                volume=self.volume,
                pitch=self.pitch
            )

            audio_chunks = []
            async for chunk in communicate.stream():
                if chunk["type"] == "audio":
                    audio_chunks.append(chunk["data"])
        except Exception as e:
            raise SpeechError(f"Synthesis failed: {e}", provider=self.name, recoverable=True) from e

        if not audio_chunks:
            raise SpeechError("No audio data received", provider=self.name)

        return b"".join(audio_chunks)

    async def speak(self, text: str, language_code: str) -> None:
        voice = self.voice_for(language_code)
        audio = await self.synthesize(text, voice)
        await self.player(audio, language_code)


def create_edge_tts_speaker(voices: Dict[str, str], output_dir: str) -> EdgeTTSSpeaker:
    """Factory function creating a speaker that writes audio files to `output_dir`"""
    return EdgeTTSSpeaker(voices, FileAudioPlayer(output_dir))
