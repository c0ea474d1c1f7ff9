"""
Speech Providers Package

Speaks a translation aloud. The orchestrator depends on SpeechProvider only.
"""
from .base import SpeechProvider, SpeechError
from .edge_tts import EdgeTTSSpeaker, FileAudioPlayer, create_edge_tts_speaker

__all__ = [
    'SpeechProvider',
    'SpeechError',
    'EdgeTTSSpeaker',
    'FileAudioPlayer',
    'create_edge_tts_speaker',
]
