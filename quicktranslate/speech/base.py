"""
Base Speech Provider Abstract Class

Defines the interface the orchestrator uses to speak a translation aloud.
"""
from abc import ABC, abstractmethod


class SpeechProvider(ABC):
    """
    Abstract base class for speech providers.

    The orchestrator only needs `speak`; how audio is produced and played
    is up to the implementation.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name"""
        pass

    @abstractmethod
    async def speak(self, text: str, language_code: str) -> None:
        """
        Speak text in the given language.

        Args:
            text: Text to speak
            language_code: Catalog language code (e.g. "asm_Beng")

        Raises:
            SpeechError: If synthesis or playback fails
        """
        pass


class SpeechError(Exception):
    """Exception raised for speech-related errors"""

    def __init__(self, message: str, provider: str = "", recoverable: bool = False):
        self.message = message
        self.provider = provider
        self.recoverable = recoverable
        super().__init__(f"[{provider}] {message}" if provider else message)
