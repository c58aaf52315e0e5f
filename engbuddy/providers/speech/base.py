"""Base interface for speech synthesis providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class SynthesizedSpeech:
    """Raw speech returned by a provider: base64 of signed 16-bit little-endian PCM."""
    audio_base64: str
    sample_rate: int = 24000
    channels: int = 1


class SpeechProvider(ABC):
    """Abstract base class for speech synthesis providers."""

    @abstractmethod
    def initialize(self) -> None:
        """Prepare the provider. Must not fail on a missing credential."""
        pass

    @abstractmethod
    async def synthesize(self, text: str) -> SynthesizedSpeech:
        """
        Synthesize speech for the given text.

        Args:
            text: The text to speak

        Returns:
            SynthesizedSpeech with PCM audio in base64

        Raises:
            Exception: Provider failures propagate to the caller
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop the provider and clean up resources."""
        pass

    @abstractmethod
    def get_status(self) -> dict:
        """Get current status of the speech provider."""
        pass
