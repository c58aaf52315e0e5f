"""ElevenLabs speech provider implementation."""

import asyncio
from typing import Optional
from elevenlabs.client import AsyncElevenLabs
import structlog

from .base import SpeechProvider, SynthesizedSpeech
from ...config.settings import pcm_sample_rate


logger = structlog.get_logger()


class ElevenLabsSpeechProvider(SpeechProvider):
    """
    ElevenLabs speech provider returning raw PCM.

    Uses the timestamped endpoint because it delivers the audio as a
    base64 string rather than a byte stream.
    """

    def __init__(
        self,
        api_key: str = "",
        voice_id: str = "pNInz6obpgDQGcFmaJgB",  # Adam voice
        model_id: str = "eleven_flash_v2_5",
        output_format: str = "pcm_24000",
        channels: int = 1,
        timeout: Optional[float] = 30.0,
    ):
        # Raises ValueError for encoded formats such as mp3_44100_128
        self.sample_rate = pcm_sample_rate(output_format)
        self.api_key = api_key
        self.voice_id = voice_id
        self.model_id = model_id
        self.output_format = output_format
        self.channels = channels
        self.timeout = timeout
        self.client: Optional[AsyncElevenLabs] = None
        self.requests_sent = 0

    def initialize(self) -> None:
        """Create the ElevenLabs client if a key is available."""
        logger.info("Initializing ElevenLabs provider", voice_id=self.voice_id)

        if not self.api_key:
            # Surfaces as a playback failure on the first request
            logger.warning("ElevenLabs API key not configured")
            return

        self._ensure_client()
        logger.info("ElevenLabs provider initialized")

    def _ensure_client(self) -> AsyncElevenLabs:
        if not self.api_key:
            raise ValueError("ElevenLabs API key not configured")
        if self.client is None:
            self.client = AsyncElevenLabs(api_key=self.api_key)
        return self.client

    async def synthesize(self, text: str) -> SynthesizedSpeech:
        """Request speech for text from ElevenLabs."""
        client = self._ensure_client()

        logger.debug("Requesting speech", text_length=len(text))

        try:
            response = await asyncio.wait_for(
                client.text_to_speech.convert_with_timestamps(
                    voice_id=self.voice_id,
                    text=text,
                    model_id=self.model_id,
                    output_format=self.output_format,
                ),
                timeout=self.timeout,
            )
        except Exception as e:
            logger.error("Error generating speech", error=str(e))
            raise

        audio = getattr(response, "audio_base_64", None)
        if not audio:
            raise ValueError("No audio data returned")

        self.requests_sent += 1
        logger.debug("Speech received", encoded_length=len(audio))

        return SynthesizedSpeech(
            audio_base64=audio,
            sample_rate=self.sample_rate,
            channels=self.channels,
        )

    def stop(self) -> None:
        """Stop ElevenLabs provider."""
        logger.info("Stopping ElevenLabs provider")
        self.client = None

    def get_status(self) -> dict:
        """Get ElevenLabs provider status."""
        return {
            "provider": "elevenlabs",
            "voice_id": self.voice_id,
            "model_id": self.model_id,
            "output_format": self.output_format,
            "configured": bool(self.api_key),
            "initialized": self.client is not None,
            "requests_sent": self.requests_sent,
        }
