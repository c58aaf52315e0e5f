"""
Mock provider implementations for running EngBuddy without API keys.
"""

import asyncio
import base64
from typing import Sequence

import numpy as np

from ..providers.chat.base import ChatProvider
from ..providers.speech.base import SpeechProvider, SynthesizedSpeech
from ..state.conversation_log import HistoryTurn


class MockChatProvider(ChatProvider):
    """Mock chat provider that cycles through canned tutor replies."""

    def __init__(self, system_prompt: str = "", temperature: float = 0.7, delay: float = 0.2):
        super().__init__(system_prompt, temperature)
        self.delay = delay
        self.response_index = 0
        self.last_history: list[HistoryTurn] = []
        self.mock_responses = [
            "좋은 질문이에요! 😊 문장을 보내주면 자연스럽게 고쳐줄게요.",
            "**I has a dog.** → **I have a dog.**\n\n주어가 I일 때는 has 대신 have를 써요.",
            "이런 주제는 어때요? 1) 나의 롤모델 2) 가장 기억에 남는 여행 3) 미래의 꿈",
        ]

    def initialize(self) -> None:
        """Initialize mock chat provider."""
        pass

    async def send(self, history: Sequence[HistoryTurn], message: str) -> str:
        """Return the next canned reply after a short delay."""
        self.last_history = list(history)
        await asyncio.sleep(self.delay)

        response = self.mock_responses[self.response_index % len(self.mock_responses)]
        self.response_index += 1
        return response

    def stop(self) -> None:
        """Stop mock chat provider."""
        pass

    def get_status(self) -> dict:
        """Get mock chat provider status."""
        return {
            "provider": "mock_chat",
            "responses_generated": self.response_index,
            "history_length": len(self.last_history),
        }


class MockSpeechProvider(SpeechProvider):
    """Mock speech provider that returns a short tone as PCM."""

    def __init__(self, sample_rate: int = 24000, tone_hz: float = 440.0, seconds: float = 0.3):
        self.sample_rate = sample_rate
        self.tone_hz = tone_hz
        self.seconds = seconds
        self.requests = 0

    def initialize(self) -> None:
        """Initialize mock speech provider."""
        pass

    async def synthesize(self, text: str) -> SynthesizedSpeech:
        """Encode a sine tone the same way the real API delivers audio."""
        self.requests += 1
        t = np.arange(int(self.sample_rate * self.seconds)) / self.sample_rate
        tone = (0.2 * np.sin(2 * np.pi * self.tone_hz * t) * 32767).astype("<i2")
        return SynthesizedSpeech(
            audio_base64=base64.b64encode(tone.tobytes()).decode("ascii"),
            sample_rate=self.sample_rate,
            channels=1,
        )

    def stop(self) -> None:
        """Stop mock speech provider."""
        pass

    def get_status(self) -> dict:
        """Get mock speech provider status."""
        return {
            "provider": "mock_speech",
            "requests": self.requests,
        }
