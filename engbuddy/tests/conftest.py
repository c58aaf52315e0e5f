"""Shared fixtures and fake providers."""

import asyncio
import base64
from typing import List, Optional, Sequence

import numpy as np
import pytest
import structlog

from engbuddy.audio.decoder import SampleBuffer
from engbuddy.audio.output import AudioOutput
from engbuddy.config.settings import Settings
from engbuddy.providers.chat.base import ChatProvider
from engbuddy.providers.speech.base import SpeechProvider, SynthesizedSpeech
from engbuddy.state.conversation_log import HistoryTurn


def pcm_base64(samples: Sequence[int]) -> str:
    return base64.b64encode(np.asarray(samples, dtype="<i2").tobytes()).decode("ascii")


class FakeChatProvider(ChatProvider):
    """Chat provider returning a fixed reply, raising, or waiting on a gate."""

    def __init__(self, reply: str = "Fake reply", error: Optional[BaseException] = None):
        super().__init__(system_prompt="test persona", temperature=0.7)
        self.reply = reply
        self.error = error
        self.gate: Optional[asyncio.Event] = None
        self.calls: List[tuple] = []

    def initialize(self) -> None:
        pass

    async def send(self, history: Sequence[HistoryTurn], message: str) -> str:
        self.calls.append((list(history), message))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.reply

    def stop(self) -> None:
        pass

    def get_status(self) -> dict:
        return {"provider": "fake_chat", "calls": len(self.calls)}


class FakeSpeechProvider(SpeechProvider):
    """Speech provider returning a few PCM samples, optionally failing."""

    def __init__(self, samples: Sequence[int] = (0, 1000, -1000, 0), error: Optional[Exception] = None):
        self.samples = list(samples)
        self.error = error
        self.gate: Optional[asyncio.Event] = None
        self.texts: List[str] = []

    def initialize(self) -> None:
        pass

    async def synthesize(self, text: str) -> SynthesizedSpeech:
        self.texts.append(text)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return SynthesizedSpeech(audio_base64=pcm_base64(self.samples), sample_rate=24000, channels=1)

    def stop(self) -> None:
        pass

    def get_status(self) -> dict:
        return {"provider": "fake_speech", "requests": len(self.texts)}


class FakeOutput(AudioOutput):
    """Output whose completion is triggered by the test."""

    supports_completion = True
    instances: List["FakeOutput"] = []
    fail_on_start = False

    def __init__(self, buffer: SampleBuffer):
        super().__init__(buffer)
        self.entered = False
        self.exited = False
        self.started = False
        self.done = asyncio.Event()
        FakeOutput.instances.append(self)

    def __enter__(self) -> "FakeOutput":
        self.entered = True
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.exited = True

    def start(self) -> None:
        if self.fail_on_start:
            raise RuntimeError("device unavailable")
        self.started = True

    async def wait_finished(self) -> None:
        await self.done.wait()


class TimerOnlyOutput(FakeOutput):
    """Output without a completion event."""

    supports_completion = False


async def wait_for_condition(predicate, attempts: int = 100) -> None:
    """Yield to the loop until predicate() holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


def configure_test_logging() -> None:
    """Route structlog through stdlib logging so pytest captures it."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


@pytest.fixture(scope="session", autouse=True)
def structlog_to_stdlib():
    configure_test_logging()
    yield
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def reset_fake_outputs():
    FakeOutput.instances = []
    FakeOutput.fail_on_start = False
    yield
    FakeOutput.instances = []
    FakeOutput.fail_on_start = False


@pytest.fixture
def test_settings(monkeypatch):
    """Settings built from a clean environment."""
    for name in (
        "VITE_VAIT_API_KEY", "API_KEY", "GOOGLE_API_KEY", "ELEVENLABS_API_KEY",
        "GEMINI_MODEL", "GEMINI_TEMPERATURE", "PLAYBACK_COOLDOWN", "CHAT_PROVIDER",
        "SPEECH_PROVIDER", "LOG_LEVEL", "LOG_FORMAT", "LOG_FILE_ENABLED",
        "CHAT_TIMEOUT", "SPEECH_TIMEOUT", "ELEVENLABS_VOICE_ID", "ELEVENLABS_MODEL_ID",
    ):
        monkeypatch.delenv(name, raising=False)
    return Settings(load_env_file=False)
