"""
Application wiring: builds the providers, the conversation session and
the playback engine once and hands them to the front-end.
"""

from dataclasses import dataclass
from functools import partial
from typing import Optional, Dict, Any, Tuple
import structlog

from ..audio.output import SilentOutput, SoundDeviceOutput
from ..config.settings import Settings
from ..providers.chat.base import ChatProvider
from ..providers.speech.base import SpeechProvider
from ..providers.registry import registry
from .conversation_session import ConversationSession, LogListener
from .playback import OutputFactory, PlaybackEngine, PlaybackState
from .quick_actions import QUICK_ACTIONS, QuickAction


logger = structlog.get_logger()


@dataclass
class ConversationConfig:
    """Configuration for one EngBuddy instance."""

    chat_provider: str = "gemini"
    speech_provider: str = "elevenlabs"
    mock_mode: bool = False
    silent_audio: bool = False


class ConversationManager:
    """
    Owns the conversation session and the playback engine for one
    application instance. Front-ends talk to this object only.
    """

    def __init__(
        self,
        config: ConversationConfig,
        settings: Settings,
        output_factory: Optional[OutputFactory] = None,
    ):
        self.config = config
        self.settings = settings
        self.is_running = False

        self.chat_provider = self._initialize_chat_provider()
        self.speech_provider = self._initialize_speech_provider()

        self.session = ConversationSession(
            self.chat_provider,
            welcome_text=settings.system_prompts.welcome,
        )

        if output_factory is None:
            if config.silent_audio:
                output_factory = SilentOutput
            else:
                output_factory = partial(
                    SoundDeviceOutput, blocksize=settings.audio.blocksize
                )
        self.playback = PlaybackEngine(
            self.speech_provider,
            output_factory=output_factory,
            cooldown_seconds=settings.playback.cooldown_seconds,
            wait_for_completion=settings.playback.wait_for_completion,
        )

    def _initialize_chat_provider(self) -> ChatProvider:
        """Initialize the chat provider based on configuration."""
        if self.config.mock_mode:
            from ..mocks.providers import MockChatProvider

            return MockChatProvider(
                system_prompt=self.settings.system_prompts.default,
                temperature=self.settings.providers.gemini_temperature,
            )
        return registry.get_chat_provider(self.config.chat_provider, settings=self.settings)

    def _initialize_speech_provider(self) -> SpeechProvider:
        """Initialize the speech provider based on configuration."""
        if self.config.mock_mode:
            from ..mocks.providers import MockSpeechProvider

            return MockSpeechProvider(sample_rate=self.settings.audio.sample_rate)
        return registry.get_speech_provider(
            self.config.speech_provider, settings=self.settings
        )

    def start(self) -> None:
        """Prepare the providers."""
        logger.info(
            "Starting EngBuddy",
            chat_provider=self.config.chat_provider,
            speech_provider=self.config.speech_provider,
            mock_mode=self.config.mock_mode,
        )

        self.chat_provider.initialize()
        self.speech_provider.initialize()
        self.is_running = True

        logger.info("EngBuddy started")

    def stop(self) -> None:
        """Release provider resources."""
        logger.info("Stopping EngBuddy")
        self.is_running = False

        for provider in (self.chat_provider, self.speech_provider):
            try:
                provider.stop()
            except Exception as e:
                logger.warning(
                    "Error stopping provider", provider=type(provider).__name__, error=str(e)
                )

        logger.info("EngBuddy stopped", message_count=len(self.session.messages))

    def add_log_listener(self, listener: LogListener) -> None:
        self.session.add_listener(listener)

    @property
    def is_busy(self) -> bool:
        return self.session.is_busy

    async def submit(self, text: str):
        return await self.session.submit(text)

    async def play(self, message_id: str) -> bool:
        """Read a finalized model message aloud. Raises PlaybackError on failure."""
        message = self.session.get_message(message_id)
        if message is None:
            raise KeyError(message_id)
        return await self.playback.play(message)

    def playback_state(self, message_id: str) -> PlaybackState:
        return self.playback.state_of(message_id)

    def quick_action(self, index: int) -> Tuple[QuickAction, bool]:
        """
        Look up a quick action by position.

        Returns the action and whether it may be sent right away. Template
        actions must be completed by the student first, and nothing may be
        sent while a reply is pending.
        """
        action = QUICK_ACTIONS[index]
        return action, not action.is_template and not self.is_busy

    def get_status(self) -> Dict[str, Any]:
        """Get current system status."""
        return {
            "is_running": self.is_running,
            "chat_provider": self.config.chat_provider,
            "speech_provider": self.config.speech_provider,
            "mock_mode": self.config.mock_mode,
            "session": self.session.get_status(),
            "playback": self.playback.get_status(),
            "providers_status": {
                "chat": self.chat_provider.get_status(),
                "speech": self.speech_provider.get_status(),
            },
        }
