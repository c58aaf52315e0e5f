"""Tests for the conversation manager."""

import numpy as np
import pytest

from engbuddy.audio.decoder import SampleBuffer
from engbuddy.audio.output import SilentOutput, SoundDeviceOutput
from engbuddy.core.conversation_manager import ConversationConfig, ConversationManager
from engbuddy.core.playback import PlaybackError, PlaybackState
from engbuddy.core.quick_actions import (
    QUICK_ACTIONS,
    TEMPLATE_PLACEHOLDER,
    fill_template,
)
from engbuddy.mocks.providers import MockChatProvider, MockSpeechProvider
from engbuddy.providers.chat.gemini import GeminiChatProvider
from engbuddy.providers.speech.elevenlabs import ElevenLabsSpeechProvider
from engbuddy.state.conversation_log import WELCOME_MESSAGE_ID

from .conftest import FakeSpeechProvider


class TestConversationManager:
    """Test cases for ConversationManager."""

    @pytest.fixture
    def manager(self, test_settings):
        test_settings.playback.cooldown_seconds = 0.5
        manager = ConversationManager(
            ConversationConfig(mock_mode=True, silent_audio=True), test_settings
        )
        manager.chat_provider.delay = 0
        manager.speech_provider.seconds = 0.01
        manager.start()
        yield manager
        manager.stop()

    def test_mock_mode_uses_mock_providers(self, manager):
        """Test mock mode builds the canned providers."""
        assert isinstance(manager.chat_provider, MockChatProvider)
        assert isinstance(manager.speech_provider, MockSpeechProvider)
        assert manager.playback.output_factory is SilentOutput
        assert manager.is_running

    def test_real_providers_from_settings(self, test_settings):
        """Test provider arguments come from settings."""
        test_settings.credentials.chat_api_key = "chat-key"
        test_settings.credentials.speech_api_key = "speech-key"

        manager = ConversationManager(ConversationConfig(), test_settings)

        assert isinstance(manager.chat_provider, GeminiChatProvider)
        assert manager.chat_provider.api_key == "chat-key"
        assert isinstance(manager.speech_provider, ElevenLabsSpeechProvider)
        assert manager.speech_provider.api_key == "speech-key"

    def test_device_output_uses_configured_blocksize(self, test_settings):
        """Test audible playback opens streams with the configured block size."""
        test_settings.audio.blocksize = 512

        manager = ConversationManager(ConversationConfig(mock_mode=True), test_settings)

        factory = manager.playback.output_factory
        assert factory.func is SoundDeviceOutput
        assert factory.keywords == {"blocksize": 512}
        output = factory(SampleBuffer(np.zeros((1, 4), dtype=np.float32), sample_rate=24000))
        assert output.blocksize == 512

    def test_welcome_seed(self, manager):
        """Test the session opens with the welcome message."""
        messages = manager.session.messages
        assert len(messages) == 1
        assert messages[0].id == WELCOME_MESSAGE_ID

    @pytest.mark.asyncio
    async def test_submit_and_play(self, manager):
        """Test a reply can be played back."""
        reply = await manager.submit("I has a dog.")

        assert reply is not None and reply.is_model
        assert await manager.play(reply.id) is True
        assert manager.playback_state(reply.id) is PlaybackState.IDLE

    @pytest.mark.asyncio
    async def test_welcome_can_be_played(self, manager):
        """Test the welcome message is playable like any reply."""
        assert await manager.play(WELCOME_MESSAGE_ID) is True

    @pytest.mark.asyncio
    async def test_play_unknown_message(self, manager):
        """Test unknown ids raise KeyError."""
        with pytest.raises(KeyError):
            await manager.play("missing")

    @pytest.mark.asyncio
    async def test_play_failure_propagates(self, test_settings):
        """Test playback failures reach the caller as PlaybackError."""
        manager = ConversationManager(
            ConversationConfig(mock_mode=True, silent_audio=True), test_settings
        )
        manager.playback.speech_provider = FakeSpeechProvider(error=RuntimeError("down"))

        with pytest.raises(PlaybackError):
            await manager.play(WELCOME_MESSAGE_ID)
        assert manager.playback_state(WELCOME_MESSAGE_ID) is PlaybackState.IDLE

    def test_quick_action_send_now(self, manager):
        """Test plain quick actions are sent right away."""
        action, send_now = manager.quick_action(0)
        assert action is QUICK_ACTIONS[0]
        assert send_now is True

    def test_quick_action_template(self, manager):
        """Test template quick actions are not sent."""
        action, send_now = manager.quick_action(1)
        assert action.is_template
        assert send_now is False

    def test_quick_action_while_busy(self, manager):
        """Test nothing is sent while a reply is pending."""
        manager.session._busy = True
        _, send_now = manager.quick_action(3)
        assert send_now is False

    def test_get_status(self, manager):
        """Test status aggregation."""
        status = manager.get_status()

        assert status["mock_mode"] is True
        assert status["session"]["message_count"] == 1
        assert status["providers_status"]["chat"]["provider"] == "mock_chat"
        assert "playback" in status

    def test_stop_tolerates_provider_errors(self, test_settings):
        """Test stop keeps going when a provider fails to stop."""
        manager = ConversationManager(ConversationConfig(mock_mode=True), test_settings)

        def broken():
            raise RuntimeError("already closed")

        manager.chat_provider.stop = broken
        manager.stop()
        assert not manager.is_running


class TestQuickActions:
    """Test cases for quick action presets."""

    def test_four_presets(self):
        """Test the preset list."""
        assert len(QUICK_ACTIONS) == 4
        assert [action.is_template for action in QUICK_ACTIONS] == [False, True, True, False]

    def test_fill_template(self):
        """Test the placeholder is replaced by the sentence."""
        filled = fill_template(QUICK_ACTIONS[1], "  I has a dog.  ")

        assert TEMPLATE_PLACEHOLDER not in filled
        assert filled.endswith("I has a dog.")
