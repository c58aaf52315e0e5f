"""Base interface for chat providers."""

from abc import ABC, abstractmethod
from typing import Sequence

from ...state.conversation_log import HistoryTurn


CHAT_ERROR_MESSAGE = "AI 응답을 가져오는 중 오류가 발생했습니다."
EMPTY_REPLY_MESSAGE = "죄송합니다. 답변을 생성하지 못했습니다."


class ChatTransportError(Exception):
    """Any failure reaching the chat model or reading its reply.

    Carries a user-facing message. The provider-specific cause is kept on
    ``__cause__`` for logging only.
    """

    def __init__(self, user_message: str = CHAT_ERROR_MESSAGE):
        super().__init__(user_message)
        self.user_message = user_message


class ChatProvider(ABC):
    """Abstract base class for chat providers."""

    def __init__(self, system_prompt: str, temperature: float = 0.7):
        self.system_prompt = system_prompt
        self.temperature = temperature

    @abstractmethod
    def initialize(self) -> None:
        """Prepare the provider. Must not fail on a missing credential."""
        pass

    @abstractmethod
    async def send(self, history: Sequence[HistoryTurn], message: str) -> str:
        """
        Send one message in a fresh, stateless chat.

        Args:
            history: Prior turns used as context
            message: The new user utterance

        Returns:
            The reply text, or a fixed fallback when the reply is empty

        Raises:
            ChatTransportError: On any transport or parsing failure
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Release provider resources."""
        pass

    @abstractmethod
    def get_status(self) -> dict:
        """Get current status of the chat provider."""
        pass
