"""Gemini chat provider implementation."""

import asyncio
import time
from typing import Sequence, Optional
import google.generativeai as genai
import structlog

from .base import ChatProvider, ChatTransportError, EMPTY_REPLY_MESSAGE
from ...state.conversation_log import HistoryTurn


logger = structlog.get_logger()


class GeminiChatProvider(ChatProvider):
    """
    Gemini chat provider. Every send opens a new chat seeded with the
    given history, so no conversation state lives in the provider.
    """

    def __init__(
        self,
        system_prompt: str,
        api_key: str = "",
        model_name: str = "gemini-2.5-flash",
        temperature: float = 0.7,
        timeout: Optional[float] = 60.0,
    ):
        super().__init__(system_prompt, temperature)
        self.api_key = api_key
        self.model_name = model_name
        self.timeout = timeout
        self.model: Optional[genai.GenerativeModel] = None
        self.requests_sent = 0
        self.last_latency_ms: Optional[float] = None

    def initialize(self) -> None:
        """Configure the Gemini client if a key is available."""
        logger.info("Initializing Gemini provider", model=self.model_name)

        if not self.api_key:
            # Surfaces as ChatTransportError on the first send
            logger.warning("Gemini API key not configured")
            return

        self._ensure_model()
        logger.info("Gemini client initialized")

    def _ensure_model(self) -> genai.GenerativeModel:
        if not self.api_key:
            raise ValueError("Gemini API key not configured")

        if self.model is None:
            genai.configure(api_key=self.api_key)
            self.model = genai.GenerativeModel(
                model_name=self.model_name,
                system_instruction=self.system_prompt,
                generation_config=genai.GenerationConfig(temperature=self.temperature),
            )
        return self.model

    @staticmethod
    def _to_contents(history: Sequence[HistoryTurn]) -> list[dict]:
        return [{"role": turn.role, "parts": [turn.text]} for turn in history]

    @staticmethod
    def _extract_text(response) -> str:
        # response.text raises when the reply has no text parts (e.g. blocked)
        try:
            text = response.text
        except (AttributeError, ValueError) as e:
            logger.warning("Gemini reply carried no text", error=str(e))
            return ""
        return text or ""

    async def send(self, history: Sequence[HistoryTurn], message: str) -> str:
        """Send message in a chat seeded with history and return the reply."""
        start_time = time.time()

        try:
            model = self._ensure_model()
            chat = model.start_chat(history=self._to_contents(history))
            response = await asyncio.wait_for(
                chat.send_message_async(message), timeout=self.timeout
            )
        except Exception as e:
            logger.error(
                "Gemini chat error",
                error=str(e),
                error_type=type(e).__name__,
                history_length=len(history),
            )
            raise ChatTransportError() from e

        self.requests_sent += 1
        self.last_latency_ms = (time.time() - start_time) * 1000

        text = self._extract_text(response)
        if not text:
            return EMPTY_REPLY_MESSAGE

        logger.debug(
            "Gemini reply received",
            latency_ms=round(self.last_latency_ms, 1),
            length=len(text),
        )
        return text

    def stop(self) -> None:
        """Stop Gemini provider."""
        logger.info("Stopping Gemini provider")
        self.model = None

    def get_status(self) -> dict:
        """Get Gemini provider status."""
        return {
            "provider": "gemini",
            "model": self.model_name,
            "temperature": self.temperature,
            "configured": bool(self.api_key),
            "initialized": self.model is not None,
            "requests_sent": self.requests_sent,
            "last_latency_ms": self.last_latency_ms,
        }
