"""
Conversation session: owns the message log and runs one send at a time.
"""

from typing import Callable, List, Optional, Tuple
import structlog

from ..providers.chat.base import ChatProvider, ChatTransportError
from ..state.conversation_log import (
    ConversationLog,
    HistoryTurn,
    Message,
    Role,
    WELCOME_MESSAGE_ID,
)


logger = structlog.get_logger()


REPLY_ERROR_MESSAGE = "오류가 발생했습니다. 다시 시도해주세요."

LogListener = Callable[[Message], None]


class ConversationSession:
    """
    Holds the conversation log and relays user input to a chat provider.

    Only one send may be in flight. While a reply is pending, submit()
    is refused. Listeners are told about every log change so the view
    can scroll to the newest message.
    """

    def __init__(
        self,
        transport: ChatProvider,
        welcome_text: Optional[str] = None,
        error_text: str = REPLY_ERROR_MESSAGE,
    ):
        self.transport = transport
        self.error_text = error_text
        self._busy = False
        self._listeners: List[LogListener] = []

        seed = None
        if welcome_text:
            seed = Message(id=WELCOME_MESSAGE_ID, role=Role.MODEL, text=welcome_text)
        self._log = ConversationLog(seed=seed)

    @property
    def messages(self) -> Tuple[Message, ...]:
        """Read-only view of the log, oldest first."""
        return self._log.messages

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def pending_message(self) -> Optional[Message]:
        return self._log.pending

    def get_message(self, message_id: str) -> Optional[Message]:
        return self._log.get(message_id)

    def add_listener(self, listener: LogListener) -> None:
        """Register a callback fired with the newest message on every log change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: LogListener) -> None:
        self._listeners.remove(listener)

    def _notify(self, message: Message) -> None:
        for listener in list(self._listeners):
            try:
                listener(message)
            except Exception as e:
                logger.warning("Log listener failed", error=str(e))

    def request_history(self) -> List[HistoryTurn]:
        return self._log.request_history()

    def can_submit(self, text: str) -> bool:
        return bool(text and text.strip()) and not self._busy

    async def submit(self, text: str) -> Optional[Message]:
        """
        Send text to the model and record both sides in the log.

        Returns the finalized model message, or None when the input is
        blank or another send is still in flight.
        """
        if not text or not text.strip():
            logger.debug("Ignoring blank input")
            return None
        if self._busy or self._log.pending is not None:
            logger.debug("Ignoring input while a reply is pending")
            return None

        text = text.strip()

        # History is taken before this turn is logged; the new text is sent separately
        history = self._log.request_history()

        user_message = self._log.append_user(text)
        self._notify(user_message)

        placeholder = self._log.append_pending()
        self._busy = True
        self._notify(placeholder)

        logger.info(
            "Sending message",
            message_id=user_message.id,
            reply_id=placeholder.id,
            history_length=len(history),
        )

        reply_text = self.error_text
        try:
            reply_text = await self.transport.send(history, text)
        except ChatTransportError as e:
            logger.warning(
                "Chat transport failed", reply_id=placeholder.id, error=e.user_message
            )
        except Exception as e:
            logger.error(
                "Unexpected chat failure",
                reply_id=placeholder.id,
                error=str(e),
                error_type=type(e).__name__,
            )
        finally:
            final = self._log.finalize(placeholder.id, reply_text)
            self._busy = False
            self._notify(final)

        logger.info("Reply recorded", reply_id=final.id, length=len(final.text))
        return final

    def get_status(self) -> dict:
        return {
            "message_count": len(self._log),
            "busy": self._busy,
            "pending_id": self._log.pending.id if self._log.pending else None,
        }
