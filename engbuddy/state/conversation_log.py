"""Conversation messages and the append-only log that holds them."""

import itertools
import time
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple
import structlog


logger = structlog.get_logger()


WELCOME_MESSAGE_ID = "welcome"


class Role(str, Enum):
    """Author of a message."""

    USER = "user"
    MODEL = "model"


@dataclass(frozen=True)
class Message:
    """A single entry in the conversation log.

    A pending message is the placeholder shown while a model reply is in
    flight. It is finalized once, which produces a new non-pending Message
    with the same id.
    """

    id: str
    role: Role
    text: str
    timestamp: datetime = field(default_factory=datetime.now)
    pending: bool = False

    @property
    def is_user(self) -> bool:
        return self.role is Role.USER

    @property
    def is_model(self) -> bool:
        return self.role is Role.MODEL


@dataclass(frozen=True)
class HistoryTurn:
    """One prior turn sent to the chat provider as context."""

    role: str
    text: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "text": self.text}


class ConversationLog:
    """Ordered, append-only sequence of messages.

    Messages are never removed or reordered. The only in-place change is
    replacing a pending placeholder with its finalized copy, and at most one
    pending message may exist at a time.
    """

    def __init__(self, seed: Optional[Message] = None):
        self._messages: List[Message] = []
        self._index: Dict[str, int] = {}
        self._sequence = itertools.count(1)
        self.seed_id: Optional[str] = None

        if seed is not None:
            if seed.pending:
                raise ValueError("Seed message cannot be pending")
            self._append(seed)
            self.seed_id = seed.id

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    def __getitem__(self, position: int) -> Message:
        return self._messages[position]

    @property
    def messages(self) -> Tuple[Message, ...]:
        """Read-only snapshot of the log."""
        return tuple(self._messages)

    @property
    def pending(self) -> Optional[Message]:
        """The in-flight placeholder, if any."""
        for message in reversed(self._messages):
            if message.pending:
                return message
        return None

    def get(self, message_id: str) -> Optional[Message]:
        position = self._index.get(message_id)
        return self._messages[position] if position is not None else None

    def _generate_id(self) -> str:
        """Time-based id with a sequence suffix so ids from the same millisecond differ."""
        return f"msg_{time.time_ns() // 1_000_000}_{next(self._sequence):04d}"

    def _append(self, message: Message) -> Message:
        if message.id in self._index:
            raise ValueError(f"Duplicate message id: {message.id}")
        self._index[message.id] = len(self._messages)
        self._messages.append(message)
        return message

    def append_user(self, text: str) -> Message:
        """Append a finalized user message."""
        message = Message(id=self._generate_id(), role=Role.USER, text=text)
        logger.debug("Appended user message", message_id=message.id)
        return self._append(message)

    def append_pending(self) -> Message:
        """Append an empty model placeholder awaiting a reply."""
        if self.pending is not None:
            raise ValueError("A reply is already pending")
        message = Message(id=self._generate_id(), role=Role.MODEL, text="", pending=True)
        logger.debug("Appended pending model message", message_id=message.id)
        return self._append(message)

    def finalize(self, message_id: str, text: str) -> Message:
        """Replace a pending placeholder with its final text, in place."""
        position = self._index.get(message_id)
        if position is None:
            raise KeyError(message_id)

        current = self._messages[position]
        if not current.pending:
            raise ValueError(f"Message {message_id} is already finalized")

        final = replace(current, text=text, pending=False)
        self._messages[position] = final
        logger.debug("Finalized model message", message_id=message_id, length=len(text))
        return final

    def request_history(self) -> List[HistoryTurn]:
        """Project the log into chat context.

        Pending placeholders and the seed message are left out. Computed
        fresh on every call.
        """
        return [
            HistoryTurn(role=message.role.value, text=message.text)
            for message in self._messages
            if not message.pending and message.id != self.seed_id
        ]
