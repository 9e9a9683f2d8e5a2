"""In-memory state for the chat surface."""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

MOCK_REPLY = "Здесь отображается распознанная речь собеседника"
CALL_DELAY_SECONDS = 2.5


class Author(str, Enum):
    USER = "user"
    PEER = "peer"


@dataclass(frozen=True)
class Message:
    text: str
    author: Author
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


class ChatSession:
    """Ordered message list, draft text and per-message playback flags."""

    def __init__(self) -> None:
        self.messages: list[Message] = []
        self.draft = ""
        self._playing: set[str] = set()

    def submit(self, text: Optional[str] = None) -> Optional[Message]:
        """Append the trimmed draft (or ``text``) as a user message.

        Blank input is a no-op and returns ``None``.
        """
        candidate = self.draft if text is None else text
        trimmed = candidate.strip()
        if not trimmed:
            return None
        message = Message(text=trimmed, author=Author.USER)
        self.messages.append(message)
        self.draft = ""
        return message

    def simulate_reply(self) -> Message:
        message = Message(text=MOCK_REPLY, author=Author.PEER)
        self.messages.append(message)
        return message

    def find(self, message_id: str) -> Optional[Message]:
        return next((m for m in self.messages if m.id == message_id), None)

    def begin_playback(self, message_id: str) -> bool:
        """Mark a message as playing; ``False`` if it already is."""
        if message_id in self._playing:
            return False
        self._playing.add(message_id)
        return True

    def end_playback(self, message_id: str) -> None:
        self._playing.discard(message_id)

    def is_playing(self, message_id: str) -> bool:
        return message_id in self._playing


@dataclass
class CallDialog:
    """Phone-number gate shown before the chat. No real call is placed."""

    phone: str = ""
    is_open: bool = True
    is_calling: bool = False

    async def place_call(self, phone: str, delay: float = CALL_DELAY_SECONDS) -> bool:
        self.phone = phone
        if not phone.strip():
            return False
        self.is_calling = True
        try:
            await asyncio.sleep(delay)
        finally:
            self.is_calling = False
        self.is_open = False
        return True


__all__ = [
    "Author",
    "CALL_DELAY_SECONDS",
    "CallDialog",
    "ChatSession",
    "MOCK_REPLY",
    "Message",
]
