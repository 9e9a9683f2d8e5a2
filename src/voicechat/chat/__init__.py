"""Chat surface state and audio playback."""

from .playback import GatewayClient, MessagePlayer, PlaybackError, PlaybackSession
from .session import MOCK_REPLY, Author, CallDialog, ChatSession, Message

__all__ = [
    "Author",
    "CallDialog",
    "ChatSession",
    "GatewayClient",
    "MOCK_REPLY",
    "Message",
    "MessagePlayer",
    "PlaybackError",
    "PlaybackSession",
]
