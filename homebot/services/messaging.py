"""
Messaging - The boundary between the bot core and the chat transport.

The core never talks to a chat network directly. It gets a ChatTransport
(anything with an async send(conversation_id, text)) and a MessageContext
per inbound message, which is what command handlers reply through.

    router.route_message("34600111222@c.us", "what's the weather in Madrid")
        → handler(ctx, "Madrid")
        → await ctx.reply("☀️ Madrid: 24°C")
        → transport.send("34600111222@c.us", "☀️ Madrid: 24°C")
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable

logger = logging.getLogger("homebot.services.messaging")


@runtime_checkable
class ChatTransport(Protocol):
    """Anything that can deliver a text message to a conversation."""

    async def send(self, conversation_id: str, text: str) -> None:
        ...


class CollectingTransport:
    """
    Transport that just records what would have been sent.

    Used by the HTTP API (replies are returned in the response body) and
    whenever a command runs without a live conversation.
    """

    def __init__(self):
        self.sent: List[Tuple[str, str]] = []

    async def send(self, conversation_id: str, text: str) -> None:
        self.sent.append((conversation_id, text))

    def messages(self, conversation_id: Optional[str] = None) -> List[str]:
        return [text for cid, text in self.sent if conversation_id is None or cid == conversation_id]


@dataclass
class MessageContext:
    """
    Everything a command handler gets besides its argument string.

    Attributes:
        conversation_id: Where replies go
        text: The original inbound message
        transport: Delivery channel for replies
        registry: Action registry in use (for !help and friends)
        metadata: Free-form extras from the transport (sender name, etc.)
    """
    conversation_id: str
    text: str
    transport: ChatTransport
    registry: Optional[Any] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    replies: List[str] = field(default_factory=list)

    async def reply(self, text: str) -> None:
        """Send a message back to the conversation."""
        if not text:
            return
        self.replies.append(text)
        await self.transport.send(self.conversation_id, text)
