"""
Messages router - talk to the bot over HTTP.

POST /messages runs the same pipeline a chat message does ("!help" runs the
command directly, anything else is routed) and returns the replies the bot
would have sent instead of delivering them.
"""

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from homebot.ai.monitoring.metrics import ai_metrics
from homebot.deps import build_message_handler
from homebot.services.messaging import CollectingTransport

router = APIRouter(tags=["messages"])


class MessageRequest(BaseModel):
    """
    Example request body:
    {
        "conversation_id": "34600111222@c.us",
        "text": "turn off the office lights"
    }
    """
    conversation_id: str = Field(default="http", description="Conversation to reply to")
    text: str = Field(..., min_length=1, description="The user's message")


@router.post("/messages")
async def post_message(request: MessageRequest):
    """
    Route a message and return what the bot answered.

    Example response:
    {
        "bucket": "WEBHOOK",
        "dispatched": true,
        "outcome": "success",
        "replies": ["Turning off the office lights.", "✅ The office lights are now off."],
        ...
    }
    """
    transport = CollectingTransport()
    result = await build_message_handler(transport).handle(request.conversation_id, request.text)
    if result is None:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Message text is blank")
    response = result.to_dict()
    response["replies"] = transport.messages(request.conversation_id)
    return response


@router.get("/stats")
def get_stats():
    """AI usage since start-up: requests, tokens, latency and estimated cost."""
    return ai_metrics.get_stats().to_dict()
