"""JSON API routes for chats and messages.

All routes return JSON. Replies to a message are always well-formed
assistant messages, even when market data or the completion endpoint fail.
"""

from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from llm_market_assistant.api.rate_limiter import limiter
from llm_market_assistant.core.assistant import MarketAssistant
from llm_market_assistant.storage.chat_store import ChatNotFoundError, ChatStore

router = APIRouter()


class MessageIn(BaseModel):
    content: str = Field(..., min_length=1, max_length=4000)


def _store(request: Request) -> ChatStore:
    return request.app.state.chat_store


def _assistant(request: Request) -> MarketAssistant:
    return request.app.state.assistant


def _chat_summary(chat: Any) -> dict[str, Any]:
    return {
        "id": chat.id,
        "title": chat.title,
        "created_at": chat.created_at,
        "message_count": len(chat.messages),
    }


# ============================================================================
# Health Check
# ============================================================================


@router.get("/health")
@limiter.limit("60/minute")
async def health_check(request: Request) -> dict[str, str]:
    """Health check endpoint.

    Example:
        >>> GET /health
        {"status": "ok"}
    """
    return {"status": "ok"}


# ============================================================================
# Chats
# ============================================================================


@router.post("/chats", status_code=201)
@limiter.limit("30/minute")
async def create_chat(request: Request) -> dict[str, Any]:
    """Create an empty chat."""
    chat = _store(request).create_chat()
    return chat.to_dict()


@router.get("/chats")
@limiter.limit("100/minute")
async def list_chats(request: Request) -> dict[str, list[dict[str, Any]]]:
    """List chats, newest first.

    Example:
        >>> GET /chats
        {"items": [{"id": "...", "title": "What about BTC?", ...}]}
    """
    return {"items": [_chat_summary(chat) for chat in _store(request).list_chats()]}


@router.get("/chats/{chat_id}")
@limiter.limit("100/minute")
async def get_chat(request: Request, chat_id: str) -> dict[str, Any]:
    """Get one chat with all of its messages.

    Raises:
        HTTPException: 404 if the chat does not exist
    """
    chat = _store(request).get_chat(chat_id)
    if chat is None:
        raise HTTPException(status_code=404, detail=f"Chat '{chat_id}' not found")
    return chat.to_dict()


@router.delete("/chats/{chat_id}")
@limiter.limit("30/minute")
async def delete_chat(request: Request, chat_id: str) -> dict[str, str]:
    """Delete a chat.

    Raises:
        HTTPException: 404 if the chat does not exist
    """
    if not _store(request).delete_chat(chat_id):
        raise HTTPException(status_code=404, detail=f"Chat '{chat_id}' not found")
    return {"status": "deleted", "id": chat_id}


@router.post("/chats/{chat_id}/messages")
@limiter.limit("20/minute")
async def post_message(request: Request, chat_id: str, payload: MessageIn) -> dict[str, Any]:
    """Send a user message and return it together with the assistant reply.

    Raises:
        HTTPException: 404 if the chat does not exist

    Example:
        >>> POST /chats/abc/messages {"content": "/analyze BTC"}
        {"user_message": {...}, "assistant_message": {...}}
    """
    store = _store(request)
    if store.get_chat(chat_id) is None:
        raise HTTPException(status_code=404, detail=f"Chat '{chat_id}' not found")

    turn = await _assistant(request).handle_turn(payload.content)
    try:
        store.append_message(chat_id, turn.user_message)
        store.append_message(chat_id, turn.assistant_message)
    except ChatNotFoundError:
        raise HTTPException(status_code=404, detail=f"Chat '{chat_id}' was deleted")

    return {
        "user_message": turn.user_message.to_dict(),
        "assistant_message": turn.assistant_message.to_dict(),
    }
