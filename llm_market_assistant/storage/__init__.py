"""Conversation persistence."""

from llm_market_assistant.storage.chat_store import ChatNotFoundError, ChatStore

__all__ = ["ChatNotFoundError", "ChatStore"]
