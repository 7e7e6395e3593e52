"""File-based storage for chat conversations."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import time
import uuid
from pathlib import Path
from typing import Dict, List

from llm_market_assistant.core.models import Chat, ChatMessage

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New Chat"
TITLE_MAX_CHARS = 40


class ChatNotFoundError(KeyError):
    """Raised when a chat id is not in the store."""


class ChatStore:
    """Persists chats to a single JSON file.

    Every mutation rewrites the file through a temporary file and an atomic
    rename, so a crash never leaves a half-written store behind.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._chats: Dict[str, Chat] = self._load()

    def _load(self) -> Dict[str, Chat]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            logger.error("Chat store %s is corrupt: %s", self.path, exc)
            raise ValueError(f"Invalid chat store file: {exc}") from exc

        chats = [Chat.from_dict(item) for item in data.get("chats", [])]
        logger.info("Loaded %d chats from %s", len(chats), self.path)
        return {chat.id: chat for chat in chats}

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"chats": [chat.to_dict() for chat in self._chats.values()]}
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".chats-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def create_chat(self) -> Chat:
        """Create an empty chat and return it."""
        chat = Chat(id=uuid.uuid4().hex, title=DEFAULT_TITLE, created_at=int(time.time() * 1000))
        with self._lock:
            self._chats[chat.id] = chat
            self._save()
        return chat

    def list_chats(self) -> List[Chat]:
        """Return all chats, newest first."""
        with self._lock:
            return sorted(self._chats.values(), key=lambda c: c.created_at, reverse=True)

    def get_chat(self, chat_id: str) -> Chat | None:
        with self._lock:
            return self._chats.get(chat_id)

    def delete_chat(self, chat_id: str) -> bool:
        """Delete a chat; returns False if it did not exist."""
        with self._lock:
            if self._chats.pop(chat_id, None) is None:
                return False
            self._save()
        return True

    def append_message(self, chat_id: str, message: ChatMessage) -> Chat:
        """Append ``message`` to a chat.

        The first user message of an untitled chat becomes its title.

        Raises:
            ChatNotFoundError: If the chat does not exist.
            ValueError: If the message is already stored in any chat.
        """
        with self._lock:
            chat = self._chats.get(chat_id)
            if chat is None:
                raise ChatNotFoundError(chat_id)
            if any(m.id == message.id for c in self._chats.values() for m in c.messages):
                raise ValueError(f"Message {message.id} already belongs to a chat")

            if chat.title == DEFAULT_TITLE and message.role == "user" and not chat.messages:
                content = message.content
                chat.title = content[:TITLE_MAX_CHARS] + ("..." if len(content) > TITLE_MAX_CHARS else "")
            chat.messages.append(message)
            self._save()
            return chat

    def update_title(self, chat_id: str, title: str) -> Chat:
        with self._lock:
            chat = self._chats.get(chat_id)
            if chat is None:
                raise ChatNotFoundError(chat_id)
            chat.title = title
            self._save()
            return chat
