#!/usr/bin/env python3
"""Command-line chat with the market assistant."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

from llm_market_assistant.config.service import load_config
from llm_market_assistant.core.assistant import MarketAssistant
from llm_market_assistant.factory import build_assistant, build_chat_store
from llm_market_assistant.storage.chat_store import ChatStore

logger = logging.getLogger(__name__)

EXIT_COMMANDS = {"exit", "quit", ":q"}


async def ask(
    assistant: MarketAssistant,
    text: str,
    store: Optional[ChatStore] = None,
    chat_id: Optional[str] = None,
) -> str:
    """Send one message and optionally persist the turn into ``chat_id``."""
    turn = await assistant.handle_turn(text)
    if store is not None and chat_id is not None:
        store.append_message(chat_id, turn.user_message)
        store.append_message(chat_id, turn.assistant_message)
    return turn.assistant_message.content


async def run_interactive(assistant: MarketAssistant, store: Optional[ChatStore], chat_id: Optional[str]) -> None:
    print("LLM Market Assistant. Ask about any coin, or use /analyze SYMBOL. Type 'exit' to quit.")
    while True:
        try:
            text = await asyncio.to_thread(input, "> ")
        except (EOFError, KeyboardInterrupt):
            print()
            return
        text = text.strip()
        if not text:
            continue
        if text.lower() in EXIT_COMMANDS:
            return
        print(await ask(assistant, text, store, chat_id))
        print()


def list_chats(store: ChatStore) -> None:
    chats = store.list_chats()
    if not chats:
        print("No chats stored.")
        return
    for chat in chats:
        print(f"{chat.id}  {chat.title}  ({len(chat.messages)} messages)")


def serve(host: str, port: int) -> None:
    import uvicorn

    from llm_market_assistant.api.server import create_app

    uvicorn.run(create_app(), host=host, port=port)


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Chat with the LLM market assistant")
    parser.add_argument(
        "message",
        nargs="*",
        help="Message to send (omit for an interactive session)",
    )
    parser.add_argument(
        "--chat",
        metavar="CHAT_ID",
        help="Persist the conversation into an existing chat",
    )
    parser.add_argument(
        "--new-chat",
        action="store_true",
        help="Persist the conversation into a new chat",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List stored chats and exit",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Run the HTTP API instead of chatting",
    )
    parser.add_argument("--host", default="127.0.0.1", help="API host (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="API port (default: 8000)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.serve:
        serve(args.host, args.port)
        return 0

    config = load_config()
    store: Optional[ChatStore] = None
    chat_id: Optional[str] = None
    if args.list or args.chat or args.new_chat:
        store = build_chat_store(config)
    if args.list:
        list_chats(store)
        return 0
    if args.chat:
        if store.get_chat(args.chat) is None:
            print(f"Chat '{args.chat}' not found", file=sys.stderr)
            return 1
        chat_id = args.chat
    elif args.new_chat:
        chat_id = store.create_chat().id
        print(f"Chat id: {chat_id}")

    assistant = build_assistant(config)
    if args.message:
        print(asyncio.run(ask(assistant, " ".join(args.message), store, chat_id)))
    else:
        asyncio.run(run_interactive(assistant, store, chat_id))
    return 0


if __name__ == "__main__":
    sys.exit(main())
