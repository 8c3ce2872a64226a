#!/usr/bin/env python3
"""Terminal chat client for the relay server."""

import argparse
import logging
from datetime import datetime

from client.session import PERSONAS, STARTER_LINES, ChatSession
from client.storage import SavedChatStore
from config.settings import get_settings


HELP = (
    "Commands: /save, /history, /open N, /delete N, /messages, /forget N, "
    "/clear, /persona NAME, /wipe-history, /quit"
)


def _print_saved(chats):
    if not chats:
        print("  (no saved chats)")
        return
    for idx, chat in enumerate(chats, 1):
        created = chat.get("createdAt")
        stamp = "?"
        if isinstance(created, (int, float)):
            stamp = datetime.fromtimestamp(created / 1000).strftime("%Y-%m-%d %H:%M")
        print(f"  {idx}. [{chat.get('character', 'Neon')}] {chat.get('title', '')} ({stamp})")


def _pick(chats, arg):
    try:
        idx = int(arg) - 1
    except (TypeError, ValueError):
        return None
    if 0 <= idx < len(chats):
        return chats[idx]
    return None


def handle_command(line, session, store):
    """Run one slash command. Returns False when the loop should stop."""
    cmd, _, arg = line[1:].partition(" ")
    arg = arg.strip()

    if cmd == "quit":
        return False
    if cmd == "save":
        store.add(session.snapshot())
        print("  Saved.")
    elif cmd == "history":
        _print_saved(store.load())
    elif cmd == "open":
        chat = _pick(store.load(), arg)
        if chat is None or not session.open(chat):
            print("  No such chat.")
        else:
            for m in session.messages:
                print(f"{m.role}> {m.text}")
    elif cmd == "delete":
        chat = _pick(store.load(), arg)
        if chat is None:
            print("  No such chat.")
        else:
            store.delete(chat.get("id"))
            print("  Deleted.")
    elif cmd == "wipe-history":
        store.clear()
        print("  Saved history cleared.")
    elif cmd == "messages":
        for idx, m in enumerate(session.messages, 1):
            print(f"  {idx}. {m.role}> {m.text}")
    elif cmd == "forget":
        message = _pick(session.messages, arg)
        if message is None:
            print("  No such message.")
        else:
            session.delete_message(message.id)
            print("  Forgotten.")
    elif cmd == "clear":
        session.clear()
        print(f"{session.character}> {session.messages[0].text}")
    elif cmd == "persona":
        if arg.lower() in PERSONAS:
            session.persona = arg.lower()
            print(f"  Persona: {session.persona}")
        else:
            print(f"  Personas: {', '.join(PERSONAS)}")
    else:
        print(HELP)
    return True


def main():
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Neon Relay chat client")
    parser.add_argument('-c', '--character', default='Neon', choices=sorted(STARTER_LINES),
                        help='Character to chat with (default: Neon)')
    parser.add_argument('-u', '--url', default=settings.chat_api_url,
                        help=f'Relay chat endpoint (default: {settings.chat_api_url})')
    parser.add_argument('-s', '--store', default=str(settings.saved_chats_path),
                        help='Saved chats file')
    args = parser.parse_args()

    logging.basicConfig(level=logging.ERROR, format="[%(asctime)s] %(levelname)s - %(message)s")

    session = ChatSession(character=args.character, api_url=args.url)
    store = SavedChatStore(args.store)

    print(f"You are chatting with {session.character}. {HELP}")
    print(f"{session.character}> {session.messages[0].text}")

    while True:
        try:
            line = input("you> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if not line:
            continue
        if line.startswith("/"):
            if not handle_command(line, session, store):
                break
            continue

        turn = session.send(line)
        if turn is None:
            continue
        print(f"{session.character}> {turn.text}")
        if session.error:
            print(f"  ! {session.error}")


if __name__ == "__main__":
    main()
