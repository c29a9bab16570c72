from __future__ import annotations

import asyncio
import threading
import uuid
from collections import OrderedDict
from typing import Dict, List, Protocol, Tuple

from .chat_models import ChatMessage
from .db import utcnow


class MessageLog(Protocol):
    async def append(self, record: ChatMessage) -> ChatMessage: ...

    async def list_by_conversation(self, conversation_id: str) -> List[ChatMessage]: ...


class MirrorCache:
    """Recent messages per conversation, bounded in both directions.

    Each conversation keeps at most ``max_messages`` entries (oldest dropped
    first) and at most ``max_conversations`` conversations are held; the one
    written least recently is evicted when a new id arrives.
    """

    def __init__(self, max_messages: int = 50, max_conversations: int = 1000) -> None:
        if max_messages < 1 or max_conversations < 1:
            raise ValueError("mirror capacities must be positive")
        self.max_messages = max_messages
        self.max_conversations = max_conversations
        self._items: "OrderedDict[str, List[ChatMessage]]" = OrderedDict()
        self._lock = threading.Lock()

    def append(self, conversation_id: str, *records: ChatMessage) -> None:
        with self._lock:
            entries = self._items.get(conversation_id)
            if entries is None:
                entries = []
                self._items[conversation_id] = entries
            self._items.move_to_end(conversation_id)
            for rec in records:
                entries.append(rec)
                if len(entries) > self.max_messages:
                    del entries[: len(entries) - self.max_messages]
            while len(self._items) > self.max_conversations:
                self._items.popitem(last=False)

    def recent(self, conversation_id: str) -> List[ChatMessage]:
        with self._lock:
            return list(self._items.get(conversation_id, []))

    def __contains__(self, conversation_id: object) -> bool:
        return conversation_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "conversations": len(self._items),
                "messages": sum(len(v) for v in self._items.values()),
            }


def new_message(conversation_id: str, sender: str, text: str, is_read: bool) -> ChatMessage:
    return ChatMessage(
        id=uuid.uuid4().hex,
        conversation_id=conversation_id,
        sender=sender,
        message=text,
        timestamp=utcnow(),
        is_read=is_read,
    )


class ConversationStore:
    def __init__(self, log: MessageLog, mirror: MirrorCache, timeout: float = 5.0) -> None:
        self.log = log
        self.mirror = mirror
        self.timeout = timeout

    async def record_turn(self, conversation_id: str, user_text: str, bot_text: str) -> Tuple[ChatMessage, ChatMessage]:
        user_msg = new_message(conversation_id, "user", user_text, is_read=False)
        user_msg = await asyncio.wait_for(self.log.append(user_msg), self.timeout)
        bot_msg = new_message(conversation_id, "bot", bot_text, is_read=True)
        bot_msg = await asyncio.wait_for(self.log.append(bot_msg), self.timeout)
        self.mirror.append(conversation_id, user_msg, bot_msg)
        return user_msg, bot_msg

    async def get_history(self, conversation_id: str) -> List[ChatMessage]:
        return await asyncio.wait_for(self.log.list_by_conversation(conversation_id), self.timeout)
