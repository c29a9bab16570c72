from __future__ import annotations

import asyncio
import threading
from typing import Any, List, Mapping

from sqlalchemy import func, select, update
from sqlalchemy.engine import Engine

from .chat_models import ChatMessage, ConversationSummary
from .db import as_utc, chat_messages, prepare_schema


def _row_to_message(row: Mapping[str, Any]) -> ChatMessage:
    return ChatMessage(
        id=row["message_id"],
        conversation_id=row["conversation_id"],
        sender=row["sender"],
        message=row["message"],
        timestamp=as_utc(row["timestamp"]),
        is_read=bool(row["is_read"]),
    )


class SqlMessageLog:
    """Append-only chat message log on SQLAlchemy Core.

    The public coroutines push the blocking database work onto a worker
    thread so the event loop is never held by a query.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._ready = False
        self._lock = threading.Lock()

    def _ensure_schema(self) -> None:
        if self._ready:
            return
        with self._lock:
            if not self._ready:
                prepare_schema(self.engine)
                self._ready = True

    # ---------------------------
    # Blocking implementations
    # ---------------------------
    def _append(self, record: ChatMessage) -> ChatMessage:
        self._ensure_schema()
        with self.engine.begin() as conn:
            conn.execute(
                chat_messages.insert().values(
                    message_id=record.id,
                    conversation_id=record.conversation_id,
                    sender=record.sender,
                    message=record.message,
                    timestamp=record.timestamp,
                    is_read=record.is_read,
                )
            )
        return record

    def _list_by_conversation(self, conversation_id: str) -> List[ChatMessage]:
        self._ensure_schema()
        stmt = (
            select(chat_messages)
            .where(chat_messages.c.conversation_id == conversation_id)
            .order_by(chat_messages.c.timestamp.asc(), chat_messages.c.seq.asc())
        )
        with self.engine.begin() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [_row_to_message(r) for r in rows]

    def _list_conversations(self) -> List[ConversationSummary]:
        self._ensure_schema()
        grouped = (
            select(
                chat_messages.c.conversation_id,
                func.count().label("message_count"),
                func.max(chat_messages.c.seq).label("last_seq"),
            )
            .group_by(chat_messages.c.conversation_id)
            .subquery()
        )
        stmt = (
            select(chat_messages, grouped.c.message_count)
            .select_from(chat_messages.join(grouped, chat_messages.c.seq == grouped.c.last_seq))
            .order_by(chat_messages.c.timestamp.desc(), chat_messages.c.seq.desc())
        )
        with self.engine.begin() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [
            ConversationSummary(
                conversation_id=r["conversation_id"],
                last_message=_row_to_message(r),
                message_count=int(r["message_count"]),
            )
            for r in rows
        ]

    def _mark_as_read(self, conversation_id: str) -> int:
        self._ensure_schema()
        stmt = (
            update(chat_messages)
            .where(chat_messages.c.conversation_id == conversation_id)
            .where(chat_messages.c.sender == "user")
            .values(is_read=True)
        )
        with self.engine.begin() as conn:
            return conn.execute(stmt).rowcount or 0

    # ---------------------------
    # Async API
    # ---------------------------
    async def append(self, record: ChatMessage) -> ChatMessage:
        return await asyncio.to_thread(self._append, record)

    async def list_by_conversation(self, conversation_id: str) -> List[ChatMessage]:
        return await asyncio.to_thread(self._list_by_conversation, conversation_id)

    async def list_conversations(self) -> List[ConversationSummary]:
        return await asyncio.to_thread(self._list_conversations)

    async def mark_as_read(self, conversation_id: str) -> int:
        return await asyncio.to_thread(self._mark_as_read, conversation_id)
