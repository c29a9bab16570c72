from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
)
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

metadata = MetaData()

chat_messages = Table(
    "chat_messages",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("message_id", String(64), nullable=False, unique=True),
    Column("conversation_id", String(255), nullable=False, index=True),
    Column("sender", String(16), nullable=False),
    Column("message", Text, nullable=False),
    Column("timestamp", DateTime(timezone=True), nullable=False),
    Column("is_read", Boolean, nullable=False, default=False),
)

chatbot_keywords = Table(
    "chatbot_keywords",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("keyword", Text, nullable=False),
    Column("response", Text, nullable=False),
    Column("category", String(64), nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("priority", Integer, nullable=False, default=5),
    Column("created_at", DateTime(timezone=True)),
    Column("updated_at", DateTime(timezone=True)),
)


def make_engine(url: str) -> Engine:
    if url in {"sqlite://", "sqlite:///:memory:"}:
        # One shared connection so every thread sees the same in-memory db
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True)


def prepare_schema(engine: Engine) -> None:
    metadata.create_all(engine)
    logger.info("DB initialized: chat_messages and chatbot_keywords tables ready")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo on the way back
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)
