from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

# Load .env before reading any environment variables
load_dotenv()


DEFAULT_DB_URL = "sqlite:///./support_chat.db"
TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    database_url: str = DEFAULT_DB_URL
    store_api_url: str = "http://localhost:3000"
    # Seconds; every collaborator call in a turn is bounded
    order_lookup_timeout: float = 5.0
    keyword_timeout: float = 3.0
    store_timeout: float = 5.0
    mirror_max_messages: int = 50
    mirror_max_conversations: int = 1000
    seed_keywords: bool = True
    admin_key: Optional[str] = None
    log_level: str = "INFO"


def _normalize_db_url(url: str) -> str:
    # SQLAlchemy requires the "postgresql://" scheme (not legacy "postgres://").
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


def load_settings() -> Settings:
    db_url = os.getenv("DATABASE_URL") or os.getenv("DB_URL") or DEFAULT_DB_URL
    return Settings(
        database_url=_normalize_db_url(db_url),
        store_api_url=os.getenv("STORE_API_URL", "http://localhost:3000").rstrip("/"),
        order_lookup_timeout=float(os.getenv("ORDER_LOOKUP_TIMEOUT", "5")),
        keyword_timeout=float(os.getenv("KEYWORD_TIMEOUT", "3")),
        store_timeout=float(os.getenv("STORE_TIMEOUT", "5")),
        mirror_max_messages=int(os.getenv("MIRROR_MAX_MESSAGES", "50")),
        mirror_max_conversations=int(os.getenv("MIRROR_MAX_CONVERSATIONS", "1000")),
        seed_keywords=os.getenv("SEED_KEYWORDS", "true").lower() in TRUTHY,
        admin_key=os.getenv("ADMIN_KEY") or os.getenv("BOT_ADMIN_KEY"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
