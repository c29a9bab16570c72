from __future__ import annotations

import asyncio
import logging
import threading
import uuid
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.engine import Engine

from .chat_models import KeywordRule
from .db import as_utc, chatbot_keywords, prepare_schema, utcnow

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 5

# Starter rule set inserted into an empty table
DEFAULT_KEYWORDS: List[Dict[str, Any]] = [
    {"keyword": "order status", "category": "orders", "priority": 1,
     "response": "I can help you check your order status. Please provide your order number."},
    {"keyword": "shipping", "category": "shipping", "priority": 2,
     "response": "Our standard shipping takes 3-5 business days. Express shipping is available for 1-2 business days."},
    {"keyword": "return", "category": "returns", "priority": 3,
     "response": "We offer a 30-day return policy. Please contact our support team for return instructions."},
    {"keyword": "refund", "category": "returns", "priority": 2,
     "response": "Refunds are processed within 5-7 business days after we receive your returned item."},
    {"keyword": "tracking", "category": "shipping", "priority": 2,
     "response": "You can track your order using the tracking number provided in your confirmation email."},
    {"keyword": "payment", "category": "general", "priority": 3,
     "response": "We accept all major credit cards, PayPal, and bank transfers. All payments are secure and encrypted."},
    {"keyword": "size guide", "category": "general", "priority": 4,
     "response": "Please check our size guide on the product page for accurate measurements and fit information."},
    {"keyword": "contact", "category": "general", "priority": 1,
     "response": "You can reach our customer support team at support@example.com or call us at +1-800-123-4567."},
]


def normalize_keyword(keyword: str) -> str:
    return keyword.lower().strip()


def _row_to_rule(row: Mapping[str, Any]) -> KeywordRule:
    return KeywordRule(
        id=row["id"],
        keyword=row["keyword"],
        response=row["response"],
        category=row["category"],
        is_active=bool(row["is_active"]),
        priority=int(row["priority"]),
        created_at=as_utc(row["created_at"]),
        updated_at=as_utc(row["updated_at"]),
    )


class SqlKeywordRepository:
    def __init__(self, engine: Engine, seed_defaults: bool = True) -> None:
        self.engine = engine
        self.seed_defaults = seed_defaults
        self._ready = False
        self._lock = threading.Lock()

    def _ensure_schema(self) -> None:
        if self._ready:
            return
        with self._lock:
            if self._ready:
                return
            prepare_schema(self.engine)
            if self.seed_defaults:
                self._seed()
            self._ready = True

    def _seed(self) -> None:
        with self.engine.begin() as conn:
            count = conn.execute(select(func.count()).select_from(chatbot_keywords)).scalar_one()
            if count:
                return
            now = utcnow()
            conn.execute(
                chatbot_keywords.insert(),
                [
                    {
                        "id": str(i + 1),
                        "keyword": row["keyword"],
                        "response": row["response"],
                        "category": row["category"],
                        "is_active": True,
                        "priority": row["priority"],
                        "created_at": now,
                        "updated_at": now,
                    }
                    for i, row in enumerate(DEFAULT_KEYWORDS)
                ],
            )
        logger.info(f"Seeded {len(DEFAULT_KEYWORDS)} default chatbot keywords")

    # ---------------------------
    # Blocking implementations
    # ---------------------------
    def _list(self, active_only: bool) -> List[KeywordRule]:
        self._ensure_schema()
        stmt = select(chatbot_keywords)
        if active_only:
            stmt = stmt.where(chatbot_keywords.c.is_active.is_(True))
        stmt = stmt.order_by(chatbot_keywords.c.created_at.asc(), chatbot_keywords.c.id.asc())
        with self.engine.begin() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [_row_to_rule(r) for r in rows]

    def _get(self, rule_id: str) -> Optional[KeywordRule]:
        with self.engine.begin() as conn:
            row = conn.execute(
                select(chatbot_keywords).where(chatbot_keywords.c.id == rule_id)
            ).mappings().first()
        return _row_to_rule(row) if row else None

    def _create(self, keyword: str, response: str, category: str,
                is_active: Optional[bool] = None, priority: Optional[int] = None) -> KeywordRule:
        self._ensure_schema()
        now = utcnow()
        values = {
            "id": uuid.uuid4().hex,
            "keyword": normalize_keyword(keyword),
            "response": response,
            "category": category,
            "is_active": is_active is not False,
            "priority": priority or DEFAULT_PRIORITY,
            "created_at": now,
            "updated_at": now,
        }
        with self.engine.begin() as conn:
            conn.execute(chatbot_keywords.insert().values(**values))
        return _row_to_rule(values)

    def _update(self, rule_id: str, changes: Dict[str, Any]) -> Optional[KeywordRule]:
        self._ensure_schema()
        values: Dict[str, Any] = {}
        if changes.get("keyword"):
            values["keyword"] = normalize_keyword(changes["keyword"])
        if changes.get("response"):
            values["response"] = changes["response"]
        if changes.get("category"):
            values["category"] = changes["category"]
        if isinstance(changes.get("is_active"), bool):
            values["is_active"] = changes["is_active"]
        if changes.get("priority"):
            values["priority"] = int(changes["priority"])
        values["updated_at"] = utcnow()
        with self.engine.begin() as conn:
            res = conn.execute(
                update(chatbot_keywords).where(chatbot_keywords.c.id == rule_id).values(**values)
            )
            if not res.rowcount:
                return None
        return self._get(rule_id)

    def _delete(self, rule_id: str) -> bool:
        self._ensure_schema()
        with self.engine.begin() as conn:
            res = conn.execute(delete(chatbot_keywords).where(chatbot_keywords.c.id == rule_id))
        return bool(res.rowcount)

    # ---------------------------
    # Async API
    # ---------------------------
    async def list_active_keywords(self) -> List[KeywordRule]:
        return await asyncio.to_thread(self._list, True)

    async def list_keywords(self) -> List[KeywordRule]:
        return await asyncio.to_thread(self._list, False)

    async def create_keyword(self, keyword: str, response: str, category: str,
                             is_active: Optional[bool] = None, priority: Optional[int] = None) -> KeywordRule:
        return await asyncio.to_thread(self._create, keyword, response, category, is_active, priority)

    async def update_keyword(self, rule_id: str, **changes: Any) -> Optional[KeywordRule]:
        return await asyncio.to_thread(self._update, rule_id, changes)

    async def delete_keyword(self, rule_id: str) -> bool:
        return await asyncio.to_thread(self._delete, rule_id)
