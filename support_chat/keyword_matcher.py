from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional, Protocol

from .chat_models import KeywordRule

logger = logging.getLogger(__name__)


class KeywordRepository(Protocol):
    async def list_active_keywords(self) -> List[KeywordRule]: ...


def rank_rules(rules: Iterable[KeywordRule]) -> List[KeywordRule]:
    """Active rules, highest priority value first. Ties keep repository order."""
    active = [r for r in rules if r.is_active]
    return sorted(active, key=lambda r: r.priority or 0, reverse=True)


def first_match(text: str, rules: Iterable[KeywordRule]) -> Optional[KeywordRule]:
    t = text.lower()
    for rule in rank_rules(rules):
        kw = (rule.keyword or "").lower().strip()
        if kw and kw in t:
            return rule
    return None


class KeywordMatcher:
    def __init__(self, repository: KeywordRepository, timeout: float = 3.0) -> None:
        self.repository = repository
        self.timeout = timeout

    async def _load_rules(self) -> List[KeywordRule]:
        try:
            return await asyncio.wait_for(self.repository.list_active_keywords(), self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Keyword repository timed out after {self.timeout}s; skipping keyword rules")
        except Exception as e:
            logger.warning(f"Keyword repository unavailable; skipping keyword rules: {e}")
        return []

    async def match(self, text: str) -> Optional[KeywordRule]:
        rules = await self._load_rules()
        return first_match(text, rules)
