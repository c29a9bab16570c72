from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Pattern

logger = logging.getLogger(__name__)

# Words a loose pattern tends to capture that are never order ids
STOP_WORDS = {
    "status", "check", "track", "find", "look", "help",
    "what", "how", "where", "when", "why",
}
MIN_REFERENCE_LENGTH = 6


def is_plausible_reference(token: str) -> bool:
    if token in STOP_WORDS:
        return False
    if token in {"order", "status"}:
        return False
    return len(token) >= MIN_REFERENCE_LENGTH


@dataclass(frozen=True)
class ReferencePattern:
    name: str
    regex: Pattern[str]
    validator: Callable[[str], bool] = is_plausible_reference


def _p(name: str, expr: str) -> ReferencePattern:
    return ReferencePattern(name, re.compile(expr, re.IGNORECASE))


# Most specific first
DEFAULT_PATTERNS: List[ReferencePattern] = [
    _p("order_object_id", r"order\s*#?\s*([a-f0-9]{24})"),
    _p("order_number", r"order\s*#?\s*([a-z0-9_-]{6,})"),
    _p("ord_prefix", r"ord-([a-z0-9_-]{6,})"),
    _p("order_id_label", r"order\s*id\s*:?\s*([a-z0-9_-]{6,})"),
    _p("tracking_number", r"tracking\s*#?\s*([a-z0-9_-]{6,})"),
    _p("bare_object_id", r"([a-f0-9]{24})"),
    _p("bare_token", r"([a-z0-9_-]{8,})"),
]


class OrderReferenceExtractor:
    """Pulls a candidate order id out of free text.

    Each pattern is tried once against the whole message. A capture that
    fails its validator moves evaluation on to the next pattern; later
    occurrences of the same pattern are not considered.
    """

    def __init__(self, patterns: Optional[Iterable[ReferencePattern]] = None) -> None:
        self.patterns: List[ReferencePattern] = list(patterns if patterns is not None else DEFAULT_PATTERNS)

    def extract(self, message: str) -> Optional[str]:
        for pattern in self.patterns:
            m = pattern.regex.search(message or "")
            if not m or not m.group(1):
                continue
            token = m.group(1).lower()
            if not pattern.validator(token):
                continue
            logger.debug(f"Extracted order id {token!r} via {pattern.name}")
            return token
        logger.debug("No order id found in message")
        return None
