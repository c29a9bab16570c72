from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

Chooser = Callable[[Sequence[str]], str]

ORDER_PROMPT = (
    "I can help you check your order status! Please provide your order number "
    "(e.g., 'order #123' or 'ORD-123') and I'll look it up for you."
)

# A trigger is a tuple of substrings that must all be present
Trigger = Tuple[str, ...]


@dataclass(frozen=True)
class Bucket:
    name: str
    triggers: Tuple[Trigger, ...]
    templates: Tuple[str, ...]
    randomized: bool = True

    def matches(self, text: str) -> bool:
        return any(all(part in text for part in trig) for trig in self.triggers)


def _any(*words: str) -> Tuple[Trigger, ...]:
    return tuple((w,) for w in words)


ORDER_STATUS = Bucket(
    "order_status",
    _any("order status", "track order", "where is my order", "check order",
         "order update", "my order", "order number") + (("order", "status"),),
    (ORDER_PROMPT,),
    randomized=False,
)

BUCKETS: List[Bucket] = [
    ORDER_STATUS,
    Bucket("greeting", _any("hello", "hi", "hey"), (
        "Hello! How can I help you today?",
        "Hi there! What can I assist you with?",
        "Welcome! I'm here to help with any questions you might have.",
    )),
    Bucket("products", _any("product", "jewelry", "ring", "necklace", "earring", "bracelet"), (
        "We have a beautiful collection of jewelry including rings, necklaces, earrings, and bracelets. You can browse our products in the Products section.",
        "Our jewelry collection features elegant designs perfect for any occasion. Would you like to know about a specific type of jewelry?",
        "We offer a wide range of jewelry items. Is there something specific you're looking for?",
    )),
    Bucket("pricing", _any("price", "cost", "expensive", "cheap", "discount"), (
        "Our prices vary depending on the product. You can see detailed pricing on each product page. We also offer free shipping on orders over RS 1000!",
        "Prices are displayed on each product page. We have competitive pricing and often run special promotions.",
        "All our products have transparent pricing shown on their individual pages. We also have seasonal sales and discounts.",
    )),
    Bucket("shipping", _any("shipping", "delivery", "free shipping"), (
        "We offer free shipping on orders over RS 1000! For orders under this amount, shipping costs are calculated at checkout.",
        "Free delivery on orders over RS 1000. For smaller orders, shipping fees apply and will be shown at checkout.",
        "We provide free shipping for orders above RS 1000. Standard shipping rates apply for smaller orders.",
    )),
    Bucket("returns", _any("return", "refund", "exchange"), (
        "We offer a 30-day return policy for all items. Items must be in original condition with tags attached.",
        "You can return any item within 30 days of purchase. Please keep the original packaging and tags.",
        "Our return policy allows 30 days for returns. Items should be unworn and in original packaging.",
    )),
    Bucket("contact", _any("contact", "email", "phone", "support"), (
        "You can reach us through this chat, or you can email us at support@bloomyourstyle.com",
        "For immediate assistance, you can use this chat. For other inquiries, email us at support@bloomyourstyle.com",
        "I'm here to help! You can also contact us via email at support@bloomyourstyle.com",
    )),
]

DEFAULT_TEMPLATES: Tuple[str, ...] = (
    "I understand you're asking about that. Let me help you find the right information. Could you be more specific?",
    "That's a great question! I'd be happy to help you with that. Can you provide more details?",
    "I'm here to assist you! Could you tell me more about what you're looking for?",
    "I want to make sure I give you the best help possible. Could you rephrase your question?",
)


class StaticFallback:
    """Canned responses over fixed semantic buckets; first matching bucket wins."""

    def __init__(self, choose: Optional[Chooser] = None, buckets: Optional[List[Bucket]] = None) -> None:
        self.choose: Chooser = choose or random.choice
        self.buckets = list(buckets if buckets is not None else BUCKETS)

    def _pick(self, bucket: Bucket) -> str:
        if not bucket.randomized:
            return bucket.templates[0]
        return self.choose(bucket.templates)

    def order_prompt(self, text: str) -> Optional[str]:
        t = text.lower()
        return ORDER_PROMPT if ORDER_STATUS.matches(t) else None

    def respond(self, text: str) -> str:
        t = text.lower()
        for bucket in self.buckets:
            if bucket.matches(t):
                return self._pick(bucket)
        return self.choose(DEFAULT_TEMPLATES)
