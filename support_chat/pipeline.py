from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

from .chat_models import Reply
from .conversation_store import ConversationStore
from .fallback import StaticFallback
from .keyword_matcher import KeywordMatcher
from .order_reference import OrderReferenceExtractor
from .order_status import OrderStatusResponder

logger = logging.getLogger(__name__)

SOURCE_ORDER_STATUS = "order_status"
SOURCE_ORDER_PROMPT = "order_prompt"
SOURCE_KEYWORD = "keyword"
SOURCE_FALLBACK = "fallback"


@dataclass(frozen=True)
class TurnResult:
    reply: Reply
    conversation_id: str
    message_id: str
    source: str

    @property
    def response(self) -> str:
        return self.reply.text


class MessageIngestPipeline:
    """One request/response cycle: resolve a reply, then persist the turn.

    Resolution order is order id, order-status phrase, keyword rules, static
    fallback. Collaborator failures are contained inside the resolvers; only
    persistence errors escape.
    """

    def __init__(
        self,
        extractor: OrderReferenceExtractor,
        responder: OrderStatusResponder,
        matcher: KeywordMatcher,
        fallback: StaticFallback,
        store: ConversationStore,
    ) -> None:
        self.extractor = extractor
        self.responder = responder
        self.matcher = matcher
        self.fallback = fallback
        self.store = store

    async def resolve(self, message: str) -> Tuple[Reply, str]:
        order_id = self.extractor.extract(message)
        if order_id:
            return await self.responder.respond(order_id), SOURCE_ORDER_STATUS

        lower = message.lower()
        prompt = self.fallback.order_prompt(lower)
        if prompt:
            return Reply.of(prompt), SOURCE_ORDER_PROMPT

        rule = await self.matcher.match(lower)
        if rule is not None:
            return Reply.of(rule.response), SOURCE_KEYWORD

        return Reply.of(self.fallback.respond(lower)), SOURCE_FALLBACK

    async def handle(self, message: str, conversation_id: str = "default") -> TurnResult:
        reply, source = await self.resolve(message)
        _, bot_msg = await self.store.record_turn(conversation_id, message, reply.text)
        logger.info(f"chat turn resolved: conversation={conversation_id} source={source}")
        return TurnResult(
            reply=reply,
            conversation_id=conversation_id,
            message_id=bot_msg.id,
            source=source,
        )
