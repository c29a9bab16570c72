from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from ..chat_models import ChatRequest, ChatResponse, HistoryResponse
from ..conversation_store import ConversationStore
from ..deps import get_pipeline, get_store
from ..pipeline import MessageIngestPipeline

router = APIRouter(tags=["chat"])
logger = logging.getLogger(__name__)


@router.post("/chat", response_model=ChatResponse)
async def post_chat(
    req: ChatRequest,
    pipeline: MessageIngestPipeline = Depends(get_pipeline),
) -> ChatResponse:
    try:
        turn = await pipeline.handle(req.message, req.conversation_id)
    except Exception:
        logger.exception("Chatbot API error")
        raise HTTPException(status_code=500, detail="Internal server error")
    return ChatResponse(
        response=turn.response,
        conversation_id=turn.conversation_id,
        message_id=turn.message_id,
        source=turn.source,
    )


@router.get("/chat", response_model=HistoryResponse)
async def get_chat(
    conversation_id: str = Query("default", alias="conversationId"),
    store: ConversationStore = Depends(get_store),
) -> HistoryResponse:
    try:
        messages = await store.get_history(conversation_id)
    except Exception:
        logger.exception("Chatbot GET API error")
        raise HTTPException(status_code=500, detail="Internal server error")
    return HistoryResponse(conversation=messages, conversation_id=conversation_id)
