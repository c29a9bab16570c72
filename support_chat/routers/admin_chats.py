from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..chat_models import MarkReadPayload
from ..deps import get_message_log, require_admin

router = APIRouter(prefix="/admin/chats", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("")
async def list_chats(
    conversation_id: Optional[str] = Query(None, alias="conversationId"),
    log=Depends(get_message_log),
) -> dict:
    if conversation_id:
        messages = await log.list_by_conversation(conversation_id)
        data = [m.model_dump(by_alias=True, mode="json") for m in messages]
    else:
        conversations = await log.list_conversations()
        data = [c.model_dump(by_alias=True, mode="json") for c in conversations]
    return {"success": True, "data": data, "count": len(data)}


@router.put("")
async def mark_read(payload: MarkReadPayload, log=Depends(get_message_log)) -> dict:
    if not payload.conversation_id:
        raise HTTPException(status_code=400, detail="Conversation ID is required")
    updated = await log.mark_as_read(payload.conversation_id)
    return {"success": True, "message": "Messages marked as read", "updated": updated}
