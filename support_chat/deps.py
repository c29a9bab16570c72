from __future__ import annotations

import hmac

from fastapi import HTTPException, Request

from .conversation_store import ConversationStore
from .keyword_repository import SqlKeywordRepository
from .pipeline import MessageIngestPipeline


def get_pipeline(request: Request) -> MessageIngestPipeline:
    return request.app.state.pipeline


def get_store(request: Request) -> ConversationStore:
    return request.app.state.store


def get_message_log(request: Request):
    return request.app.state.message_log


def get_keyword_repository(request: Request) -> SqlKeywordRepository:
    return request.app.state.keyword_repository


def _is_admin(request: Request) -> bool:
    admin_key = request.app.state.settings.admin_key
    if not admin_key:
        return False
    hdr = request.headers.get("x-admin-key") or ""
    return hmac.compare_digest(hdr, admin_key)


def require_admin(request: Request) -> None:
    if not _is_admin(request):
        raise HTTPException(status_code=401, detail="Unauthorized")
