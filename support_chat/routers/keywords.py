from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from ..chat_models import KeywordCreate, KeywordUpdate
from ..deps import get_keyword_repository, require_admin
from ..keyword_repository import SqlKeywordRepository

router = APIRouter(prefix="/chatbot/keywords", tags=["keywords"], dependencies=[Depends(require_admin)])


def _dump(rule) -> dict:
    return rule.model_dump(by_alias=True, mode="json")


@router.get("")
async def list_keywords(repo: SqlKeywordRepository = Depends(get_keyword_repository)) -> dict:
    rules = await repo.list_keywords()
    return {"success": True, "data": [_dump(r) for r in rules]}


@router.post("")
async def create_keyword(payload: KeywordCreate, repo: SqlKeywordRepository = Depends(get_keyword_repository)) -> dict:
    keyword = (payload.keyword or "").strip()
    response = (payload.response or "").strip()
    category = (payload.category or "").strip()
    if not keyword or not response or not category:
        raise HTTPException(status_code=400, detail="Missing required fields: keyword, response, category")
    rule = await repo.create_keyword(
        keyword,
        response,
        category,
        is_active=payload.is_active,
        priority=payload.priority,
    )
    return {"success": True, "data": _dump(rule)}


@router.put("")
async def update_keyword(payload: KeywordUpdate, repo: SqlKeywordRepository = Depends(get_keyword_repository)) -> dict:
    if not payload.id:
        raise HTTPException(status_code=400, detail="Keyword ID required")
    rule = await repo.update_keyword(
        payload.id,
        keyword=payload.keyword,
        response=payload.response,
        category=payload.category,
        is_active=payload.is_active,
        priority=payload.priority,
    )
    if rule is None:
        raise HTTPException(status_code=404, detail="Keyword not found")
    return {"success": True, "data": _dump(rule)}


@router.delete("")
async def delete_keyword(
    id: str = Query("", description="Keyword id"),
    repo: SqlKeywordRepository = Depends(get_keyword_repository),
) -> dict:
    if not id:
        raise HTTPException(status_code=400, detail="Keyword ID required")
    if not await repo.delete_keyword(id):
        raise HTTPException(status_code=404, detail="Keyword not found")
    return {"success": True, "message": "Keyword deleted successfully"}
