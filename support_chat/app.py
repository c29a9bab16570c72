# support_chat/app.py
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Callable, Optional, Sequence

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .conversation_store import ConversationStore, MirrorCache
from .db import make_engine, prepare_schema
from .fallback import StaticFallback
from .keyword_matcher import KeywordMatcher
from .keyword_repository import SqlKeywordRepository
from .message_log import SqlMessageLog
from .order_reference import OrderReferenceExtractor
from .order_status import OrderStatusResponder
from .orders_client import HttpOrderLookup
from .pipeline import MessageIngestPipeline
from .routers.admin_chats import router as admin_chats_router
from .routers.chat import router as chat_router
from .routers.keywords import router as keywords_router
from .settings import Settings, load_settings

logger = logging.getLogger(__name__)


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
    logging.getLogger("support_chat").setLevel(level)


def create_app(
    settings: Optional[Settings] = None,
    *,
    order_lookup: Any = None,
    keyword_repository: Any = None,
    message_log: Any = None,
    choose: Optional[Callable[[Sequence[str]], str]] = None,
) -> FastAPI:
    settings = settings or load_settings()
    _configure_logging(settings.log_level)

    engine = None
    if keyword_repository is None or message_log is None:
        engine = make_engine(settings.database_url)
    if keyword_repository is None:
        keyword_repository = SqlKeywordRepository(engine, seed_defaults=settings.seed_keywords)
    if message_log is None:
        message_log = SqlMessageLog(engine)
    if order_lookup is None:
        order_lookup = HttpOrderLookup(settings.store_api_url, timeout=settings.order_lookup_timeout)

    mirror = MirrorCache(settings.mirror_max_messages, settings.mirror_max_conversations)
    store = ConversationStore(message_log, mirror, timeout=settings.store_timeout)
    pipeline = MessageIngestPipeline(
        extractor=OrderReferenceExtractor(),
        responder=OrderStatusResponder(order_lookup, timeout=settings.order_lookup_timeout),
        matcher=KeywordMatcher(keyword_repository, timeout=settings.keyword_timeout),
        fallback=StaticFallback(choose=choose),
        store=store,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("=== App startup: preparing chat storage ===")
        if engine is not None:
            try:
                prepare_schema(engine)
            except Exception as e:
                # Tables are created lazily on first use as well
                logger.warning(f"DB init failed: {e}")
        yield
        if engine is not None:
            engine.dispose()

    app = FastAPI(title="Support Chat", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.mirror = mirror
    app.state.store = store
    app.state.pipeline = pipeline
    app.state.message_log = message_log
    app.state.keyword_repository = keyword_repository

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid request body", "errors": jsonable_encoder(exc.errors())},
        )

    @app.get("/health")
    async def health() -> dict:
        try:
            rules = await keyword_repository.list_active_keywords()
            keyword_rules: Optional[int] = len(rules)
        except Exception as e:
            logger.warning(f"Health check: keyword repository unavailable: {e}")
            keyword_rules = None
        return {
            "ok": True,
            "database": engine is not None,
            "mirror_conversations": len(mirror),
            "keyword_rules": keyword_rules,
        }

    app.include_router(chat_router)
    app.include_router(keywords_router)
    app.include_router(admin_chats_router)
    return app


app = create_app()


# ============================================================
# Local dev entrypoint
# ============================================================
if __name__ == "__main__":
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    import uvicorn
    uvicorn.run("support_chat.app:app", host=host, port=port, reload=True)
