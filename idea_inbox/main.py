from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from idea_inbox.api.routers.export import router as export_router
from idea_inbox.api.routers.notes import router as notes_router
from idea_inbox.core.config import settings
from idea_inbox.core.errors import ExportFailure, StoreFailure
from idea_inbox.core.logging import configure_logging
from idea_inbox.extraction.gemini import GeminiExtractor
from idea_inbox.inbox.store import InboxStore

log = logging.getLogger("idea_inbox")


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = InboxStore(settings.DATABASE_URL, auto_create=settings.DB_AUTO_CREATE).open()
    app.state.store = store
    app.state.extractor = GeminiExtractor.from_settings(settings)
    if not settings.GEMINI_API_KEY:
        log.warning("Startup: GEMINI_API_KEY is not set; captures will be stored untitled")
    try:
        yield
    finally:
        store.close()


def create_app() -> FastAPI:
    configure_logging(settings.LOG_LEVEL)
    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

    @app.exception_handler(StoreFailure)
    async def _store_failure(request: Request, exc: StoreFailure) -> JSONResponse:
        log.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=503, content={"detail": {"code": "STORE_FAILURE", "message": str(exc)}})

    @app.exception_handler(ExportFailure)
    async def _export_failure(request: Request, exc: ExportFailure) -> JSONResponse:
        log.error("Export failure: %s", exc)
        return JSONResponse(status_code=500, content={"detail": {"code": "EXPORT_FAILURE", "message": str(exc)}})

    @app.get("/health")
    def health(request: Request) -> dict[str, Any]:
        store: InboxStore | None = getattr(request.app.state, "store", None)
        deps = {"database": bool(store and store.ping())}
        return {"ok": all(deps.values()), "deps": deps, "app": settings.APP_NAME}

    app.include_router(notes_router, prefix="/notes", tags=["notes"])
    app.include_router(export_router, prefix="/export", tags=["export"])
    return app


app = create_app()
