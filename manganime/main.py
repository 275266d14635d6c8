from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from manganime.api.auth import router as auth_router
from manganime.api.mangadex import router as mangadex_router
from manganime.api.reading_history import router as reading_history_router
from manganime.db.init_db import init_db
from manganime.services.context import ReadingContext, build_context
from manganime.services.progress_services import ReadingHistory
from manganime.sources.base import MangaSource
from manganime.sources.mangadex import MangaDexSource


def create_app(context: Optional[ReadingContext] = None, source: Optional[MangaSource] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ctx = context
        if ctx is None:
            init_db()
            ctx = build_context()
        app.state.context = ctx
        app.state.history = ReadingHistory(ctx)
        app.state.mangadex = source or MangaDexSource()
        try:
            yield
        finally:
            await ctx.queue.drain()
            await app.state.mangadex.close()

    app = FastAPI(title="Manganime", lifespan=lifespan)
    app.include_router(reading_history_router, prefix="/api/reading-history")
    app.include_router(mangadex_router, prefix="/api/mangadex")
    app.include_router(auth_router, prefix="/api/auth")

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
