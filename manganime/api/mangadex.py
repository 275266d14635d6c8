import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from manganime.api.deps import get_manga_source
from manganime.sources.base import MangaSource, SourceError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["mangadex"])


async def _relay(label: str, call):
    try:
        return await call
    except SourceError as exc:
        return JSONResponse(
            {"error": f"Failed to fetch from MangaDex{label}: {exc.reason}"},
            status_code=exc.status,
        )
    except Exception:
        logger.exception("MangaDex proxy error")
        return JSONResponse({"error": "Internal Server Error"}, status_code=500)


@router.get("/chapters")
async def chapters(
    manga_id: str | None = Query(default=None, alias="mangaId"),
    limit: int = Query(default=500),
    offset: int = Query(default=0),
    order: str = Query(default="asc", alias="order[chapter]"),
    source: MangaSource = Depends(get_manga_source),
):
    if not manga_id:
        return JSONResponse({"error": "mangaId is required"}, status_code=400)
    return await _relay("", source.chapter_feed(manga_id, limit=limit, offset=offset, order=order))


@router.get("/pages")
async def pages(
    chapter_id: str | None = Query(default=None, alias="chapterId"),
    source: MangaSource = Depends(get_manga_source),
):
    if not chapter_id:
        return JSONResponse({"error": "chapterId is required"}, status_code=400)
    return await _relay(" at-home", source.page_server(chapter_id))
