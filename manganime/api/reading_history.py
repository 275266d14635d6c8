from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from manganime.api.deps import get_reading_history
from manganime.models import ChapterInfo, ProgressRecord
from manganime.models.progress import now_ms
from manganime.services.progress_services import ReadingHistory, progress_by_chapter

# Handlers call the store synchronously on the event loop. A single local
# writer keeps each call short, and update() must run on the loop so the
# sync task it submits is scheduled there.
router = APIRouter(tags=["reading-history"])


class ProgressUpdate(BaseModel):
    manga_id: str
    chapter_id: str
    chapter_number: float = Field(allow_inf_nan=False)
    current_page: int
    total_pages: int
    chapter_title: str = ""
    manga_title: str = ""
    manga_thumbnail: str = ""
    last_read: Optional[int] = None

    def to_record(self) -> ProgressRecord:
        data = self.model_dump()
        data["last_read"] = self.last_read if self.last_read is not None else now_ms()
        return ProgressRecord(**data)


class MarkReadRequest(BaseModel):
    chapter_number: float = Field(allow_inf_nan=False)
    total_pages: int
    chapter_title: str = ""
    manga_title: str = ""
    manga_thumbnail: str = ""


class ChapterPages(BaseModel):
    number: float = Field(allow_inf_nan=False)
    pages: list = Field(default_factory=list)


class TotalProgressRequest(BaseModel):
    chapters: list[ChapterPages] = Field(default_factory=list)


def _dump(record: Optional[ProgressRecord]):
    return record.to_dict() if record else None


@router.get("/")
async def list_history(limit: Optional[int] = Query(default=None, ge=1), history: ReadingHistory = Depends(get_reading_history)):
    records = history.recently_read(limit) if limit else history.get_history()
    return {"history": [r.to_dict() for r in records]}


@router.post("/")
async def update_progress(body: ProgressUpdate, history: ReadingHistory = Depends(get_reading_history)):
    return {"progress": _dump(history.update(body.to_record()))}


@router.delete("/")
async def clear_history(history: ReadingHistory = Depends(get_reading_history)):
    history.clear()
    return {"cleared": True}


@router.get("/progress-by-chapter")
async def chapter_ratio(read: float = Query(...), total: float = Query(...)):
    return {"percentage": progress_by_chapter(read, total)}


@router.get("/{manga_id}")
async def manga_progress(manga_id: str, history: ReadingHistory = Depends(get_reading_history)):
    record = history.get_manga_progress(manga_id)
    if record is None:
        raise HTTPException(status_code=404, detail="No reading progress for this manga")
    return record.to_dict()


@router.get("/{manga_id}/latest-chapter")
async def latest_chapter(manga_id: str, history: ReadingHistory = Depends(get_reading_history)):
    return {"chapter_number": history.latest_chapter_read(manga_id)}


@router.get("/{manga_id}/chapters/{chapter_id}")
async def chapter_progress(manga_id: str, chapter_id: str, history: ReadingHistory = Depends(get_reading_history)):
    return {
        "progress": _dump(history.get_chapter_progress(manga_id, chapter_id)),
        "percentage": history.read_percentage(manga_id, chapter_id),
    }


@router.post("/{manga_id}/chapters/{chapter_id}/read")
async def mark_read(manga_id: str, chapter_id: str, body: MarkReadRequest, history: ReadingHistory = Depends(get_reading_history)):
    record = history.mark_chapter_as_read(
        manga_id,
        chapter_id,
        body.chapter_number,
        body.chapter_title,
        body.manga_title,
        body.manga_thumbnail,
        body.total_pages,
    )
    return {"progress": _dump(record)}


@router.post("/{manga_id}/total-progress")
async def total_progress(manga_id: str, body: TotalProgressRequest, history: ReadingHistory = Depends(get_reading_history)):
    chapters = [ChapterInfo(number=ch.number, pages=ch.pages) for ch in body.chapters]
    return {"percentage": history.total_progress(manga_id, chapters)}
