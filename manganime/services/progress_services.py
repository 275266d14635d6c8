import logging
import math
from dataclasses import replace
from typing import Iterable, Optional

from manganime.core.config import READING_HISTORY_LIMIT
from manganime.models import ChapterInfo, ProgressRecord
from manganime.models.progress import now_ms
from manganime.services.context import ReadingContext
from manganime.services.history_store import HistoryStore
from manganime.services.reconcile import has_duplicates, is_ahead, reconcile
from manganime.services.remote_sync import RemoteSync

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _invalid_reason(progress: ProgressRecord) -> Optional[str]:
    if not progress.manga_id:
        return "missing manga_id"
    if not progress.chapter_id:
        return "missing chapter_id"
    if not math.isfinite(progress.chapter_number):
        return "non-finite chapter_number"
    if progress.current_page < 0:
        return "negative current_page"
    if progress.total_pages <= 0:
        return "non-positive total_pages"
    return None


def progress_by_chapter(read_chapter: float, total_chapters: float) -> int:
    if not read_chapter or not total_chapters or total_chapters <= 0:
        return 0
    percentage = math.floor(read_chapter / total_chapters * 100)
    return max(0, min(100, percentage))


class ReadingHistory:
    def __init__(self, context: ReadingContext, limit: int = READING_HISTORY_LIMIT, remote_sync: Optional[RemoteSync] = None):
        self.context = context
        self.store = HistoryStore(context.storage)
        self.limit = limit
        self.remote_sync = remote_sync or RemoteSync(context.remote, context.sink)

    def get_history(self) -> list[ProgressRecord]:
        try:
            history = self.store.load()
        except Exception:
            logger.exception("Failed to read reading history")
            return []
        if has_duplicates(history):
            cleaned = reconcile(history)
            self._save(cleaned)
            logger.info("Cleaned up reading history: %d -> %d entries", len(history), len(cleaned))
            return cleaned
        return history

    def get_manga_progress(self, manga_id: str) -> Optional[ProgressRecord]:
        return next((r for r in self.get_history() if r.manga_id == manga_id), None)

    def get_chapter_progress(self, manga_id: str, chapter_id: str) -> Optional[ProgressRecord]:
        return next(
            (r for r in self.get_history() if r.manga_id == manga_id and r.chapter_id == chapter_id),
            None,
        )

    def has_been_read(self, manga_id: str) -> bool:
        return self.get_manga_progress(manga_id) is not None

    def recently_read(self, limit: int = 10) -> list[ProgressRecord]:
        return self.get_history()[:limit]

    def latest_chapter_read(self, manga_id: str) -> float:
        progress = self.get_manga_progress(manga_id) if manga_id else None
        return progress.chapter_number if progress else 0

    def update(self, progress: ProgressRecord) -> Optional[ProgressRecord]:
        """Record a page turn.

        Returns the stored record, or None when the input was rejected.
        Chapter/page only move forward; title, thumbnail and last_read are
        refreshed either way. Only forward moves are pushed to the remote.
        """
        reason = _invalid_reason(progress)
        if reason:
            logger.warning("Invalid progress data (%s): %r", reason, progress)
            return None

        incoming = replace(progress, current_page=min(progress.current_page, progress.total_pages - 1))
        history = self.get_history()
        existing = next((r for r in history if r.manga_id == incoming.manga_id), None)

        advanced = existing is None or is_ahead(incoming, existing)
        if existing is None:
            final = incoming
        elif advanced:
            final = replace(incoming, last_read=max(existing.last_read, incoming.last_read))
        else:
            final = replace(
                existing,
                manga_title=incoming.manga_title,
                manga_thumbnail=incoming.manga_thumbnail,
                last_read=max(existing.last_read, incoming.last_read),
            )

        others = [r for r in history if r.manga_id != final.manga_id]
        if not self._save(([final] + others)[: self.limit]):
            return None

        if advanced:
            logger.debug(
                "Reading progress updated: %s - Chapter %s, Page %d/%d",
                final.manga_title, final.chapter_number, final.current_page + 1, final.total_pages,
            )
            self.context.queue.submit(f"sync:{final.manga_id}", self.remote_sync.sync(final))
        else:
            logger.debug(
                "Progress not advanced, metadata refreshed: %s - Chapter %s, Page %d/%d",
                final.manga_title, final.chapter_number, final.current_page + 1, final.total_pages,
            )
        return final

    def mark_chapter_as_read(
        self,
        manga_id: str,
        chapter_id: str,
        chapter_number: float,
        chapter_title: str,
        manga_title: str,
        manga_thumbnail: str,
        total_pages: int,
    ) -> Optional[ProgressRecord]:
        return self.update(
            ProgressRecord(
                manga_id=manga_id,
                chapter_id=chapter_id,
                chapter_number=chapter_number,
                chapter_title=chapter_title,
                current_page=total_pages,
                total_pages=total_pages,
                manga_title=manga_title,
                manga_thumbnail=manga_thumbnail,
                last_read=now_ms(),
            )
        )

    def clear(self):
        try:
            self.store.clear()
        except Exception:
            logger.exception("Failed to clear local reading history")
        self.context.queue.submit("clear-remote-history", self.remote_sync.clear())

    def read_percentage(self, manga_id: str, chapter_id: str) -> int:
        progress = self.get_chapter_progress(manga_id, chapter_id)
        if not progress:
            return 0
        return _round_half_up(progress.current_page / max(1, progress.total_pages) * 100)

    def total_progress(self, manga_id: str, chapters: Iterable[ChapterInfo]) -> int:
        chapters = list(chapters or [])
        if not manga_id or not chapters:
            return 0

        total_pages = sum(ch.page_count for ch in chapters)
        if total_pages == 0:
            return 0

        latest = self.get_manga_progress(manga_id)
        if latest is None:
            return 0

        read_pages = 0
        for chapter in chapters:
            if chapter.number < latest.chapter_number:
                read_pages += chapter.page_count
            elif chapter.number == latest.chapter_number:
                read_pages += min(latest.current_page + 1, chapter.page_count)
                break
            else:
                break

        return _round_half_up(read_pages / total_pages * 100)

    def _save(self, records: list[ProgressRecord]) -> bool:
        try:
            self.store.save(records)
            return True
        except Exception:
            logger.exception("Failed to save reading history")
            return False
