import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

from manganime.core.config import SYNC_BASE_DELAY, SYNC_MAX_ATTEMPTS
from manganime.models import ProgressRecord
from manganime.services.background import LogSink, SyncSink
from manganime.services.supabase_service import ProgressRemote, RemoteError

logger = logging.getLogger(__name__)

# foreign key violation, conflict, undefined column
TOLERATED_CODES = frozenset({"23503", "409", "42703"})

UUID_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")


def is_remote_chapter_id(chapter_id: str) -> bool:
    return bool(chapter_id) and bool(UUID_RE.match(chapter_id))


def _iso(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).isoformat()


def build_payload(user_id: str, record: ProgressRecord) -> dict[str, Any]:
    return {
        "user_id": user_id,
        "manga_id": record.manga_id,
        "chapter_id": record.chapter_id,
        "page": record.current_page,
        "total_pages": record.total_pages,
        "updated_at": datetime.now(timezone.utc).isoformat(),
        "last_read": _iso(record.last_read),
    }


class RemoteSync:
    def __init__(
        self,
        remote: ProgressRemote,
        sink: Optional[SyncSink] = None,
        max_attempts: int = SYNC_MAX_ATTEMPTS,
        base_delay: float = SYNC_BASE_DELAY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.remote = remote
        self.sink = sink or LogSink()
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self._sleep = sleep

    async def sync(self, record: ProgressRecord):
        """Push one record upstream. Never raises."""
        try:
            await self._sync(record)
        except Exception as exc:
            self.sink.record("failed", manga_id=record.manga_id, error=repr(exc))

    async def _sync(self, record: ProgressRecord):
        user_id = await self.remote.current_user_id()
        if not user_id:
            self.sink.record("skipped_no_user", manga_id=record.manga_id)
            return

        if not is_remote_chapter_id(record.chapter_id):
            self.sink.record("skipped_external_chapter", manga_id=record.manga_id, chapter_id=record.chapter_id)
            return

        payload = build_payload(user_id, record)
        attempt = 0
        while True:
            attempt += 1
            try:
                await self.remote.upsert_progress(payload)
            except RemoteError as exc:
                if exc.code in TOLERATED_CODES:
                    self.sink.record("tolerated", manga_id=record.manga_id, code=exc.code, attempts=attempt)
                    return
                error = exc
            except Exception as exc:
                error = exc
            else:
                self.sink.record("synced", manga_id=record.manga_id, attempts=attempt)
                return

            if attempt >= self.max_attempts:
                self.sink.record("failed", manga_id=record.manga_id, attempts=attempt, error=repr(error))
                return

            delay = self.base_delay * 2 ** (attempt - 1)
            self.sink.record("retrying", manga_id=record.manga_id, attempt=attempt, delay=delay)
            await self._sleep(delay)

    async def clear(self):
        try:
            user_id = await self.remote.current_user_id()
            if not user_id:
                return
            await self.remote.delete_history(user_id)
        except Exception as exc:
            self.sink.record("clear_failed", error=repr(exc))
