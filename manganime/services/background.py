import asyncio
import logging
from typing import Any, Coroutine, Optional, Protocol

logger = logging.getLogger(__name__)


class SyncSink(Protocol):
    def record(self, event: str, **fields: Any) -> None: ...


class LogSink:
    QUIET_EVENTS = {"synced", "tolerated", "skipped_no_user", "skipped_external_chapter"}

    def record(self, event: str, **fields: Any):
        level = logging.DEBUG if event in self.QUIET_EVENTS else logging.WARNING
        details = " ".join(f"{k}={v}" for k, v in fields.items())
        logger.log(level, "sync %s %s", event, details)


class BackgroundQueue:
    """Best-effort tasks. Nothing submitted here is awaited by the submitter
    and nothing raised inside a task reaches it."""

    def __init__(self, sink: Optional[SyncSink] = None):
        self.sink = sink or LogSink()
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, name: str, coro: Coroutine) -> Optional[asyncio.Task]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.warning("No running event loop, dropping background task %s", name)
            return None

        task = loop.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task):
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.sink.record("task_error", task=task.get_name(), error=repr(exc))

    async def drain(self):
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
