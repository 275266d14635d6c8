from abc import ABC, abstractmethod


class SourceError(Exception):
    """Upstream answered with a non-success status."""

    def __init__(self, status: int, reason: str, body: str = ""):
        super().__init__(f"{status} {reason}")
        self.status = status
        self.reason = reason
        self.body = body


class MangaSource(ABC):
    @property
    @abstractmethod
    def source_name(self) -> str:
        pass

    @abstractmethod
    async def chapter_feed(self, manga_id: str, limit: int = 500, offset: int = 0, order: str = "asc") -> dict:
        pass

    @abstractmethod
    async def page_server(self, chapter_id: str) -> dict:
        pass

    @abstractmethod
    async def close(self):
        pass
