import time
from dataclasses import dataclass, asdict, field
from typing import Any


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class ProgressRecord:
    manga_id: str
    chapter_id: str
    chapter_number: float
    current_page: int
    total_pages: int
    chapter_title: str = ""
    manga_title: str = ""
    manga_thumbnail: str = ""
    last_read: int = field(default_factory=now_ms)

    @property
    def position(self) -> tuple[float, int]:
        return (self.chapter_number, self.current_page)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProgressRecord":
        if not isinstance(data, dict):
            raise TypeError(f"expected an object, got {type(data).__name__}")
        for name in ("manga_id", "chapter_id"):
            if data.get(name) in (None, ""):
                raise ValueError(f"{name} is missing")
        return cls(
            manga_id=str(data["manga_id"]),
            chapter_id=str(data["chapter_id"]),
            chapter_number=float(data["chapter_number"]),
            current_page=int(data["current_page"]),
            total_pages=int(data["total_pages"]),
            chapter_title=data.get("chapter_title") or "",
            manga_title=data.get("manga_title") or "",
            manga_thumbnail=data.get("manga_thumbnail") or "",
            last_read=int(data.get("last_read") or 0),
        )


@dataclass
class ChapterInfo:
    number: float
    pages: list = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages) if isinstance(self.pages, list) else 0
