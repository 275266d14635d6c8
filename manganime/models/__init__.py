from .progress import ProgressRecord, ChapterInfo
from .storage_entry import StorageEntry

__all__ = ["ProgressRecord", "ChapterInfo", "StorageEntry"]
