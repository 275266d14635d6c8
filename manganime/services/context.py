import logging
from dataclasses import dataclass, field

from manganime.core import config
from manganime.services.background import BackgroundQueue, LogSink, SyncSink
from manganime.services.storage import KeyValueStorage, MemoryStorage, NullStorage, SqlStorage
from manganime.services.supabase_service import NullRemote, ProgressRemote, SupabaseRemote

logger = logging.getLogger(__name__)


@dataclass
class ReadingContext:
    storage: KeyValueStorage
    remote: ProgressRemote = field(default_factory=NullRemote)
    sink: SyncSink = field(default_factory=LogSink)
    queue: BackgroundQueue = None

    def __post_init__(self):
        if self.queue is None:
            self.queue = BackgroundQueue(self.sink)


def build_storage(backend: str) -> KeyValueStorage:
    if backend == "sqlite":
        return SqlStorage()
    if backend == "memory":
        return MemoryStorage()
    if backend == "none":
        return NullStorage()
    raise ValueError(f"Unknown storage backend: {backend!r}")


def build_remote(url: str, key: str) -> ProgressRemote:
    if not url or not key:
        logger.info("Supabase credentials not set, remote sync disabled")
        return NullRemote()
    return SupabaseRemote.from_credentials(url, key)


def build_context() -> ReadingContext:
    return ReadingContext(
        storage=build_storage(config.STORAGE_BACKEND),
        remote=build_remote(config.SUPABASE_URL, config.SUPABASE_KEY),
    )
