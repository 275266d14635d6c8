import json
import logging

from manganime.core.config import READING_HISTORY_KEY
from manganime.models import ProgressRecord
from manganime.services.storage import KeyValueStorage

logger = logging.getLogger(__name__)


class HistoryStore:
    """The persisted reading history: a JSON list under one storage key."""

    def __init__(self, storage: KeyValueStorage, key: str = READING_HISTORY_KEY):
        self.storage = storage
        self.key = key

    def load(self) -> list[ProgressRecord]:
        raw = self.storage.get(self.key)
        if not raw:
            return []
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError("reading history must be a JSON list")
            return [ProgressRecord.from_dict(item) for item in data]
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Discarding unreadable reading history under %r: %s", self.key, exc)
            return []

    def save(self, records: list[ProgressRecord]):
        payload = json.dumps([r.to_dict() for r in records])
        self.storage.set(self.key, payload)

    def clear(self):
        self.storage.remove(self.key)
