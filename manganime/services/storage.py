from typing import Optional, Protocol

from sqlmodel import select

from manganime.db.session import get_session
from manganime.models import StorageEntry
from manganime.models.storage_entry import utc_now


class KeyValueStorage(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class SqlStorage:
    """Key-value storage kept in the ``storageentry`` table."""

    def __init__(self, session_factory=get_session):
        self._session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        with self._session_factory() as session:
            row = session.exec(select(StorageEntry).where(StorageEntry.key == key)).first()
            return row.value if row else None

    def set(self, key: str, value: str):
        with self._session_factory() as session:
            row = session.get(StorageEntry, key)
            if row:
                row.value = value
                row.updated_at = utc_now()
            else:
                session.add(StorageEntry(key=key, value=value))
            session.commit()

    def remove(self, key: str):
        with self._session_factory() as session:
            row = session.get(StorageEntry, key)
            if row:
                session.delete(row)
                session.commit()


class MemoryStorage:
    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str):
        self.data[key] = value

    def remove(self, key: str):
        self.data.pop(key, None)


class NullStorage:
    """Stands in where no persistent storage exists. Reads are empty, writes vanish."""

    def get(self, key: str) -> Optional[str]:
        return None

    def set(self, key: str, value: str):
        pass

    def remove(self, key: str):
        pass
