import asyncio
import logging
from typing import Any, Optional, Protocol

from postgrest.exceptions import APIError
from supabase import Client, create_client

from manganime.core.config import READING_HISTORY_TABLE

logger = logging.getLogger(__name__)


class RemoteError(Exception):
    def __init__(self, code: Optional[str], message: str = ""):
        super().__init__(message or f"remote error {code}")
        self.code = code
        self.message = message


class ProgressRemote(Protocol):
    async def current_user_id(self) -> Optional[str]: ...

    async def current_user(self) -> Optional[dict[str, Any]]: ...

    async def upsert_progress(self, payload: dict[str, Any]) -> None: ...

    async def delete_history(self, user_id: str) -> None: ...


class NullRemote:
    """No remote configured: there is never a signed-in user."""

    async def current_user_id(self) -> Optional[str]:
        return None

    async def current_user(self) -> Optional[dict[str, Any]]:
        return None

    async def upsert_progress(self, payload: dict[str, Any]):
        raise RemoteError(None, "no remote configured")

    async def delete_history(self, user_id: str):
        raise RemoteError(None, "no remote configured")


def _user_summary(user) -> dict[str, Any]:
    metadata = getattr(user, "user_metadata", None) or {}
    email = getattr(user, "email", None)
    name = metadata.get("name") or (email.split("@")[0] if email else None) or "User"
    return {
        "id": user.id,
        "email": email,
        "name": name,
        "image": metadata.get("avatar_url"),
    }


class SupabaseRemote:
    def __init__(self, client: Client, table: str = READING_HISTORY_TABLE):
        self.client = client
        self.table = table

    @classmethod
    def from_credentials(cls, url: str, key: str) -> "SupabaseRemote":
        return cls(create_client(url, key))

    def _session_user(self):
        session = self.client.auth.get_session()
        return session.user if session else None

    async def current_user_id(self) -> Optional[str]:
        user = await asyncio.to_thread(self._session_user)
        return user.id if user else None

    async def current_user(self) -> Optional[dict[str, Any]]:
        user = await asyncio.to_thread(self._session_user)
        return _user_summary(user) if user else None

    def _upsert(self, payload: dict[str, Any]):
        try:
            (
                self.client.table(self.table)
                .upsert(payload, on_conflict="user_id,manga_id,chapter_id")
                .execute()
            )
        except APIError as exc:
            raise RemoteError(exc.code, exc.message or str(exc)) from exc

    def _delete(self, user_id: str):
        try:
            self.client.table(self.table).delete().eq("user_id", user_id).execute()
        except APIError as exc:
            raise RemoteError(exc.code, exc.message or str(exc)) from exc

    async def upsert_progress(self, payload: dict[str, Any]):
        await asyncio.to_thread(self._upsert, payload)

    async def delete_history(self, user_id: str):
        await asyncio.to_thread(self._delete, user_id)
