"""Tests for the Supabase-backed remote and context construction."""

import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from postgrest.exceptions import APIError

from manganime.services.context import build_context, build_remote, build_storage
from manganime.services.storage import MemoryStorage, NullStorage, SqlStorage
from manganime.services.supabase_service import NullRemote, RemoteError, SupabaseRemote


def make_user(**metadata):
    return SimpleNamespace(id="u1", email="reader@example.com", user_metadata=metadata)


class TestSupabaseRemote(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.client = MagicMock()
        self.remote = SupabaseRemote(self.client, table="reading_history")

    async def test_current_user_from_session(self):
        self.client.auth.get_session.return_value = SimpleNamespace(user=make_user(name="Reader", avatar_url="a.png"))
        self.assertEqual(await self.remote.current_user_id(), "u1")
        self.assertEqual(
            await self.remote.current_user(),
            {"id": "u1", "email": "reader@example.com", "name": "Reader", "image": "a.png"},
        )

    async def test_name_falls_back_to_email(self):
        self.client.auth.get_session.return_value = SimpleNamespace(user=make_user())
        self.assertEqual((await self.remote.current_user())["name"], "reader")

    async def test_no_session(self):
        self.client.auth.get_session.return_value = None
        self.assertIsNone(await self.remote.current_user_id())
        self.assertIsNone(await self.remote.current_user())

    async def test_upsert(self):
        await self.remote.upsert_progress({"user_id": "u1"})
        self.client.table.assert_called_with("reading_history")
        self.client.table.return_value.upsert.assert_called_once_with(
            {"user_id": "u1"}, on_conflict="user_id,manga_id,chapter_id"
        )

    async def test_api_error_becomes_remote_error(self):
        upsert = self.client.table.return_value.upsert.return_value
        upsert.execute.side_effect = APIError({"message": "violates foreign key", "code": "23503"})
        with self.assertRaises(RemoteError) as ctx:
            await self.remote.upsert_progress({"user_id": "u1"})
        self.assertEqual(ctx.exception.code, "23503")

    async def test_delete_history(self):
        await self.remote.delete_history("u1")
        self.client.table.return_value.delete.return_value.eq.assert_called_once_with("user_id", "u1")


class TestNullRemote(unittest.IsolatedAsyncioTestCase):

    async def test_no_user(self):
        remote = NullRemote()
        self.assertIsNone(await remote.current_user_id())
        self.assertIsNone(await remote.current_user())
        with self.assertRaises(RemoteError):
            await remote.upsert_progress({})


class TestBuildContext(unittest.TestCase):

    def test_storage_backends(self):
        self.assertIsInstance(build_storage("sqlite"), SqlStorage)
        self.assertIsInstance(build_storage("memory"), MemoryStorage)
        self.assertIsInstance(build_storage("none"), NullStorage)
        with self.assertRaises(ValueError):
            build_storage("redis")

    def test_remote_disabled_without_credentials(self):
        self.assertIsInstance(build_remote("", ""), NullRemote)
        self.assertIsInstance(build_remote("https://x.supabase.co", ""), NullRemote)

    @patch("manganime.services.supabase_service.create_client")
    def test_remote_with_credentials(self, create_client):
        remote = build_remote("https://x.supabase.co", "anon-key")
        self.assertIsInstance(remote, SupabaseRemote)
        create_client.assert_called_once_with("https://x.supabase.co", "anon-key")

    @patch("manganime.services.context.config")
    def test_build_context_from_config(self, config):
        config.STORAGE_BACKEND = "memory"
        config.SUPABASE_URL = ""
        config.SUPABASE_KEY = ""
        context = build_context()
        self.assertIsInstance(context.storage, MemoryStorage)
        self.assertIsInstance(context.remote, NullRemote)
        self.assertIs(context.queue.sink, context.sink)


if __name__ == "__main__":
    unittest.main()
