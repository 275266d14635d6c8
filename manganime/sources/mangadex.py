import aiohttp
import asyncio
import logging
from typing import Optional
from manganime.core.config import MANGADEX_USER_AGENT
from .base import MangaSource, SourceError

logger = logging.getLogger(__name__)


class MangaDexSource(MangaSource):
    BASE_URL = "https://api.mangadex.org"
    REQUEST_DELAY = 0.2
    MAX_RATE_LIMIT_WAITS = 3

    def __init__(self, user_agent: str = MANGADEX_USER_AGENT):
        self.user_agent = user_agent
        self._session: Optional[aiohttp.ClientSession] = None
        self._last_request_time = 0
        self._lock = asyncio.Lock()

    @property
    def source_name(self) -> str:
        return "mangadex"

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers={"User-Agent": self.user_agent})
        return self._session

    async def _rate_limit(self):
        async with self._lock:
            now = asyncio.get_running_loop().time()
            elapsed = now - self._last_request_time
            if elapsed < self.REQUEST_DELAY:
                await asyncio.sleep(self.REQUEST_DELAY - elapsed)
            self._last_request_time = asyncio.get_running_loop().time()

    async def _request(self, endpoint: str, params: dict = None, _waits: int = 0) -> dict:
        await self._rate_limit()
        session = await self._get_session()
        url = f"{self.BASE_URL}{endpoint}"
        async with session.get(url, params=params) as response:
            if response.status == 429 and _waits < self.MAX_RATE_LIMIT_WAITS:
                retry_after = int(response.headers.get("X-RateLimit-Retry-After", 60))
                logger.warning("MangaDex rate limited on %s, waiting %ss", endpoint, retry_after)
                await asyncio.sleep(retry_after)
                return await self._request(endpoint, params, _waits + 1)
            if response.status >= 400:
                body = await response.text()
                logger.error("MangaDex API error: %s %s %s", response.status, response.reason, body)
                raise SourceError(response.status, response.reason or "", body)
            return await response.json()

    async def chapter_feed(self, manga_id: str, limit: int = 500, offset: int = 0, order: str = "asc") -> dict:
        params = {
            "translatedLanguage[]": "en",
            "order[chapter]": order,
            "limit": limit,
            "offset": offset,
        }
        return await self._request(f"/manga/{manga_id}/feed", params)

    async def page_server(self, chapter_id: str) -> dict:
        return await self._request(f"/at-home/server/{chapter_id}")

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
