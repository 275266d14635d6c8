from fastapi import Request

from manganime.services.progress_services import ReadingHistory
from manganime.sources.base import MangaSource


def get_reading_history(request: Request) -> ReadingHistory:
    return request.app.state.history


def get_manga_source(request: Request) -> MangaSource:
    return request.app.state.mangadex


def get_remote(request: Request):
    return request.app.state.context.remote
