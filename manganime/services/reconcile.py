from typing import Iterable

from manganime.models import ProgressRecord


def is_ahead(candidate: ProgressRecord, current: ProgressRecord) -> bool:
    return candidate.position > current.position


def _wins(candidate: ProgressRecord, current: ProgressRecord) -> bool:
    if candidate.position != current.position:
        return candidate.position > current.position
    return candidate.last_read > current.last_read


def has_duplicates(records: list[ProgressRecord]) -> bool:
    return len({r.manga_id for r in records}) < len(records)


def reconcile(records: Iterable[ProgressRecord]) -> list[ProgressRecord]:
    """Collapse to one record per manga, keeping the furthest position.

    Ties on (chapter_number, current_page) go to the most recent ``last_read``.
    The result is ordered most recently read first.
    """
    best: dict[str, ProgressRecord] = {}
    for record in records:
        current = best.get(record.manga_id)
        if current is None or _wins(record, current):
            best[record.manga_id] = record

    return sorted(best.values(), key=lambda r: r.last_read, reverse=True)
