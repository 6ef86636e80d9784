from __future__ import annotations

from typing import Sequence

from lexnav.citations.models import ChatSource, DeduplicatedSource


def dedupe_sources(sources: Sequence[ChatSource]) -> list[DeduplicatedSource]:
    """Collapse citations to one entry per document, in first-seen order."""
    first_seen: dict[str, ChatSource] = {}
    counts: dict[str, int] = {}
    for source in sources:
        first_seen.setdefault(source.document_id, source)
        counts[source.document_id] = counts.get(source.document_id, 0) + 1
    return [
        DeduplicatedSource(source=source, count=counts[document_id])
        for document_id, source in first_seen.items()
    ]


def related_sources(
    sources: Sequence[ChatSource], index: int
) -> tuple[list[tuple[int, ChatSource]], list[tuple[int, ChatSource]]]:
    """Split every other citation into same-document and other-document lists.

    Entries keep their position in ``sources`` so callers can navigate to them.
    """
    if not 0 <= index < len(sources):
        return [], []
    document_id = sources[index].document_id
    same, other = [], []
    for position, source in enumerate(sources):
        if position == index:
            continue
        (same if source.document_id == document_id else other).append((position, source))
    return same, other
