from __future__ import annotations

import asyncio
import re
from typing import Optional

import structlog

from lexnav.citations.models import (
    ChatSource,
    ExpandedContent,
    ExpansionStatus,
    SectionResponse,
    SourceKey,
)
from lexnav.citations.section_client import SectionClient
from lexnav.core.config import get_settings
from lexnav.core.exceptions import RecoverableFetchFailure
from lexnav.core.utils_text import collapse_whitespace
from lexnav.parsing.tables import looks_like_table_data

logger = structlog.get_logger()

LEADING_BRACKET_PATTERN = re.compile(r"^\s*\[.*?\]\s*")
MATCH_WINDOW = 80
MATCH_PROBE = 40
MIN_PROBE_LENGTH = 10


def is_full_eid(section_id: str | None) -> bool:
    if not section_id:
        return False
    return "__" in section_id or section_id.startswith(("sec_", "part_"))


def section_matches_excerpt(excerpt: str, section_content: str) -> bool:
    """True when the start of the excerpt appears in the section text.

    Leading bracketed metadata (``[Schedule: ...]``) is dropped and both sides are
    compared lower-cased with collapsed whitespace.
    """
    cleaned = LEADING_BRACKET_PATTERN.sub("", excerpt, count=1)[:MATCH_WINDOW]
    probe = collapse_whitespace(cleaned.lower())[:MATCH_PROBE]
    if len(probe) <= MIN_PROBE_LENGTH:
        return False
    return probe in collapse_whitespace(section_content.lower())


def fallback_content(source: ChatSource) -> ExpandedContent:
    return ExpandedContent(
        document_id=source.document_id,
        source_key=source.key,
        section_id=source.section_key,
        content=source.excerpt,
        status=ExpansionStatus.FALLBACK,
    )


class ExcerptExpander:
    """Resolves citation excerpts to their full section text.

    Results are cached per cited passage: document, section id, section label and
    the start of the excerpt. Concurrent requests for the same key share one task.
    Timeouts and retrieval failures settle on the original excerpt.
    """

    def __init__(
        self,
        client: SectionClient,
        timeout: float | None = None,
        retry_failed: bool | None = None,
    ) -> None:
        settings = get_settings()
        self.client = client
        self.timeout = timeout if timeout is not None else settings.fetch_timeout
        self.retry_failed = settings.retry_failed_fetches if retry_failed is None else retry_failed
        self._results: dict[SourceKey, ExpandedContent] = {}
        self._tasks: dict[SourceKey, asyncio.Task] = {}

    def cached(self, source: ChatSource) -> Optional[ExpandedContent]:
        return self._results.get(source.key)

    def in_flight(self, source: ChatSource) -> bool:
        return source.key in self._tasks

    async def expand(self, source: ChatSource) -> ExpandedContent:
        key = source.key
        cached = self._results.get(key)
        if cached is not None and not (self.retry_failed and cached.status is ExpansionStatus.FALLBACK):
            return cached

        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(self._expand(source))
            self._tasks[key] = task
            task.add_done_callback(lambda done, key=key: self._forget(key, done))
        return await asyncio.shield(task)

    def cancel(self, document_id: str | None = None) -> int:
        """Cancel in-flight work, for one document or for all of them."""
        cancelled = 0
        for key, task in list(self._tasks.items()):
            if document_id is not None and key[0] != document_id:
                continue
            if not task.done():
                task.cancel()
                cancelled += 1
            self._tasks.pop(key, None)
        if cancelled:
            logger.info("expansion_cancelled", document_id=document_id, tasks=cancelled)
        return cancelled

    def clear(self) -> None:
        self.cancel()
        self._results.clear()

    def _forget(self, key: SourceKey, task: asyncio.Task) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]

    async def _expand(self, source: ChatSource) -> ExpandedContent:
        try:
            content = await asyncio.wait_for(self._resolve(source), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("expansion_timeout", document_id=source.document_id, section_id=source.section_key)
            content = fallback_content(source)
        except RecoverableFetchFailure as exc:
            logger.info("expansion_fallback", document_id=source.document_id, error=str(exc))
            content = fallback_content(source)
        self._results[source.key] = content
        return content

    async def _resolve(self, source: ChatSource) -> ExpandedContent:
        section_id = source.section_key
        if is_full_eid(section_id) and not looks_like_table_data(source.excerpt):
            section = await self._lookup_section(source, section_id)
            if section is not None:
                return ExpandedContent(
                    document_id=source.document_id,
                    source_key=source.key,
                    section_id=section_id,
                    content=section.content or source.excerpt,
                    html_content=section.html_content,
                    section=section,
                    status=ExpansionStatus.SECTION,
                )

        section_hint = source.section_text
        expanded = await self.client.expand_source(
            source.document_id, source.excerpt, section_hint, source.chunk_id
        )
        content = source.excerpt
        if expanded.full_excerpt and len(expanded.full_excerpt) > len(source.excerpt):
            content = expanded.full_excerpt
        return ExpandedContent(
            document_id=source.document_id,
            source_key=source.key,
            section_id=section_id,
            content=content,
            tables=tuple(table for table in expanded.tables if table.rows),
            resolved_section_id=expanded.section_id,
            status=ExpansionStatus.EXPANDED,
        )

    async def _lookup_section(self, source: ChatSource, section_id: str) -> Optional[SectionResponse]:
        try:
            section = await self.client.get_section(source.document_id, section_id)
        except RecoverableFetchFailure as exc:
            logger.debug("section_lookup_failed", document_id=source.document_id, section_id=section_id, error=str(exc))
            return None
        if not section_matches_excerpt(source.excerpt, section.content):
            logger.debug("section_content_mismatch", document_id=source.document_id, section_id=section_id)
            return None
        return section
