from __future__ import annotations

import asyncio
from typing import Callable, Optional, Sequence

import structlog

from lexnav.citations.expansion import ExcerptExpander
from lexnav.citations.models import ChatSource, ExpandedContent, ExpansionStatus, NavigationState

logger = structlog.get_logger()

Listener = Callable[[NavigationState], None]

NEXT_KEYS = frozenset({"j", "ArrowRight"})
PREVIOUS_KEYS = frozenset({"k", "ArrowLeft"})
CLOSE_KEYS = frozenset({"Escape"})
MAX_COMPARE = 2


class CitationNavigator:
    """Active-citation, viewer and compare state shared by every citation surface.

    One instance is created per answer view and handed to each consumer (hover
    card, side panel, bottom sheet, comparison overlay). Consumers read
    ``state`` and register for changes with ``subscribe``.
    """

    def __init__(self, expander: ExcerptExpander | None = None) -> None:
        self.expander = expander
        self._listeners: list[Listener] = []
        self._pending: Optional[asyncio.Task] = None
        self._sources: tuple[ChatSource, ...] = ()
        self._reset()

    def _reset(self) -> None:
        self._active_index: Optional[int] = None
        self._active_number: Optional[int] = None
        self._viewer_open = False
        self._compare_mode = False
        self._compare_selection: list[int] = []
        self._detail: Optional[ExpandedContent] = None

    # ---------------------------
    # STATE
    # ---------------------------

    @property
    def state(self) -> NavigationState:
        active = self._sources[self._active_index] if self._active_index is not None else None
        return NavigationState(
            sources=self._sources,
            active_index=self._active_index,
            active_source=active,
            active_number=self._active_number,
            viewer_open=self._viewer_open,
            compare_mode=self._compare_mode,
            compare_selection=tuple(self._compare_selection),
            detail=self._detail,
            expanding=self._pending is not None and not self._pending.done(),
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.state
        for listener in list(self._listeners):
            listener(snapshot)

    # ---------------------------
    # SOURCES & VIEWER
    # ---------------------------

    def set_sources(self, sources: Sequence[ChatSource]) -> None:
        """Replace the citation list; all navigation state starts over."""
        self._cancel_pending(all_documents=True)
        self._sources = tuple(sources)
        self._reset()
        self._notify()

    def activate(self, source: ChatSource, number: int | None = None) -> None:
        index = self._index_of(source, number)
        if index is None:
            logger.warning("citation_not_in_sources", document_id=source.document_id, number=number)
            return
        self._compare_mode = False
        self._viewer_open = True
        self._move_to(index)

    def open(self) -> None:
        if self._active_index is None:
            return
        self._compare_mode = False
        self._viewer_open = True
        self._load_detail()
        self._notify()

    def close(self) -> None:
        """Hide the viewer; the active citation is kept for re-opening."""
        if not self._viewer_open:
            return
        self._viewer_open = False
        self._notify()

    def dismiss(self) -> None:
        """Drop citation state, pending work and cached expansions."""
        self._cancel_pending()
        if self.expander is not None:
            self.expander.clear()
        self._reset()
        self._notify()

    # ---------------------------
    # NAVIGATION
    # ---------------------------

    def can_go_next(self) -> bool:
        return self._active_index is not None and self._active_index < len(self._sources) - 1

    def can_go_previous(self) -> bool:
        return self._active_index is not None and self._active_index > 0

    def next(self) -> None:
        if self.can_go_next():
            self._move_to(self._active_index + 1)

    def previous(self) -> None:
        if self.can_go_previous():
            self._move_to(self._active_index - 1)

    def go_to_index(self, index: int) -> None:
        if not self._sources:
            return
        clamped = min(max(index, 0), len(self._sources) - 1)
        if clamped != self._active_index:
            self._move_to(clamped)

    def handle_key(self, key: str, in_text_field: bool = False) -> bool:
        """Keyboard shortcuts for the open viewer; returns True when the key was used."""
        if not self._viewer_open or in_text_field:
            return False
        if key in NEXT_KEYS:
            self.next()
            return True
        if key in PREVIOUS_KEYS:
            self.previous()
            return True
        if key in CLOSE_KEYS:
            self.close()
            return True
        if len(key) == 1 and key in "123456789" and int(key) <= len(self._sources):
            self.go_to_index(int(key) - 1)
            return True
        return False

    # ---------------------------
    # COMPARE
    # ---------------------------

    def toggle_compare_mode(self) -> None:
        self._compare_mode = not self._compare_mode
        if self._compare_mode:
            self._viewer_open = False
        else:
            self._compare_selection = []
        self._notify()

    def toggle_compare_selection(self, index: int) -> None:
        if not 0 <= index < len(self._sources):
            return
        if index in self._compare_selection:
            self._compare_selection.remove(index)
        else:
            self._compare_selection.append(index)
            if len(self._compare_selection) > MAX_COMPARE:
                evicted = self._compare_selection.pop(0)
                logger.debug("compare_selection_evicted", index=evicted)
        self._notify()

    def clear_compare_selection(self) -> None:
        self._compare_selection = []
        self._notify()

    # ---------------------------
    # EXPANSION
    # ---------------------------

    async def wait_for_expansion(self) -> None:
        pending = self._pending
        if pending is None:
            return
        try:
            await pending
        except asyncio.CancelledError:
            if not pending.cancelled():
                raise

    def _index_of(self, source: ChatSource, number: int | None) -> Optional[int]:
        if number is not None and 1 <= number <= len(self._sources) and self._sources[number - 1] == source:
            return number - 1
        for index, candidate in enumerate(self._sources):
            if candidate == source:
                return index
        return None

    def _move_to(self, index: int) -> None:
        previous = self.state.active_source
        self._active_index = index
        self._active_number = index + 1
        current = self._sources[index]
        if previous is not None and previous.document_id != current.document_id:
            self._cancel_pending(document_id=previous.document_id)
        self._load_detail()
        self._notify()

    def _load_detail(self) -> None:
        source = self._sources[self._active_index]
        self._detail = self.expander.cached(source) if self.expander else None
        if self.expander is None or not self._viewer_open:
            return
        retry = self.expander.retry_failed and self._detail is not None and self._detail.status is ExpansionStatus.FALLBACK
        if self._detail is not None and not retry:
            self._pending = None
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("expansion_skipped_no_loop", document_id=source.document_id)
            return
        self._pending = loop.create_task(self._expand(source))

    async def _expand(self, source: ChatSource) -> None:
        content = await self.expander.expand(source)
        if not self._viewer_open:
            # kept in the expander cache; open() picks it up
            return
        active = self.state.active_source
        if active is None or active.key != content.key:
            logger.info("stale_result_discarded", document_id=content.document_id, section_id=content.section_id)
            return
        self._detail = content
        self._notify()

    def _cancel_pending(self, document_id: str | None = None, all_documents: bool = False) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None
        if self.expander is not None:
            if all_documents:
                self.expander.cancel()
            elif document_id is not None:
                self.expander.cancel(document_id)
