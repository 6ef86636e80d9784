from __future__ import annotations

from enum import Enum
from typing import Any, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from lexnav.core.exceptions import DocumentPayloadError

logger = structlog.get_logger()


class NodeKind(str, Enum):
    PART = "part"
    CHAPTER = "chapter"
    SECTION = "section"
    SUBSECTION = "subsection"
    PARAGRAPH = "paragraph"
    SUBPARAGRAPH = "subparagraph"
    SCHEDULE = "schedule"
    ARTICLE = "article"
    DOCUMENT_ROOT = "document_root"
    GENERIC = "generic"


ROOT_TYPES = frozenset({"act", "document"})
SUB_LEVEL_KINDS = frozenset({NodeKind.SUBSECTION, NodeKind.PARAGRAPH, NodeKind.SUBPARAGRAPH})


def node_kind(raw_type: str | None) -> NodeKind:
    lowered = (raw_type or "").strip().lower().replace("-", "_")
    if lowered in ROOT_TYPES:
        return NodeKind.DOCUMENT_ROOT
    try:
        return NodeKind(lowered)
    except ValueError:
        return NodeKind.GENERIC


class AmendmentType(str, Enum):
    ACTIVE = "active"
    INSERTION = "insertion"
    REPEALED = "repealed"
    SUBSTITUTED_OLD = "substituted_old"
    SUBSTITUTED_NEW = "substituted_new"


class FootnoteRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    marker: str
    footnote_id: str


class TextFragment(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    styles: frozenset[str] = Field(default_factory=frozenset)
    amendment: Optional[AmendmentType] = None
    color: Optional[str] = None
    is_superscript: bool = False
    footnote_refs: tuple[FootnoteRef, ...] = ()

    @field_validator("amendment", mode="before")
    @classmethod
    def _unwrap_amendment(cls, value: Any) -> Any:
        # backend sends {"amendment_type": "..."}
        if isinstance(value, dict):
            return value.get("amendment_type")
        return value

    @field_validator("styles", mode="before")
    @classmethod
    def _normalize_styles(cls, value: Any) -> Any:
        if value is None:
            return frozenset()
        return frozenset(str(style).lower() for style in value)

    @property
    def bold(self) -> bool:
        return "bold" in self.styles

    @property
    def italic(self) -> bool:
        return "italic" in self.styles


class StyledBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    fragments: tuple[TextFragment, ...] = ()


class FootnoteEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    footnote_id: str
    marker: str
    content: str
    amending_act_title: Optional[str] = None


class Table(BaseModel):
    model_config = ConfigDict(frozen=True)

    rows: tuple[tuple[str, ...], ...] = ()
    header_rows: frozenset[int] = Field(default_factory=lambda: frozenset({0}))
    identifier: Optional[str] = None
    page: Optional[int] = None

    @field_validator("rows", mode="before")
    @classmethod
    def _stringify_cells(cls, value: Any) -> Any:
        if value is None:
            return ()
        return tuple(tuple("" if cell is None else str(cell) for cell in row) for row in value)

    @field_validator("header_rows", mode="before")
    @classmethod
    def _default_header(cls, value: Any) -> Any:
        if value is None:
            return frozenset({0})
        return frozenset(value)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return max((len(row) for row in self.rows), default=0)


class DocumentNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str = "generic"
    identifier: Optional[str] = None
    title: Optional[str] = None
    akn_eid: Optional[str] = None
    text: tuple[str, ...] = ()
    styled_text: tuple[StyledBlock, ...] = ()
    tables: tuple[Table, ...] = ()
    children: tuple["DocumentNode", ...] = ()
    footnotes: tuple[FootnoteEntry, ...] = ()

    @field_validator("type", mode="before")
    @classmethod
    def _default_type(cls, value: Any) -> Any:
        return value or "generic"

    @field_validator("identifier", mode="before")
    @classmethod
    def _identifier_as_text(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("text", "styled_text", "tables", "children", "footnotes", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return () if value is None else value

    @property
    def kind(self) -> NodeKind:
        return node_kind(self.type)

    def iter_nodes(self):
        yield self
        for child in self.children:
            yield from child.iter_nodes()


DocumentNode.model_rebuild()


class DocumentHeader(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    short_title: Optional[str] = None
    jurisdiction: Optional[str] = None
    chapter: Optional[str] = None
    publication_date: Optional[str] = None
    commencement_date: Optional[str] = None
    act_year: Optional[int] = None

    @field_validator("chapter", mode="before")
    @classmethod
    def _chapter_as_text(cls, value: Any) -> Any:
        return None if value is None else str(value)


class HierarchicalDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    document_id: Optional[str] = None
    header: Optional[DocumentHeader] = None
    root: DocumentNode


def load_document(payload: dict, document_id: str | None = None) -> HierarchicalDocument:
    """Validate a backend document payload into an immutable tree.

    Accepts either ``{"hierarchical_structure": {...}, "title": ...}`` as the
    documents endpoint returns it, or a bare node dict. Footnotes found below the
    root are moved to the root so they render exactly once.
    """
    structure = payload.get("hierarchical_structure", payload)
    try:
        root = DocumentNode.model_validate(structure)
        header = DocumentHeader.model_validate(payload) if "hierarchical_structure" in payload else None
    except ValidationError as exc:
        raise DocumentPayloadError(f"invalid document payload: {exc}") from exc

    nested = [note for node in root.iter_nodes() if node is not root for note in node.footnotes]
    if nested:
        logger.warning("nested_footnotes_hoisted", count=len(nested))
        root = _strip_nested_footnotes(root, is_root=True)
        root = root.model_copy(update={"footnotes": root.footnotes + tuple(nested)})

    if document_id is None and payload.get("id") is not None:
        document_id = str(payload["id"])
    return HierarchicalDocument(
        document_id=document_id,
        header=header,
        root=root,
    )


def _strip_nested_footnotes(node: DocumentNode, is_root: bool = False) -> DocumentNode:
    children = tuple(_strip_nested_footnotes(child) for child in node.children)
    update: dict[str, Any] = {"children": children}
    if not is_root:
        update["footnotes"] = ()
    return node.model_copy(update=update)
