from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lexnav.parsing.document_models import Table

EXCERPT_KEY_LENGTH = 50

# (document_id, section_id, section, excerpt prefix)
SourceKey = tuple[str, Optional[str], Optional[str], str]


class DocumentType(str, Enum):
    ACT = "act"
    JUDGMENT = "judgment"
    REGULATION = "regulation"
    CONSTITUTION = "constitution"


class ChatSource(BaseModel):
    """One retrieved passage cited by an answer."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    title: str = ""
    document_type: DocumentType = DocumentType.ACT
    excerpt: str = ""
    section: Optional[Union[str, int]] = None
    section_id: Optional[Union[str, int]] = None
    legal_reference: Optional[str] = None
    relevance_score: float = Field(default=0.0, ge=0.0, le=1.0)
    human_readable_id: str = ""
    chunk_id: Optional[str] = None

    @field_validator("document_id", mode="before")
    @classmethod
    def _document_id_as_text(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("document_type", mode="before")
    @classmethod
    def _lower_document_type(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @property
    def section_key(self) -> Optional[str]:
        if self.section_id is None or self.section_id == "":
            return None
        return str(self.section_id)

    @property
    def section_text(self) -> Optional[str]:
        if self.section is None or self.section == "":
            return None
        return str(self.section)

    @property
    def key(self) -> SourceKey:
        """Identity of the cited passage; two excerpts of one section stay distinct."""
        return (self.document_id, self.section_key, self.section_text, self.excerpt[:EXCERPT_KEY_LENGTH])


class DeduplicatedSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: ChatSource
    count: int


class SectionResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    heading: Optional[str] = None
    content: str = ""
    html_content: Optional[str] = None
    section_type: str = "section"
    number: Optional[str] = None
    eid: Optional[str] = None
    legal_reference: Optional[str] = None
    child_element_ids: tuple[str, ...] = ()

    @field_validator("number", mode="before")
    @classmethod
    def _number_as_text(cls, value: Any) -> Any:
        return None if value is None else str(value)

    @field_validator("content", mode="before")
    @classmethod
    def _content_default(cls, value: Any) -> Any:
        return value or ""

    @field_validator("child_element_ids", mode="before")
    @classmethod
    def _children_default(cls, value: Any) -> Any:
        return () if value is None else value


class ExpandedSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    full_excerpt: Optional[str] = None
    tables: tuple[Table, ...] = ()
    section_id: Optional[str] = None

    @field_validator("tables", mode="before")
    @classmethod
    def _normalize_tables(cls, value: Any) -> Any:
        if value is None:
            return ()
        tables = []
        for table in value:
            # {"headers": [...], "rows": [[...]]} from the expand endpoint
            if isinstance(table, dict) and table.get("headers"):
                table = {
                    **{k: v for k, v in table.items() if k != "headers"},
                    "rows": [table["headers"], *(table.get("rows") or [])],
                    "header_rows": [0],
                }
            tables.append(table)
        return tables


class ExpansionStatus(str, Enum):
    PENDING = "pending"
    SECTION = "section"
    EXPANDED = "expanded"
    FALLBACK = "fallback"


class ExpandedContent(BaseModel):
    """What the detail view shows for a citation once expansion settles."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    section_id: Optional[str] = None
    content: str
    html_content: Optional[str] = None
    tables: tuple[Table, ...] = ()
    section: Optional[SectionResponse] = None
    resolved_section_id: Optional[str] = None
    status: ExpansionStatus = ExpansionStatus.FALLBACK
    source_key: SourceKey

    @property
    def key(self) -> SourceKey:
        return self.source_key


class NavigationState(BaseModel):
    model_config = ConfigDict(frozen=True)

    sources: tuple[ChatSource, ...] = ()
    active_index: Optional[int] = None
    active_source: Optional[ChatSource] = None
    active_number: Optional[int] = None
    viewer_open: bool = False
    compare_mode: bool = False
    compare_selection: tuple[int, ...] = ()
    detail: Optional[ExpandedContent] = None
    expanding: bool = False

    @property
    def total(self) -> int:
        return len(self.sources)
