from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from lexnav.citations.export import ExportFormat
from lexnav.citations.models import ChatSource, DeduplicatedSource
from lexnav.parsing.citation_markers import Segment


class TextIn(BaseModel):
    text: str


class CitationParseIn(BaseModel):
    text: str
    sources: list[ChatSource] = Field(default_factory=list)


class ResolvedCitationOut(BaseModel):
    number: int
    source: ChatSource
    reference: Optional[str] = None


class CitationParseOut(BaseModel):
    segments: list[Segment]
    resolved: list[ResolvedCitationOut]


class ReferenceIn(BaseModel):
    section: Optional[Union[str, int]] = None
    section_id: Optional[Union[str, int]] = None
    excerpt: Optional[str] = None
    legal_reference: Optional[str] = None


class ReferenceOut(BaseModel):
    reference: Optional[str]


class TableShapeOut(BaseModel):
    is_table: bool
    row_count: int
    column_count: int
    has_header: bool
    summary: str


class DedupeIn(BaseModel):
    sources: list[ChatSource]


class DedupeOut(BaseModel):
    sources: list[DeduplicatedSource]


class RenderIn(BaseModel):
    document: dict[str, Any]
    document_id: Optional[str] = None
    format: str = Field("json", pattern="^(json|html|text)$")


class ExportIn(BaseModel):
    source: ChatSource
    format: ExportFormat = ExportFormat.LEGAL
    section_ref: Optional[str] = None


class ExportOut(BaseModel):
    format: ExportFormat
    citation: str
