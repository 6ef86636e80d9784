from __future__ import annotations

from dataclasses import asdict

import structlog
from fastapi import APIRouter, HTTPException
from fastapi.responses import HTMLResponse, PlainTextResponse

from lexnav.api.schemas import (
    CitationParseIn,
    CitationParseOut,
    DedupeIn,
    DedupeOut,
    ExportIn,
    ExportOut,
    ReferenceIn,
    ReferenceOut,
    RenderIn,
    ResolvedCitationOut,
    TableShapeOut,
    TextIn,
)
from lexnav.citations.dedupe import dedupe_sources
from lexnav.citations.export import export_citation
from lexnav.core.exceptions import DocumentPayloadError
from lexnav.parsing.citation_markers import cited_numbers, parse_citation_markers, resolve_numbers
from lexnav.parsing.document_models import load_document
from lexnav.parsing.legal_citations import parse_legal_citations
from lexnav.parsing.references import extract_reference, source_reference
from lexnav.parsing.tables import detect_table
from lexnav.rendering.html_renderer import render_html
from lexnav.rendering.renderer import render_document, render_text
from lexnav.rendering.toc import build_toc

logger = structlog.get_logger()

router = APIRouter()


@router.get("/health")
def health():
    return {"status": "ok"}


@router.post("/citations/parse", response_model=CitationParseOut)
def parse_citations(payload: CitationParseIn):
    resolved = [
        ResolvedCitationOut(number=number, source=source, reference=source_reference(source))
        for number, source in resolve_numbers(cited_numbers(payload.text), payload.sources)
    ]
    return CitationParseOut(segments=parse_citation_markers(payload.text), resolved=resolved)


@router.post("/references/extract", response_model=ReferenceOut)
def extract_reference_endpoint(payload: ReferenceIn):
    return ReferenceOut(
        reference=extract_reference(
            payload.section,
            payload.section_id,
            payload.excerpt,
            legal_reference=payload.legal_reference,
        )
    )


@router.post("/legal-citations/parse")
def parse_legal_citations_endpoint(payload: TextIn):
    return {"citations": [asdict(citation) for citation in parse_legal_citations(payload.text)]}


@router.post("/tables/detect", response_model=TableShapeOut)
def detect_table_endpoint(payload: TextIn):
    shape = detect_table(payload.text)
    return TableShapeOut(**asdict(shape), summary=shape.summary())


@router.post("/sources/dedupe", response_model=DedupeOut)
def dedupe_endpoint(payload: DedupeIn):
    return DedupeOut(sources=dedupe_sources(payload.sources))


@router.post("/documents/render")
def render_endpoint(payload: RenderIn):
    try:
        document = load_document(payload.document, document_id=payload.document_id)
    except DocumentPayloadError as exc:
        logger.warning("render_rejected", error=str(exc))
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    rendered = render_document(document)
    if payload.format == "html":
        return HTMLResponse(render_html(rendered))
    if payload.format == "text":
        return PlainTextResponse(render_text(rendered))
    return {
        "document": rendered.model_dump(mode="json"),
        "toc": [item.model_dump(mode="json") for item in build_toc(document.root)],
    }


@router.post("/citations/export", response_model=ExportOut)
def export_endpoint(payload: ExportIn):
    return ExportOut(
        format=payload.format,
        citation=export_citation(payload.source, payload.format, payload.section_ref),
    )
