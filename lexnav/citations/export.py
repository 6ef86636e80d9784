from __future__ import annotations

import re
from enum import Enum
from typing import Callable, Optional

from lexnav.citations.models import ChatSource, DocumentType
from lexnav.parsing.references import source_reference

YEAR_PATTERN = re.compile(r"\b(19|20)\d{2}\b")
SECTION_PREFIX_PATTERN = re.compile(r"^(section|sec\.?)\s*", re.IGNORECASE)
EMBEDDED_YEAR_PATTERN = re.compile(r"\s*\d{4}\s*")

DEFAULT_PUBLISHER = "Kenya Law"


class ExportFormat(str, Enum):
    LEGAL = "legal"
    BLUEBOOK = "bluebook"
    OSCOLA = "oscola"
    ACADEMIC = "academic"
    BIBTEX = "bibtex"


FORMAT_LABELS = {
    ExportFormat.LEGAL: "Legal Citation",
    ExportFormat.BLUEBOOK: "Bluebook (US)",
    ExportFormat.OSCOLA: "OSCOLA (UK)",
    ExportFormat.ACADEMIC: "Academic (APA)",
    ExportFormat.BIBTEX: "BibTeX",
}


def _year(source: ChatSource) -> str:
    match = YEAR_PATTERN.search(source.human_readable_id or "")
    return match.group(0) if match else ""


def _section(source: ChatSource, section_ref: Optional[str]) -> Optional[str]:
    section = section_ref or source.legal_reference or (str(source.section) if source.section else None)
    return section or None


def format_legal(source: ChatSource, section_ref: Optional[str] = None) -> str:
    parts = [source.title]
    section = _section(source, section_ref)
    if section:
        parts.append(section)
    if source.human_readable_id and not any(source.human_readable_id in part for part in parts):
        parts.append(f"({source.human_readable_id})")
    return ", ".join(parts)


def format_academic(source: ChatSource, section_ref: Optional[str] = None) -> str:
    parts = [source.title]
    year = _year(source)
    if year:
        parts.append(f"({year})")
    if source.human_readable_id:
        parts.append(source.human_readable_id)
    reference = section_ref or source.legal_reference
    if reference:
        parts.append(reference)
    return ". ".join(parts) + "."


def format_bibtex(
    source: ChatSource,
    section_ref: Optional[str] = None,
    publisher: str = DEFAULT_PUBLISHER,
) -> str:
    year = _year(source) or "n.d."
    key = re.sub(r"[^a-z0-9]", "", "".join(source.title.split()[:2]).lower()) + year
    entry_type = "misc" if source.document_type is DocumentType.JUDGMENT else "legislation"

    fields = [f"  title = {{{source.title}}}"]
    if source.human_readable_id:
        fields.append(f"  number = {{{source.human_readable_id}}}")
    if year != "n.d.":
        fields.append(f"  year = {{{year}}}")
    note = section_ref or source.legal_reference
    if note:
        fields.append(f"  note = {{{note}}}")
    fields.append(f"  howpublished = {{{publisher}}}")
    return f"@{entry_type}{{{key},\n" + ",\n".join(fields) + "\n}"


def format_bluebook(source: ChatSource, section_ref: Optional[str] = None) -> str:
    year = _year(source)
    if source.document_type is DocumentType.JUDGMENT:
        parts = [source.title]
        if source.human_readable_id:
            parts.append(source.human_readable_id)
        if year:
            parts.append(f"({year})")
        return ", ".join(parts)

    citation = source.title
    section = _section(source, section_ref)
    if section:
        citation += f" § {SECTION_PREFIX_PATTERN.sub('', section)}"
    if year:
        citation += f" ({year})"
    return citation


def format_oscola(source: ChatSource, section_ref: Optional[str] = None) -> str:
    year = _year(source)
    citation = source.title
    if source.document_type is DocumentType.JUDGMENT:
        if year:
            citation += f" [{year}]"
        if source.human_readable_id:
            citation += f" {EMBEDDED_YEAR_PATTERN.sub(' ', source.human_readable_id, count=1).strip()}"
        return citation

    if year and year not in citation:
        citation += f" {year}"
    section = _section(source, section_ref)
    if section:
        citation += f", s {SECTION_PREFIX_PATTERN.sub('', section)}"
    return citation


FORMATTERS: dict[ExportFormat, Callable[..., str]] = {
    ExportFormat.LEGAL: format_legal,
    ExportFormat.BLUEBOOK: format_bluebook,
    ExportFormat.OSCOLA: format_oscola,
    ExportFormat.ACADEMIC: format_academic,
    ExportFormat.BIBTEX: format_bibtex,
}


def export_citation(
    source: ChatSource,
    export_format: ExportFormat | str,
    section_ref: Optional[str] = None,
) -> str:
    """Format a citation for copying; the section defaults to the extracted reference."""
    export_format = ExportFormat(export_format)
    if section_ref is None:
        section_ref = source_reference(source)
    return FORMATTERS[export_format](source, section_ref)
