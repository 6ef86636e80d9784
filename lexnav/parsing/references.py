from __future__ import annotations

import re
from typing import Any, Optional

# EDA-2014-11, UGA-ACT-2024-001
DOCUMENT_ID_PATTERN = re.compile(r"^[A-Z]+-([A-Z]+-)?(\d{4}-)?\d+$", re.IGNORECASE)

SECTION_PATTERN = re.compile(r"(Section\s+\d+(?:\s*\([^)]+\))?)", re.IGNORECASE)
NUMBERED_PREFIX_PATTERN = re.compile(r"^(\d+)\.\s")
SECTION_NUMBER_PATTERN = re.compile(r"Section\s+(\d+)", re.IGNORECASE)
EID_PATTERN = re.compile(r"sec_(\d+)(?:__subsec_(\d+))?(?:__para_([a-z]))?", re.IGNORECASE)
BARE_NUMBER_PATTERN = re.compile(r"^\d+$")
EXCERPT_SUBSECTION_PATTERN = re.compile(r"^\s*\((\d+)\)\s")
PARENT_SECTION_PATTERN = re.compile(r"sec_(\d+)__")


def is_document_id(value: str) -> bool:
    return bool(DOCUMENT_ID_PATTERN.match(value))


def extract_reference(
    section: Any = None,
    section_id: Any = None,
    excerpt: Any = None,
    *,
    legal_reference: Any = None,
) -> Optional[str]:
    """Turn the raw section fields of a citation into a label like ``Section 5(1)``.

    ``section`` is tried before ``section_id``; opaque document ids are never read
    as section numbers. When neither field yields a label the excerpt is checked
    for a leading ``(N)`` subsection marker. Returns ``None`` when nothing matches.
    """
    precomputed = _as_text(legal_reference)
    if precomputed:
        return precomputed

    for candidate in (_as_text(section), _as_text(section_id)):
        if not candidate or is_document_id(candidate):
            continue
        reference = _reference_from_candidate(candidate)
        if reference:
            return reference

    if isinstance(excerpt, str):
        match = EXCERPT_SUBSECTION_PATTERN.match(excerpt)
        if match:
            return f"Subsection ({match.group(1)})"

    return None


def source_reference(source: Any) -> Optional[str]:
    return extract_reference(
        getattr(source, "section", None),
        getattr(source, "section_id", None),
        getattr(source, "excerpt", None),
        legal_reference=getattr(source, "legal_reference", None),
    )


def reference_from_section(section: Any) -> Optional[str]:
    """Label for a section returned by the retrieval service."""
    if section is None:
        return None
    precomputed = _as_text(getattr(section, "legal_reference", None))
    if precomputed:
        return precomputed

    number = _as_text(getattr(section, "number", None))
    if not number:
        return extract_reference(None, getattr(section, "eid", None))
    number = number.rstrip(".")
    section_type = _as_text(getattr(section, "section_type", None)) or "section"

    if section_type == "section":
        return f"Section {number}"
    if section_type == "subsection":
        parent = PARENT_SECTION_PATTERN.search(_as_text(getattr(section, "eid", None)) or "")
        if parent:
            return f"Section {parent.group(1)}({number})"
        return f"Subsection ({number})"
    if section_type == "paragraph":
        return f"Paragraph ({number})"
    return f"{section_type} {number}"


def _reference_from_candidate(candidate: str) -> Optional[str]:
    match = SECTION_PATTERN.search(candidate)
    if match:
        return match.group(1)

    match = NUMBERED_PREFIX_PATTERN.match(candidate)
    if match:
        return f"Section {match.group(1)}"

    if ">" in candidate:
        reference = _reference_from_breadcrumb(candidate)
        if reference:
            return reference

    match = EID_PATTERN.search(candidate)
    if match:
        number, subsection, paragraph = match.groups()
        reference = f"Section {number}"
        if subsection:
            reference += f"({subsection})"
        if paragraph:
            reference += f"({paragraph})"
        return reference

    if BARE_NUMBER_PATTERN.match(candidate):
        return f"Section {candidate}"
    return None


def _reference_from_breadcrumb(breadcrumb: str) -> Optional[str]:
    for part in (segment.strip() for segment in breadcrumb.split(">")):
        if not part or is_document_id(part):
            continue
        match = NUMBERED_PREFIX_PATTERN.match(part)
        if match:
            return f"Section {match.group(1)}"
        match = SECTION_NUMBER_PATTERN.search(part)
        if match:
            return f"Section {match.group(1)}"
    return None


def _as_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(int(value)) if float(value).is_integer() else str(value)
    if isinstance(value, str):
        return value.strip() or None
    return None
