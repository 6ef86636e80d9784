from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

_SECTION_WORD = r"(?:[Ss]ection|[Ss]ec\.?|[Ss]\.)"
_ARTICLE_WORD = r"(?:[Aa]rticle|[Aa]rt\.?)"

# Named forms before bare numbers, most specific first; a span taken by an
# earlier pattern is never re-matched.
CITATION_PATTERNS: list[tuple[str, re.Pattern[str], tuple[str, ...]]] = [
    ("section", re.compile(rf"\b{_SECTION_WORD}\s*(\d+)\s*\((\d+)\)\s*\(([a-z])\)\s*\(([ivxlcdm]+)\)"),
     ("number", "subsection", "paragraph", "subparagraph")),
    ("section", re.compile(rf"\b{_SECTION_WORD}\s*(\d+)\s*\((\d+)\)\s*\(([a-z])\)"),
     ("number", "subsection", "paragraph")),
    ("section", re.compile(rf"\b{_SECTION_WORD}\s*(\d+)\s*\((\d+)\)"), ("number", "subsection")),
    ("section", re.compile(rf"\b{_SECTION_WORD}\s*(\d+)\b"), ("number",)),
    ("article", re.compile(rf"\b{_ARTICLE_WORD}\s*(\d+)\s*\((\d+)\)\s*\(([a-z])\)"),
     ("number", "subsection", "paragraph")),
    ("article", re.compile(rf"\b{_ARTICLE_WORD}\s*(\d+)\s*\((\d+)\)"), ("number", "subsection")),
    ("article", re.compile(rf"\b{_ARTICLE_WORD}\s*(\d+)\b"), ("number",)),
    ("regulation", re.compile(r"\b[Rr]egulation\s*(\d+)\s*\((\d+)\)"), ("number", "subsection")),
    ("regulation", re.compile(r"\b[Rr]egulation\s*(\d+)\b"), ("number",)),
    ("part", re.compile(r"\b[Pp]art\s+([IVXLCDM]+|\d+)\b"), ("number",)),
    ("chapter", re.compile(r"\b[Cc]hapter\s+([IVXLCDM]+|\d+)\b"), ("number",)),
    ("section", re.compile(r"\b(\d+)\s*\((\d+)\)\s*\(([a-z])\)\s*\(([ivxlcdm]+)\)"),
     ("number", "subsection", "paragraph", "subparagraph")),
    ("section", re.compile(r"\b(\d+)\s*\((\d+)\)\s*\(([a-z])\)"), ("number", "subsection", "paragraph")),
    ("section", re.compile(r"\b(\d+)\s*\((\d+)\)"), ("number", "subsection")),
]

EID_PREFIXES = {
    "section": "sec",
    "article": "art",
    "regulation": "reg",
    "part": "part",
    "chapter": "chp",
    "schedule": "schedule",
    "subsection": "subsec",
    "paragraph": "para",
    "subparagraph": "subpara",
}

CITATION_LABELS = {
    "sec": "Section",
    "art": "Article",
    "reg": "Regulation",
    "part": "Part",
    "chp": "Chapter",
}

ROMAN_VALUES = {"i": 1, "v": 5, "x": 10, "l": 50, "c": 100, "d": 500, "m": 1000}
ROMAN_PATTERN = re.compile(r"^[ivxlcdm]+$", re.IGNORECASE)


@dataclass(frozen=True)
class LegalCitation:
    text: str
    eid: str
    citation_type: str
    number: str
    start: int
    end: int
    subsection: Optional[str] = None
    paragraph: Optional[str] = None
    subparagraph: Optional[str] = None


def roman_to_int(roman: str) -> int:
    total = 0
    lowered = roman.lower()
    for index, char in enumerate(lowered):
        current = ROMAN_VALUES[char]
        following = ROMAN_VALUES.get(lowered[index + 1]) if index + 1 < len(lowered) else None
        if following and current < following:
            total -= current
        else:
            total += current
    return total


def build_eid(
    citation_type: str,
    number: str,
    subsection: str | None = None,
    paragraph: str | None = None,
    subparagraph: str | None = None,
) -> str:
    prefix = EID_PREFIXES.get(citation_type, citation_type)
    normalized = str(roman_to_int(number)) if ROMAN_PATTERN.match(number) else number
    parts = [f"{prefix}_{normalized}"]
    if subsection:
        parts.append(f"{EID_PREFIXES['subsection']}_{subsection}")
    if paragraph:
        parts.append(f"{EID_PREFIXES['paragraph']}_{paragraph}")
    if subparagraph:
        value = str(roman_to_int(subparagraph)) if ROMAN_PATTERN.match(subparagraph) else subparagraph
        parts.append(f"{EID_PREFIXES['subparagraph']}_{value}")
    return "__".join(parts)


def parse_legal_citations(text: str) -> list[LegalCitation]:
    citations: list[LegalCitation] = []
    for citation_type, pattern, groups in CITATION_PATTERNS:
        for match in pattern.finditer(text):
            start, end = match.span()
            if any(start < other.end and end > other.start for other in citations):
                continue
            values = dict(zip(groups, match.groups()))
            citations.append(
                LegalCitation(
                    text=match.group(0),
                    eid=build_eid(
                        citation_type,
                        values["number"],
                        values.get("subsection"),
                        values.get("paragraph"),
                        values.get("subparagraph"),
                    ),
                    citation_type=citation_type,
                    number=values["number"],
                    start=start,
                    end=end,
                    subsection=values.get("subsection"),
                    paragraph=values.get("paragraph"),
                    subparagraph=values.get("subparagraph"),
                )
            )
    citations.sort(key=lambda citation: citation.start)
    return citations


def citation_to_eid(citation: str) -> Optional[str]:
    parsed = parse_legal_citations(citation)
    return parsed[0].eid if parsed else None


def eid_to_citation(eid: str) -> str:
    """``sec_19__subsec_2__para_a`` -> ``Section 19(2)(a)``."""
    formatted = ""
    for part in eid.split("__"):
        prefix, _, value = part.partition("_")
        if prefix in CITATION_LABELS:
            label = f"{CITATION_LABELS[prefix]} {value}"
        elif prefix in {"subsec", "para", "subpara"}:
            label = f"({value})"
        else:
            label = part

        if label.startswith("("):
            formatted += label
        elif formatted:
            formatted += " " + label
        else:
            formatted = label
    return formatted or eid


def unique_eids(text: str) -> list[str]:
    return list(dict.fromkeys(citation.eid for citation in parse_legal_citations(text)))
