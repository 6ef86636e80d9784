from __future__ import annotations

import re
from typing import Annotated, Literal, Sequence, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

# [1], [2, 3], [1,2,3]
CITATION_MARKER_PATTERN = re.compile(r"\[(\d+(?:\s*,\s*\d+)*)\]")
_NUMBER_SPLIT = re.compile(r"\s*,\s*")

T = TypeVar("T")


class TextSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    text: str


class CitationSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["citation"] = "citation"
    text: str
    numbers: tuple[int, ...]


Segment = Annotated[Union[TextSegment, CitationSegment], Field(discriminator="kind")]


def parse_citation_markers(text: str) -> list[TextSegment | CitationSegment]:
    segments: list[TextSegment | CitationSegment] = []
    last_index = 0

    for match in CITATION_MARKER_PATTERN.finditer(text):
        if match.start() > last_index:
            segments.append(TextSegment(text=text[last_index : match.start()]))
        numbers = tuple(int(value) for value in _NUMBER_SPLIT.split(match.group(1)))
        segments.append(CitationSegment(text=match.group(0), numbers=numbers))
        last_index = match.end()

    if last_index < len(text):
        segments.append(TextSegment(text=text[last_index:]))

    if not segments:
        return [TextSegment(text=text)]
    return segments


def render_segments(segments: Sequence[TextSegment | CitationSegment]) -> str:
    return "".join(segment.text for segment in segments)


def cited_numbers(text: str) -> list[int]:
    """Distinct citation numbers in order of first appearance."""
    seen: dict[int, None] = {}
    for segment in parse_citation_markers(text):
        if isinstance(segment, CitationSegment):
            for number in segment.numbers:
                seen.setdefault(number, None)
    return list(seen)


def resolve_numbers(numbers: Sequence[int], sources: Sequence[T]) -> list[tuple[int, T]]:
    """Pair each 1-indexed number with its source; numbers outside the list are dropped."""
    resolved: list[tuple[int, T]] = []
    for number in numbers:
        if 1 <= number <= len(sources):
            resolved.append((number, sources[number - 1]))
    return resolved
