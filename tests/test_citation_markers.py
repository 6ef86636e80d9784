from lexnav.parsing.citation_markers import (
    CitationSegment,
    TextSegment,
    cited_numbers,
    parse_citation_markers,
    render_segments,
    resolve_numbers,
)


def test_segments_alternate_text_and_citations(sources):
    text = "See [1] and also [2, 3] for details."
    segments = parse_citation_markers(text)

    assert [segment.kind for segment in segments] == ["text", "citation", "text", "citation", "text"]
    assert [segment.text for segment in segments] == ["See ", "[1]", " and also ", "[2, 3]", " for details."]
    assert segments[1].numbers == (1,)
    assert segments[3].numbers == (2, 3)
    assert render_segments(segments) == text

    resolved = resolve_numbers(segments[3].numbers, sources)
    assert [number for number, _ in resolved] == [2, 3]
    assert resolved[1][1].document_id == "DOC-9"


def test_text_without_markers_is_one_segment():
    text = "No citations in this answer."
    assert parse_citation_markers(text) == [TextSegment(text=text)]
    assert parse_citation_markers("") == [TextSegment(text="")]


def test_round_trip_preserves_unusual_spacing():
    for text in ["[1][2]", "Start [1,2,3] end", "brackets [a] and [ 1] stay text", "trailing [4]"]:
        assert render_segments(parse_citation_markers(text)) == text


def test_non_numeric_brackets_are_text():
    segments = parse_citation_markers("see [a] and [1 ]")
    assert all(isinstance(segment, TextSegment) for segment in segments)


def test_adjacent_markers():
    segments = parse_citation_markers("[1][2]")
    assert segments == [
        CitationSegment(text="[1]", numbers=(1,)),
        CitationSegment(text="[2]", numbers=(2,)),
    ]


def test_cited_numbers_and_invalid_numbers_are_skipped(sources):
    assert cited_numbers("[2] then [1, 2] then [7]") == [2, 1, 7]
    resolved = resolve_numbers([0, 1, 4, 7], sources)
    assert [number for number, _ in resolved] == [1]
