from lxml import etree

from lexnav.parsing.akoma_parser import AkomaNtosoTreeBuilder
from lexnav.parsing.document_models import AmendmentType, NodeKind


def _build(fixtures_dir):
    tree = etree.parse(str(fixtures_dir / "sample_act.xml"))
    return AkomaNtosoTreeBuilder().build(tree, document_id="ug-act-2006-3")


def test_structure_and_identifiers(fixtures_dir):
    document = _build(fixtures_dir)
    root = document.root
    assert root.kind is NodeKind.DOCUMENT_ROOT

    parts = [child for child in root.children if child.kind is NodeKind.PART]
    assert [(part.identifier, part.title, part.akn_eid) for part in parts] == [
        ("I", "Preliminary", "part_I"),
        ("II", "Employment", "part_II"),
    ]
    section = parts[1].children[0]
    assert (section.identifier, section.title) == ("3", "Application")
    assert [child.identifier for child in section.children] == ["1", "2"]
    assert section.children[1].children[0].akn_eid == "sec_3__subsec_2__para_a"
    assert parts[0].children[0].text == ("In this Act, unless the context otherwise requires.",)


def test_inline_amendments_and_footnotes(fixtures_dir):
    document = _build(fixtures_dir)
    subsection = document.root.children[1].children[0].children[1]

    assert subsection.text == ()
    fragments = subsection.styled_text[0].fragments
    assert [fragment.amendment for fragment in fragments if fragment.amendment] == [
        AmendmentType.INSERTION,
        AmendmentType.REPEALED,
    ]
    assert "".join(fragment.text for fragment in fragments) == (
        "The Minister may by statutory instrument exclude any categories of employees."
    )
    assert fragments[-1].footnote_refs[0].marker == "1"

    note = document.root.footnotes[0]
    assert note.content == "Amended by Act 5 of 2010."
    assert note.amending_act_title == "Employment (Amendment) Act, 2010"


def test_attachment_becomes_schedule_with_table(fixtures_dir):
    document = _build(fixtures_dir)
    schedule = document.root.children[-1]
    assert schedule.kind is NodeKind.SCHEDULE
    assert schedule.title == "Currency point"
    table = schedule.tables[0]
    assert table.rows == (("Currency point", "Value"), ("One", "20,000 shillings"))
    assert table.header_rows == frozenset({0})


def test_header_from_frbr_metadata(fixtures_dir):
    header = _build(fixtures_dir).header
    assert header.title == "Employment Act"
    assert header.short_title == "Employment Act, 2006"
    assert header.jurisdiction == "UG"
    assert header.chapter == "219"
    assert header.publication_date == "2006-06-08"
    assert header.commencement_date == "2006-06-08"
    assert header.act_year == 2006
