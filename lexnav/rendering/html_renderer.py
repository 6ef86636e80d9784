from __future__ import annotations

from lxml import html
from lxml.html.builder import CLASS, E

from lexnav.parsing.document_models import NodeKind
from lexnav.parsing.tables import RenderedTable
from lexnav.rendering.amendments import RenderedFragment
from lexnav.rendering.renderer import RenderedBlock, RenderedDocument, RenderedNode

SECTION_KINDS = frozenset(
    {NodeKind.PART, NodeKind.CHAPTER, NodeKind.SECTION, NodeKind.SCHEDULE, NodeKind.ARTICLE}
)


def _fragment_element(fragment: RenderedFragment):
    attrs = {}
    if fragment.classes:
        attrs["class"] = " ".join(fragment.classes)
    if fragment.color:
        attrs["style"] = f"color: {fragment.color}"
    tag = E.sup if "superscript" in fragment.classes else E.span
    children = [fragment.text]
    for footnote in fragment.footnotes:
        children.append(
            E.sup(
                E.a(footnote.marker, href=f"#fn-{footnote.footnote_id}", title=footnote.tooltip),
                CLASS("footnote-ref"),
            )
        )
    return tag(*children, **attrs)


def _block_element(block: RenderedBlock):
    return E.p(*(_fragment_element(fragment) for fragment in block.fragments))


def _table_element(table: RenderedTable):
    children = []
    if table.header:
        children.append(E.thead(*(E.tr(*(E.th(cell) for cell in row.cells)) for row in table.header)))
    children.append(E.tbody(*(E.tr(*(E.td(cell) for cell in row.cells)) for row in table.body)))
    attrs = {"id": table.identifier} if table.identifier else {}
    return E.table(*children, **attrs)


def _node_element(node: RenderedNode):
    body = [_block_element(block) for block in node.blocks]
    body.extend(_table_element(table) for table in node.tables)
    body.extend(_node_element(child) for child in node.children)

    if node.kind is NodeKind.DOCUMENT_ROOT:
        return E.div(*body, CLASS("document-body"))

    heading = []
    if node.heading:
        heading_tag = E.h2 if node.kind in {NodeKind.PART, NodeKind.SCHEDULE} else E.h3
        heading = [heading_tag(node.heading)]

    if node.kind in SECTION_KINDS:
        element = E.section(*heading, *body, id=node.node_id)
        element.set("data-toc-id", node.node_id)
    else:
        element = E.div(*heading, *body, id=node.node_id)
    element.set("class", f"node node-{node.kind.value} indent-{node.indent}")
    if node.separator_before:
        element.set("data-separator", "true")
    if node.path:
        element.set("data-path", node.path)
    return element


def document_to_element(document: RenderedDocument):
    parts = []
    if document.header_lines:
        parts.append(E.header(*(E.div(line) for line in document.header_lines)))
    parts.append(_node_element(document.root))
    if document.footnotes:
        parts.append(
            E.footer(
                E.ol(
                    *(
                        E.li(
                            E.span(f"{note.marker}. ", CLASS("footnote-marker")),
                            note.content,
                            *([" ", E.span(note.attribution, CLASS("attribution"))] if note.attribution else []),
                            id=f"fn-{note.footnote_id}",
                        )
                        for note in document.footnotes
                    )
                ),
                CLASS("footnotes"),
            )
        )
    return E.article(*parts, CLASS("legal-document"))


def render_html(document: RenderedDocument, pretty_print: bool = True) -> str:
    return html.tostring(document_to_element(document), pretty_print=pretty_print, encoding="unicode")
