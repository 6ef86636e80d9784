from __future__ import annotations

from datetime import date
from typing import Callable, Optional, Sequence

import structlog
from pydantic import BaseModel, ConfigDict

from lexnav.parsing.document_models import (
    DocumentHeader,
    DocumentNode,
    HierarchicalDocument,
    NodeKind,
)
from lexnav.parsing.tables import RenderedTable, render_table
from lexnav.rendering.amendments import (
    RenderedFootnote,
    RenderedFragment,
    node_blocks,
    render_footnotes,
    render_fragment,
)
from lexnav.rendering.hierarchy_builder import (
    AncestorEntry,
    SnippetPayload,
    derive_node_id,
    extend_path,
    format_path,
    snippet_payload,
)

logger = structlog.get_logger()

JURISDICTION_NAMES = {"UG": "Uganda"}


class Heading(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: Optional[str] = None
    indent: int = 0
    separator_before: bool = False


class RenderedBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    fragments: tuple[RenderedFragment, ...]

    @property
    def text(self) -> str:
        return "".join(fragment.text for fragment in self.fragments)


class RenderedNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    node_id: str
    kind: NodeKind
    heading: Optional[str] = None
    indent: int = 0
    separator_before: bool = False
    blocks: tuple[RenderedBlock, ...] = ()
    tables: tuple[RenderedTable, ...] = ()
    children: tuple["RenderedNode", ...] = ()
    path: str = ""
    snippet: Optional[SnippetPayload] = None

    def iter_nodes(self):
        yield self
        for child in self.children:
            yield from child.iter_nodes()


RenderedNode.model_rebuild()


class RenderedDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    document_id: Optional[str] = None
    header_lines: tuple[str, ...] = ()
    root: RenderedNode
    footnotes: tuple[RenderedFootnote, ...] = ()

    def find(self, node_id: str) -> Optional[RenderedNode]:
        for node in self.root.iter_nodes():
            if node.node_id == node_id:
                return node
        return None


# ---------------------------
# HEADINGS
# ---------------------------

def _dash_heading(prefix: str, node: DocumentNode) -> Optional[str]:
    parts = []
    if node.identifier:
        parts.append(f"{prefix} {node.identifier}")
    if node.title:
        parts.append(node.title)
    return " – ".join(parts) or None


def _dotted_heading(node: DocumentNode, prefix: str = "") -> Optional[str]:
    label = ""
    if node.identifier:
        label = f"{prefix}{node.identifier}. "
    if node.title:
        label += node.title
    return label.strip() or None


def _sub_level(indent: int) -> Callable[[DocumentNode], Heading]:
    def handler(node: DocumentNode) -> Heading:
        text = f"({node.identifier})" if node.identifier else None
        return Heading(text=text, indent=indent)

    return handler


HEADING_HANDLERS: dict[NodeKind, Callable[[DocumentNode], Heading]] = {
    NodeKind.PART: lambda node: Heading(text=_dash_heading("PART", node)),
    NodeKind.CHAPTER: lambda node: Heading(text=_dash_heading("Chapter", node)),
    NodeKind.SECTION: lambda node: Heading(text=_dotted_heading(node)),
    NodeKind.SUBSECTION: _sub_level(1),
    NodeKind.PARAGRAPH: _sub_level(2),
    NodeKind.SUBPARAGRAPH: _sub_level(3),
    NodeKind.SCHEDULE: lambda node: Heading(text=_dash_heading("Schedule", node), separator_before=True),
    NodeKind.ARTICLE: lambda node: Heading(text=_dotted_heading(node, prefix="Article ")),
    NodeKind.DOCUMENT_ROOT: lambda node: Heading(),
    NodeKind.GENERIC: lambda node: Heading(text=_dotted_heading(node)),
}

_missing = set(NodeKind) - set(HEADING_HANDLERS)
if _missing:
    raise RuntimeError(f"no heading handler for {sorted(kind.value for kind in _missing)}")


def node_heading(node: DocumentNode) -> Heading:
    return HEADING_HANDLERS[node.kind](node)


# ---------------------------
# DOCUMENT HEADER
# ---------------------------

def format_date(value: str | None) -> Optional[str]:
    if not value:
        return None
    try:
        parsed = date.fromisoformat(value[:10])
    except ValueError:
        return value
    return f"{parsed.day} {parsed.strftime('%B %Y')}"


def header_lines(header: DocumentHeader | None) -> list[str]:
    if header is None:
        return []
    lines = []
    if header.jurisdiction:
        lines.append(JURISDICTION_NAMES.get(header.jurisdiction, header.jurisdiction))
    if header.title:
        lines.append(header.title)
    if header.short_title and header.short_title != header.title:
        lines.append(header.short_title)
    if header.chapter:
        lines.append(f"Chapter {header.chapter}")
    if header.publication_date:
        lines.append(f"Published on {format_date(header.publication_date)}")
    if header.commencement_date:
        lines.append(f"Commenced on {format_date(header.commencement_date)}")
    if header.act_year:
        lines.append(f"[Act {header.act_year}]")
    return lines


# ---------------------------
# TREE
# ---------------------------

def _render_blocks(node: DocumentNode) -> tuple[RenderedBlock, ...]:
    rendered = []
    for block in node_blocks(node):
        if isinstance(block, str):
            rendered.append(RenderedBlock(fragments=(RenderedFragment(text=block),)))
        else:
            rendered.append(RenderedBlock(fragments=tuple(render_fragment(f) for f in block.fragments)))
    return tuple(rendered)


def render_node(
    node: DocumentNode,
    path: Sequence[AncestorEntry] = (),
    document_id: str | None = None,
    header: DocumentHeader | None = None,
) -> RenderedNode:
    heading = node_heading(node)
    child_path = extend_path(path, node)
    is_root = node.kind is NodeKind.DOCUMENT_ROOT
    return RenderedNode(
        node_id=derive_node_id(node),
        kind=node.kind,
        heading=heading.text,
        indent=heading.indent,
        separator_before=heading.separator_before,
        blocks=_render_blocks(node),
        tables=tuple(render_table(table) for table in node.tables),
        children=tuple(render_node(child, child_path, document_id, header) for child in node.children),
        path="" if is_root else format_path(path, node),
        snippet=snippet_payload(node, path, document_id, header) if document_id and not is_root else None,
    )


def render_document(document: HierarchicalDocument) -> RenderedDocument:
    root = render_node(document.root, document_id=document.document_id, header=document.header)
    logger.debug("document_rendered", document_id=document.document_id, nodes=sum(1 for _ in root.iter_nodes()))
    return RenderedDocument(
        document_id=document.document_id,
        header_lines=tuple(header_lines(document.header)),
        root=root,
        footnotes=tuple(render_footnotes(document.root.footnotes)),
    )


def render_text(document: RenderedDocument) -> str:
    """Plain-text rendition used by the CLI."""
    lines: list[str] = list(document.header_lines)
    if lines:
        lines.append("")

    def walk(node: RenderedNode) -> None:
        pad = "    " * node.indent
        if node.separator_before:
            lines.append("-" * 40)
        if node.heading:
            lines.append(pad + node.heading)
        for block in node.blocks:
            text = block.text
            markers = "".join(f"[{m.marker}]" for fragment in block.fragments for m in fragment.footnotes)
            lines.append(pad + text + markers)
        for table in node.tables:
            for row in table.rows:
                lines.append(pad + " | ".join(row.cells))
        for child in node.children:
            walk(child)

    walk(document.root)
    if document.footnotes:
        lines.append("")
        for note in document.footnotes:
            line = f"{note.marker}. {note.content}"
            if note.attribution:
                line += f" {note.attribution}"
            lines.append(line)
    return "\n".join(lines)
