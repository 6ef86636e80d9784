from __future__ import annotations

from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict

from lexnav.parsing.document_models import (
    SUB_LEVEL_KINDS,
    DocumentHeader,
    DocumentNode,
    NodeKind,
    node_kind,
)

PATH_PREFIXES = {
    NodeKind.PART: "Part",
    NodeKind.CHAPTER: "Chapter",
    NodeKind.SECTION: "Section",
}


class AncestorEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    identifier: Optional[str] = None
    title: Optional[str] = None

    @property
    def kind(self) -> NodeKind:
        return node_kind(self.type)


class SnippetPayload(BaseModel):
    """What a rendered node hands over when it is shared or quoted."""

    model_config = ConfigDict(frozen=True)

    label: str
    document_id: str
    section_id: str
    title: Optional[str] = None
    identifier: Optional[str] = None
    type: str
    hierarchical_path: str


def derive_node_id(node: DocumentNode | AncestorEntry) -> str:
    eid = getattr(node, "akn_eid", None)
    if eid:
        return eid
    node_type = (node.type or "").lower() or "node"
    return f"{node_type}-{node.identifier or 'unknown'}"


def ancestor_entry(node: DocumentNode) -> AncestorEntry:
    return AncestorEntry(type=node.type, identifier=node.identifier, title=node.title)


def extend_path(path: Sequence[AncestorEntry], node: DocumentNode) -> tuple[AncestorEntry, ...]:
    if node.kind is NodeKind.DOCUMENT_ROOT:
        return tuple(path)
    return (*path, ancestor_entry(node))


def _entry_label(entry: AncestorEntry) -> Optional[str]:
    if entry.identifier is None:
        return None
    kind = entry.kind
    if kind in SUB_LEVEL_KINDS:
        return f"({entry.identifier})"
    if kind in PATH_PREFIXES:
        return f"{PATH_PREFIXES[kind]} {entry.identifier}"
    label = (entry.type or "node").replace("_", " ")
    return f"{label[:1].upper()}{label[1:]} {entry.identifier}"


def hierarchical_path(path: Sequence[AncestorEntry], current: DocumentNode | AncestorEntry) -> str:
    """``[Part II, Section 3]`` + subsection 2 -> ``Part II Section 3(2)``."""
    current_entry = current if isinstance(current, AncestorEntry) else ancestor_entry(current)
    entries = [entry for entry in (*path, current_entry) if entry.kind is not NodeKind.DOCUMENT_ROOT]

    text = ""
    for entry in entries:
        label = _entry_label(entry)
        if not label:
            continue
        if entry.kind in SUB_LEVEL_KINDS or not text:
            text += label
        else:
            text += " " + label
    return text


def format_path(path: Sequence[AncestorEntry], current: DocumentNode | AncestorEntry) -> str:
    text = hierarchical_path(path, current)
    if current.title:
        return f"{text}. {current.title}" if text else current.title
    return text


def snippet_payload(
    node: DocumentNode,
    path: Sequence[AncestorEntry],
    document_id: str,
    header: DocumentHeader | None = None,
) -> SnippetPayload:
    full_path = format_path(path, node)
    label = full_path or derive_node_id(node)
    document_name = header and (header.short_title or header.title)
    if document_name:
        label = f"{document_name} - {label}"
    return SnippetPayload(
        label=label,
        document_id=document_id,
        section_id=derive_node_id(node),
        title=node.title,
        identifier=node.identifier,
        type=node.type,
        hierarchical_path=full_path,
    )
