from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from lexnav.parsing.document_models import DocumentNode
from lexnav.rendering.hierarchy_builder import derive_node_id

TOC_TYPES = frozenset({"part", "chapter", "section", "schedule", "article", "division"})

DASH_LABELS = {"part": "Part", "chapter": "Chapter", "schedule": "Schedule"}


class TocItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: str
    identifier: Optional[str] = None
    title: Optional[str] = None
    depth: int = 0
    children: tuple["TocItem", ...] = ()

    @property
    def label(self) -> str:
        return format_toc_label(self.type, self.identifier, self.title)


TocItem.model_rebuild()


def format_toc_label(node_type: str, identifier: str | None, title: str | None) -> str:
    if node_type in DASH_LABELS:
        prefix = DASH_LABELS[node_type]
        if identifier and title:
            return f"{prefix} {identifier} – {title}"
        return f"{prefix} {identifier}" if identifier else title or prefix
    if node_type == "section":
        if identifier and title:
            return f"{identifier}. {title}"
        return f"Section {identifier}" if identifier else title or "Section"
    if node_type == "article":
        if identifier and title:
            return f"Article {identifier}. {title}"
        return f"Article {identifier}" if identifier else title or "Article"
    if identifier and title:
        return f"{identifier}. {title}"
    return identifier or title or node_type


def build_toc(node: DocumentNode, depth: int = 0) -> list[TocItem]:
    """Navigable entries for the structural levels; other nodes are transparent."""
    node_type = (node.type or "").lower()
    if node_type in TOC_TYPES and (node.identifier or node.title):
        children = [item for child in node.children for item in build_toc(child, depth + 1)]
        return [
            TocItem(
                id=derive_node_id(node),
                type=node_type,
                identifier=node.identifier,
                title=node.title,
                depth=depth,
                children=tuple(children),
            )
        ]
    return [item for child in node.children for item in build_toc(child, depth)]


def flatten_toc(items: list[TocItem]) -> list[TocItem]:
    flat: list[TocItem] = []
    for item in items:
        flat.append(item)
        flat.extend(flatten_toc(list(item.children)))
    return flat


def toc_lines(items: list[TocItem]) -> list[str]:
    return [f"{'  ' * item.depth}{item.label}  #{item.id}" for item in flatten_toc(items)]
