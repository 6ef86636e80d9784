from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from lexnav.parsing.document_models import (
    AmendmentType,
    DocumentNode,
    FootnoteEntry,
    FootnoteRef,
    StyledBlock,
    TextFragment,
)


@dataclass(frozen=True)
class FragmentStyle:
    bold: bool = False
    italic: bool = False
    muted: bool = False
    strikethrough: bool = False
    muted_background: bool = False
    superscript: bool = False
    color: Optional[str] = None

    def merge(self, other: "FragmentStyle") -> "FragmentStyle":
        return FragmentStyle(
            bold=self.bold or other.bold,
            italic=self.italic or other.italic,
            muted=self.muted or other.muted,
            strikethrough=self.strikethrough or other.strikethrough,
            muted_background=self.muted_background or other.muted_background,
            superscript=self.superscript or other.superscript,
            color=other.color or self.color,
        )

    def css_classes(self) -> list[str]:
        classes = []
        if self.bold:
            classes.append("font-bold")
        if self.italic:
            classes.append("italic")
        if self.muted:
            classes.append("text-muted")
        if self.strikethrough:
            classes.append("line-through")
        if self.muted_background:
            classes.append("bg-muted")
        if self.superscript:
            classes.append("superscript")
        return classes


NO_STYLE = FragmentStyle()

AMENDMENT_STYLES: dict[AmendmentType, FragmentStyle] = {
    AmendmentType.ACTIVE: NO_STYLE,
    AmendmentType.INSERTION: FragmentStyle(bold=True, italic=True),
    AmendmentType.REPEALED: FragmentStyle(italic=True, muted=True, strikethrough=True),
    AmendmentType.SUBSTITUTED_OLD: FragmentStyle(muted=True, muted_background=True),
    AmendmentType.SUBSTITUTED_NEW: FragmentStyle(bold=True),
}


class FootnoteMarker(BaseModel):
    model_config = ConfigDict(frozen=True)

    marker: str
    footnote_id: str
    tooltip: str


class RenderedFragment(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    classes: tuple[str, ...] = ()
    color: Optional[str] = None
    footnotes: tuple[FootnoteMarker, ...] = ()


class RenderedFootnote(BaseModel):
    model_config = ConfigDict(frozen=True)

    footnote_id: str
    marker: str
    content: str
    attribution: Optional[str] = None


Block = Union[str, StyledBlock]


def amendment_style(amendment: AmendmentType | None) -> FragmentStyle:
    if amendment is None:
        return NO_STYLE
    return AMENDMENT_STYLES[amendment]


def fragment_style(fragment: TextFragment) -> FragmentStyle:
    own = FragmentStyle(
        bold=fragment.bold,
        italic=fragment.italic,
        superscript=fragment.is_superscript,
        color=fragment.color,
    )
    return own.merge(amendment_style(fragment.amendment))


def css_classes(fragment: TextFragment) -> list[str]:
    return fragment_style(fragment).css_classes()


def footnote_marker(ref: FootnoteRef) -> FootnoteMarker:
    return FootnoteMarker(marker=ref.marker, footnote_id=ref.footnote_id, tooltip=f"Footnote {ref.marker}")


def render_fragment(fragment: TextFragment) -> RenderedFragment:
    style = fragment_style(fragment)
    return RenderedFragment(
        text=fragment.text,
        classes=tuple(style.css_classes()),
        color=style.color,
        footnotes=tuple(footnote_marker(ref) for ref in fragment.footnote_refs),
    )


def node_blocks(node: DocumentNode) -> list[Block]:
    """Styled blocks win over plain text; a node never shows both."""
    if node.styled_text:
        return list(node.styled_text)
    if node.text:
        return list(node.text)
    return []


def render_footnotes(footnotes: tuple[FootnoteEntry, ...]) -> list[RenderedFootnote]:
    rendered = []
    seen: set[str] = set()
    for note in footnotes:
        if note.footnote_id in seen:
            continue
        seen.add(note.footnote_id)
        rendered.append(
            RenderedFootnote(
                footnote_id=note.footnote_id,
                marker=note.marker,
                content=note.content,
                attribution=f"[{note.amending_act_title}]" if note.amending_act_title else None,
            )
        )
    return rendered
