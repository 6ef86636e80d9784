from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

import structlog
from lxml import etree

from lexnav.core.tag_config import DEFAULT_TAG_CONFIG, TagConfig
from lexnav.parsing.document_models import (
    AmendmentType,
    DocumentHeader,
    DocumentNode,
    FootnoteEntry,
    FootnoteRef,
    HierarchicalDocument,
    StyledBlock,
    Table,
    TextFragment,
)

logger = structlog.get_logger()

AKN_NAMESPACE = "http://docs.oasis-open.org/legaldocml/ns/akn/3.0"

NODE_TYPE_ALIASES = {"attachment": "schedule"}
DOCUMENT_TAGS = frozenset({"act", "bill", "doc", "judgment", "debate", "statement"})


@dataclass
class _Style:
    bold: bool = False
    italic: bool = False
    superscript: bool = False
    amendment: Optional[AmendmentType] = None

    def with_tag(self, tag: str) -> "_Style":
        return _Style(
            bold=self.bold or tag == "b",
            italic=self.italic or tag == "i",
            superscript=self.superscript or tag == "sup",
            amendment={"ins": AmendmentType.INSERTION, "del": AmendmentType.REPEALED}.get(tag, self.amendment),
        )


@dataclass
class BuildState:
    footnotes: list[FootnoteEntry] = field(default_factory=list)


@dataclass
class _Content:
    blocks: list[list[TextFragment]] = field(default_factory=list)
    tables: list[Table] = field(default_factory=list)
    children: list[DocumentNode] = field(default_factory=list)


class AkomaNtosoTreeBuilder:
    def __init__(self, tag_config: TagConfig = DEFAULT_TAG_CONFIG) -> None:
        self.tag_config = tag_config

    def build(self, xml_tree: etree._ElementTree, document_id: str | None = None) -> HierarchicalDocument:
        root = xml_tree.getroot()
        document_element = self._document_element(root)
        state = BuildState()
        content = self._collect(document_element, state)

        text, styled_text = self._split_blocks(content.blocks)
        tree = DocumentNode(
            type=self._strip_ns(document_element.tag) if self._strip_ns(document_element.tag) != "akomaNtoso" else "document",
            text=text,
            styled_text=styled_text,
            tables=tuple(content.tables),
            children=tuple(content.children),
            footnotes=tuple(state.footnotes),
        )
        logger.info(
            "akn_tree_built",
            nodes=sum(1 for _ in tree.iter_nodes()),
            footnotes=len(state.footnotes),
        )
        return HierarchicalDocument(
            document_id=document_id,
            header=self._header(xml_tree),
            root=tree,
        )

    def parse_file(self, path: str, document_id: str | None = None) -> HierarchicalDocument:
        parser = etree.XMLParser(recover=True, huge_tree=True, remove_blank_text=False)
        return self.build(etree.parse(path, parser), document_id=document_id)

    # ---------------------------
    # STRUCTURE
    # ---------------------------

    def _document_element(self, root: etree._Element) -> etree._Element:
        if self._strip_ns(root.tag) != "akomaNtoso":
            return root
        for child in root:
            if isinstance(child.tag, str) and self._strip_ns(child.tag) in DOCUMENT_TAGS:
                return child
        return root

    def _build_node(self, element: etree._Element, state: BuildState) -> DocumentNode:
        tag = self._strip_ns(element.tag)
        content = self._collect(element, state)
        text, styled_text = self._split_blocks(content.blocks)
        return DocumentNode(
            type=NODE_TYPE_ALIASES.get(tag, tag),
            identifier=self._identifier(element),
            title=self._child_text(element, "heading"),
            akn_eid=element.get("eId") or element.get("id"),
            text=text,
            styled_text=styled_text,
            tables=tuple(content.tables),
            children=tuple(content.children),
        )

    def _collect(self, element: etree._Element, state: BuildState, content: _Content | None = None) -> _Content:
        content = content or _Content()
        for child in element:
            if not isinstance(child.tag, str):
                continue
            tag = self._strip_ns(child.tag)
            if tag in self.tag_config.metadata_tags or tag in {"num", "heading", "subheading"}:
                continue
            if tag in self.tag_config.structural_tags:
                content.children.append(self._build_node(child, state))
            elif tag == "table":
                content.tables.append(self._table(child))
            elif tag in self.tag_config.container_tags:
                self._collect(child, state, content)
            else:
                fragments = self._fragments(child, _Style(), state)
                if any(fragment.text.strip() or fragment.footnote_refs for fragment in fragments):
                    content.blocks.append(fragments)
        return content

    def _identifier(self, element: etree._Element) -> Optional[str]:
        raw = self._child_text(element, "num")
        if not raw:
            return None
        value = raw.strip().rstrip(".").strip()
        if value.startswith("(") and value.endswith(")"):
            value = value[1:-1].strip()
        return value or None

    def _child_text(self, element: etree._Element, tag: str) -> Optional[str]:
        for child in element:
            if isinstance(child.tag, str) and self._strip_ns(child.tag) == tag:
                text = self._normalize_whitespace("".join(child.itertext()))
                return text or None
        return None

    # ---------------------------
    # INLINE CONTENT
    # ---------------------------

    def _fragments(self, element: etree._Element, style: _Style, state: BuildState) -> list[TextFragment]:
        fragments: list[TextFragment] = []
        self._append_text(fragments, element.text, style)
        for child in element:
            if not isinstance(child.tag, str):
                self._append_text(fragments, child.tail, style)
                continue
            tag = self._strip_ns(child.tag)
            if tag == "authorialNote":
                self._attach_footnote(fragments, child, style, state)
            else:
                fragments.extend(self._fragments(child, style.with_tag(tag), state))
            self._append_text(fragments, child.tail, style)
        return fragments

    def _attach_footnote(
        self,
        fragments: list[TextFragment],
        note: etree._Element,
        style: _Style,
        state: BuildState,
    ) -> None:
        marker = note.get("marker") or str(len(state.footnotes) + 1)
        footnote_id = note.get("eId") or note.get("id") or f"fn_{len(state.footnotes) + 1}"
        state.footnotes.append(
            FootnoteEntry(
                footnote_id=footnote_id,
                marker=marker,
                content=self._normalize_whitespace("".join(note.itertext())),
                amending_act_title=note.get("source") or None,
            )
        )
        ref = FootnoteRef(marker=marker, footnote_id=footnote_id)
        if fragments:
            last = fragments[-1]
            fragments[-1] = last.model_copy(update={"footnote_refs": last.footnote_refs + (ref,)})
        else:
            fragments.append(self._fragment("", style, refs=(ref,)))

    def _append_text(self, fragments: list[TextFragment], text: str | None, style: _Style) -> None:
        if not text:
            return
        text = re.sub(r"\s+", " ", text)
        if fragments and not fragments[-1].footnote_refs and self._same_style(fragments[-1], style):
            last = fragments[-1]
            fragments[-1] = last.model_copy(update={"text": last.text + text})
            return
        fragments.append(self._fragment(text, style))

    def _fragment(self, text: str, style: _Style, refs: tuple[FootnoteRef, ...] = ()) -> TextFragment:
        styles = {name for name, flag in (("bold", style.bold), ("italic", style.italic)) if flag}
        return TextFragment(
            text=text,
            styles=styles,
            amendment=style.amendment,
            is_superscript=style.superscript,
            footnote_refs=refs,
        )

    def _same_style(self, fragment: TextFragment, style: _Style) -> bool:
        return (
            fragment.bold == style.bold
            and fragment.italic == style.italic
            and fragment.is_superscript == style.superscript
            and fragment.amendment == style.amendment
        )

    def _split_blocks(self, blocks: list[list[TextFragment]]) -> tuple[tuple[str, ...], tuple[StyledBlock, ...]]:
        cleaned = [self._trim_block(block) for block in blocks]
        cleaned = [block for block in cleaned if block]
        if any(self._is_styled(fragment) for block in cleaned for fragment in block):
            return (), tuple(StyledBlock(fragments=tuple(block)) for block in cleaned)
        return tuple("".join(fragment.text for fragment in block) for block in cleaned), ()

    def _trim_block(self, block: list[TextFragment]) -> list[TextFragment]:
        if not block:
            return block
        block = list(block)
        block[0] = block[0].model_copy(update={"text": block[0].text.lstrip()})
        block[-1] = block[-1].model_copy(update={"text": block[-1].text.rstrip()})
        return [fragment for fragment in block if fragment.text or fragment.footnote_refs]

    def _is_styled(self, fragment: TextFragment) -> bool:
        return bool(fragment.styles or fragment.amendment or fragment.is_superscript or fragment.footnote_refs)

    # ---------------------------
    # TABLES & HEADER
    # ---------------------------

    def _table(self, element: etree._Element) -> Table:
        rows: list[tuple[str, ...]] = []
        header_rows: set[int] = set()
        for tr in element.iter():
            if not isinstance(tr.tag, str) or self._strip_ns(tr.tag) != "tr":
                continue
            cells = [
                cell
                for cell in tr
                if isinstance(cell.tag, str) and self._strip_ns(cell.tag) in {"th", "td"}
            ]
            if cells and all(self._strip_ns(cell.tag) == "th" for cell in cells):
                header_rows.add(len(rows))
            rows.append(tuple(self._normalize_whitespace("".join(cell.itertext())) for cell in cells))
        return Table(rows=rows, header_rows=header_rows, identifier=element.get("eId") or element.get("id"))

    def _header(self, tree: etree._ElementTree) -> DocumentHeader:
        work_date = self._xpath_text(tree, "//*[local-name()='FRBRWork']/*[local-name()='FRBRdate']/@date")
        year = work_date[:4] if work_date and work_date[:4].isdigit() else None
        return DocumentHeader(
            title=(
                self._xpath_text(tree, "//*[local-name()='FRBRWork']/*[local-name()='FRBRalias'][@name='title']/@value")
                or self._xpath_text(tree, "//*[local-name()='docTitle']")
                or self._xpath_text(tree, "//*[local-name()='longTitle']")
            ),
            short_title=self._xpath_text(
                tree, "//*[local-name()='FRBRWork']/*[local-name()='FRBRalias'][@name='short title']/@value"
            ),
            jurisdiction=self._xpath_text(tree, "//*[local-name()='FRBRcountry']/@value"),
            chapter=self._xpath_text(tree, "//*[local-name()='FRBRWork']/*[local-name()='FRBRnumber']/@value"),
            publication_date=self._xpath_text(tree, "//*[local-name()='publication']/@date"),
            commencement_date=self._xpath_text(
                tree, "//*[local-name()='eventRef'][@type='generation' or @refersTo='#commencement']/@date"
            ),
            act_year=int(year) if year else None,
        )

    def _xpath_text(self, tree: etree._ElementTree, xpath: str) -> Optional[str]:
        result = tree.xpath(xpath)
        if not result:
            return None
        if isinstance(result[0], str):
            return str(result[0]).strip() or None
        return self._normalize_whitespace("".join(result[0].itertext())) or None

    def _strip_ns(self, tag: str) -> str:
        return tag.split("}")[-1]

    def _normalize_whitespace(self, text: str) -> str:
        text = re.sub(r"[\x00-\x1f\x7f]", " ", text)
        text = re.sub(r"\s+", " ", text)
        text = re.sub(r"\s+([\.,;:])", r"\1", text)
        return text.strip()
