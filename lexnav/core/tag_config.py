from __future__ import annotations
from dataclasses import dataclass

@dataclass(frozen=True)
class TagConfig:
    structural_tags: frozenset[str]
    container_tags: frozenset[str]
    block_tags: frozenset[str]
    inline_tags: frozenset[str]
    metadata_tags: frozenset[str]

# Akoma Ntoso tags mapped onto the document tree
DEFAULT_TAG_CONFIG = TagConfig(
    structural_tags=frozenset({
        # each becomes a DocumentNode of the same type
        "part", "chapter", "division", "section", "subsection", "paragraph",
        "subparagraph", "article", "attachment", "schedule",
    }),
    container_tags=frozenset({
        # walked through, never a node of their own
        "akomaNtoso", "act", "doc", "judgment", "body", "mainBody", "attachments",
        "hcontainer", "content", "intro", "wrapUp", "wrapup", "blockList", "list",
        "item", "point",
    }),
    block_tags=frozenset({
        # one text block each
        "p", "longTitle", "preamble",
    }),
    inline_tags=frozenset({
        "b", "i", "u", "sup", "sub", "ins", "del", "ref", "span", "term", "def",
        "docTitle", "date", "authorialNote",
    }),
    metadata_tags=frozenset({
        "meta", "identification", "publication", "classification", "lifecycle",
        "analysis", "references", "proprietary", "notes", "FRBRWork",
        "FRBRExpression", "FRBRManifestation",
    }),
)
