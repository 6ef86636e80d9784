from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from lexnav.core.exceptions import AmbiguousTableText
from lexnav.parsing.document_models import Table

MIN_PIPES = 2
MIN_ROWS = 2

NUMBERED_ROW_PATTERN = re.compile(r"\d+\.?\s*\|")
# "1. text | ...", "1. | ..." or "1 | ..."
BARE_NUMBER_PREFIX_PATTERN = re.compile(r"^\s*\d+(?:\.(?:\s|\||$)|\s*(?:\||$))")
NUMBERED_TABLE_ROW_PATTERN = re.compile(r"\d+\.\s*\|")


@dataclass(frozen=True)
class TableShape:
    is_table: bool
    row_count: int = 0
    column_count: int = 0
    has_header: bool = False

    def summary(self) -> str:
        if not self.is_table:
            return ""
        rows = "row" if self.row_count == 1 else "rows"
        columns = "column" if self.column_count == 1 else "columns"
        return f"Table: {self.row_count} {rows} × {self.column_count} {columns}"


NOT_A_TABLE = TableShape(is_table=False)


class RenderedRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    cells: tuple[str, ...]
    is_header: bool


class RenderedTable(BaseModel):
    model_config = ConfigDict(frozen=True)

    identifier: Optional[str] = None
    page: Optional[int] = None
    rows: tuple[RenderedRow, ...] = ()

    @property
    def header(self) -> list[RenderedRow]:
        return [row for row in self.rows if row.is_header]

    @property
    def body(self) -> list[RenderedRow]:
        return [row for row in self.rows if not row.is_header]


class ExcerptPresentation(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: Literal["structured", "pipe_table", "preformatted"]
    tables: tuple[Table, ...] = ()
    text: str = ""


# ---------------------------
# STRUCTURED TABLES
# ---------------------------

def render_table(table: Table) -> RenderedTable:
    return RenderedTable(
        identifier=table.identifier,
        page=table.page,
        rows=tuple(
            RenderedRow(cells=row, is_header=index in table.header_rows)
            for index, row in enumerate(table.rows)
        ),
    )


def table_to_markdown(table: Table) -> list[str]:
    if not table.rows:
        return []
    clean_rows = []
    for row in table.rows:
        if not row:
            continue
        clean_rows.append([cell.replace("\n", "<br>").strip() for cell in row])
    if not clean_rows:
        return []
    width = max(len(row) for row in clean_rows)
    clean_rows = [row + [""] * (width - len(row)) for row in clean_rows]

    header_indices = sorted(index for index in table.header_rows if index < len(clean_rows))
    if header_indices:
        header = clean_rows[header_indices[0]]
        body = [row for index, row in enumerate(clean_rows) if index != header_indices[0]]
    else:
        header = [""] * width
        body = clean_rows

    separator = ["---" for _ in header]
    md_lines = ["| " + " | ".join(header) + " |", "| " + " | ".join(separator) + " |"]
    for row in body:
        md_lines.append("| " + " | ".join(row) + " |")
    return md_lines


# ---------------------------
# HEURISTIC DETECTION
# ---------------------------

def detect_table(text: str | None) -> TableShape:
    if not text:
        return NOT_A_TABLE
    pipe_count = text.count("|")
    if pipe_count < MIN_PIPES:
        return NOT_A_TABLE

    lines = _pipe_lines(text)
    if len(lines) >= MIN_ROWS:
        return TableShape(
            is_table=True,
            row_count=len(lines),
            column_count=len(_split_cells(lines[0])),
            has_header=not BARE_NUMBER_PREFIX_PATTERN.match(lines[0]),
        )

    numbered = NUMBERED_ROW_PATTERN.findall(text)
    if len(numbered) >= MIN_ROWS:
        avg_pipes_per_row = pipe_count / len(numbered)
        return TableShape(
            is_table=True,
            row_count=len(numbered),
            column_count=round(avg_pipes_per_row) + 1,
            has_header=False,
        )

    return NOT_A_TABLE


def parse_pipe_table(text: str) -> Table:
    """Split line-based pipe text into a table; raises AmbiguousTableText otherwise."""
    lines = _pipe_lines(text)
    if len(lines) < MIN_ROWS:
        raise AmbiguousTableText(f"{text.count('|')} pipes but {len(lines)} decomposable rows")
    rows = [tuple(_split_cells(line)) for line in lines]
    header_rows = frozenset() if BARE_NUMBER_PREFIX_PATTERN.match(lines[0]) else frozenset({0})
    return Table(rows=rows, header_rows=header_rows)


def looks_like_table_data(excerpt: str) -> bool:
    lowered = excerpt.lower()
    return (
        "|" in excerpt
        or "[schedule" in lowered
        or "table columns:" in lowered
        or bool(NUMBERED_TABLE_ROW_PATTERN.search(excerpt))
    )


def choose_presentation(excerpt: str, expanded_tables: Sequence[Table] = ()) -> ExcerptPresentation:
    tables = tuple(table for table in expanded_tables if table.rows)
    if tables:
        return ExcerptPresentation(mode="structured", tables=tables, text=excerpt)
    if detect_table(excerpt).is_table:
        try:
            table = parse_pipe_table(excerpt)
        except AmbiguousTableText:
            return ExcerptPresentation(mode="preformatted", text=excerpt)
        return ExcerptPresentation(mode="pipe_table", tables=(table,), text=excerpt)
    return ExcerptPresentation(mode="preformatted", text=excerpt)


def _pipe_lines(text: str) -> list[str]:
    return [
        line
        for line in text.split("\n")
        if line.strip() and "|" in line and len(_split_cells(line)) >= 2
    ]


def _split_cells(line: str) -> list[str]:
    return [cell.strip() for cell in line.split("|") if cell.strip()]
