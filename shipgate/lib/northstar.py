"""
NORTH_STAR.md parser.

The vision is the first non-empty, non-heading line. An optional
"Out of Scope" section may hold an | Item | Rationale | Revisit | table.
"""

import re

from shipgate.lib.mdtable import cell, find_table, resolve_columns
from shipgate.lib.types import NorthStar, OutOfScopeEntry

OUT_OF_SCOPE_HEADING_RE = re.compile(r'^#+\s*Out of Scope\b', re.IGNORECASE)
OUT_OF_SCOPE_COLUMNS = {"item", "rationale", "revisit"}


def parse_vision(markdown: str) -> str | None:
    for line in markdown.splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            return stripped
    return None


def _accept_out_of_scope_header(header: list[str]) -> bool:
    return "item" in header and len(OUT_OF_SCOPE_COLUMNS.intersection(header)) >= 2


def parse_out_of_scope(markdown: str) -> list[OutOfScopeEntry]:
    """Parse the Out of Scope table, numbering entries from "1"."""
    lines = markdown.splitlines()

    start = next(
        (i for i, line in enumerate(lines) if OUT_OF_SCOPE_HEADING_RE.match(line.strip())),
        None,
    )
    if start is None:
        return []

    end = next(
        (i for i in range(start + 1, len(lines)) if lines[i].lstrip().startswith("#")),
        len(lines),
    )
    table = find_table(lines[start + 1:end], _accept_out_of_scope_header)
    if table is None:
        return []

    item_idx, rationale_idx, revisit_idx = resolve_columns(table, [
        (("item",), 0),
        (("rationale",), 1),
        (("revisit",), 2),
    ])

    return [
        OutOfScopeEntry(
            id=str(n),
            item=cell(row, item_idx),
            rationale=cell(row, rationale_idx),
            revisit=cell(row, revisit_idx),
        )
        for n, row in enumerate(table.rows, 1)
    ]


def parse_north_star(markdown: str) -> NorthStar:
    return NorthStar(
        vision=parse_vision(markdown),
        out_of_scope=parse_out_of_scope(markdown),
    )
