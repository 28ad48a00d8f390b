"""
Pipe-table scanning for loosely structured markdown.

A table is a run of lines starting with '|'. The header row is the first
such row whose column names the caller recognizes; separator rows (|---|)
are skipped, and the table ends at the first line that isn't a pipe row.
"""

import re
from dataclasses import dataclass, field
from typing import Callable

SEPARATOR_CELL_RE = re.compile(r'^:?-+:?$')


@dataclass
class Table:
    header: list[str]  # lower-cased column names
    rows: list[list[str]] = field(default_factory=list)

    def column(self, *names: str) -> int | None:
        """Index of the first column matching any of names, or None."""
        for i, col in enumerate(self.header):
            if col in names:
                return i
        return None


def split_row(line: str) -> list[str]:
    """Split a pipe row into stripped cells, keeping empty cells in position."""
    text = line.strip()
    if text.startswith('|'):
        text = text[1:]
    if text.endswith('|'):
        text = text[:-1]
    return [cell.strip() for cell in text.split('|')]


def is_separator(cells: list[str]) -> bool:
    non_empty = [c for c in cells if c]
    return bool(non_empty) and all(SEPARATOR_CELL_RE.match(c) for c in non_empty)


def find_table(lines: list[str], accept_header: Callable[[list[str]], bool]) -> Table | None:
    """Return the first table whose header row accept_header() accepts."""
    table = None

    for line in lines:
        stripped = line.strip()
        is_pipe = stripped.startswith('|')

        if table is None:
            if not is_pipe:
                continue
            cells = split_row(stripped)
            if is_separator(cells):
                continue
            header = [c.lower() for c in cells]
            if accept_header(header):
                table = Table(header=header)
            continue

        if not is_pipe:
            break
        cells = split_row(stripped)
        if is_separator(cells):
            continue
        if sum(1 for c in cells if c) < 2:
            continue
        table.rows.append(cells)

    return table


def resolve_columns(table: Table, roles: list[tuple[tuple[str, ...], int | None]]) -> list[int | None]:
    """Column index per (names, fallback) role.

    A role missing from the header falls back to its positional index, unless
    another role already owns that column.
    """
    found = [table.column(*names) for names, _ in roles]
    claimed = {i for i in found if i is not None}
    return [
        i if i is not None else (None if fallback in claimed else fallback)
        for i, (_, fallback) in zip(found, roles)
    ]


def cell(row: list[str], index: int | None) -> str:
    """Cell at index, '' when the column is unresolved or the row is short."""
    if index is None:
        return ""
    return row[index] if 0 <= index < len(row) else ""
