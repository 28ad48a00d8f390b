"""Tests for the handoff, north-star and pipe-table parsers."""

from shipgate.lib.handoff import parse_handoff, split_sections
from shipgate.lib.mdtable import cell, find_table, is_separator, resolve_columns, split_row
from shipgate.lib.northstar import parse_north_star, parse_out_of_scope, parse_vision
from shipgate.lib.types import OutOfScopeEntry, SessionHandoff


class TestSplitRow:
    """Test pipe-row splitting."""

    def test_strips_outer_pipes_and_whitespace(self):
        assert split_row("| a | b |c|") == ["a", "b", "c"]

    def test_keeps_empty_cells_in_position(self):
        assert split_row("| a |  | c |") == ["a", "", "c"]

    def test_separator_detection(self):
        assert is_separator(split_row("|---|:---:|---:|"))
        assert not is_separator(split_row("| a | --- |"))
        assert not is_separator(["", ""])


class TestFindTable:
    """Test find_table function."""

    def test_returns_none_without_accepted_header(self):
        lines = ["| x | y |", "|---|---|", "| 1 | 2 |"]
        assert find_table(lines, lambda header: "name" in header) is None

    def test_skips_rows_with_fewer_than_two_cells(self):
        lines = ["| name | value |", "|---|---|", "| only |  |", "| a | b |"]
        table = find_table(lines, lambda header: "name" in header)
        assert table.rows == [["a", "b"]]

    def test_column_lookup(self):
        table = find_table(["| Name | Value |"], lambda header: True)
        assert table.column("value") == 1
        assert table.column("missing") is None

    def test_cell(self):
        row = ["a", "b"]
        assert cell(row, 1) == "b"
        assert cell(row, None) == ""
        assert cell(row, 5) == ""

    def test_resolve_columns_uses_unclaimed_fallback(self):
        table = find_table(["| key | value |"], lambda header: True)
        assert resolve_columns(table, [(("id",), 2), (("value",), 0)]) == [2, 1]

    def test_resolve_columns_skips_claimed_fallback(self):
        table = find_table(["| name | status |"], lambda header: True)
        roles = [(("phase",), 0), (("name",), 1), (("status",), 2), (("stage",), None)]
        assert resolve_columns(table, roles) == [None, 0, 1, None]


class TestParseHandoff:
    """Test parse_handoff function."""

    def test_all_sections(self):
        markdown = """# Session Handoff

## What Was Done
Built the parser.

## Current State
Tests pass.

## Next Step
Wire up the CLI.
Then docs.

## Blockers
None
"""
        assert parse_handoff(markdown) == SessionHandoff(
            what_was_done="Built the parser.",
            current_state="Tests pass.",
            next_step="Wire up the CLI.\nThen docs.",
            blockers="None",
        )

    def test_missing_sections_are_empty(self):
        result = parse_handoff("## Next Step\nShip it\n")
        assert result.next_step == "Ship it"
        assert result.what_was_done == ""
        assert result.blockers == ""

    def test_unknown_headings_ignored(self):
        result = parse_handoff("## Random\nstuff\n## Blockers\nCI is red\n")
        assert result.blockers == "CI is red"
        assert result.current_state == ""

    def test_text_before_first_heading_ignored(self):
        assert split_sections("preamble\n## A\nbody\n") == {"A": "body"}

    def test_empty_document(self):
        assert parse_handoff("") == SessionHandoff()


class TestParseNorthStar:
    """Test vision and out-of-scope parsing."""

    def test_vision_is_first_non_heading_line(self):
        markdown = "# North Star\n\n  Make shipping boring.  \n\nMore text.\n"
        assert parse_vision(markdown) == "Make shipping boring."

    def test_vision_absent(self):
        assert parse_vision("# Title\n## Sub\n") is None

    def test_out_of_scope_table(self):
        markdown = """# North Star

Ship small tools.

## Out of Scope

| Item | Rationale | Revisit |
|------|-----------|---------|
| Mobile app | No users yet | V3 |
| SSO | Overkill | Never |
"""
        assert parse_out_of_scope(markdown) == [
            OutOfScopeEntry(id="1", item="Mobile app", rationale="No users yet", revisit="V3"),
            OutOfScopeEntry(id="2", item="SSO", rationale="Overkill", revisit="Never"),
        ]

    def test_no_out_of_scope_heading(self):
        markdown = "Vision\n\n| Item | Rationale | Revisit |\n|---|---|---|\n| a | b | c |\n"
        assert parse_out_of_scope(markdown) == []

    def test_table_under_later_heading_not_used(self):
        markdown = """## Out of Scope
Nothing yet.

## Ideas
| Item | Rationale | Revisit |
|---|---|---|
| a | b | c |
"""
        assert parse_out_of_scope(markdown) == []

    def test_missing_rationale_column_is_empty(self):
        markdown = "## Out of Scope\n| Item | Revisit |\n|---|---|\n| Plugins | V3 |\n"
        assert parse_out_of_scope(markdown) == [
            OutOfScopeEntry(id="1", item="Plugins", rationale="", revisit="V3"),
        ]

    def test_parse_north_star_combines(self):
        result = parse_north_star("Vision line\n")
        assert result.vision == "Vision line"
        assert result.out_of_scope == []
