"""
MILESTONES.md parsers.

Handles two document formats:
1. Table:   | Phase | Name | Status | Target | Stage |
            (or | Milestone | Status | Target | Description |)
2. Heading: ### M3: Name ✅   /   ### M4: Name (Current)

and derives overall checklist progress and per-stage progress from the
"## M<n>" milestone sections.
"""

import re

from shipgate.lib import constants
from shipgate.lib.mdtable import cell, find_table, resolve_columns
from shipgate.lib.types import (
    STAGE_ORDER,
    MilestoneEntry,
    ProgressInfo,
    Stage,
    StageProgressInfo,
)

HEADING_RE = re.compile(r'^###\s+(.+?):\s+(.+?)\s*$')
CURRENT_MARKER_RE = re.compile(r'\(current\)', re.IGNORECASE)
SECTION_RE = re.compile(r'^#{1,2}\s')
MILESTONE_SECTION_RE = re.compile(r'^##\s+M(\d+)\b', re.IGNORECASE)
CHECKED_RE = re.compile(r'- \[[xX]\]')
UNCHECKED_RE = re.compile(r'- \[ \]')

# Header synonyms -> column role
HEADER_ROLES = {
    "phase": "phase",
    "milestone": "phase",
    "name": "name",
    "description": "name",
    "status": "status",
    "stage": "stage",
}
MIN_RECOGNIZED_COLUMNS = 3

STATUS_SYNONYMS = {
    "done": constants.STATUS_COMPLETE,
    "complete": constants.STATUS_COMPLETE,
    "completed": constants.STATUS_COMPLETE,
    "in progress": constants.STATUS_IN_PROGRESS,
    "in-progress": constants.STATUS_IN_PROGRESS,
    "current": constants.STATUS_IN_PROGRESS,
    "planned": constants.STATUS_PLANNED,
    "not started": constants.STATUS_PLANNED,
    "todo": constants.STATUS_PLANNED,
}

MARK_STATUSES = [
    (constants.COMPLETE_MARKS, constants.STATUS_COMPLETE),
    (constants.MARK_IN_PROGRESS, constants.STATUS_IN_PROGRESS),
    (constants.MARK_PLANNED, constants.STATUS_PLANNED),
]


def normalize_status(raw: str) -> str:
    """Normalize a free-text status cell.

    Known synonyms map case-insensitively to COMPLETE / IN PROGRESS / PLANNED,
    decorative marks are stripped, anything else passes through as written.
    """
    cleaned = constants.DECORATIVE_MARKS_RE.sub("", raw).strip()
    if not cleaned:
        for marks, status in MARK_STATUSES:
            if any(mark in raw for mark in marks):
                return status
        return ""
    key = " ".join(cleaned.lower().split())
    return STATUS_SYNONYMS.get(key, cleaned)


def parse_stage(value: str) -> Stage | None:
    """Stage from an explicit Stage cell (case-insensitive), None if not MVP/V2/V3/V4."""
    try:
        return Stage(value.strip().upper())
    except ValueError:
        return None


def phase_index(label: str) -> int | None:
    """Numeric suffix of an "M<n>" phase label."""
    match = constants.PHASE_INDEX_RE.search(label)
    return int(match.group(1)) if match else None


def stage_for_index(index: int) -> Stage:
    """Fallback stage when a milestone has no explicit Stage."""
    if index <= 5:
        return Stage.MVP
    if index <= 7:
        return Stage.V2
    return Stage.V3


def percent(completed: int, total: int) -> int:
    """completed/total as a 0-100 integer, rounding halves up."""
    if total <= 0:
        return 0
    return (completed * 200 + total) // (2 * total)


def _accept_milestone_header(header: list[str]) -> bool:
    roles = {HEADER_ROLES[col] for col in header if col in HEADER_ROLES}
    return len(roles) >= MIN_RECOGNIZED_COLUMNS


def _parse_table_format(lines: list[str]) -> list[MilestoneEntry]:
    table = find_table(lines, _accept_milestone_header)
    if table is None:
        return []

    phase_idx, name_idx, status_idx, stage_idx = resolve_columns(table, [
        (("phase", "milestone"), 0),
        (("name", "description"), 1),
        (("status",), 2),
        (("stage",), None),
    ])

    entries = []
    for row in table.rows:
        stage = parse_stage(cell(row, stage_idx))
        entries.append(MilestoneEntry(
            phase=cell(row, phase_idx),
            name=cell(row, name_idx),
            status=normalize_status(cell(row, status_idx)),
            stage=stage,
        ))
    return entries


def _parse_heading_format(lines: list[str]) -> list[MilestoneEntry]:
    entries = []

    for line in lines:
        match = HEADING_RE.match(line.strip())
        if not match:
            continue

        phase, name = match.group(1), match.group(2)

        if any(mark in name for mark in constants.COMPLETE_MARKS):
            status = constants.STATUS_COMPLETE
        elif CURRENT_MARKER_RE.search(name):
            status = constants.STATUS_IN_PROGRESS
        else:
            status = constants.STATUS_PLANNED

        name = CURRENT_MARKER_RE.sub("", name)
        name = constants.DECORATIVE_MARKS_RE.sub("", name).strip()

        entries.append(MilestoneEntry(phase=phase, name=name, status=status))

    return entries


def parse_milestone_table(markdown: str) -> list[MilestoneEntry]:
    """Parse milestones, trying the table format before the heading format."""
    if not markdown:
        return []

    lines = markdown.splitlines()

    entries = _parse_table_format(lines)
    if entries:
        return entries

    return _parse_heading_format(lines)


def parse_progress(markdown: str, milestones: list[MilestoneEntry]) -> ProgressInfo:
    """Overall progress from checklist items across the whole document.

    Falls back to the share of COMPLETE milestones when there are no
    checklist items at all.
    """
    checked = len(CHECKED_RE.findall(markdown))
    unchecked = len(UNCHECKED_RE.findall(markdown))
    total = checked + unchecked

    if total > 0:
        return ProgressInfo(completed=checked, total=total, percent=percent(checked, total))

    if milestones:
        done = sum(1 for m in milestones if m.status == constants.STATUS_COMPLETE)
        return ProgressInfo(
            completed=done,
            total=len(milestones),
            percent=percent(done, len(milestones)),
        )

    return ProgressInfo()


def _explicit_stages(milestones: list[MilestoneEntry]) -> dict[int, Stage]:
    """Phase index -> stage, from rows carrying a valid Stage column."""
    mapping: dict[int, Stage] = {}
    for m in milestones:
        index = phase_index(m.phase)
        if m.stage is not None and index is not None and index not in mapping:
            mapping[index] = m.stage
    return mapping


def parse_stage_progress(markdown: str) -> list[StageProgressInfo]:
    """Checklist progress per stage, in canonical stage order.

    Each "## M<n>" section's checklist items count toward that milestone's
    stage: the explicit Stage column when the overview table has one,
    otherwise the M<n> index heuristic. Stages with no items are omitted.
    """
    if not markdown:
        return []

    lines = markdown.splitlines()
    explicit = _explicit_stages(parse_milestone_table(markdown))

    completed = {stage: 0 for stage in STAGE_ORDER}
    total = {stage: 0 for stage in STAGE_ORDER}
    current: Stage | None = None

    for line in lines:
        if SECTION_RE.match(line):
            match = MILESTONE_SECTION_RE.match(line)
            if match:
                index = int(match.group(1))
                current = explicit.get(index, stage_for_index(index))
            else:
                current = None
            continue

        if current is None:
            continue

        checked = len(CHECKED_RE.findall(line))
        unchecked = len(UNCHECKED_RE.findall(line))
        completed[current] += checked
        total[current] += checked + unchecked

    return [
        StageProgressInfo(
            stage=stage,
            completed=completed[stage],
            total=total[stage],
            percent=percent(completed[stage], total[stage]),
        )
        for stage in STAGE_ORDER
        if total[stage] > 0
    ]
