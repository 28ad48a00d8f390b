"""
HANDOFF.md parser.

A handoff is a session summary split into "## " sections. Only the four
canonical sections are read; other headings are ignored.
"""

from shipgate.lib.types import SessionHandoff

SECTION_FIELDS = {
    "What Was Done": "what_was_done",
    "Current State": "current_state",
    "Next Step": "next_step",
    "Blockers": "blockers",
}


def split_sections(markdown: str) -> dict[str, str]:
    """Map each "## " heading to the trimmed text below it, up to the next one."""
    sections: dict[str, str] = {}
    current: str | None = None
    body: list[str] = []

    for line in markdown.splitlines():
        if line.startswith("## "):
            if current is not None:
                sections[current] = "\n".join(body).strip()
            current = line[3:].strip()
            body = []
        elif current is not None:
            body.append(line)

    if current is not None:
        sections[current] = "\n".join(body).strip()

    return sections


def parse_handoff(markdown: str) -> SessionHandoff:
    """Parse a handoff document. Absent sections come back as empty strings."""
    sections = split_sections(markdown)
    return SessionHandoff(**{
        field: sections.get(heading, "")
        for heading, field in SECTION_FIELDS.items()
    })
