"""Shared constants for shipgate."""

import re

# Timeout for GitHub REST calls (seconds)
GH_TIMEOUT_SECONDS = 30

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_DOCS_REF = "sandbox"
DEFAULT_REFRESH_INTERVAL_SECONDS = 60.0

# Repository-relative document paths
NORTH_STAR_PATH = "docs/NORTH_STAR.md"
MILESTONES_PATH = "docs/MILESTONES.md"
HANDOFF_PATH = ".agent/HANDOFF.md"

# A healthy repo has exactly main + one working branch
EXPECTED_BRANCH_COUNT = 2

# Normalized milestone statuses
STATUS_COMPLETE = "COMPLETE"
STATUS_IN_PROGRESS = "IN PROGRESS"
STATUS_PLANNED = "PLANNED"

# Decorative marks stripped from status cells and heading names
COMPLETE_MARKS = "✅✔☑"      # any check mark reads as done
MARK_IN_PROGRESS = "\U0001f6a7"  # construction sign
MARK_PLANNED = "⬜"         # white large square
DECORATIVE_MARKS_RE = re.compile(
    "[✅✔☑\U0001f6a7⬜⏳❌\U0001f7e2\U0001f7e1\U0001f534️]"
)

# Milestone phase labels like "M0", "M12"
PHASE_INDEX_RE = re.compile(r'\bM(\d+)\b', re.IGNORECASE)
