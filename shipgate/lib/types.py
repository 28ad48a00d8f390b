"""
Shared data types for shipgate.

Every record here is rebuilt from scratch on each refresh cycle and never
mutated afterwards, so the dataclasses are frozen.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class Stage(Enum):
    """Release scope buckets, in canonical order."""
    MVP = "MVP"
    V2 = "V2"
    V3 = "V3"
    V4 = "V4"


STAGE_ORDER = [Stage.MVP, Stage.V2, Stage.V3, Stage.V4]


class ShipGateStatus(Enum):
    BUILDING = "building"
    SHIP_IT = "ship_it"
    SHIP_AND_BUILD = "ship_and_build"
    SCOPE_CREEP = "scope_creep"


class Mergeable(Enum):
    MERGEABLE = "MERGEABLE"
    CONFLICTING = "CONFLICTING"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class TrackedProject:
    """One repository configured for monitoring."""
    repo: str  # "name" or "owner/name"
    display_name: str
    description: str = ""


@dataclass(frozen=True)
class BranchInfo:
    names: list[str] = field(default_factory=list)
    count: int = 0
    is_healthy: bool = False


@dataclass(frozen=True)
class PullRequestInfo:
    number: int
    title: str
    head_ref: str
    base_ref: str
    mergeable: Mergeable
    author: str
    updated_at: str
    url: str


@dataclass(frozen=True)
class CommitInfo:
    sha: str
    message: str
    date: str
    author: str


@dataclass(frozen=True)
class MilestoneEntry:
    phase: str
    name: str
    status: str  # COMPLETE, IN PROGRESS, PLANNED, or passed through as written
    stage: Stage | None = None


@dataclass(frozen=True)
class ProgressInfo:
    completed: int = 0
    total: int = 0
    percent: int = 0  # 0-100


@dataclass(frozen=True)
class StageProgressInfo:
    stage: Stage
    completed: int
    total: int
    percent: int


@dataclass(frozen=True)
class ShipGate:
    """Readiness classification for one project."""
    status: ShipGateStatus
    current_stage: Stage
    stage_progress: list[StageProgressInfo] = field(default_factory=list)
    alert: str | None = None


@dataclass(frozen=True)
class OutOfScopeEntry:
    id: str  # "1", "2", ... in table order
    item: str
    rationale: str
    revisit: str


@dataclass(frozen=True)
class NorthStar:
    """Parsed vision document."""
    vision: str | None
    out_of_scope: list[OutOfScopeEntry] = field(default_factory=list)


@dataclass(frozen=True)
class SessionHandoff:
    what_was_done: str = ""
    current_state: str = ""
    next_step: str = ""
    blockers: str = ""


@dataclass(frozen=True)
class ProjectStatus:
    """Aggregate status for one tracked project, keyed by repo in batch results."""
    repo: str
    display_name: str
    description: str
    fetched_at: datetime
    branches: BranchInfo = field(default_factory=BranchInfo)
    open_prs: list[PullRequestInfo] = field(default_factory=list)
    latest_commit: CommitInfo | None = None
    milestones: list[MilestoneEntry] = field(default_factory=list)
    progress: ProgressInfo = field(default_factory=ProgressInfo)
    stage_progress: list[StageProgressInfo] = field(default_factory=list)
    ship_gate: ShipGate | None = None
    north_star: str | None = None
    out_of_scope: list[OutOfScopeEntry] = field(default_factory=list)
    session: SessionHandoff | None = None
    error: str | None = None


def _json_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _json_factory(items: list[tuple[str, Any]]) -> dict:
    return {key: _json_value(value) for key, value in items}


def status_to_dict(status: ProjectStatus) -> dict:
    """Convert a ProjectStatus to a JSON-serializable dict."""
    return asdict(status, dict_factory=_json_factory)
