"""
shipgate status - One-shot refresh of every tracked project.
"""

import asyncio
import json

from shipgate.lib.config import EngineConfig
from shipgate.lib.github import GitHubClient
from shipgate.lib.types import ProjectStatus, ShipGateStatus, TrackedProject, status_to_dict
from shipgate.workflow.batch import fetch_all_projects

GATE_SYMBOLS = {
    ShipGateStatus.BUILDING: "~",
    ShipGateStatus.SHIP_IT: "*",
    ShipGateStatus.SHIP_AND_BUILD: "+",
    ShipGateStatus.SCOPE_CREEP: "!",
}


def format_status_lines(status: ProjectStatus) -> list[str]:
    """Format one project's status for terminal display."""
    gate = status.ship_gate
    if gate:
        symbol = GATE_SYMBOLS.get(gate.status, "?")
        headline = f"[{symbol}] {status.display_name:<28} {gate.status.value:<15} {gate.current_stage.value}"
    else:
        headline = f"[ ] {status.display_name:<28} {'no milestones':<15}"

    branches = status.branches
    health = "ok" if branches.is_healthy else "check"
    lines = [
        headline,
        f"      repo: {status.repo}  branches: {branches.count} ({health})  open PRs: {len(status.open_prs)}",
    ]

    if status.progress.total:
        lines.append(
            f"      progress: {status.progress.completed}/{status.progress.total} ({status.progress.percent}%)"
        )
    for stage in status.stage_progress:
        lines.append(f"        {stage.stage.value:<4} {stage.completed}/{stage.total} ({stage.percent}%)")
    if gate and gate.alert:
        lines.append(f"      {gate.alert}")
    if status.latest_commit:
        message = status.latest_commit.message.splitlines()[0] if status.latest_commit.message else ""
        message = message[:50] + "..." if len(message) > 50 else message
        lines.append(f"      last commit: {status.latest_commit.sha[:7]} {message}")
    if status.session and status.session.next_step:
        lines.append(f"      next: {status.session.next_step.splitlines()[0]}")
    if status.error:
        lines.append(f"      ERROR: {status.error}")
    return lines


def print_statuses(statuses: dict[str, ProjectStatus]) -> None:
    print("Projects")
    print("-" * 60)
    for status in statuses.values():
        for line in format_status_lines(status):
            print(line)
    print()


async def _fetch(config: EngineConfig, projects: list[TrackedProject]) -> dict[str, ProjectStatus]:
    async with GitHubClient(
        owner=config.owner,
        token=config.token,
        api_url=config.api_url,
        timeout=config.request_timeout,
    ) as client:
        return await fetch_all_projects(client, projects, config)


def cmd_status(args, config: EngineConfig, projects: list[TrackedProject]) -> int:
    """Fetch and print status for all tracked projects.

    Returns 1 when any project reported an error.
    """
    if not projects:
        print("No tracked projects configured.")
        return 0

    statuses = asyncio.run(_fetch(config, projects))

    if getattr(args, "json", False):
        print(json.dumps({repo: status_to_dict(s) for repo, s in statuses.items()}, indent=2))
    else:
        print_statuses(statuses)

    return 1 if any(s.error for s in statuses.values()) else 0
