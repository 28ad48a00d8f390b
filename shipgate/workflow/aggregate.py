"""Project aggregation.

Builds one ProjectStatus per tracked project from six independent GitHub
reads: branches, open PRs, latest commit, and the north-star, milestones
and handoff documents. The reads run concurrently, and any subset may fail:
failures become defaults plus an entry in the project's error string.
fetch_project_status() never raises.
"""

import asyncio
import logging
from datetime import datetime, timezone

from shipgate.lib.config import EngineConfig
from shipgate.lib.gate import compute_ship_gate
from shipgate.lib.github import GitHubClient
from shipgate.lib.handoff import parse_handoff
from shipgate.lib.milestones import parse_milestone_table, parse_progress, parse_stage_progress
from shipgate.lib.northstar import parse_north_star
from shipgate.lib.outcome import settle, value_or
from shipgate.lib.types import BranchInfo, ProjectStatus, TrackedProject

logger = logging.getLogger(__name__)


def empty_project_status(project: TrackedProject, error: str | None = None) -> ProjectStatus:
    """All-empty status for a project, carrying only identity and an error."""
    return ProjectStatus(
        repo=project.repo,
        display_name=project.display_name,
        description=project.description,
        fetched_at=datetime.now(timezone.utc),
        error=error,
    )


def derive_documents(
    north_star_md: str | None,
    milestones_md: str | None,
    handoff_md: str | None,
) -> dict:
    """Run the document parsers over whatever was retrieved.

    Absent documents leave their fields at the ProjectStatus defaults.
    """
    fields: dict = {}

    if north_star_md:
        north_star = parse_north_star(north_star_md)
        fields["north_star"] = north_star.vision
        fields["out_of_scope"] = north_star.out_of_scope

    if milestones_md:
        milestones = parse_milestone_table(milestones_md)
        stage_progress = parse_stage_progress(milestones_md)
        fields["milestones"] = milestones
        fields["progress"] = parse_progress(milestones_md, milestones)
        fields["stage_progress"] = stage_progress
        fields["ship_gate"] = compute_ship_gate(stage_progress)

    if handoff_md:
        fields["session"] = parse_handoff(handoff_md)

    return fields


async def fetch_project_status(
    client: GitHubClient,
    project: TrackedProject,
    config: EngineConfig | None = None,
) -> ProjectStatus:
    """Fetch and aggregate full status for one tracked project."""
    config = config or EngineConfig()
    repo = project.repo
    ref = config.docs_ref

    (
        branches_result,
        prs_result,
        commit_result,
        north_star_result,
        milestones_result,
        handoff_result,
    ) = await asyncio.gather(
        settle(client.fetch_branches(repo)),
        settle(client.fetch_open_pull_requests(repo)),
        settle(client.fetch_latest_commit(repo)),
        settle(client.fetch_file_content(repo, config.north_star_path, ref)),
        settle(client.fetch_file_content(repo, config.milestones_path, ref)),
        settle(client.fetch_file_content(repo, config.handoff_path, ref)),
    )

    errors: list[str] = []
    branches = value_or(branches_result, BranchInfo(), "Branches", errors)
    open_prs = value_or(prs_result, [], "PRs", errors)
    latest_commit = value_or(commit_result, None, "Commits", errors)
    north_star_md = value_or(north_star_result, None, "North Star", errors)
    milestones_md = value_or(milestones_result, None, "Milestones", errors)
    handoff_md = value_or(handoff_result, None, "Handoff", errors)

    for error in errors:
        logger.warning(f"{repo}: {error}")

    try:
        derived = derive_documents(north_star_md, milestones_md, handoff_md)
    except Exception as e:
        logger.exception(f"{repo}: failed to parse project documents")
        errors.append(f"Parse: {e}")
        derived = {}

    return ProjectStatus(
        repo=repo,
        display_name=project.display_name,
        description=project.description,
        fetched_at=datetime.now(timezone.utc),
        branches=branches,
        open_prs=open_prs,
        latest_commit=latest_commit,
        error="; ".join(errors) if errors else None,
        **derived,
    )
