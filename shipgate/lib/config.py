"""
Configuration loaders for shipgate.

Engine settings come from an optional KEY=value settings file, with the
process environment taking precedence. The tracked-project list is a JSON
file validated against the "projects" schema.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from . import constants
from . import envparse
from . import validate
from .types import TrackedProject

logger = logging.getLogger(__name__)

SETTINGS_KEYS = (
    "GITHUB_OWNER",
    "GITHUB_TOKEN",
    "GITHUB_API_URL",
    "DOCS_REF",
    "NORTH_STAR_PATH",
    "MILESTONES_PATH",
    "HANDOFF_PATH",
    "REFRESH_INTERVAL",
    "REQUEST_TIMEOUT",
)


@dataclass(frozen=True)
class EngineConfig:
    """Engine-level settings shared by every tracked project."""
    owner: str = ""
    token: str | None = None  # Opaque bearer token, supplied externally
    api_url: str = constants.DEFAULT_API_URL
    docs_ref: str = constants.DEFAULT_DOCS_REF
    north_star_path: str = constants.NORTH_STAR_PATH
    milestones_path: str = constants.MILESTONES_PATH
    handoff_path: str = constants.HANDOFF_PATH
    refresh_interval: float = constants.DEFAULT_REFRESH_INTERVAL_SECONDS
    request_timeout: float = constants.GH_TIMEOUT_SECONDS


def _parse_seconds(env: dict[str, str], key: str, default: float) -> float:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number of seconds, got '{raw}'") from None
    if value <= 0:
        raise ValueError(f"{key} must be positive, got '{raw}'")
    return value


def config_from_env(env: dict[str, str]) -> EngineConfig:
    """Build EngineConfig from a flat settings mapping."""
    return EngineConfig(
        owner=env.get("GITHUB_OWNER", "").strip(),
        token=env.get("GITHUB_TOKEN", "").strip() or None,
        api_url=(env.get("GITHUB_API_URL", "").strip() or constants.DEFAULT_API_URL).rstrip("/"),
        docs_ref=env.get("DOCS_REF", "").strip() or constants.DEFAULT_DOCS_REF,
        north_star_path=env.get("NORTH_STAR_PATH", "").strip() or constants.NORTH_STAR_PATH,
        milestones_path=env.get("MILESTONES_PATH", "").strip() or constants.MILESTONES_PATH,
        handoff_path=env.get("HANDOFF_PATH", "").strip() or constants.HANDOFF_PATH,
        refresh_interval=_parse_seconds(
            env, "REFRESH_INTERVAL", constants.DEFAULT_REFRESH_INTERVAL_SECONDS
        ),
        request_timeout=_parse_seconds(env, "REQUEST_TIMEOUT", constants.GH_TIMEOUT_SECONDS),
    )


def load_engine_config(settings_file: Path | None = None) -> EngineConfig:
    """Load engine settings from a settings file and the environment.

    A missing settings file is not an error when the caller didn't name one.
    """
    env: dict[str, str] = {}
    if settings_file is not None:
        env = envparse.load_env(settings_file)
    env = envparse.overlay_environ(env, SETTINGS_KEYS)

    config = config_from_env(env)
    if not config.token:
        logger.info("No GITHUB_TOKEN configured; requests are unauthenticated and rate limited")
    return config


def load_tracked_projects(projects_file: Path) -> list[TrackedProject]:
    """Load and validate the tracked-project list.

    Raises:
        validate.ValidationError: if the file is missing or malformed
    """
    data = validate.validate_file(projects_file, "projects")

    projects = []
    seen: set[str] = set()
    for entry in data:
        repo = entry["repo"]
        if repo in seen:
            logger.warning(f"Duplicate tracked project ignored: {repo}")
            continue
        seen.add(repo)
        projects.append(TrackedProject(
            repo=repo,
            display_name=entry["displayName"],
            description=entry.get("description", ""),
        ))
    return projects
