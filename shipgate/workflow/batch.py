"""Batch refresh across all tracked projects.

fetch_all_projects() aggregates every project concurrently, isolating
per-project failures. ProjectStore holds the latest published batch for
presentation code and drives periodic auto-refresh.

Overlapping refreshes are allowed. Each fetch_all() takes a generation
number, and a batch that settles after a newer batch was already published
is discarded instead of overwriting it.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable

from shipgate.lib.config import EngineConfig
from shipgate.lib.github import GitHubClient
from shipgate.lib.types import ProjectStatus, TrackedProject
from shipgate.workflow.aggregate import empty_project_status, fetch_project_status
from shipgate.workflow.fsm import RefreshFSM

logger = logging.getLogger(__name__)

FetchStatus = Callable[[GitHubClient, TrackedProject, EngineConfig], Awaitable[ProjectStatus]]
Listener = Callable[[dict[str, ProjectStatus]], None]


async def fetch_all_projects(
    client: GitHubClient,
    projects: list[TrackedProject],
    config: EngineConfig,
    fetch_status: FetchStatus = fetch_project_status,
) -> dict[str, ProjectStatus]:
    """Fetch every project concurrently, keyed by repo id in input order.

    A project whose aggregation fails outright gets an all-empty status
    carrying the error; siblings are unaffected.
    """
    results = await asyncio.gather(
        *(fetch_status(client, project, config) for project in projects),
        return_exceptions=True,
    )

    statuses: dict[str, ProjectStatus] = {}
    for project, result in zip(projects, results):
        if isinstance(result, BaseException):
            logger.warning(f"Failed to fetch {project.repo}: {result!r}")
            statuses[project.repo] = empty_project_status(
                project, str(result) or "Failed to fetch project"
            )
        else:
            statuses[project.repo] = result
    return statuses


class RefreshHandle:
    """Cancellation handle for one auto-refresh timer.

    stop() disarms the timer only; fetches already in flight still publish.
    """

    def __init__(self, timer: asyncio.Task, fsm: RefreshFSM):
        self._timer = timer
        self.fsm = fsm

    @property
    def running(self) -> bool:
        return self.fsm.state == "running"

    def stop(self) -> None:
        if not self.fsm.can("stop"):
            return
        self._timer.cancel()
        self.fsm.stop()


class ProjectStore:
    """Latest ProjectStatus per tracked project, refreshed on demand or on a timer."""

    def __init__(
        self,
        client: GitHubClient,
        tracked: list[TrackedProject],
        config: EngineConfig | None = None,
        fetch_status: FetchStatus = fetch_project_status,
    ):
        self.client = client
        self.tracked = list(tracked)
        self.config = config or EngineConfig()
        self._fetch_status = fetch_status

        self.projects: dict[str, ProjectStatus] = {}
        self.is_loading = False
        self.last_fetched: datetime | None = None
        self.error: str | None = None

        self._generation = 0
        self._published_generation = 0
        self._batches_in_flight = 0
        self._listeners: list[Listener] = []
        self._tasks: set[asyncio.Task] = set()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener with each published mapping. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, projects: dict[str, ProjectStatus]) -> None:
        self.projects = projects
        self.last_fetched = datetime.now(timezone.utc)
        for listener in list(self._listeners):
            try:
                listener(projects)
            except Exception:
                logger.exception("Project store listener failed")

    async def fetch_all(self) -> dict[str, ProjectStatus]:
        """Refresh every tracked project and publish the batch.

        Returns this batch's results, even when a newer batch already
        published and this one was discarded.
        """
        self._generation += 1
        generation = self._generation
        self._batches_in_flight += 1
        self.is_loading = True
        self.error = None

        try:
            projects = await fetch_all_projects(
                self.client, self.tracked, self.config, self._fetch_status
            )
        except Exception as e:
            logger.error(f"Failed to fetch projects: {e}")
            self.error = str(e) or "Failed to fetch projects"
            return {}
        finally:
            self._batches_in_flight -= 1
            self.is_loading = self._batches_in_flight > 0

        if generation < self._published_generation:
            logger.debug(
                f"Discarding stale batch {generation} (batch {self._published_generation} already published)"
            )
            return projects

        self._published_generation = generation
        self._publish(projects)
        errored = sum(1 for s in projects.values() if s.error)
        logger.info(f"Refreshed {len(projects)} projects ({errored} with errors)")
        return projects

    async def fetch_project(self, repo: str) -> ProjectStatus | None:
        """Refresh a single project and merge it into the published mapping."""
        project = next((p for p in self.tracked if p.repo == repo), None)
        if project is None:
            logger.warning(f"Unknown repo: {repo}")
            return None

        try:
            status = await self._fetch_status(self.client, project, self.config)
        except Exception as e:
            logger.error(f"Failed to fetch {repo}: {e}")
            return None

        self._publish({**self.projects, repo: status})
        return status

    async def _refresh_in_background(self) -> None:
        try:
            await self.fetch_all()
        except Exception:
            logger.exception("Auto-refresh failed")

    def _spawn_refresh(self) -> None:
        task = asyncio.get_running_loop().create_task(self._refresh_in_background())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def start_auto_refresh(self, interval: float | None = None) -> RefreshHandle:
        """Fetch now, then again every interval seconds until the handle is stopped.

        Must be called from inside a running event loop.
        """
        if interval is None:
            interval = self.config.refresh_interval
        if interval <= 0:
            raise ValueError(f"Refresh interval must be positive, got {interval}")

        fsm = RefreshFSM(f"every {interval:g}s")
        self._spawn_refresh()

        async def tick() -> None:
            while True:
                await asyncio.sleep(interval)
                self._spawn_refresh()

        timer = asyncio.get_running_loop().create_task(tick())
        fsm.start()
        return RefreshHandle(timer, fsm)

    async def wait_idle(self) -> None:
        """Wait for every background refresh started so far to settle."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
