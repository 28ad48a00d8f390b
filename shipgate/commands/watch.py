"""
shipgate watch - Auto-refresh tracked projects and print each batch.
"""

import asyncio
from datetime import datetime

from shipgate.commands.status import print_statuses
from shipgate.lib.config import EngineConfig
from shipgate.lib.github import GitHubClient
from shipgate.lib.types import ProjectStatus, TrackedProject
from shipgate.workflow.batch import ProjectStore


async def watch_projects(
    config: EngineConfig,
    projects: list[TrackedProject],
    interval: float,
    count: int | None = None,
) -> int:
    """Run auto-refresh until count batches were published (forever if None)."""
    published = 0
    done = asyncio.Event()

    def on_update(statuses: dict[str, ProjectStatus]) -> None:
        nonlocal published
        published += 1
        print(f"== {datetime.now().strftime('%Y-%m-%d %H:%M:%S')} (refresh #{published})")
        print_statuses(statuses)
        if count and published >= count:
            done.set()

    async with GitHubClient(
        owner=config.owner,
        token=config.token,
        api_url=config.api_url,
        timeout=config.request_timeout,
    ) as client:
        store = ProjectStore(client, projects, config)
        store.subscribe(on_update)
        handle = store.start_auto_refresh(interval)
        try:
            await done.wait()
        finally:
            handle.stop()
            await store.wait_idle()

    return published


def cmd_watch(args, config: EngineConfig, projects: list[TrackedProject]) -> int:
    """Refresh on an interval until interrupted."""
    if not projects:
        print("No tracked projects configured.")
        return 0

    interval = args.interval or config.refresh_interval
    print(f"Watching {len(projects)} projects every {interval:g}s (Ctrl-C to stop)")
    try:
        asyncio.run(watch_projects(config, projects, interval, args.count))
    except KeyboardInterrupt:
        print("\nStopped.")
    return 0
