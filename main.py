# main.py
import argparse
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from config.cache import close_redis
from model.job import Job, status_label
from repository.event_bus import RedisEventBus
from repository.pipeline_client import PipelineClient
from service.job_sync_service import JobSyncService
from util.enums import Color
from util.errors import CommandError
from util.logger import init_logger

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(poll_only: bool = False) -> AsyncIterator[JobSyncService]:
    init_logger()
    print(f"{Color.GREEN}Connecting to pipeline...{Color.RESET}")
    client = PipelineClient()
    sync = JobSyncService(client, events=None if poll_only else RedisEventBus())
    try:
        if not await sync.activate():
            print(f"{Color.YELLOW}Pipeline is not configured yet{Color.RESET}")
        else:
            mode = "live" if sync.live else "poll-only"
            print(f"{Color.BLUE}Tracking jobs ({mode}){Color.RESET}")
        yield sync
    finally:
        await sync.deactivate()
        await client.aclose()
        try:
            await close_redis()
        except Exception as e:
            logger.warning("redis.close.error err=%s", type(e).__name__)
        print(f"{Color.RED}Stopped{Color.RESET}")


def render(job: Job) -> str:
    last = job.logs[-1] if job.logs else ""
    return (
        f"{job.id[:8]:<8} {job.status:<9} {job.progress:5.1f}% "
        f"{status_label(job):<24} {job.filename} {last}"
    ).rstrip()


async def watch(poll_only: bool = False, seconds: Optional[float] = None) -> None:
    async with lifespan(poll_only=poll_only) as sync:
        if not sync.active:
            return
        changed = asyncio.Event()
        unsubscribe = sync.add_listener(changed.set)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + seconds if seconds else None
        try:
            while deadline is None or loop.time() < deadline:
                timeout = None if deadline is None else max(0.0, deadline - loop.time())
                try:
                    await asyncio.wait_for(changed.wait(), timeout)
                except asyncio.TimeoutError:
                    break
                changed.clear()
                print(f"{Color.BOLD}-- {len(sync.jobs)} job(s){Color.RESET}")
                for job in sync.jobs:
                    print(render(job))
        finally:
            unsubscribe()


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Live view of transcription jobs")
    p.add_argument(
        "--poll-only", action="store_true", help="Skip push events, rely on polling"
    )
    p.add_argument(
        "--seconds", type=float, default=None, help="Stop after this many seconds"
    )
    return p


def main() -> None:
    args = build_parser().parse_args()
    try:
        asyncio.run(watch(poll_only=args.poll_only, seconds=args.seconds))
    except KeyboardInterrupt:
        pass
    except CommandError as e:
        print(f"{Color.RED}{e.message}{Color.RESET}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
