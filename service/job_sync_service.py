# service/job_sync_service.py
import asyncio
import logging
from typing import List, Optional, Sequence, Tuple
from pydantic import ValidationError
from config.settings import settings
from core.reconcile import apply_log_line, merge_jobs, remove_job, upsert_job
from model.api import JobLogEvent
from model.job import Job
from repository.event_bus import EventSource, SubscriptionHandle
from repository.pipeline_client import PipelineClient
from util.constants import Limits
from util.enums import Topic
from util.types import Listener, Unsubscribe

logger = logging.getLogger(__name__)


class JobSyncService:
    """
    Owns the job list shown to the user and keeps it live.

    Two independent feeds write into it:
      - a poll of `list_jobs` every `poll_interval` seconds (merge_jobs)
      - push events: `job:updated` (upsert_job) and `job:log` (apply_log_line)
    Every write replaces the list reference; readers get the current tuple and
    must not mutate it. Listeners fire only when the reference actually changes.
    """

    def __init__(
        self,
        client: PipelineClient,
        events: Optional[EventSource] = None,
        poll_interval: float = settings.poll_interval,
        log_capacity: int = Limits.LOG_CAPACITY,
    ) -> None:
        self._client = client
        self._events = events
        self._interval = poll_interval
        self._capacity = log_capacity
        self._jobs: Tuple[Job, ...] = ()
        self._listeners: List[Listener] = []
        self._active = False
        self._generation = 0
        self._poll_task: Optional["asyncio.Task[None]"] = None
        self._subscriptions: List[SubscriptionHandle] = []

    # ---------------- Read side ----------------

    @property
    def jobs(self) -> Tuple[Job, ...]:
        return self._jobs

    @property
    def active(self) -> bool:
        return self._active

    @property
    def live(self) -> bool:
        """True while at least one push topic is subscribed."""
        return bool(self._subscriptions)

    def get(self, job_id: str) -> Optional[Job]:
        return next((job for job in self._jobs if job.id == job_id), None)

    def add_listener(self, listener: Listener) -> Unsubscribe:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    # ---------------- Write side ----------------

    def apply_snapshot(self, polled: Sequence[Job]) -> bool:
        return self._replace(merge_jobs(self._jobs, polled))

    def apply_job(self, job: Job) -> bool:
        return self._replace(upsert_job(self._jobs, job))

    def apply_log_line(self, job_id: str, line: str) -> bool:
        return self._replace(apply_log_line(self._jobs, job_id, line, self._capacity))

    def remove(self, job_id: str) -> bool:
        return self._replace(remove_job(self._jobs, job_id))

    def _replace(self, jobs: Sequence[Job]) -> bool:
        current = self._jobs
        if jobs is current:
            return False
        if len(jobs) == len(current) and all(a is b for a, b in zip(jobs, current)):
            return False
        self._jobs = tuple(jobs)
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("sync.listener.error")
        return True

    # ---------------- Lifecycle ----------------

    async def activate(self) -> bool:
        """
        Start polling and push subscriptions once the pipeline reports it is configured.
        Returns False (and starts nothing) while it is not.
        """
        if self._active:
            return True
        if not await self._client.config_initialized():
            logger.info("sync.activate.skipped reason=not_initialized")
            return False

        self._active = True
        self._generation += 1
        generation = self._generation
        self._poll_task = asyncio.create_task(
            self._poll_loop(generation), name="jobs:poll"
        )
        await self._subscribe(generation)
        logger.info(
            "sync.activated interval=%.2fs live=%s", self._interval, self.live
        )
        return True

    async def deactivate(self) -> None:
        if not self._active:
            return
        self._active = False
        self._generation += 1
        task, self._poll_task = self._poll_task, None
        subscriptions, self._subscriptions = self._subscriptions, []
        if task is not None:
            task.cancel()
        for sub in subscriptions:
            await sub.close()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info("sync.deactivated")

    async def __aenter__(self) -> "JobSyncService":
        await self.activate()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.deactivate()

    def _is_current(self, generation: int) -> bool:
        return self._active and generation == self._generation

    # ---------------- Poll channel ----------------

    async def _poll_loop(self, generation: int) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while self._is_current(generation):
            await self._poll(generation)
            next_tick += self._interval
            delay = next_tick - loop.time()
            if delay < 0:
                # A slow poll swallowed whole ticks; restart the cadence from now
                next_tick = loop.time()
                delay = 0
            await asyncio.sleep(delay)

    async def _poll(self, generation: int) -> None:
        try:
            polled = await self._client.list_jobs()
        except Exception as e:
            # Transient: the next tick retries, the list stays as it was
            logger.debug("sync.poll.failed err=%s", e)
            return
        if not self._is_current(generation):
            return
        self.apply_snapshot(polled)

    # ---------------- Push channel ----------------

    async def _subscribe(self, generation: int) -> None:
        if self._events is None:
            logger.info("sync.events.disabled mode=poll_only")
            return
        topics = (
            (Topic.JOB_UPDATED, self._on_job_updated),
            (Topic.JOB_LOG, self._on_job_log),
        )
        results = await asyncio.gather(
            *(self._events.subscribe(topic, handler) for topic, handler in topics),
            return_exceptions=True,
        )
        for (topic, _), result in zip(topics, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "sync.events.unavailable topic=%s err=%s mode=poll_only",
                    topic,
                    result,
                )
                continue
            if not self._is_current(generation):
                # Deactivated while subscribing
                await result.close()
                continue
            self._subscriptions.append(result)

    def _on_job_updated(self, data: bytes) -> None:
        if not self._active:
            return
        try:
            job = Job.model_validate_json(data)
        except ValidationError as e:
            logger.warning(
                "sync.event.malformed topic=%s errors=%d", Topic.JOB_UPDATED, e.error_count()
            )
            return
        self.apply_job(job)

    def _on_job_log(self, data: bytes) -> None:
        if not self._active:
            return
        try:
            event = JobLogEvent.model_validate_json(data)
        except ValidationError as e:
            logger.warning(
                "sync.event.malformed topic=%s errors=%d", Topic.JOB_LOG, e.error_count()
            )
            return
        self.apply_log_line(event.job_id, event.line)
