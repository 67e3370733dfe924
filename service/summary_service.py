# service/summary_service.py
import asyncio
import logging
from typing import List, Optional
from config.settings import settings
from model.api import SummaryResponse
from repository.pipeline_client import PipelineClient
from util.enums import ErrorMessage
from util.errors import CommandError
from util.functions import error_text
from util.types import Listener, Unsubscribe

logger = logging.getLogger(__name__)


class SummaryTracker:
    def __init__(
        self,
        client: PipelineClient,
        job_id: str,
        poll_interval: float = settings.summary_poll_interval,
    ) -> None:
        self._client = client
        self.job_id = job_id
        self._interval = poll_interval
        self.summary: Optional[SummaryResponse] = None
        self.error: Optional[str] = None
        self._active = True
        self._poll_task: Optional["asyncio.Task[None]"] = None
        self._listeners: List[Listener] = []

    @property
    def running(self) -> bool:
        return self.summary is not None and self.summary.summary_status == "running"

    def add_listener(self, listener: Listener) -> Unsubscribe:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    async def load(self) -> Optional[SummaryResponse]:
        try:
            summary = await self._client.get_summary(self.job_id)
        except CommandError as e:
            logger.warning("summary.load.error job=%s err=%s", self.job_id, e.message)
            self._fail(ErrorMessage.SUMMARY_LOAD_FAILED.value.message, clear=True)
            return None
        self._set(summary, error=None)
        return summary

    async def regenerate(self) -> Optional[SummaryResponse]:
        """
        Ask the pipeline for a fresh summary.
        On failure the error is kept and the last stored summary is fetched
        again so the view does not fall back to empty.
        """
        try:
            summary = await self._client.summarize_job(self.job_id)
        except CommandError as e:
            message = error_text(e, ErrorMessage.SUMMARY_LOAD_FAILED.value.message)
            logger.warning("summary.regenerate.error job=%s err=%s", self.job_id, message)
            self._fail(message)
            try:
                self._set(await self._client.get_summary(self.job_id), error=message)
            except CommandError:
                logger.debug("summary.refetch.failed job=%s", self.job_id)
            return self.summary
        self._set(summary, error=None)
        logger.info(
            "summary.regenerate.ok job=%s status=%s", self.job_id, summary.summary_status
        )
        return summary

    async def join(self) -> None:
        task = self._poll_task
        if task is not None:
            await asyncio.shield(task)

    async def aclose(self) -> None:
        self._active = False
        task, self._poll_task = self._poll_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def _fail(self, message: str, clear: bool = False) -> None:
        if not self._active:
            return
        changed = message != self.error or (clear and self.summary is not None)
        self.error = message
        if clear:
            self.summary = None
        if changed:
            self._notify()

    def _set(self, summary: SummaryResponse, error: Optional[str]) -> None:
        if not self._active:
            return
        changed = summary != self.summary or error != self.error
        self.summary = summary
        self.error = error
        if changed:
            self._notify()
        if summary.summary_status == "running" and self._poll_task is None:
            self._poll_task = asyncio.create_task(
                self._poll_loop(), name=f"summary:{self.job_id}"
            )

    async def _poll_loop(self) -> None:
        try:
            while self._active and self.running:
                await asyncio.sleep(self._interval)
                try:
                    summary = await self._client.get_summary(self.job_id)
                except CommandError:
                    # Keep polling while running
                    continue
                if self._active and summary != self.summary:
                    self.summary = summary
                    self._notify()
        finally:
            if self._poll_task is asyncio.current_task():
                self._poll_task = None

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("summary.listener.error job=%s", self.job_id)
