# service/download_service.py
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional
from config.settings import settings
from core.download_machine import advance, entered_done, is_active
from model.download import DownloadStatus
from repository.pipeline_client import PipelineClient
from util.enums import ErrorMessage
from util.errors import CommandError
from util.functions import error_text, progress_percent
from util.types import DownloadState, Listener, Unsubscribe

logger = logging.getLogger(__name__)

StatusCall = Callable[[], Awaitable[DownloadStatus]]
FlagCall = Callable[[], Awaitable[bool]]
SizeCall = Callable[[], Awaitable[int]]


class DownloadTracker:
    """
    Lifecycle of one artifact download: idle -> downloading -> done | error.

    - start(): issue the start command and take whatever state it reports
      (already-present artifacts may come back as done right away)
    - while downloading, one poll task re-fetches the status every
      `poll_interval` seconds and stops itself on the first non-downloading answer
    - entering done triggers a single installed check
    Start-command failures become a local `error` message; download failures
    reported by the pipeline stay in `status` (state="error").
    """

    def __init__(
        self,
        name: str,
        fetch_status: StatusCall,
        start_download: StatusCall,
        check_installed: FlagCall,
        size_hint: Optional[SizeCall] = None,
        poll_interval: float = settings.download_poll_interval,
    ) -> None:
        self.name = name
        self._fetch_status = fetch_status
        self._start_download = start_download
        self._check_installed = check_installed
        self._size_hint = size_hint
        self._interval = poll_interval
        self.status: Optional[DownloadStatus] = None
        self.installed = False
        self.error: Optional[str] = None
        self.expected_bytes = 0
        self.polls = 0
        self._closed = False
        self._poll_task: Optional["asyncio.Task[None]"] = None
        self._listeners: List[Listener] = []

    # ---------------- Read side ----------------

    @property
    def state(self) -> DownloadState:
        return self.status.state if self.status is not None else "idle"

    @property
    def polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    @property
    def progress_percent(self) -> Optional[int]:
        """None while the total size is unknown (indeterminate)."""
        downloaded = self.status.downloaded_bytes if self.status else 0
        total = self.status.total_bytes if self.status else 0
        return progress_percent(downloaded, total or self.expected_bytes)

    def add_listener(self, listener: Listener) -> Unsubscribe:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    # ---------------- Commands ----------------

    async def refresh(self) -> Optional[DownloadStatus]:
        """Load the current status and installed flag, e.g. when a view opens."""
        try:
            status = await self._fetch_status()
        except CommandError as e:
            logger.debug("download.refresh.failed name=%s err=%s", self.name, e.message)
            self._set(None)
        else:
            self._set(status)
        if self._size_hint is not None and not self.expected_bytes:
            try:
                self.expected_bytes = max(0, await self._size_hint())
            except CommandError:
                self.expected_bytes = 0
        await self._refresh_installed()
        return self.status

    async def start(self) -> Optional[DownloadStatus]:
        self.error = None
        try:
            status = await self._start_download()
        except CommandError as e:
            self.error = error_text(e, ErrorMessage.DOWNLOAD_FAILED.value.message)
            logger.warning("download.start.error name=%s err=%s", self.name, self.error)
            self._notify()
            return None
        logger.info(
            "download.start name=%s state=%s total=%d",
            self.name,
            status.state,
            status.total_bytes,
        )
        # A start supersedes whatever run we held before, including a poll in flight
        await self._stop_polling()
        self._set(status)
        await self._refresh_installed()
        return status

    async def join(self) -> None:
        """Wait until the poll loop (if any) has finished by itself."""
        task = self._poll_task
        if task is not None:
            await asyncio.shield(task)

    async def aclose(self) -> None:
        self._closed = True
        await self._stop_polling()

    # ---------------- Internals ----------------

    async def _stop_polling(self) -> None:
        task, self._poll_task = self._poll_task, None
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def _set(self, status: Optional[DownloadStatus]) -> None:
        if self._closed:
            return
        changed = status != self.status
        self.status = status
        if changed:
            self._notify()
        self._arm()

    def _arm(self) -> None:
        if not is_active(self.status) or self.polling:
            return
        self._poll_task = asyncio.create_task(
            self._poll_loop(), name=f"download:{self.name}"
        )

    async def _poll_loop(self) -> None:
        armed_with = self.status
        try:
            while not self._closed:
                await asyncio.sleep(self._interval)
                try:
                    polled = await self._fetch_status()
                except CommandError as e:
                    logger.debug("download.poll.failed name=%s err=%s", self.name, e.message)
                    continue
                if self._closed:
                    return
                self.polls += 1
                previous = self.status
                self.status = advance(previous, polled)
                if self.status != previous:
                    self._notify()
                if not (is_active(polled) and is_active(self.status)):
                    break
            if not self._closed and entered_done(armed_with, self.status):
                logger.info("download.done name=%s", self.name)
                await self._refresh_installed()
            elif not self._closed and self.state == "error" and self.status:
                logger.warning(
                    "download.failed name=%s message=%s", self.name, self.status.message
                )
        finally:
            if self._poll_task is asyncio.current_task():
                self._poll_task = None

    async def _refresh_installed(self) -> None:
        try:
            installed = await self._check_installed()
        except CommandError:
            installed = False
        if self._closed:
            return
        if installed != self.installed:
            self.installed = installed
            self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("download.listener.error name=%s", self.name)


def model_tracker(client: PipelineClient, model_size: str, **kwargs) -> DownloadTracker:
    return DownloadTracker(
        f"model:{model_size}",
        fetch_status=lambda: client.get_model_download_status(model_size),
        start_download=lambda: client.start_model_download(model_size),
        check_installed=lambda: client.get_model_installed(model_size),
        size_hint=lambda: client.get_model_size(model_size),
        **kwargs,
    )


def engine_tracker(client: PipelineClient, url: Optional[str], **kwargs) -> DownloadTracker:
    async def _start() -> DownloadStatus:
        if not url:
            raise CommandError(ErrorMessage.BINARY_URL_MISSING.value.message)
        return await client.start_engine_download(url)

    return DownloadTracker(
        "engine",
        fetch_status=client.get_engine_download_status,
        start_download=_start,
        check_installed=client.get_engine_installed,
        **kwargs,
    )
