import asyncio
import json
from typing import Callable, Dict, List, Optional

from model.api import SummaryResponse
from model.download import DownloadStatus
from model.job import Job
from util.enums import Topic
from util.errors import CommandError, SubscriptionError


def make_job(job_id: str = "1", status: str = "queued", **fields) -> Job:
    data = {"id": job_id, "status": status, "filename": f"{job_id}.mp3"}
    data.update(fields)
    return Job.model_validate(data)


def make_status(state: str = "downloading", downloaded: int = 0, total: int = 0, **fields) -> DownloadStatus:
    data = {
        "state": state,
        "model_size": "small",
        "downloaded_bytes": downloaded,
        "total_bytes": total,
        "started_at": 100,
    }
    data.update(fields)
    return DownloadStatus.model_validate(data)


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.001)


class FakePipeline:
    """Scriptable stand-in for PipelineClient."""

    def __init__(self) -> None:
        self.initialized = True
        self.jobs: List[Job] = []
        self.list_calls = 0
        self.fail_list = False
        self.list_delay = 0.0
        self.created: Dict[str, Job] = {}
        self.create_error: Optional[str] = None
        self.delete_ack = True
        self.cancelled: List[str] = []
        self.summaries: List[SummaryResponse] = []
        self.summarize_error: Optional[str] = None
        self.summary_calls = 0
        self.statuses: List[DownloadStatus] = []
        self.start_result: Optional[DownloadStatus] = None
        self.start_error: Optional[str] = None
        self.status_calls = 0
        self.installed = False
        self.engine_urls: List[str] = []

    async def config_initialized(self) -> bool:
        return self.initialized

    async def list_jobs(self) -> List[Job]:
        self.list_calls += 1
        if self.list_delay:
            await asyncio.sleep(self.list_delay)
        if self.fail_list:
            raise CommandError("Pipeline is unreachable", "list_jobs")
        return [Job.model_validate(job.model_dump()) for job in self.jobs]

    async def create_job_from_path(self, path: str) -> Job:
        if self.create_error:
            raise CommandError(self.create_error, "create_job_from_path")
        job = make_job(f"job-{len(self.created) + 1}", filename=path.rsplit("/", 1)[-1])
        self.created[path] = job
        return job

    async def cancel_job(self, job_id: str) -> bool:
        self.cancelled.append(job_id)
        return True

    async def delete_job(self, job_id: str) -> bool:
        return self.delete_ack

    async def export_job(self, job_id: str) -> bool:
        return True

    async def get_summary(self, job_id: str) -> SummaryResponse:
        self.summary_calls += 1
        if not self.summaries:
            raise CommandError("job not found", "get_summary")
        return self.summaries.pop(0) if len(self.summaries) > 1 else self.summaries[0]

    async def summarize_job(self, job_id: str) -> SummaryResponse:
        if self.summarize_error:
            raise CommandError(self.summarize_error, "summarize_job")
        return SummaryResponse(summary_status="running", summary_model="llama3")

    async def get_model_download_status(self, model_size: str) -> DownloadStatus:
        self.status_calls += 1
        if not self.statuses:
            raise CommandError("Pipeline is unreachable", "get_model_download_status")
        return self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]

    async def start_model_download(self, model_size: str) -> DownloadStatus:
        if self.start_error:
            raise CommandError(self.start_error, "start_model_download")
        assert self.start_result is not None
        return self.start_result

    async def get_model_installed(self, model_size: str) -> bool:
        return self.installed

    async def get_model_size(self, model_size: str) -> int:
        return 0

    async def get_engine_download_status(self) -> DownloadStatus:
        return await self.get_model_download_status("engine")

    async def start_engine_download(self, url: str) -> DownloadStatus:
        self.engine_urls.append(url)
        return await self.start_model_download("engine")

    async def get_engine_installed(self) -> bool:
        return self.installed


class FakeSubscription:
    def __init__(self, source: "FakeEventSource", topic: Topic, handler) -> None:
        self.source = source
        self.topic = topic
        self.handler = handler
        self.closed = False

    async def close(self) -> None:
        self.closed = True
        self.source.handlers.pop(self.topic, None)


class FakeEventSource:
    def __init__(self) -> None:
        self.handlers: Dict[Topic, Callable[[bytes], None]] = {}
        self.subscriptions: List[FakeSubscription] = []
        self.failing: set = set()

    async def subscribe(self, topic: Topic, handler) -> FakeSubscription:
        if topic in self.failing:
            raise SubscriptionError(f"Could not subscribe to {topic}")
        sub = FakeSubscription(self, topic, handler)
        self.handlers[topic] = handler
        self.subscriptions.append(sub)
        return sub

    def publish(self, topic: Topic, payload) -> bool:
        handler = self.handlers.get(topic)
        if handler is None:
            return False
        raw = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
        handler(raw)
        return True
