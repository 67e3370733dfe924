# service/job_service.py
import logging
from typing import Iterable, List
from model.job import Job
from repository.pipeline_client import PipelineClient
from service.job_sync_service import JobSyncService
from util.enums import ErrorMessage
from util.errors import CommandError
from util.functions import is_supported_audio
from util.timing import timed

logger = logging.getLogger(__name__)


class JobService:
    """
    User-issued job commands. Results the pipeline acknowledges are reflected
    in the synced list right away instead of waiting for the next poll.
    Failures propagate as CommandError.
    """

    def __init__(self, client: PipelineClient, sync: JobSyncService) -> None:
        self._client = client
        self._sync = sync

    async def create_from_path(self, path: str) -> Job:
        if not is_supported_audio(path):
            logger.info("jobs.create.rejected reason=unsupported_extension")
            raise CommandError(ErrorMessage.UNSUPPORTED_FILE.value.message)
        with timed(logger, "jobs.create"):
            job = await self._client.create_job_from_path(path)
        self._sync.apply_job(job)
        logger.info("jobs.create.ok job=%s status=%s", job.id, job.status)
        return job

    async def create_many(self, paths: Iterable[str]) -> List[Job]:
        """
        Submit a batch of dropped/picked files.
        Unsupported files and individual failures are skipped; the rest go through.
        """
        created: List[Job] = []
        for path in paths:
            if not is_supported_audio(path):
                continue
            try:
                created.append(await self.create_from_path(path))
            except CommandError as e:
                logger.warning("jobs.create.skipped err=%s", e.message)
        return created

    async def cancel(self, job_id: str) -> bool:
        ok = await self._client.cancel_job(job_id)
        logger.info("jobs.cancel job=%s ok=%s", job_id, ok)
        return ok

    async def delete(self, job_id: str) -> bool:
        ok = await self._client.delete_job(job_id)
        if ok:
            # The only path that drops a job from the list outside of polling
            self._sync.remove(job_id)
        logger.info("jobs.delete job=%s ok=%s", job_id, ok)
        return ok

    async def export(self, job_id: str) -> bool:
        with timed(logger, "jobs.export", job=job_id):
            ok = await self._client.export_job(job_id)
        return ok
