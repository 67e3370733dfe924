# repository/pipeline_client.py
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar
import httpx
from pydantic import BaseModel, ValidationError
from config.settings import settings
from model.api import AppConfig, SummaryResponse
from model.download import DownloadStatus
from model.job import Job
from util.constants import PipelineCommands as C
from util.enums import ErrorMessage
from util.errors import CommandError
from util.timing import timed

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# Read commands issued on every poll tick; logged at DEBUG only.
_POLLED = frozenset(
    {
        C.HEALTH,
        C.LIST_JOBS,
        C.GET_SUMMARY,
        C.MODEL_DOWNLOAD_STATUS,
        C.ENGINE_DOWNLOAD_STATUS,
    }
)


class PipelineClient:
    """
    Command interface of the transcription pipeline.
    Every command is `POST /invoke/<command>` with a JSON object of arguments;
    payloads are validated into models here so nothing loosely typed leaks inward.
    Failures of any kind surface as CommandError.
    """

    def __init__(
        self,
        base_url: str = settings.PIPELINE_URL,
        timeout: float = settings.PIPELINE_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout, connect=5.0),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "PipelineClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ---------------- Transport ----------------

    async def _invoke(self, command: str, args: Optional[Dict[str, Any]] = None) -> Any:
        level = logging.DEBUG if command in _POLLED else logging.INFO
        try:
            with timed(logger, "pipeline.invoke", level=level, command=command):
                res = await self._client.post(
                    f"{C.INVOKE}/{command}", json=args or {}
                )
        except httpx.RequestError as e:
            logger.log(
                level, "pipeline.request_error command=%s err=%s", command, type(e).__name__
            )
            raise CommandError(
                ErrorMessage.PIPELINE_UNREACHABLE.value.message, command
            ) from e

        if res.status_code // 100 != 2:
            message = _error_message(res) or f"{command} failed ({res.status_code})"
            logger.warning(
                "pipeline.bad_status command=%s status=%d", command, res.status_code
            )
            raise CommandError(message, command)

        try:
            return res.json()
        except ValueError as e:
            logger.error("pipeline.malformed command=%s", command)
            raise CommandError(ErrorMessage.MALFORMED_RESPONSE.value.message, command) from e

    @staticmethod
    def _parse(model: Type[M], data: Any, command: str) -> M:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error(
                "pipeline.invalid command=%s errors=%d", command, e.error_count()
            )
            raise CommandError(
                ErrorMessage.MALFORMED_RESPONSE.value.message, command
            ) from e

    @staticmethod
    def _flag(data: Any, command: str) -> bool:
        if not isinstance(data, bool):
            raise CommandError(ErrorMessage.MALFORMED_RESPONSE.value.message, command)
        return data

    # ---------------- Config ----------------

    async def health(self) -> bool:
        return self._flag(await self._invoke(C.HEALTH), C.HEALTH)

    async def config_initialized(self) -> bool:
        data = await self._invoke(C.CONFIG_INITIALIZED)
        return self._flag(data, C.CONFIG_INITIALIZED)

    async def get_config(self) -> AppConfig:
        return self._parse(AppConfig, await self._invoke(C.GET_CONFIG), C.GET_CONFIG)

    # ---------------- Jobs ----------------

    async def list_jobs(self) -> List[Job]:
        data = await self._invoke(C.LIST_JOBS)
        if not isinstance(data, list):
            raise CommandError(ErrorMessage.MALFORMED_RESPONSE.value.message, C.LIST_JOBS)
        jobs: List[Job] = []
        for raw in data:
            try:
                jobs.append(Job.model_validate(raw))
            except ValidationError:
                # Drop the malformed entry, keep the rest of the snapshot
                logger.warning("pipeline.jobs.skip_malformed")
                continue
        return jobs

    async def get_job(self, job_id: str) -> Job:
        data = await self._invoke(C.GET_JOB, {"id": job_id})
        return self._parse(Job, data, C.GET_JOB)

    async def create_job_from_path(self, path: str) -> Job:
        data = await self._invoke(C.CREATE_JOB_FROM_PATH, {"path": path})
        return self._parse(Job, data, C.CREATE_JOB_FROM_PATH)

    async def cancel_job(self, job_id: str) -> bool:
        return self._flag(await self._invoke(C.CANCEL_JOB, {"id": job_id}), C.CANCEL_JOB)

    async def delete_job(self, job_id: str) -> bool:
        return self._flag(await self._invoke(C.DELETE_JOB, {"id": job_id}), C.DELETE_JOB)

    async def export_job(self, job_id: str) -> bool:
        return self._flag(await self._invoke(C.EXPORT_JOB, {"id": job_id}), C.EXPORT_JOB)

    # ---------------- Summaries ----------------

    async def get_summary(self, job_id: str) -> SummaryResponse:
        data = await self._invoke(C.GET_SUMMARY, {"id": job_id})
        return self._parse(SummaryResponse, data, C.GET_SUMMARY)

    async def summarize_job(self, job_id: str) -> SummaryResponse:
        data = await self._invoke(C.SUMMARIZE_JOB, {"id": job_id})
        return self._parse(SummaryResponse, data, C.SUMMARIZE_JOB)

    # ---------------- Downloads ----------------

    async def get_model_size(self, model_size: str) -> int:
        data = await self._invoke(C.MODEL_SIZE, {"modelSize": model_size})
        if isinstance(data, bool) or not isinstance(data, int):
            raise CommandError(ErrorMessage.MALFORMED_RESPONSE.value.message, C.MODEL_SIZE)
        return max(0, data)

    async def get_model_download_status(self, model_size: str) -> DownloadStatus:
        data = await self._invoke(C.MODEL_DOWNLOAD_STATUS, {"modelSize": model_size})
        return self._parse(DownloadStatus, data, C.MODEL_DOWNLOAD_STATUS)

    async def start_model_download(self, model_size: str) -> DownloadStatus:
        data = await self._invoke(C.START_MODEL_DOWNLOAD, {"modelSize": model_size})
        return self._parse(DownloadStatus, data, C.START_MODEL_DOWNLOAD)

    async def get_model_installed(self, model_size: str) -> bool:
        data = await self._invoke(C.MODEL_INSTALLED, {"modelSize": model_size})
        return self._flag(data, C.MODEL_INSTALLED)

    async def get_engine_download_status(self) -> DownloadStatus:
        data = await self._invoke(C.ENGINE_DOWNLOAD_STATUS)
        return self._parse(DownloadStatus, data, C.ENGINE_DOWNLOAD_STATUS)

    async def start_engine_download(self, url: str) -> DownloadStatus:
        data = await self._invoke(C.START_ENGINE_DOWNLOAD, {"url": url})
        return self._parse(DownloadStatus, data, C.START_ENGINE_DOWNLOAD)

    async def get_engine_installed(self) -> bool:
        return self._flag(await self._invoke(C.ENGINE_INSTALLED), C.ENGINE_INSTALLED)

    async def latest_engine_release_url(self) -> str:
        data = await self._invoke(C.LATEST_ENGINE_RELEASE_URL)
        if not isinstance(data, str) or not data:
            raise CommandError(
                ErrorMessage.MALFORMED_RESPONSE.value.message, C.LATEST_ENGINE_RELEASE_URL
            )
        return data


def _error_message(res: httpx.Response) -> str:
    try:
        body = res.json()
    except ValueError:
        return res.text.strip()
    if isinstance(body, str):
        return body.strip()
    if isinstance(body, dict):
        return str(body.get("error") or body.get("message") or "").strip()
    return ""
