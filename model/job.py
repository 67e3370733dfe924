# model/job.py
import math
from typing import Optional, Tuple
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from core.log_buffer import bounded
from util.types import JobStatus, StatusTone, SummaryStatus

SUMMARY_STATUSES: Tuple[str, ...] = (
    "not_started",
    "running",
    "done",
    "skipped",
    "error",
)


class Job(BaseModel):
    """
    One audio-to-note unit as reported by the pipeline.
    Frozen: every change produces a new object, so identity checks downstream
    tell "changed" from "unchanged".
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1)
    status: JobStatus
    progress: float = 0.0
    stage: str = ""
    filename: str = ""
    logs: Tuple[str, ...] = ()
    created_at: str = ""
    audio_path: str = ""
    transcript_txt_path: str = ""
    transcript_json_path: str = ""
    transcript_srt_path: str = ""
    md_preview: Optional[str] = None
    summary_status: SummaryStatus = "not_started"
    summary_model: Optional[str] = None
    summary_error: Optional[str] = None
    summary_md: Optional[str] = None
    exported: bool = Field(
        default=False,
        validation_alias=AliasChoices("exported_to_obsidian", "exported"),
        serialization_alias="exported_to_obsidian",
    )

    @field_validator(
        "stage",
        "filename",
        "created_at",
        "audio_path",
        "transcript_txt_path",
        "transcript_json_path",
        "transcript_srt_path",
        mode="before",
    )
    @classmethod
    def _none_as_empty(cls, v: object) -> object:
        return "" if v is None else v

    @field_validator("progress", mode="before")
    @classmethod
    def _clamp_progress(cls, v: object) -> float:
        if v is None:
            return 0.0
        if isinstance(v, bool) or not isinstance(v, (int, float, str)):
            raise ValueError("progress must be numeric")
        value = float(v)
        if math.isnan(value):
            return 0.0
        return min(100.0, max(0.0, value))

    @field_validator("summary_status", mode="before")
    @classmethod
    def _default_summary_status(cls, v: object) -> object:
        return v if v in SUMMARY_STATUSES else "not_started"

    @field_validator("logs", mode="before")
    @classmethod
    def _bound_logs(cls, v: object) -> Tuple[str, ...]:
        if v is None:
            return ()
        if isinstance(v, (str, bytes)):
            raise ValueError("logs must be a sequence of lines")
        return bounded([str(line) for line in v])  # type: ignore[union-attr]


def same_job(a: Job, b: Job) -> bool:
    # Logs excluded: they arrive on the event channel.
    return (
        a.id == b.id
        and a.status == b.status
        and a.progress == b.progress
        and a.stage == b.stage
        and a.filename == b.filename
        and a.summary_status == b.summary_status
        and a.summary_md == b.summary_md
        and a.summary_error == b.summary_error
        and a.summary_model == b.summary_model
        and a.exported == b.exported
    )


def status_label(job: Job) -> str:
    """i18n key describing what the job is doing right now."""
    if job.status == "running":
        if job.summary_status == "running":
            return "jobs.status.summarize"
        if job.stage == "transcribe":
            return "jobs.status.transcribe"
        return "jobs.status.processing"
    return f"jobs.status.{job.status}"


def status_tone(job: Job) -> StatusTone:
    tones: dict[str, StatusTone] = {
        "done": "success",
        "error": "error",
        "running": "warning",
        "queued": "info",
        "cancelled": "neutral",
    }
    return tones.get(job.status, "neutral")
