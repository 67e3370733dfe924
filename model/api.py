# model/api.py
from typing import Literal, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from model.job import SUMMARY_STATUSES
from util.types import SummaryStatus


class JobLogEvent(BaseModel):
    job_id: str = Field(
        min_length=1, validation_alias=AliasChoices("id", "jobId", "job_id")
    )
    line: str


class SummaryResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    summary_status: SummaryStatus = "not_started"
    summary_model: str = ""
    summary_error: Optional[str] = None
    summary_md: str = ""

    @field_validator("summary_status", mode="before")
    @classmethod
    def _default_status(cls, v: object) -> object:
        return v if v in SUMMARY_STATUSES else "not_started"

    @field_validator("summary_model", "summary_md", mode="before")
    @classmethod
    def _none_as_empty(cls, v: object) -> object:
        return "" if v is None else v


ModelSize = Literal["tiny", "base", "small", "medium", "large-v3"]


class AppConfig(BaseModel):
    """Subset of the pipeline configuration this layer reads."""

    model_config = ConfigDict(extra="ignore")

    initialized: bool = False
    vault_path: str = ""
    output_subfolder: str = ""
    model_size: ModelSize = "small"
    language: Optional[str] = None
    enable_summarization: bool = False
    whisper_binary_url: Optional[str] = None
