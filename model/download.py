# model/download.py
import math
from typing import Any, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from util.functions import progress_percent
from util.types import DownloadState


class DownloadStatus(BaseModel):
    """
    Snapshot of one artifact download (a transcription model or the engine binary).
    Download failures are carried here as state="error" + message, never raised.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    state: DownloadState = "idle"
    target: str = Field(
        default="",
        validation_alias=AliasChoices("model_size", "target"),
        serialization_alias="model_size",
    )
    repo_id: str = ""
    total_bytes: int = 0
    downloaded_bytes: int = 0
    message: Optional[str] = None
    started_at: Optional[int] = None
    finished_at: Optional[int] = None

    @field_validator("target", "repo_id", mode="before")
    @classmethod
    def _none_as_empty(cls, v: object) -> object:
        return "" if v is None else v

    @field_validator("total_bytes", "downloaded_bytes", mode="before")
    @classmethod
    def _unsigned(cls, v: Any) -> int:
        if v is None:
            return 0
        if isinstance(v, bool) or not isinstance(v, (int, float, str)):
            raise ValueError("byte counters must be numeric")
        if isinstance(v, float) and not math.isfinite(v):
            raise ValueError("byte counters must be finite")
        return max(0, int(v))

    @model_validator(mode="after")
    def _cap_downloaded(self) -> "DownloadStatus":
        if self.total_bytes > 0 and self.downloaded_bytes > self.total_bytes:
            # frozen model: bypass __setattr__ inside the validator
            object.__setattr__(self, "downloaded_bytes", self.total_bytes)
        return self

    @property
    def progress_percent(self) -> Optional[int]:
        return progress_percent(self.downloaded_bytes, self.total_bytes)

    @property
    def is_active(self) -> bool:
        return self.state == "downloading"

    @property
    def is_terminal(self) -> bool:
        return self.state in ("done", "error")
