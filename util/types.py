# util/types.py
from typing import Callable, Literal

# Flow: Narrow types for raw payloads crossing the pipeline boundary.
JobStatus = Literal["queued", "running", "done", "error", "cancelled"]
SummaryStatus = Literal["not_started", "running", "done", "skipped", "error"]
DownloadState = Literal["idle", "downloading", "done", "error"]
StatusTone = Literal["neutral", "success", "warning", "error", "info"]

Listener = Callable[[], None]
Unsubscribe = Callable[[], None]
