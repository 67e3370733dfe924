# core/download_machine.py
from typing import Optional
from model.download import DownloadStatus


def is_active(status: Optional[DownloadStatus]) -> bool:
    return status is not None and status.is_active


def is_terminal(status: Optional[DownloadStatus]) -> bool:
    return status is not None and status.is_terminal


def same_run(a: DownloadStatus, b: DownloadStatus) -> bool:
    return a.target == b.target and a.started_at == b.started_at


def advance(
    current: Optional[DownloadStatus], polled: DownloadStatus
) -> DownloadStatus:
    """
    Apply a polled status to the one we hold.
      - downloading -> downloading within one run: downloaded_bytes never go back
      - done/error is only left for a different run (a new start)
      - anything else: the polled status replaces ours wholesale
    """
    if current is None:
        return polled
    if current.is_terminal and polled.is_active and same_run(current, polled):
        return current
    if (
        current.is_active
        and polled.is_active
        and same_run(current, polled)
        and polled.downloaded_bytes < current.downloaded_bytes
    ):
        kept = current.downloaded_bytes
        if polled.total_bytes > 0:
            kept = min(kept, polled.total_bytes)
        return polled.model_copy(update={"downloaded_bytes": kept})
    return polled


def entered_done(
    previous: Optional[DownloadStatus], current: Optional[DownloadStatus]
) -> bool:
    if current is None or current.state != "done":
        return False
    return previous is None or previous.state != "done" or not same_run(previous, current)
