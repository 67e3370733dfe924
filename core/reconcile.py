# core/reconcile.py
from typing import Dict, List, Sequence, Set
from core.log_buffer import append_line
from model.job import Job, same_job
from util.constants import Limits


def adopt(existing: Job, incoming: Job) -> Job:
    """
    Take `incoming` as the new value for an entry we already hold.
      - logs live on the event channel: a payload without logs keeps ours
      - the export flag only ever goes false -> true here
    Returns `incoming` itself when nothing needs carrying over.
    """
    update: Dict[str, object] = {}
    if not incoming.logs and existing.logs:
        update["logs"] = existing.logs
    if existing.exported and not incoming.exported:
        update["exported"] = True
    return incoming.model_copy(update=update) if update else incoming


def merge_jobs(previous: Sequence[Job], polled: Sequence[Job]) -> List[Job]:
    """
    Merge a fresh poll snapshot into the list we already hold.
    Membership and order follow `polled`; an unchanged job keeps its old object.
    A repeated id in `polled` keeps only its first occurrence.
    """
    by_id = {job.id: job for job in previous}
    seen: Set[str] = set()
    merged: List[Job] = []
    for job in polled:
        if job.id in seen:
            continue
        seen.add(job.id)
        existing = by_id.get(job.id)
        if existing is None:
            merged.append(job)
            continue
        candidate = adopt(existing, job)
        merged.append(existing if same_job(existing, candidate) else candidate)
    return merged


def upsert_job(previous: Sequence[Job], job: Job) -> Sequence[Job]:
    """
    Apply one pushed job update.
    New ids go to the front; known ids keep their position.
    An unchanged update returns `previous` itself.
    """
    index = next((i for i, item in enumerate(previous) if item.id == job.id), -1)
    if index == -1:
        return [job, *previous]
    existing = previous[index]
    candidate = adopt(existing, job)
    if same_job(existing, candidate):
        return previous
    updated = list(previous)
    updated[index] = candidate
    return updated


def remove_job(previous: Sequence[Job], job_id: str) -> Sequence[Job]:
    if not any(job.id == job_id for job in previous):
        return previous
    return [job for job in previous if job.id != job_id]


def apply_log_line(
    previous: Sequence[Job], job_id: str, line: str, capacity: int = Limits.LOG_CAPACITY
) -> Sequence[Job]:
    # Lines for a job we have not seen yet are dropped; the next poll brings the job.
    for index, job in enumerate(previous):
        if job.id != job_id:
            continue
        logs = append_line(job.logs, line, capacity)
        if logs is job.logs:
            return previous
        updated = list(previous)
        updated[index] = job.model_copy(update={"logs": logs})
        return updated
    return previous
