from hypothesis import given, strategies as st

from core.reconcile import adopt, apply_log_line, merge_jobs, remove_job, upsert_job
from helpers import make_job
from model.job import Job


def _copy(job: Job) -> Job:
    return Job.model_validate(job.model_dump())


def test_merge_into_empty_list_takes_poll_verbatim():
    polled = [make_job("1"), make_job("2")]
    merged = merge_jobs([], polled)
    assert merged == polled
    assert all(a is b for a, b in zip(merged, polled))


def test_merge_reuses_unchanged_objects():
    previous = [make_job("1"), make_job("2", status="running", progress=40)]
    merged = merge_jobs(previous, [_copy(j) for j in previous])
    assert all(a is b for a, b in zip(merged, previous))


def test_merge_adopts_changed_job_only():
    previous = [make_job("1"), make_job("2")]
    polled = [make_job("1"), make_job("2", status="running", progress=5)]
    merged = merge_jobs(previous, polled)
    assert merged[0] is previous[0]
    assert merged[1] is polled[1]


def test_merge_follows_poll_membership_and_order():
    previous = [make_job("1"), make_job("2"), make_job("3")]
    polled = [make_job("3"), make_job("1")]
    merged = merge_jobs(previous, polled)
    assert [j.id for j in merged] == ["3", "1"]
    assert merged[0] is previous[2]


def test_merge_ignores_log_differences():
    previous = [make_job("1", logs=["a"])]
    merged = merge_jobs(previous, [make_job("1", logs=["a", "b"])])
    assert merged[0] is previous[0]


def test_merge_keeps_first_of_repeated_ids():
    first = make_job("1", status="running", progress=20)
    merged = merge_jobs([], [first, make_job("2"), make_job("1", status="done")])
    assert [j.id for j in merged] == ["1", "2"]
    assert merged[0] is first

    previous = [make_job("1")]
    merged = merge_jobs(previous, [_copy(previous[0]), make_job("1", status="error")])
    assert merged == [previous[0]]
    assert merged[0] is previous[0]


def test_adopt_keeps_event_logs_when_payload_has_none():
    existing = make_job("1", logs=["a", "b"])
    incoming = make_job("1", status="running")
    adopted = adopt(existing, incoming)
    assert adopted.status == "running"
    assert adopted.logs == ("a", "b")


def test_export_flag_never_goes_back_to_false():
    existing = make_job("1", status="done", exported_to_obsidian=True)
    stale = make_job("1", status="done", exported_to_obsidian=False)
    assert merge_jobs([existing], [stale])[0] is existing
    assert upsert_job([existing], stale)[0].exported is True


def test_upsert_prepends_new_jobs():
    job_a, job_b = make_job("a"), make_job("b")
    result = upsert_job(upsert_job([], job_a), job_b)
    assert [j.id for j in result] == ["b", "a"]


def test_upsert_unchanged_returns_same_list():
    jobs = [make_job("a"), make_job("b")]
    assert upsert_job(jobs, _copy(jobs[1])) is jobs


def test_upsert_replaces_in_place():
    jobs = [make_job("a"), make_job("b")]
    updated = make_job("a", status="running", progress=10)
    result = upsert_job(jobs, updated)
    assert [j.id for j in result] == ["a", "b"]
    assert result[0] is updated
    assert result[1] is jobs[1]
    assert jobs[0].status == "queued"


def test_remove_job():
    jobs = [make_job("a"), make_job("b")]
    assert [j.id for j in remove_job(jobs, "a")] == ["b"]
    assert remove_job(jobs, "zzz") is jobs


def test_log_line_goes_to_matching_job():
    jobs = [make_job("a"), make_job("b")]
    result = apply_log_line(jobs, "b", "transcribing")
    assert result[1].logs == ("transcribing",)
    assert result[0] is jobs[0]
    assert apply_log_line(result, "b", "transcribing") is result


def test_log_line_for_unknown_job_is_dropped():
    jobs = [make_job("a")]
    assert apply_log_line(jobs, "ghost", "hello") is jobs


def test_poll_event_poll_scenario():
    jobs = merge_jobs([], [make_job("1")])
    first = jobs[0]

    jobs = merge_jobs(jobs, [make_job("1")])
    assert jobs[0] is first

    jobs = upsert_job(jobs, make_job("1", status="running", progress=10))
    assert len(jobs) == 1
    assert jobs[0].status == "running"
    assert jobs[0].progress == 10
    updated = jobs[0]

    jobs = merge_jobs(jobs, [make_job("1", status="running", progress=10)])
    assert jobs[0] is updated


_statuses = st.sampled_from(["queued", "running", "done", "error", "cancelled"])


@given(st.lists(st.tuples(_statuses, st.integers(min_value=0, max_value=100)), max_size=8))
def test_merge_of_identical_snapshot_is_identity(rows):
    previous = [make_job(str(i), status=s, progress=p) for i, (s, p) in enumerate(rows)]
    merged = merge_jobs(previous, [_copy(j) for j in previous])
    assert len(merged) == len(previous)
    assert all(a is b for a, b in zip(merged, previous))


@given(_statuses, st.integers(min_value=0, max_value=100))
def test_event_and_poll_converge_in_either_order(status, progress):
    base = [make_job("1")]
    latest = make_job("1", status=status, progress=progress)
    poll_then_event = upsert_job(merge_jobs(base, [latest]), _copy(latest))
    event_then_poll = merge_jobs(upsert_job(base, latest), [_copy(latest)])
    assert poll_then_event[0].model_dump() == event_then_poll[0].model_dump()
