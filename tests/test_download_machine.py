from hypothesis import given, strategies as st

from core.download_machine import advance, entered_done, is_active, is_terminal
from helpers import make_status


def test_first_status_is_taken_as_is():
    polled = make_status(downloaded=10, total=100)
    assert advance(None, polled) is polled


def test_downloaded_bytes_never_go_back_within_a_run():
    current = make_status(downloaded=60, total=100)
    result = advance(current, make_status(downloaded=40, total=100))
    assert result.downloaded_bytes == 60
    assert result.state == "downloading"


def test_terminal_state_is_not_left_by_same_run():
    done = make_status("done", downloaded=100, total=100)
    assert advance(done, make_status(downloaded=50, total=100)) is done


def test_new_run_leaves_terminal_state():
    failed = make_status("error", message="network down")
    fresh = make_status(downloaded=0, total=100, started_at=200)
    assert advance(failed, fresh) is fresh


def test_downloading_to_done():
    current = make_status(downloaded=90, total=100)
    done = make_status("done", downloaded=100, total=100)
    assert advance(current, done) is done


def test_entered_done():
    running = make_status(downloaded=90, total=100)
    done = make_status("done", downloaded=100, total=100)
    assert entered_done(running, done)
    assert entered_done(None, done)
    assert not entered_done(done, done)
    assert not entered_done(running, running)


@given(st.lists(st.integers(min_value=0, max_value=1000), min_size=1, max_size=30))
def test_polled_downloading_sequence_is_monotonic(samples):
    current = None
    seen = []
    for downloaded in samples:
        current = advance(current, make_status(downloaded=downloaded, total=1000))
        seen.append(current.downloaded_bytes)
    assert seen == sorted(seen)
    assert all(value <= 1000 for value in seen)


def test_active_and_terminal_helpers():
    assert is_active(make_status())
    assert not is_active(None)
    assert not is_active(make_status("idle"))
    assert is_terminal(make_status("error"))
    assert is_terminal(make_status("done"))
    assert not is_terminal(None)
