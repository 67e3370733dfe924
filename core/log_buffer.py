# core/log_buffer.py
from typing import Sequence, Tuple
from util.constants import Limits

LogLines = Tuple[str, ...]


def append_line(
    buffer: LogLines, line: str, capacity: int = Limits.LOG_CAPACITY
) -> LogLines:
    """
    Append one pushed log line to a job's buffer.
      - the push channel may resend the last line it sent: an exact repeat of the
        current last line returns `buffer` itself
      - otherwise returns a new tuple holding at most `capacity` lines, oldest dropped first
    """
    if buffer and buffer[-1] == line:
        return buffer
    lines = buffer + (line,)
    if len(lines) > capacity:
        lines = lines[len(lines) - capacity :]
    return lines


def bounded(lines: Sequence[str], capacity: int = Limits.LOG_CAPACITY) -> LogLines:
    return tuple(lines[-capacity:]) if capacity > 0 else ()
