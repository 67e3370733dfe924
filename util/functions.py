# util/functions.py
import math
import os
from typing import Optional

from util.constants import Limits


def is_supported_audio(path: str) -> bool:
    return os.path.splitext(path or "")[1].lower() in Limits.SUPPORTED_AUDIO_EXTENSIONS


def progress_percent(downloaded: int, total: int) -> Optional[int]:
    """
    - Whole-number percentage of `downloaded` over `total`, rounded half-up.
    - Returns None when the total is unknown, so callers can show an indeterminate bar.
    """
    if total <= 0:
        return None
    return math.floor(downloaded / total * 100 + 0.5)


def error_text(exc: BaseException, fallback: str) -> str:
    message = getattr(exc, "message", None) or str(exc)
    return message.strip() or fallback
