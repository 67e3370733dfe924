# util/enums.py
from enum import Enum
from typing import NamedTuple


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    BOLD = "\033[1m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class Topic(str, Enum):
    JOB_UPDATED = "job:updated"
    JOB_LOG = "job:log"

    def __str__(self):
        return self.value


class ErrorInfo(NamedTuple):
    message: str


class ErrorMessage(Enum):
    PIPELINE_UNREACHABLE = ErrorInfo("Pipeline is unreachable")
    MALFORMED_RESPONSE = ErrorInfo("Pipeline returned a malformed response")
    UNSUPPORTED_FILE = ErrorInfo("Unsupported audio file (use mp3, m4a or wav)")
    DOWNLOAD_FAILED = ErrorInfo("Download could not be started")
    BINARY_URL_MISSING = ErrorInfo("Engine binary download URL is not configured")
    SUMMARY_LOAD_FAILED = ErrorInfo("Summary could not be loaded")
