# config/settings.py
import os
import sys
from dotenv import load_dotenv
from pydantic import ValidationError, Field
from pydantic_settings import BaseSettings
from util.enums import Environment
import logging


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()

_log = logging.getLogger("config.settings")


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(default=Environment.DEV.value, validation_alias="APP_ENV")

    # Pipeline command interface
    PIPELINE_URL: str = Field(
        default="http://127.0.0.1:8765", validation_alias="PIPELINE_URL"
    )
    PIPELINE_TIMEOUT_SECONDS: float = Field(
        default=10.0, validation_alias="PIPELINE_TIMEOUT_SECONDS"
    )

    # Push events
    REDIS_URL: str = Field(
        default="redis://127.0.0.1:6379/0", validation_alias="REDIS_URL"
    )
    EVENT_CHANNEL_PREFIX: str = Field(
        default="voicenote:events", validation_alias="EVENT_CHANNEL_PREFIX"
    )

    # Live updates
    POLL_INTERVAL_MS: int = Field(default=1000, gt=0, validation_alias="POLL_INTERVAL_MS")
    DOWNLOAD_POLL_INTERVAL_MS: int = Field(
        default=1000, gt=0, validation_alias="DOWNLOAD_POLL_INTERVAL_MS"
    )
    SUMMARY_POLL_INTERVAL_MS: int = Field(
        default=1000, gt=0, validation_alias="SUMMARY_POLL_INTERVAL_MS"
    )

    # Logging knobs
    LOGGER_NAME: str = "voicenote-sync"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="sync.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=10 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")

    @property
    def poll_interval(self) -> float:
        return self.POLL_INTERVAL_MS / 1000

    @property
    def download_poll_interval(self) -> float:
        return self.DOWNLOAD_POLL_INTERVAL_MS / 1000

    @property
    def summary_poll_interval(self) -> float:
        return self.SUMMARY_POLL_INTERVAL_MS / 1000


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)
