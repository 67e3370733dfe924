# repository/namespaces.py
from typing import Final
from config.settings import settings
from util.enums import Topic

ROOT: Final[str] = settings.EVENT_CHANNEL_PREFIX


def channel(topic: Topic, root: str = ROOT) -> str:
    # e.g. voicenote:events:job:updated
    return f"{root}:{topic.value}"
