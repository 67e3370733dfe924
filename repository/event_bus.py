# repository/event_bus.py
import asyncio
import logging
from typing import Awaitable, Callable, Optional, Protocol
from redis.asyncio import Redis
from redis.asyncio.client import PubSub
from config.cache import get_redis
from repository.namespaces import ROOT, channel
from util.enums import Topic
from util.errors import SubscriptionError

logger = logging.getLogger(__name__)

EventHandler = Callable[[bytes], None]


class SubscriptionHandle(Protocol):
    async def close(self) -> None: ...


class EventSource(Protocol):
    async def subscribe(
        self, topic: Topic, handler: EventHandler
    ) -> SubscriptionHandle: ...


class Subscription:
    """
    Live subscription to one topic. Delivery stops only through close();
    nothing is torn down on garbage collection.
    """

    def __init__(self, topic: Topic, pubsub: PubSub, handler: EventHandler) -> None:
        self.topic = topic
        self._pubsub = pubsub
        self._handler = handler
        self._closed = False
        self._task: asyncio.Task[None] = asyncio.create_task(
            self._pump(), name=f"events:{topic.value}"
        )

    @property
    def closed(self) -> bool:
        return self._closed

    async def _pump(self) -> None:
        try:
            async for message in self._pubsub.listen():
                if message.get("type") != "message":
                    continue
                data = message.get("data")
                if isinstance(data, str):
                    data = data.encode("utf-8")
                try:
                    self._handler(data)
                except Exception:
                    # One bad event must not end the stream
                    logger.exception("events.handler.error topic=%s", self.topic)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(
                "events.reader.stopped topic=%s err=%s", self.topic, type(e).__name__
            )

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        try:
            await self._pubsub.unsubscribe()
        except Exception as e:
            logger.warning(
                "events.unsubscribe.error topic=%s err=%s", self.topic, type(e).__name__
            )
        finally:
            await self._pubsub.aclose()
        logger.debug("events.closed topic=%s", self.topic)


class RedisEventBus:
    """
    Push channel of the pipeline over Redis pub/sub.
    Payloads are JSON documents published on `<prefix>:<topic>`.
    """

    def __init__(
        self,
        redis: Optional[Callable[[], Awaitable[Redis]]] = None,
        root: str = ROOT,
    ) -> None:
        self._redis = redis or get_redis
        self._root = root

    async def subscribe(self, topic: Topic, handler: EventHandler) -> Subscription:
        name = channel(topic, self._root)
        try:
            r = await self._redis()
        except Exception as e:
            raise SubscriptionError(f"Event channel unavailable: {name}") from e

        pubsub = r.pubsub(ignore_subscribe_messages=True)
        try:
            await pubsub.subscribe(name)
        except Exception as e:
            await pubsub.aclose()
            raise SubscriptionError(f"Could not subscribe to {name}") from e

        logger.info("events.subscribed channel=%s", name)
        return Subscription(topic, pubsub, handler)
