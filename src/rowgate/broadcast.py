"""
Change broadcasts.

Once a mutation commits the engine announces ``{event, resource, id}`` on
a topic derived from the record. Subscribers refetch through the engine; no
record data travels on the bus.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import redis

from rowgate.contracts.events import ChangeEvent, ChangeNotice
from rowgate.redis import get_redis_client, publish_to_channel
from rowgate.serialization import to_jsonable

logger = logging.getLogger(__name__)


@runtime_checkable
class Publisher(Protocol):
    def publish(self, topic: str, payload: dict[str, Any]) -> Any: ...


class RedisPublisher:
    """Publishes notices as JSON on Redis pub/sub channels."""

    def __init__(self, client: redis.Redis | None = None):
        self.client = client if client is not None else get_redis_client()

    def publish(self, topic, payload):
        return publish_to_channel(self.client, topic, json.dumps(payload))


@dataclass(frozen=True)
class PendingBroadcast:
    """A notice built from the mutated record, waiting to be published."""

    publisher: Publisher
    topic: str
    payload: dict[str, Any]

    def send(self) -> None:
        self.publisher.publish(self.topic, self.payload)
        logger.debug(
            f"Broadcast {self.payload['event']} on {self.topic}",
            extra={
                "topic": self.topic,
                "resource": self.payload["resource"],
                "event": self.payload["event"],
                "id": self.payload["id"],
            },
        )


def prepare_broadcast(
    event: ChangeEvent,
    resource_name: str,
    pk_value: Any,
    before: Any,
    after: Any,
    config: Any,
    publisher: Publisher | None = None,
) -> PendingBroadcast | None:
    """
    Build the change notice for a resource with a broadcast configured.

    The topic and payload are computed while the records are still loaded;
    publishing happens later through ``PendingBroadcast.send``.

    Args:
        event: created / updated / deleted
        resource_name: Registered resource name
        pk_value: Primary key of the changed row
        before: Record before the change (None for creates)
        after: Record after the change (None for deletes)
        config: BroadcastConfig or None
        publisher: Fallback publisher when config names none

    Returns:
        PendingBroadcast, or None if nothing should be published
    """
    if config is None:
        return None

    publisher = config.publisher or publisher
    if publisher is None:
        logger.warning(
            f"Broadcast configured for {resource_name} but no publisher is available",
            extra={"resource": resource_name, "event": str(event)},
        )
        return None

    topic = config.topic(after if after is not None else before)
    payload = ChangeNotice(event=ChangeEvent(event), resource=resource_name, id=to_jsonable(pk_value)).to_dict()
    return PendingBroadcast(publisher=publisher, topic=topic, payload=payload)
