"""
Job dispatchers.

The engine hands every accepted trigger to a dispatcher. Dispatchers only
enqueue; running the job is the worker's business.
"""

import logging
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

import redis

from rowgate.contracts.events import JobEnvelope
from rowgate.redis import get_redis_client, publish_to_stream
from rowgate.settings import get_settings

logger = logging.getLogger(__name__)


@runtime_checkable
class JobDispatcher(Protocol):
    def enqueue(self, target: str, args: Mapping[str, Any], options: Mapping[str, Any]) -> Any:
        """Enqueue one job. Args are already JSON-safe."""
        ...


class LoggingJobDispatcher:
    """
    Stand-in used when no job queue is configured.

    Nothing is enqueued; each dispatch is logged so the missing queue is
    visible.
    """

    def enqueue(self, target, args, options):
        logger.warning(
            f"No job queue configured, dropping job {target}",
            extra={"target": target, "job_args": dict(args), "job_options": dict(options or {})},
        )
        return None


class RedisStreamJobDispatcher:
    """
    Enqueues jobs as envelopes on a Redis stream.

    A worker reads the stream (consumer group) and dispatches on
    ``envelope.target``.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        stream: str | None = None,
        max_len: int | None = None,
    ):
        settings = get_settings()
        self.redis = redis_client if redis_client is not None else get_redis_client()
        self.stream = stream or settings.job_stream
        self.max_len = max_len or settings.job_stream_max_len

    def enqueue(self, target, args, options) -> str:
        """
        Publish a job envelope.

        Returns:
            Stream message ID
        """
        envelope = JobEnvelope.create(target=target, args=dict(args), options=dict(options or {}))

        msg_id = publish_to_stream(self.redis, self.stream, envelope.to_stream_data(), max_len=self.max_len)

        logger.debug(
            f"Enqueued {target} to {self.stream}",
            extra={
                "stream": self.stream,
                "target": target,
                "job_id": str(envelope.job_id),
                "msg_id": msg_id,
            },
        )

        return msg_id
