"""
Change events and job envelopes.

ChangeNotice is the pub/sub payload sent after a mutation. JobEnvelope wraps a
dispatched trigger on its way to a durable queue (Redis stream).
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


class ChangeEvent(str, Enum):
    """Mutation kinds announced to subscribers."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ChangeNotice:
    """
    Minimal change notification.

    Carries no record data: subscribers use it to invalidate whatever they
    cached for the resource and refetch through the engine.
    """

    event: ChangeEvent
    resource: str
    id: Any

    def to_dict(self) -> dict[str, Any]:
        return {"event": self.event.value, "resource": self.resource, "id": self.id}


@dataclass
class JobEnvelope:
    """
    Envelope for a job handed to a durable queue.

    Attributes:
        job_id: Unique identifier for this enqueue
        target: Action identifier the worker dispatches on
        args: Normalized (JSON-safe) arguments
        options: Dispatch options passed through untouched (queue, priority, ...)
        enqueued_at: When the job was enqueued (UTC)
    """

    job_id: UUID
    target: str
    args: dict[str, Any]
    enqueued_at: datetime
    options: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        target: str,
        args: dict[str, Any],
        options: dict[str, Any] | None = None,
    ) -> "JobEnvelope":
        """Create a new envelope with auto-generated job_id and timestamp."""
        return cls(
            job_id=uuid4(),
            target=target,
            args=args,
            enqueued_at=datetime.now(timezone.utc),
            options=options or {},
        )

    def to_stream_data(self) -> dict[str, str]:
        """Convert to dictionary suitable for Redis Stream (all string values)."""
        return {
            "job_id": str(self.job_id),
            "target": self.target,
            "args": json.dumps(self.args),
            "options": json.dumps(self.options, default=str),
            "enqueued_at": self.enqueued_at.isoformat(),
        }
