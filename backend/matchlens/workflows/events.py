"""Workflow event store and the bus recorder that feeds it.

Events are kept per workflow (the correlation id as a string) in process
memory. The total number retained is capped; once full, the oldest events
are dropped first. Live subscribers (the SSE endpoint) receive each event
on an asyncio.Queue as it is recorded.
"""

import asyncio
import logging
import uuid
from collections import deque
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from matchlens.core.config import settings
from matchlens.messaging.contracts import MatchPredictionCompleted, MatchPredictionRequested
from matchlens.workflows.metrics import WorkflowMetrics, get_workflow_metrics

logger = logging.getLogger(__name__)

WORKFLOW_NODE = "workflow"
MATCH_PREDICTION = "match_prediction"
BATCH_PREDICTION = "batch_prediction"
SUBSCRIBER_QUEUE_SIZE = 100


class WorkflowEvent(BaseModel):
    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    workflow_id: str
    event_type: str
    node_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    data: dict[str, Any] | None = None


class BatchInfo(BaseModel):
    batch_id: str
    correlation_ids: list[uuid.UUID]
    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class WorkflowEventStore:
    """Bounded in-memory event log with live subscriptions and a batch registry."""

    def __init__(self, max_events: int | None = None):
        self.max_events = max_events or settings.workflow_max_events_to_retain
        self._events: dict[str, list[WorkflowEvent]] = {}
        self._order: deque[WorkflowEvent] = deque()
        self._subscribers: dict[str, set[asyncio.Queue[WorkflowEvent]]] = {}
        self._batches: dict[str, BatchInfo] = {}
        self._started_at: dict[str, datetime] = {}

    @property
    def total_events(self) -> int:
        return len(self._order)

    def record(
        self,
        workflow_id: str | uuid.UUID,
        event_type: str,
        node_id: str,
        data: dict[str, Any] | None = None,
    ) -> WorkflowEvent:
        """Append an event and push it to live subscribers."""
        event = WorkflowEvent(
            workflow_id=str(workflow_id), event_type=event_type, node_id=node_id, data=data
        )
        self._events.setdefault(event.workflow_id, []).append(event)
        self._order.append(event)

        while len(self._order) > self.max_events:
            oldest = self._order.popleft()
            bucket = self._events.get(oldest.workflow_id)
            if bucket:
                bucket.pop(0)
                if not bucket:
                    del self._events[oldest.workflow_id]
                    self._started_at.pop(oldest.workflow_id, None)

        for queue in self._subscribers.get(event.workflow_id, ()):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.debug(f"[Workflow] Subscriber queue full for {event.workflow_id}, event dropped")

        if settings.workflow_enable_telemetry:
            logger.debug(f"[Workflow] {event.workflow_id} {node_id} {event_type}")
        return event

    def get_events(self, workflow_id: str | uuid.UUID) -> list[WorkflowEvent]:
        return list(self._events.get(str(workflow_id), []))

    def has_events(self, workflow_id: str | uuid.UUID) -> bool:
        return str(workflow_id) in self._events

    def mark_started(self, workflow_id: str | uuid.UUID, at: datetime) -> None:
        """Remember when a workflow began; survives eviction of its early events."""
        self._started_at.setdefault(str(workflow_id), at)

    def started_at(self, workflow_id: str | uuid.UUID) -> datetime | None:
        return self._started_at.get(str(workflow_id))

    def subscribe(self, workflow_id: str | uuid.UUID) -> asyncio.Queue[WorkflowEvent]:
        queue: asyncio.Queue[WorkflowEvent] = asyncio.Queue(maxsize=SUBSCRIBER_QUEUE_SIZE)
        self._subscribers.setdefault(str(workflow_id), set()).add(queue)
        return queue

    def unsubscribe(self, workflow_id: str | uuid.UUID, queue: asyncio.Queue[WorkflowEvent]) -> None:
        key = str(workflow_id)
        queues = self._subscribers.get(key)
        if queues is None:
            return
        queues.discard(queue)
        if not queues:
            del self._subscribers[key]

    def register_batch(self, batch_id: str | uuid.UUID, correlation_ids: list[uuid.UUID]) -> BatchInfo:
        info = BatchInfo(batch_id=str(batch_id), correlation_ids=list(correlation_ids))
        self._batches[info.batch_id] = info
        self.record(info.batch_id, "started", WORKFLOW_NODE, {
            "workflow_type": BATCH_PREDICTION,
            "batch_size": len(info.correlation_ids),
        })
        return info

    def get_batch(self, batch_id: str | uuid.UUID) -> BatchInfo | None:
        return self._batches.get(str(batch_id))


def workflow_outcome(events: list[WorkflowEvent]) -> WorkflowEvent | None:
    """The terminal workflow-level event, if any."""
    for event in events:
        if event.node_id == WORKFLOW_NODE and event.event_type in ("completed", "failed"):
            return event
    return None


class WorkflowRecorder:
    """Turns prediction messages into workflow events and metrics."""

    def __init__(self, store: WorkflowEventStore, metrics: WorkflowMetrics | None = None):
        self.store = store
        self.metrics = metrics or get_workflow_metrics()

    async def on_requested(self, message: MatchPredictionRequested) -> None:
        if self.store.has_events(message.correlation_id):
            return
        self.store.record(message.correlation_id, "started", WORKFLOW_NODE, {
            "workflow_type": MATCH_PREDICTION,
            "match_id": str(message.match_id),
        })
        self.store.mark_started(message.correlation_id, message.requested_at)
        self.metrics.record_workflow_started(MATCH_PREDICTION)

    async def on_completed(self, message: MatchPredictionCompleted) -> None:
        events = self.store.get_events(message.correlation_id)
        if not events or workflow_outcome(events) is not None:
            return

        if message.success:
            started = self.store.started_at(message.correlation_id) or events[0].timestamp
            duration_ms = max(0.0, (message.completed_at - started).total_seconds() * 1000)
            self.store.record(message.correlation_id, "completed", WORKFLOW_NODE, {
                "prediction_id": str(message.prediction_id),
                "confidence": message.confidence,
                "duration_ms": round(duration_ms, 1),
            })
            self.metrics.record_workflow_completed(MATCH_PREDICTION, duration_ms)
        else:
            self.store.record(message.correlation_id, "failed", WORKFLOW_NODE, {
                "error": message.error_message,
            })
            self.metrics.record_workflow_failed(MATCH_PREDICTION, "prediction_failed")


_store: WorkflowEventStore | None = None


def get_workflow_event_store() -> WorkflowEventStore:
    global _store
    if _store is None:
        _store = WorkflowEventStore()
    return _store
