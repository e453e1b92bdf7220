"""Unit tests for the workflow event store and recorder."""

import asyncio
import uuid
from datetime import UTC, datetime, timedelta

import pytest

from matchlens.messaging.contracts import (
    EMPTY_UUID,
    MatchPredictionCompleted,
    MatchPredictionRequested,
)
from matchlens.workflows.events import (
    SUBSCRIBER_QUEUE_SIZE,
    WORKFLOW_NODE,
    WorkflowEventStore,
    WorkflowRecorder,
    workflow_outcome,
)
from matchlens.workflows.metrics import WorkflowMetrics


class TestWorkflowEventStore:
    """Recording, retention and subscriptions."""

    def test_events_are_kept_per_workflow_in_order(self, event_store: WorkflowEventStore):
        """Events are grouped by workflow and kept in order."""
        workflow_id = uuid.uuid4()
        event_store.record(workflow_id, "started", "receive_request")
        event_store.record(workflow_id, "completed", "receive_request")
        event_store.record(uuid.uuid4(), "started", "receive_request")

        events = event_store.get_events(workflow_id)

        assert [e.event_type for e in events] == ["started", "completed"]
        assert all(e.workflow_id == str(workflow_id) for e in events)

    def test_unknown_workflow_has_no_events(self, event_store: WorkflowEventStore):
        """An unknown workflow has no events."""
        assert event_store.get_events(uuid.uuid4()) == []
        assert event_store.has_events(uuid.uuid4()) is False

    def test_oldest_events_are_evicted_first(self):
        """The retention cap drops the oldest events first."""
        store = WorkflowEventStore(max_events=3)
        first, second = uuid.uuid4(), uuid.uuid4()
        store.record(first, "started", "a")
        store.record(first, "completed", "a")
        store.record(second, "started", "a")
        store.record(second, "completed", "a")

        assert store.total_events == 3
        assert [e.event_type for e in store.get_events(first)] == ["completed"]
        assert len(store.get_events(second)) == 2

    def test_fully_evicted_workflow_is_forgotten(self):
        """A workflow whose events are all evicted is forgotten."""
        store = WorkflowEventStore(max_events=1)
        first = uuid.uuid4()
        store.record(first, "started", "a")
        store.record(uuid.uuid4(), "started", "a")

        assert store.has_events(first) is False

    @pytest.mark.asyncio
    async def test_subscribers_receive_new_events(self, event_store: WorkflowEventStore):
        """Subscribers get each new event on their queue."""
        workflow_id = uuid.uuid4()
        queue = event_store.subscribe(workflow_id)

        recorded = event_store.record(workflow_id, "started", "fetch_match")

        received = await asyncio.wait_for(queue.get(), timeout=1)
        assert received.event_id == recorded.event_id

    def test_unsubscribed_queue_receives_nothing(self, event_store: WorkflowEventStore):
        """An unsubscribed queue receives no further events."""
        workflow_id = uuid.uuid4()
        queue = event_store.subscribe(workflow_id)
        event_store.unsubscribe(workflow_id, queue)

        event_store.record(workflow_id, "started", "fetch_match")

        assert queue.empty()

    def test_full_subscriber_queue_drops_events(self, event_store: WorkflowEventStore):
        """A full subscriber queue drops events instead of blocking."""
        workflow_id = uuid.uuid4()
        queue = event_store.subscribe(workflow_id)

        for _ in range(SUBSCRIBER_QUEUE_SIZE + 5):
            event_store.record(workflow_id, "started", "fetch_match")

        assert queue.qsize() == SUBSCRIBER_QUEUE_SIZE
        assert len(event_store.get_events(workflow_id)) == SUBSCRIBER_QUEUE_SIZE + 5

    def test_register_batch(self, event_store: WorkflowEventStore):
        """Registering a batch records its started event."""
        batch_id = uuid.uuid4()
        members = [uuid.uuid4(), uuid.uuid4()]

        info = event_store.register_batch(batch_id, members)

        assert event_store.get_batch(batch_id) == info
        events = event_store.get_events(batch_id)
        assert events[0].node_id == WORKFLOW_NODE
        assert events[0].data == {"workflow_type": "batch_prediction", "batch_size": 2}


class TestWorkflowRecorder:
    """Prediction messages become workflow-level events."""

    @pytest.fixture
    def recorder(self, event_store: WorkflowEventStore, metrics: WorkflowMetrics) -> WorkflowRecorder:
        return WorkflowRecorder(event_store, metrics)

    @pytest.mark.asyncio
    async def test_request_then_success(self, recorder: WorkflowRecorder, metrics: WorkflowMetrics):
        """A success is recorded with confidence and duration."""
        request = MatchPredictionRequested(match_id=uuid.uuid4(), correlation_id=uuid.uuid4())
        await recorder.on_requested(request)
        await recorder.on_completed(
            MatchPredictionCompleted(
                match_id=request.match_id,
                prediction_id=uuid.uuid4(),
                correlation_id=request.correlation_id,
                success=True,
                confidence=0.8,
                completed_at=request.requested_at + timedelta(seconds=2),
            )
        )

        events = recorder.store.get_events(request.correlation_id)
        outcome = workflow_outcome(events)
        assert outcome is not None
        assert outcome.event_type == "completed"
        assert outcome.data is not None
        assert outcome.data["confidence"] == 0.8
        assert outcome.data["duration_ms"] == 2000.0
        completed = metrics.registry.get_sample_value(
            "matchlens_workflows_completed_total", {"workflow_type": "match_prediction"}
        )
        assert completed == 1.0

    @pytest.mark.asyncio
    async def test_failure_is_recorded(self, recorder: WorkflowRecorder, metrics: WorkflowMetrics):
        """A failure is recorded with its error."""
        request = MatchPredictionRequested(match_id=uuid.uuid4(), correlation_id=uuid.uuid4())
        await recorder.on_requested(request)
        await recorder.on_completed(
            MatchPredictionCompleted(
                match_id=request.match_id,
                prediction_id=EMPTY_UUID,
                correlation_id=request.correlation_id,
                success=False,
                error_message="Match not found",
            )
        )

        outcome = workflow_outcome(recorder.store.get_events(request.correlation_id))
        assert outcome is not None
        assert outcome.event_type == "failed"
        assert outcome.data == {"error": "Match not found"}
        failed = metrics.registry.get_sample_value(
            "matchlens_workflows_failed_total",
            {"workflow_type": "match_prediction", "error_type": "prediction_failed"},
        )
        assert failed == 1.0

    @pytest.mark.asyncio
    async def test_duplicate_request_recorded_once(self, recorder: WorkflowRecorder):
        """A repeated request does not restart the workflow."""
        request = MatchPredictionRequested(match_id=uuid.uuid4(), correlation_id=uuid.uuid4())
        await recorder.on_requested(request)
        await recorder.on_requested(request)

        assert len(recorder.store.get_events(request.correlation_id)) == 1

    @pytest.mark.asyncio
    async def test_completion_without_request_is_ignored(self, recorder: WorkflowRecorder):
        """A completion for an unknown workflow records nothing."""
        correlation_id = uuid.uuid4()
        await recorder.on_completed(
            MatchPredictionCompleted(
                match_id=uuid.uuid4(),
                prediction_id=uuid.uuid4(),
                correlation_id=correlation_id,
                success=True,
            )
        )

        assert recorder.store.get_events(correlation_id) == []

    @pytest.mark.asyncio
    async def test_duration_survives_eviction_of_started_event(self, metrics: WorkflowMetrics):
        """Duration runs from the request even after the workflow's first events are evicted."""
        recorder = WorkflowRecorder(WorkflowEventStore(max_events=3), metrics)
        request = MatchPredictionRequested(match_id=uuid.uuid4(), correlation_id=uuid.uuid4())
        await recorder.on_requested(request)
        for node_id in ("fetch_match", "invoke_agent", "save_prediction"):
            recorder.store.record(request.correlation_id, "started", node_id)

        await recorder.on_completed(
            MatchPredictionCompleted(
                match_id=request.match_id,
                prediction_id=uuid.uuid4(),
                correlation_id=request.correlation_id,
                success=True,
                confidence=0.7,
                completed_at=request.requested_at + timedelta(seconds=10),
            )
        )

        outcome = workflow_outcome(recorder.store.get_events(request.correlation_id))
        assert outcome is not None
        assert outcome.data is not None
        assert outcome.data["duration_ms"] == 10000.0

    def test_start_time_forgotten_with_workflow(self):
        """Once every event of a workflow is evicted its start time goes too."""
        store = WorkflowEventStore(max_events=1)
        first = uuid.uuid4()
        store.record(first, "started", WORKFLOW_NODE)
        store.mark_started(first, datetime.now(UTC))

        store.record(uuid.uuid4(), "started", WORKFLOW_NODE)

        assert store.started_at(first) is None
