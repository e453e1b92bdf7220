"""Integration tests for prediction endpoints."""

import uuid
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi.testclient import TestClient

from matchlens.core.exceptions import NotFoundError
from matchlens.db.services.dtos import PredictionDTO
from matchlens.llm.prediction_agent import AgentQueryResult
from matchlens.messaging.bus import MessageBus
from matchlens.messaging.contracts import MatchPredictionRequested
from matchlens.workflows.events import WorkflowEventStore
from matchlens.workflows.saga import PredictionSagaState, SagaState

MATCH_ID = uuid.uuid4()


def _prediction() -> PredictionDTO:
    return PredictionDTO(
        id=uuid.uuid4(),
        match_id=MATCH_ID,
        home_team_name="Arsenal FC",
        away_team_name="Chelsea FC",
        home_win_probability=0.5,
        draw_probability=0.3,
        away_win_probability=0.2,
        confidence=0.6,
        model_version="llama3.2",
        predicted_at=datetime(2026, 2, 1, tzinfo=UTC),
    )


def _bus() -> MagicMock:
    bus = MagicMock()
    bus.publish = AsyncMock()
    bus.free_capacity = 100
    return bus


class TestGeneratePrediction:
    """Tests for POST /api/predictions/generate."""

    @patch("matchlens.api.routes.predictions.PredictionService")
    def test_created_with_location(self, mock_service: MagicMock, client: TestClient):
        """A generated prediction answers 201 with a Location header."""
        mock_service.generate_prediction = AsyncMock(return_value=_prediction())

        response = client.post(
            "/api/predictions/generate",
            json={"match_id": str(MATCH_ID), "additional_context": "Derby"},
        )

        assert response.status_code == 201
        assert response.headers["Location"] == f"/api/predictions/match/{MATCH_ID}"
        assert response.json()["home_win_probability"] == 0.5
        mock_service.generate_prediction.assert_awaited_once_with(MATCH_ID, "Derby")

    @patch("matchlens.api.routes.predictions.PredictionService")
    def test_unknown_match(self, mock_service: MagicMock, client: TestClient):
        """An unknown match answers 404 with the error body."""
        mock_service.generate_prediction = AsyncMock(side_effect=NotFoundError(f"Match {MATCH_ID} not found"))

        response = client.post("/api/predictions/generate", json={"match_id": str(MATCH_ID)})

        assert response.status_code == 404
        assert response.json()["message"] == f"Match {MATCH_ID} not found"

    def test_invalid_match_id(self, client: TestClient):
        """A malformed match id answers 422."""
        response = client.post("/api/predictions/generate", json={"match_id": "nope"})

        assert response.status_code == 422

    @patch("matchlens.api.routes.predictions.PredictionService")
    def test_predictions_for_match(self, mock_service: MagicMock, client: TestClient):
        """Stored predictions of a match are listed."""
        mock_service.get_predictions_for_match = AsyncMock(return_value=[_prediction()])

        response = client.get(f"/api/predictions/match/{MATCH_ID}")

        assert response.status_code == 200
        assert len(response.json()) == 1


class TestQueryAgent:
    """Tests for POST /api/predictions/query."""

    @patch("matchlens.api.routes.predictions.get_football_agent")
    @patch("matchlens.api.routes.predictions.PredictionService")
    def test_query_with_match_context(
        self, mock_service: MagicMock, mock_agent: MagicMock, client: TestClient
    ):
        """A query with a match id passes the match context."""
        mock_service.build_match_context = AsyncMock(return_value="Match: Arsenal FC vs Chelsea FC on 2026-02-05")
        mock_agent.return_value.query = AsyncMock(
            return_value=AgentQueryResult(response="Arsenal by one.", model_version="llama3.2")
        )

        response = client.post(
            "/api/predictions/query", json={"query": "Who wins?", "match_id": str(MATCH_ID)}
        )

        assert response.status_code == 200
        assert response.json() == {
            "response": "Arsenal by one.",
            "model_version": "llama3.2",
            "confidence": None,
        }
        mock_agent.return_value.query.assert_awaited_once_with(
            "Who wins?", "Match: Arsenal FC vs Chelsea FC on 2026-02-05"
        )

    def test_empty_query_rejected(self, client: TestClient):
        """An empty query answers 422."""
        response = client.post("/api/predictions/query", json={"query": ""})

        assert response.status_code == 422


class TestPredictionWorkflows:
    """Tests for the saga-driven endpoints."""

    @patch("matchlens.api.routes.predictions.get_message_bus")
    def test_trigger_match_workflow(self, mock_get_bus: MagicMock, client: TestClient):
        """Triggering a workflow answers 202 and publishes the request."""
        bus = _bus()
        mock_get_bus.return_value = bus

        response = client.post(
            f"/api/predictions/workflow/match/{MATCH_ID}", json={"additional_context": "Derby"}
        )

        assert response.status_code == 202
        body = response.json()
        assert body["match_id"] == str(MATCH_ID)
        assert response.headers["Location"] == f"/api/predictions/{body['correlation_id']}/status"
        message = bus.publish.await_args.args[0]
        assert isinstance(message, MatchPredictionRequested)
        assert str(message.correlation_id) == body["correlation_id"]
        assert message.additional_context == "Derby"

    @patch("matchlens.api.routes.predictions.get_message_bus")
    def test_trigger_without_body(self, mock_get_bus: MagicMock, client: TestClient):
        """A workflow can be triggered without a body."""
        mock_get_bus.return_value = _bus()

        response = client.post(f"/api/predictions/workflow/match/{MATCH_ID}")

        assert response.status_code == 202

    @patch("matchlens.api.routes.predictions.get_workflow_event_store")
    @patch("matchlens.api.routes.predictions.get_message_bus")
    def test_trigger_batch(
        self,
        mock_get_bus: MagicMock,
        mock_get_store: MagicMock,
        client: TestClient,
        event_store: WorkflowEventStore,
    ):
        """A batch is registered and one request published per match."""
        bus = _bus()
        mock_get_bus.return_value = bus
        mock_get_store.return_value = event_store
        match_ids = [str(uuid.uuid4()) for _ in range(3)]

        response = client.post("/api/predictions/workflow/batch", json={"match_ids": match_ids})

        assert response.status_code == 202
        body = response.json()
        assert body["count"] == 3
        assert len(set(body["correlation_ids"])) == 3
        assert bus.publish.await_count == 3
        batch = event_store.get_batch(body["batch_id"])
        assert batch is not None
        assert [str(c) for c in batch.correlation_ids] == body["correlation_ids"]

    @patch("matchlens.api.routes.predictions.get_workflow_event_store")
    @patch("matchlens.api.routes.predictions.get_message_bus")
    def test_batch_larger_than_bus_capacity(
        self,
        mock_get_bus: MagicMock,
        mock_get_store: MagicMock,
        client: TestClient,
        event_store: WorkflowEventStore,
    ):
        """A batch the bus cannot hold is rejected before anything is queued."""
        bus = MessageBus(max_queue_size=2)
        mock_get_bus.return_value = bus
        mock_get_store.return_value = event_store
        match_ids = [str(uuid.uuid4()) for _ in range(3)]

        response = client.post("/api/predictions/workflow/batch", json={"match_ids": match_ids})

        assert response.status_code == 400
        assert response.json()["error"] == "WorkflowError"
        assert response.json()["details"] == {"batch_size": 3, "free_capacity": 2}
        assert bus.pending_count == 0
        assert event_store.total_events == 0

    def test_empty_batch_rejected(self, client: TestClient):
        """An empty batch answers 400."""
        response = client.post("/api/predictions/workflow/batch", json={"match_ids": []})

        assert response.status_code == 400

    @patch("matchlens.api.routes.predictions.get_saga_repository")
    def test_workflow_status(self, mock_get_repository: MagicMock, client: TestClient):
        """Saga state is returned for a known correlation id."""
        correlation_id = uuid.uuid4()
        state = PredictionSagaState(
            correlation_id=correlation_id,
            current_state=SagaState.COMPLETED,
            match_id=MATCH_ID,
            prediction_id=uuid.uuid4(),
            confidence=0.6,
            requested_at=datetime(2026, 2, 1, tzinfo=UTC),
            completed_at=datetime(2026, 2, 1, 0, 0, 5, tzinfo=UTC),
        )
        mock_get_repository.return_value.get = AsyncMock(return_value=state)

        response = client.get(f"/api/predictions/{correlation_id}/status")

        assert response.status_code == 200
        body = response.json()
        assert body["current_state"] == SagaState.COMPLETED.value
        assert body["confidence"] == 0.6
        assert body["retry_count"] == 0

    @patch("matchlens.api.routes.predictions.get_saga_repository")
    def test_unknown_workflow_status(self, mock_get_repository: MagicMock, client: TestClient):
        """An unknown correlation id answers 404."""
        mock_get_repository.return_value.get = AsyncMock(return_value=None)

        response = client.get(f"/api/predictions/{uuid.uuid4()}/status")

        assert response.status_code == 404
