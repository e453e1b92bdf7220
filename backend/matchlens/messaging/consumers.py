"""Message consumers and bus wiring.

Each request consumer turns a request message into its paired completion
message. Consumers report failures in the completion instead of raising, so
the saga always hears back. TeamDataIngested is an announcement with no
reply; its consumer only counts ingested teams.
"""

import logging
import uuid

from matchlens.core.exceptions import NotFoundError, WorkflowError
from matchlens.db.repositories import get_uow
from matchlens.db.services.ingestion_service import (
    CompetitionIngestionService,
    get_ingestion_service,
)
from matchlens.db.services.prediction_service import PredictionService
from matchlens.messaging.bus import MessageBus, get_message_bus
from matchlens.messaging.contracts import (
    EMPTY_UUID,
    CompetitionSyncCompleted,
    CompetitionSyncRequested,
    EmbeddingGenerationCompleted,
    EmbeddingGenerationRequested,
    MatchPredictionCompleted,
    MatchPredictionRequested,
    TeamDataIngested,
)
from matchlens.vector.embeddings import EmbeddingService, get_embedding_service
from matchlens.workflows.events import WorkflowEventStore, WorkflowRecorder, get_workflow_event_store
from matchlens.workflows.metrics import WorkflowMetrics, get_workflow_metrics
from matchlens.workflows.saga import PredictionSaga, get_prediction_saga

logger = logging.getLogger(__name__)


class StepTracker:
    """Records started/completed/failed events for consecutive workflow steps."""

    def __init__(self, store: WorkflowEventStore, workflow_id: uuid.UUID):
        self.store = store
        self.workflow_id = workflow_id
        self.current: str | None = None

    def start(self, node_id: str) -> None:
        self.finish()
        self.store.record(self.workflow_id, "started", node_id)
        self.current = node_id

    def finish(self) -> None:
        if self.current is not None:
            self.store.record(self.workflow_id, "completed", self.current)
            self.current = None

    def fail(self, error: str) -> None:
        if self.current is not None:
            self.store.record(self.workflow_id, "failed", self.current, {"error": error})
            self.current = None


class MatchPredictionConsumer:
    """Generates the prediction for a MatchPredictionRequested."""

    def __init__(
        self,
        bus: MessageBus,
        store: WorkflowEventStore | None = None,
        service: type[PredictionService] = PredictionService,
    ):
        self.bus = bus
        self.store = store or get_workflow_event_store()
        self.service = service

    async def handle(self, message: MatchPredictionRequested) -> None:
        logger.info(f"Processing prediction request for match {message.match_id}")
        tracker = StepTracker(self.store, message.correlation_id)
        tracker.start("receive_request")

        try:
            prediction = await self.service.generate_prediction(
                message.match_id, message.additional_context, progress=tracker.start
            )
        except Exception as e:
            logger.error(f"Prediction failed for match {message.match_id}: {e}", exc_info=True)
            tracker.fail(str(e))
            completed = MatchPredictionCompleted(
                match_id=message.match_id,
                prediction_id=EMPTY_UUID,
                correlation_id=message.correlation_id,
                success=False,
                error_message=str(e),
            )
        else:
            completed = MatchPredictionCompleted(
                match_id=message.match_id,
                prediction_id=prediction.id,
                correlation_id=message.correlation_id,
                success=True,
                confidence=prediction.confidence,
            )

        tracker.start("publish_result")
        try:
            await self.bus.publish(completed)
        except WorkflowError as e:
            tracker.fail(e.message)
            raise
        tracker.finish()


class CompetitionSyncConsumer:
    """Runs a competition sync for a CompetitionSyncRequested."""

    def __init__(self, bus: MessageBus, service: CompetitionIngestionService | None = None):
        self.bus = bus
        self.service = service or get_ingestion_service()

    async def handle(self, message: CompetitionSyncRequested) -> None:
        logger.info(f"Processing sync request for competition {message.competition_code}")
        try:
            result = await self.service.sync_competition(message.competition_code)
            completed = CompetitionSyncCompleted(
                competition_code=message.competition_code,
                correlation_id=message.correlation_id,
                success=result.success,
                error_message=None if result.success else result.message,
                seasons_processed=result.seasons_processed,
            )
        except Exception as e:
            logger.error(f"Sync failed for competition {message.competition_code}: {e}", exc_info=True)
            completed = CompetitionSyncCompleted(
                competition_code=message.competition_code,
                correlation_id=message.correlation_id,
                success=False,
                error_message=str(e),
            )
        await self.bus.publish(completed)


class EmbeddingGenerationConsumer:
    """Embeds text and stores the vector on a team, competition or season."""

    def __init__(self, bus: MessageBus, embeddings: EmbeddingService | None = None):
        self.bus = bus
        self.embeddings = embeddings or get_embedding_service()

    async def handle(self, message: EmbeddingGenerationRequested) -> None:
        try:
            vector = await self.embeddings.generate_embedding(message.text)
            if vector is None:
                raise WorkflowError("Embedding provider returned no vector")
            await self._store(message, vector)
            completed = EmbeddingGenerationCompleted(
                entity_type=message.entity_type,
                entity_id=message.entity_id,
                correlation_id=message.correlation_id,
                success=True,
                dimensions=len(vector),
            )
        except Exception as e:
            logger.error(
                f"Embedding generation failed for {message.entity_type} {message.entity_id}: {e}",
                exc_info=True,
            )
            completed = EmbeddingGenerationCompleted(
                entity_type=message.entity_type,
                entity_id=message.entity_id,
                correlation_id=message.correlation_id,
                success=False,
                error_message=str(e),
            )
        await self.bus.publish(completed)

    @staticmethod
    async def _store(message: EmbeddingGenerationRequested, vector: list[float]) -> None:
        async with get_uow() as uow:
            repository = {
                "Team": uow.teams,
                "Competition": uow.competitions,
                "Season": uow.seasons,
            }[message.entity_type]
            entity = await repository.get_by_id(message.entity_id)
            if entity is None:
                raise NotFoundError(f"{message.entity_type} {message.entity_id} not found")
            await repository.update(entity, embedding=vector)
            await uow.commit()
        logger.info(f"Stored {len(vector)}-dim embedding for {message.entity_type} {message.entity_id}")


class TeamIngestionConsumer:
    """Counts teams announced by competition sync."""

    def __init__(self, metrics: WorkflowMetrics | None = None):
        self.metrics = metrics or get_workflow_metrics()

    async def handle(self, message: TeamDataIngested) -> None:
        self.metrics.record_team_ingested()
        logger.info(f"[Ingestion] Team {message.team_name} ({message.country or 'unknown country'}) ingested")


def wire_message_bus(
    bus: MessageBus | None = None,
    saga: PredictionSaga | None = None,
    store: WorkflowEventStore | None = None,
) -> MessageBus:
    """Register the saga, the workflow recorder and the consumers on ``bus``.

    Handlers for one message type run in the order registered here: the saga
    sees each message before the recorder and the consumers.
    """
    bus = bus or get_message_bus()
    saga = saga or get_prediction_saga()
    store = store or get_workflow_event_store()
    recorder = WorkflowRecorder(store)

    bus.subscribe(MatchPredictionRequested, saga.handle_requested)
    bus.subscribe(MatchPredictionRequested, recorder.on_requested)
    bus.subscribe(MatchPredictionRequested, MatchPredictionConsumer(bus, store).handle)

    bus.subscribe(MatchPredictionCompleted, saga.handle_completed)
    bus.subscribe(MatchPredictionCompleted, recorder.on_completed)

    bus.subscribe(CompetitionSyncRequested, CompetitionSyncConsumer(bus).handle)
    bus.subscribe(EmbeddingGenerationRequested, EmbeddingGenerationConsumer(bus).handle)
    bus.subscribe(TeamDataIngested, TeamIngestionConsumer().handle)

    logger.info("[MessageBus] Wired saga, recorder and consumers")
    return bus
