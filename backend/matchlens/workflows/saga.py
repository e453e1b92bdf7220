"""Match prediction saga.

A correlation-keyed state machine driven by bus messages::

    Initial --MatchPredictionRequested--> Requested
    Requested --MatchPredictionCompleted(success)--> Completed
    Requested --MatchPredictionCompleted(failure)--> Failed

Duplicate requests and duplicate completions are ignored; a completion for
an unknown correlation id never creates an instance. State is kept in
process memory only, with no timeout, retry or compensation.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from enum import StrEnum

from matchlens.core.exceptions import SagaTransitionError
from matchlens.messaging.contracts import MatchPredictionCompleted, MatchPredictionRequested

logger = logging.getLogger(__name__)


class SagaState(StrEnum):
    INITIAL = "Initial"
    REQUESTED = "Requested"
    COMPLETED = "Completed"
    FAILED = "Failed"


TERMINAL_STATES = frozenset({SagaState.COMPLETED, SagaState.FAILED})


@dataclass
class PredictionSagaState:
    correlation_id: uuid.UUID
    current_state: SagaState = SagaState.INITIAL
    match_id: uuid.UUID | None = None
    additional_context: str | None = None
    prediction_id: uuid.UUID | None = None
    confidence: float | None = None
    requested_at: datetime | None = None
    completed_at: datetime | None = None
    error_message: str | None = None
    retry_count: int = 0

    @property
    def is_final(self) -> bool:
        return self.current_state in TERMINAL_STATES


class InMemorySagaRepository:
    """Saga instances keyed by correlation id.

    Reads return copies so callers cannot mutate stored state outside a
    transition.
    """

    def __init__(self) -> None:
        self._instances: dict[uuid.UUID, PredictionSagaState] = {}
        self._lock = asyncio.Lock()

    async def get(self, correlation_id: uuid.UUID) -> PredictionSagaState | None:
        async with self._lock:
            state = self._instances.get(correlation_id)
            return replace(state) if state is not None else None

    async def add(self, state: PredictionSagaState) -> None:
        async with self._lock:
            if state.correlation_id in self._instances:
                raise SagaTransitionError(
                    f"Saga {state.correlation_id} already exists",
                    details={"correlation_id": str(state.correlation_id)},
                )
            self._instances[state.correlation_id] = replace(state)

    async def update(self, state: PredictionSagaState) -> None:
        async with self._lock:
            if state.correlation_id not in self._instances:
                raise SagaTransitionError(
                    f"Saga {state.correlation_id} does not exist",
                    details={"correlation_id": str(state.correlation_id)},
                )
            self._instances[state.correlation_id] = replace(state)

    async def list_active(self) -> list[PredictionSagaState]:
        """Instances still waiting for a completion."""
        async with self._lock:
            return [
                replace(s)
                for s in self._instances.values()
                if s.current_state == SagaState.REQUESTED
            ]

    async def remove(self, correlation_id: uuid.UUID) -> bool:
        async with self._lock:
            return self._instances.pop(correlation_id, None) is not None

    async def count_active(self) -> int:
        async with self._lock:
            return sum(1 for s in self._instances.values() if s.current_state == SagaState.REQUESTED)

    # Defined last: the name shadows the builtin inside the class body.
    async def list(self) -> list[PredictionSagaState]:
        async with self._lock:
            return [replace(s) for s in self._instances.values()]


class PredictionSaga:
    """Applies prediction messages to saga instances.

    Transitions are serialized, so concurrent deliveries of the same
    completion apply at most once.
    """

    def __init__(self, repository: InMemorySagaRepository | None = None):
        self.repository = repository or InMemorySagaRepository()
        self._transition_lock = asyncio.Lock()

    async def handle_requested(self, message: MatchPredictionRequested) -> PredictionSagaState:
        async with self._transition_lock:
            existing = await self.repository.get(message.correlation_id)
            if existing is not None:
                logger.debug(
                    f"[Saga] Duplicate request for {message.correlation_id} ignored "
                    f"(state={existing.current_state})"
                )
                return existing

            state = PredictionSagaState(
                correlation_id=message.correlation_id,
                current_state=SagaState.REQUESTED,
                match_id=message.match_id,
                additional_context=message.additional_context,
                requested_at=message.requested_at,
                retry_count=0,
            )
            await self.repository.add(state)

        logger.info(f"[Saga] Prediction requested for match {message.match_id}")
        return state

    async def handle_completed(self, message: MatchPredictionCompleted) -> PredictionSagaState | None:
        """Finish a saga. Returns None when the correlation id is unknown."""
        async with self._transition_lock:
            state = await self.repository.get(message.correlation_id)
            if state is None:
                logger.warning(f"[Saga] Completion for unknown saga {message.correlation_id} ignored")
                return None

            if state.current_state != SagaState.REQUESTED:
                logger.debug(
                    f"[Saga] Completion for {message.correlation_id} ignored "
                    f"(state={state.current_state})"
                )
                return state

            state.prediction_id = message.prediction_id
            state.confidence = message.confidence
            state.completed_at = message.completed_at
            if message.success:
                state.current_state = SagaState.COMPLETED
            else:
                state.error_message = message.error_message
                state.current_state = SagaState.FAILED
            await self.repository.update(state)

        logger.info(f"[Saga] {message.correlation_id} moved to {state.current_state}")
        return state


_saga: PredictionSaga | None = None


def get_prediction_saga() -> PredictionSaga:
    global _saga
    if _saga is None:
        _saga = PredictionSaga()
    return _saga


def get_saga_repository() -> InMemorySagaRepository:
    return get_prediction_saga().repository
