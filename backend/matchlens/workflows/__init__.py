"""Prediction workflow orchestration and observability.

- saga: correlation-keyed prediction state machine
- events: workflow event store and bus recorder
- graph: node/edge graphs for visualization
- metrics: Prometheus counters and histograms
"""

from matchlens.workflows.events import (
    WorkflowEvent,
    WorkflowEventStore,
    WorkflowRecorder,
    get_workflow_event_store,
)
from matchlens.workflows.graph import WorkflowEdge, WorkflowGraph, WorkflowGraphBuilder, WorkflowNode
from matchlens.workflows.metrics import WorkflowMetrics, get_workflow_metrics
from matchlens.workflows.saga import (
    InMemorySagaRepository,
    PredictionSaga,
    PredictionSagaState,
    SagaState,
    get_prediction_saga,
    get_saga_repository,
)

__all__ = [
    # Saga
    "InMemorySagaRepository",
    "PredictionSaga",
    "PredictionSagaState",
    "SagaState",
    "get_prediction_saga",
    "get_saga_repository",
    # Events
    "WorkflowEvent",
    "WorkflowEventStore",
    "WorkflowRecorder",
    "get_workflow_event_store",
    # Graph
    "WorkflowEdge",
    "WorkflowGraph",
    "WorkflowGraphBuilder",
    "WorkflowNode",
    # Metrics
    "WorkflowMetrics",
    "get_workflow_metrics",
]
