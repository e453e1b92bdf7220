"""Prometheus metrics for prediction workflows and the LLM agent.

Labels are restricted to bounded sets:
- workflow_type: "match_prediction", "batch_prediction", "competition_sync"
- error_type:    exception class name or "prediction_failed"
- agent_type:    "prediction", "football_data"
- model:         configured Ollama model name
- component:     "ollama", "workflow"

Match ids, correlation ids and team names are never labels; they belong in
structured logs. Recording is best-effort and never breaks the caller.
"""

import logging

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

LATENCY_BUCKETS_MS = (100, 250, 500, 1000, 2000, 5000, 10000, 20000, 30000, 60000, 120000)
CONFIDENCE_BUCKETS = (0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0)
HEALTH_VALUES = {"healthy": 1.0, "degraded": 0.5, "unhealthy": 0.0}


class WorkflowMetrics:
    """Counters, histograms and a health gauge registered in their own registry."""

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry or CollectorRegistry()

        self.workflows_started = Counter(
            "matchlens_workflows_started_total",
            "Workflows started",
            ["workflow_type"],
            registry=self.registry,
        )
        self.workflows_completed = Counter(
            "matchlens_workflows_completed_total",
            "Workflows completed successfully",
            ["workflow_type"],
            registry=self.registry,
        )
        self.workflows_failed = Counter(
            "matchlens_workflows_failed_total",
            "Workflows that ended in failure",
            ["workflow_type", "error_type"],
            registry=self.registry,
        )
        self.agent_invocations = Counter(
            "matchlens_agent_invocations_total",
            "LLM agent invocations",
            ["agent_type", "model"],
            registry=self.registry,
        )
        self.agent_errors = Counter(
            "matchlens_agent_errors_total",
            "LLM agent invocations that raised",
            ["agent_type", "error_type"],
            registry=self.registry,
        )
        self.predictions_generated = Counter(
            "matchlens_predictions_generated_total",
            "Match predictions persisted",
            ["model"],
            registry=self.registry,
        )
        self.workflow_duration_ms = Histogram(
            "matchlens_workflow_duration_ms",
            "Time from request to completion in milliseconds",
            ["workflow_type"],
            buckets=LATENCY_BUCKETS_MS,
            registry=self.registry,
        )
        self.agent_response_time_ms = Histogram(
            "matchlens_agent_response_time_ms",
            "LLM agent response time in milliseconds",
            ["agent_type"],
            buckets=LATENCY_BUCKETS_MS,
            registry=self.registry,
        )
        self.prediction_confidence = Histogram(
            "matchlens_prediction_confidence",
            "Confidence reported for generated predictions",
            buckets=CONFIDENCE_BUCKETS,
            registry=self.registry,
        )
        self.teams_ingested = Counter(
            "matchlens_teams_ingested_total",
            "Teams created or updated by competition sync",
            registry=self.registry,
        )
        self.component_health = Gauge(
            "matchlens_component_health",
            "Last periodic health result (1 healthy, 0.5 degraded, 0 unhealthy)",
            ["component"],
            registry=self.registry,
        )

    def record_workflow_started(self, workflow_type: str) -> None:
        try:
            self.workflows_started.labels(workflow_type=workflow_type).inc()
        except ValueError as e:
            logger.warning(f"[Metrics] Failed to record workflow start: {e}")

    def record_workflow_completed(self, workflow_type: str, duration_ms: float | None = None) -> None:
        try:
            self.workflows_completed.labels(workflow_type=workflow_type).inc()
            if duration_ms is not None:
                self.workflow_duration_ms.labels(workflow_type=workflow_type).observe(duration_ms)
        except ValueError as e:
            logger.warning(f"[Metrics] Failed to record workflow completion: {e}")

    def record_workflow_failed(self, workflow_type: str, error_type: str) -> None:
        try:
            self.workflows_failed.labels(workflow_type=workflow_type, error_type=error_type).inc()
        except ValueError as e:
            logger.warning(f"[Metrics] Failed to record workflow failure: {e}")

    def record_agent_invocation(self, agent_type: str, model: str, duration_ms: float) -> None:
        try:
            self.agent_invocations.labels(agent_type=agent_type, model=model).inc()
            self.agent_response_time_ms.labels(agent_type=agent_type).observe(duration_ms)
        except ValueError as e:
            logger.warning(f"[Metrics] Failed to record agent invocation: {e}")

    def record_agent_error(self, agent_type: str, error_type: str) -> None:
        try:
            self.agent_errors.labels(agent_type=agent_type, error_type=error_type).inc()
        except ValueError as e:
            logger.warning(f"[Metrics] Failed to record agent error: {e}")

    def record_prediction_generated(self, model: str, confidence: float) -> None:
        try:
            self.predictions_generated.labels(model=model).inc()
            self.prediction_confidence.observe(confidence)
        except ValueError as e:
            logger.warning(f"[Metrics] Failed to record prediction: {e}")

    def record_team_ingested(self) -> None:
        self.teams_ingested.inc()

    def record_component_health(self, component: str, status: str) -> None:
        try:
            self.component_health.labels(component=component).set(HEALTH_VALUES[status])
        except (KeyError, ValueError) as e:
            logger.warning(f"[Metrics] Failed to record health of {component}: {e}")

    def render(self) -> tuple[bytes, str]:
        """Exposition payload and its content type."""
        return generate_latest(self.registry), CONTENT_TYPE_LATEST


_metrics: WorkflowMetrics | None = None


def get_workflow_metrics() -> WorkflowMetrics:
    global _metrics
    if _metrics is None:
        _metrics = WorkflowMetrics()
    return _metrics
