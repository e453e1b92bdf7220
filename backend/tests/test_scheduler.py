"""Tests for the periodic jobs."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from matchlens.api.schemas import ComponentHealth
from matchlens.core.config import settings
from matchlens.core.exceptions import WorkflowError
from matchlens.messaging.bus import MessageBus
from matchlens.messaging.contracts import CompetitionSyncRequested
from matchlens.scheduler import create_scheduler, monitor_workflow_health, request_competition_syncs
from matchlens.workflows.metrics import WorkflowMetrics


class TestRequestCompetitionSyncs:
    """Competition sync fan-out."""

    @pytest.mark.asyncio
    async def test_one_request_per_code(self, bus: MessageBus):
        """Each code gets its own request and correlation id."""
        received: list[CompetitionSyncRequested] = []

        async def handler(message: CompetitionSyncRequested) -> None:
            received.append(message)

        bus.subscribe(CompetitionSyncRequested, handler)

        queued = await request_competition_syncs(bus, ["PL", "BL1"])
        await bus.drain()

        assert queued == 2
        assert [m.competition_code for m in received] == ["PL", "BL1"]
        assert received[0].correlation_id != received[1].correlation_id

    @pytest.mark.asyncio
    async def test_full_bus_is_skipped(self):
        """A rejected publish is logged and the remaining codes are still tried."""
        bus = MagicMock()
        bus.publish = AsyncMock(side_effect=[None, WorkflowError("Message bus queue is full")])

        assert await request_competition_syncs(bus, ["PL", "PD"]) == 1


class TestMonitorWorkflowHealth:
    """Periodic health check."""

    @pytest.mark.asyncio
    @patch("matchlens.scheduler.get_workflow_metrics")
    @patch("matchlens.scheduler.check_workflow")
    @patch("matchlens.scheduler.check_ollama")
    async def test_statuses_recorded(
        self,
        mock_check_ollama: AsyncMock,
        mock_check_workflow: AsyncMock,
        mock_get_metrics: MagicMock,
        metrics: WorkflowMetrics,
    ):
        """Each component's status lands in the health gauge."""
        mock_check_ollama.return_value = ComponentHealth(status="unhealthy", description="Cannot connect")
        mock_check_workflow.return_value = ComponentHealth(status="healthy", description="ok")
        mock_get_metrics.return_value = metrics

        statuses = await monitor_workflow_health()

        assert statuses == {"ollama": "unhealthy", "workflow": "healthy"}
        gauge = "matchlens_component_health"
        assert metrics.registry.get_sample_value(gauge, {"component": "ollama"}) == 0.0
        assert metrics.registry.get_sample_value(gauge, {"component": "workflow"}) == 1.0


class TestCreateScheduler:
    """Job registration."""

    def test_sync_job_registered(self):
        """The competition sync runs on its own job id."""
        scheduler = create_scheduler()

        job = scheduler.get_job("competition_sync")

        assert job is not None
        assert job.func is request_competition_syncs

    def test_health_job_uses_configured_interval(self):
        """The health check runs every workflow_health_check_interval_seconds."""
        scheduler = create_scheduler()

        job = scheduler.get_job("workflow_health")

        assert job is not None
        assert job.func is monitor_workflow_health
        assert job.trigger.interval == timedelta(seconds=settings.workflow_health_check_interval_seconds)
