"""Periodic jobs.

- competition_sync: publishes one CompetitionSyncRequested per configured
  competition code; the CompetitionSyncConsumer does the work.
- workflow_health: checks Ollama and the workflow system and records the
  result in the ``matchlens_component_health`` gauge.
"""

import logging
import uuid

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from matchlens.api.routes.health import check_ollama, check_workflow
from matchlens.core.config import settings
from matchlens.core.exceptions import WorkflowError
from matchlens.messaging.bus import MessageBus, get_message_bus
from matchlens.messaging.contracts import CompetitionSyncRequested
from matchlens.workflows.metrics import get_workflow_metrics

logger = logging.getLogger(__name__)


async def request_competition_syncs(
    bus: MessageBus | None = None, codes: list[str] | None = None
) -> int:
    """Publish a sync request for each competition. Returns how many were queued."""
    bus = bus or get_message_bus()
    codes = codes if codes is not None else settings.competition_codes
    queued = 0
    for code in codes:
        try:
            await bus.publish(
                CompetitionSyncRequested(competition_code=code, correlation_id=uuid.uuid4())
            )
            queued += 1
        except WorkflowError as e:
            logger.warning(f"[Scheduler] Could not queue sync for {code}: {e.message}")
    logger.info(f"[Scheduler] Queued {queued}/{len(codes)} competition syncs")
    return queued


async def monitor_workflow_health() -> dict[str, str]:
    """Check the agent backend and the workflow system. Returns status per component."""
    metrics = get_workflow_metrics()
    statuses: dict[str, str] = {}
    for component, check in (("ollama", check_ollama), ("workflow", check_workflow)):
        result = await check()
        statuses[component] = result.status
        metrics.record_component_health(component, result.status)
        if result.status != "healthy":
            logger.warning(f"[Scheduler] {component} is {result.status}: {result.description}")
    return statuses


def create_scheduler() -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(
        job_defaults={"max_instances": 1, "coalesce": True},
    )
    scheduler.add_job(
        request_competition_syncs,
        trigger=IntervalTrigger(hours=settings.sync_interval_hours),
        id="competition_sync",
        name="Sync configured competitions from football-data.org",
        replace_existing=True,
    )
    scheduler.add_job(
        monitor_workflow_health,
        trigger=IntervalTrigger(seconds=settings.workflow_health_check_interval_seconds),
        id="workflow_health",
        name="Check Ollama and the workflow system",
        replace_existing=True,
    )
    return scheduler
