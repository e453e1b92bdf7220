"""Graph views of prediction workflows for visualization clients."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from matchlens.workflows.events import BATCH_PREDICTION, MATCH_PREDICTION, WorkflowEvent

MATCH_PREDICTION_STEPS: list[tuple[str, str]] = [
    ("receive_request", "Receive Request"),
    ("fetch_match", "Fetch Match Data"),
    ("invoke_agent", "Invoke AI Agent"),
    ("save_prediction", "Save Prediction"),
    ("publish_result", "Publish Result"),
]


class WorkflowNode(BaseModel):
    id: str
    label: str
    type: str
    status: str
    started_at: datetime | None = None
    completed_at: datetime | None = None
    data: dict[str, Any] | None = None


class WorkflowEdge(BaseModel):
    id: str
    source: str
    target: str
    label: str | None = None


class WorkflowGraph(BaseModel):
    workflow_id: str
    workflow_type: str
    status: str
    nodes: list[WorkflowNode]
    edges: list[WorkflowEdge]
    started_at: datetime
    completed_at: datetime | None = None
    metadata: dict[str, Any] = {}


def _node_status(events: list[WorkflowEvent]) -> str:
    types = {e.event_type for e in events}
    if "failed" in types:
        return "failed"
    if "completed" in types:
        return "completed"
    if "started" in types:
        return "running"
    return "pending"


def _first(events: list[WorkflowEvent], *event_types: str) -> datetime | None:
    stamps = [e.timestamp for e in events if e.event_type in event_types]
    return min(stamps) if stamps else None


def _require_workflow_id(workflow_id: str) -> None:
    if not workflow_id or not workflow_id.strip():
        raise ValueError("workflow_id cannot be empty")


class WorkflowGraphBuilder:
    """Builds node/edge graphs from workflow state and recorded step events."""

    @staticmethod
    def build_match_prediction_graph(
        workflow_id: str,
        match_id: uuid.UUID,
        status: str,
        started_at: datetime,
        completed_at: datetime | None,
        events: list[WorkflowEvent],
    ) -> WorkflowGraph:
        """Single-match prediction pipeline.

        A step node is failed if any of its events failed, else completed if
        any completed, else running if any started, else pending.
        """
        _require_workflow_id(workflow_id)

        nodes = [
            WorkflowNode(
                id="start",
                label="Start",
                type="start",
                status="completed",
                started_at=started_at,
                completed_at=started_at,
            )
        ]
        for node_id, label in MATCH_PREDICTION_STEPS:
            node_events = [e for e in events if e.node_id == node_id]
            nodes.append(
                WorkflowNode(
                    id=node_id,
                    label=label,
                    type="task",
                    status=_node_status(node_events),
                    started_at=_first(node_events, "started"),
                    completed_at=_first(node_events, "completed", "failed"),
                )
            )
        nodes.append(
            WorkflowNode(
                id="end",
                label="End",
                type="end",
                status="completed" if status == "completed" else "pending",
                completed_at=completed_at if status == "completed" else None,
            )
        )

        step_ids = [node_id for node_id, _ in MATCH_PREDICTION_STEPS]
        edges = [WorkflowEdge(id="e1", source="start", target=step_ids[0], label="trigger")]
        for i, (source, target) in enumerate(zip(step_ids, step_ids[1:]), start=2):
            edges.append(WorkflowEdge(id=f"e{i}", source=source, target=target, label="next"))
        edges.append(
            WorkflowEdge(id=f"e{len(edges) + 1}", source=step_ids[-1], target="end", label="complete")
        )

        return WorkflowGraph(
            workflow_id=workflow_id,
            workflow_type=MATCH_PREDICTION,
            status=status,
            nodes=nodes,
            edges=edges,
            started_at=started_at,
            completed_at=completed_at,
            metadata={"match_id": str(match_id), "event_count": len(events)},
        )

    @staticmethod
    def build_batch_prediction_graph(
        workflow_id: str,
        batch_size: int,
        status: str,
        started_at: datetime,
        completed_at: datetime | None,
        completed_count: int,
    ) -> WorkflowGraph:
        """Fan-out graph for a batch of match predictions."""
        _require_workflow_id(workflow_id)

        all_done = completed_count >= batch_size
        nodes = [
            WorkflowNode(
                id="start",
                label="Start",
                type="start",
                status="completed",
                started_at=started_at,
                completed_at=started_at,
            ),
            WorkflowNode(
                id="receive_batch",
                label="Receive Batch",
                type="task",
                status="completed",
                started_at=started_at,
                completed_at=started_at,
            ),
            WorkflowNode(
                id="process_batch",
                label=f"Process {batch_size} Matches",
                type="parallel",
                status="completed" if all_done else "running",
                started_at=started_at,
                completed_at=completed_at if all_done else None,
                data={"completed": completed_count, "total": batch_size},
            ),
            WorkflowNode(
                id="aggregate_results",
                label="Aggregate Results",
                type="task",
                status="completed" if status == "completed" else "pending",
                started_at=completed_at,
                completed_at=completed_at,
            ),
            WorkflowNode(
                id="end",
                label="End",
                type="end",
                status="completed" if status == "completed" else "pending",
                completed_at=completed_at if status == "completed" else None,
            ),
        ]
        edges = [
            WorkflowEdge(id="e1", source="start", target="receive_batch", label="trigger"),
            WorkflowEdge(id="e2", source="receive_batch", target="process_batch", label="distribute"),
            WorkflowEdge(id="e3", source="process_batch", target="aggregate_results", label="collect"),
            WorkflowEdge(id="e4", source="aggregate_results", target="end", label="complete"),
        ]

        return WorkflowGraph(
            workflow_id=workflow_id,
            workflow_type=BATCH_PREDICTION,
            status=status,
            nodes=nodes,
            edges=edges,
            started_at=started_at,
            completed_at=completed_at,
            metadata={
                "batch_size": batch_size,
                "completed_count": completed_count,
                "progress": completed_count / batch_size if batch_size > 0 else 0,
            },
        )
