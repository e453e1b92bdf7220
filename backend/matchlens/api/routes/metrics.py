"""Prometheus exposition endpoint."""

from fastapi import APIRouter, Response

from matchlens.workflows.metrics import get_workflow_metrics

router = APIRouter()


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    payload, content_type = get_workflow_metrics().render()
    return Response(content=payload, media_type=content_type)
