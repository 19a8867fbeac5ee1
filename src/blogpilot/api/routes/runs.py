"""Job run history endpoints."""

from fastapi import APIRouter, Query

from blogpilot.api.dependencies import RunStoreDep
from blogpilot.api.models import (
    APIResponse,
    RunDetailResponse,
    RunResponse,
    RunStatsResponse,
    run_detail_to_response,
    run_stats_to_response,
    run_to_response,
)
from blogpilot.run_store import RunStatus

router = APIRouter(prefix="/runs", tags=["runs"])


@router.get("", response_model=APIResponse[list[RunResponse]])
def list_runs(
    store: RunStoreDep,
    status: RunStatus | None = Query(default=None, description="Filter by run status"),
    limit: int = Query(default=50, ge=1, le=500, description="Max results"),
) -> APIResponse[list[RunResponse]]:
    """List job runs, most recent first."""
    runs = store.list_runs(status=status, limit=limit)
    return APIResponse(data=[run_to_response(r) for r in runs])


@router.get("/stats", response_model=APIResponse[RunStatsResponse])
def get_run_stats(store: RunStoreDep) -> APIResponse[RunStatsResponse]:
    """Get aggregated run history statistics."""
    return APIResponse(data=run_stats_to_response(store.get_run_stats()))


@router.get("/{run_id}", response_model=APIResponse[RunDetailResponse])
def get_run(run_id: str, store: RunStoreDep) -> APIResponse[RunDetailResponse]:
    """Get a job run with its stage checkpoints."""
    run = store.get_run(run_id)
    return APIResponse(data=run_detail_to_response(run))
