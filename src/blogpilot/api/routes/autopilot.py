"""Control and observation endpoints for the autopilot."""

from fastapi import APIRouter, Body

from blogpilot.api.dependencies import AutopilotDep
from blogpilot.api.models import (
    APIResponse,
    AutopilotActionResponse,
    AutopilotConfigResponse,
    AutopilotConfigUpdate,
    AutopilotStartRequest,
    AutopilotStatsResponse,
    config_to_response,
    stats_to_response,
)

router = APIRouter(prefix="/autopilot", tags=["autopilot"])


@router.get("/stats", response_model=APIResponse[AutopilotStatsResponse])
async def get_stats(autopilot: AutopilotDep) -> APIResponse[AutopilotStatsResponse]:
    """Get autopilot statistics and current activity."""
    return APIResponse(data=stats_to_response(autopilot.get_stats()))


@router.get("/config", response_model=APIResponse[AutopilotConfigResponse])
async def get_config(autopilot: AutopilotDep) -> APIResponse[AutopilotConfigResponse]:
    """Get the autopilot config."""
    return APIResponse(data=config_to_response(autopilot.get_config()))


@router.patch("/config", response_model=APIResponse[AutopilotConfigResponse])
async def update_config(
    request: AutopilotConfigUpdate, autopilot: AutopilotDep
) -> APIResponse[AutopilotConfigResponse]:
    """Update the autopilot config (partial update).

    Setting ``enabled`` starts or stops the autopilot.
    """
    config = autopilot.update_config(**request.changes())
    return APIResponse(data=config_to_response(config))


@router.post("/start", response_model=APIResponse[AutopilotActionResponse])
async def start_autopilot(
    autopilot: AutopilotDep,
    request: AutopilotStartRequest | None = Body(default=None),
) -> APIResponse[AutopilotActionResponse]:
    """Start the autopilot, running one job right away."""
    overrides = request.changes() if request is not None else {}
    overrides.pop("enabled", None)
    autopilot.start(overrides)
    return APIResponse(data=AutopilotActionResponse(message="Autopilot started"))


@router.post("/stop", response_model=APIResponse[AutopilotActionResponse])
async def stop_autopilot(autopilot: AutopilotDep) -> APIResponse[AutopilotActionResponse]:
    """Stop the autopilot. An in-flight job finishes on its own."""
    autopilot.stop()
    return APIResponse(data=AutopilotActionResponse(message="Autopilot stopped"))
