"""Image service diagnostics."""

from fastapi import APIRouter

from blogpilot.api.dependencies import HttpClientDep
from blogpilot.api.models import APIResponse, ServiceStatusResponse
from blogpilot.images import check_image_services

router = APIRouter(prefix="/images", tags=["images"])


@router.get("/services", response_model=APIResponse[list[ServiceStatusResponse]])
async def get_image_services(client: HttpClientDep) -> APIResponse[list[ServiceStatusResponse]]:
    """Check which generative image services are reachable."""
    statuses = await check_image_services(client)
    return APIResponse(data=[ServiceStatusResponse.model_validate(s) for s in statuses])
