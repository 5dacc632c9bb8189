import os

from fastapi import APIRouter, Depends

from uploads_api.config.settings import Settings
from uploads_api.dependencies import get_app_settings
from uploads_api.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """
    Health check endpoint for monitoring API status and component readiness.

    Storage is ready when the storage root exists and the process can write to it.
    """
    storage_path = settings.storage_path
    components = {"api": "ready"}

    if not storage_path.is_dir():
        components["storage"] = f"error: {storage_path} does not exist"
    elif not os.access(storage_path, os.W_OK | os.X_OK):
        components["storage"] = f"error: {storage_path} is not writable"
    else:
        components["storage"] = "ready"

    ready = all(state == "ready" for state in components.values())
    return HealthResponse(
        status="ok" if ready else "degraded",
        components=components,
        ready=ready,
    )
