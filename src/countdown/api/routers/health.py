"""Health-check endpoint returning the current service status."""

from fastapi import APIRouter, Depends

from countdown.api.dependencies import countdown_service_dependency
from countdown.scheduler.service import CountdownService


router = APIRouter()


@router.get("", tags=["health"])
async def healthcheck(service: CountdownService = Depends(countdown_service_dependency)) -> dict:
    return {
        "ok": True,
        "service": service.status(),
    }
