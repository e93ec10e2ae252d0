"""JSON API for creating countdowns and reading their derived status."""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict

from countdown.api.dependencies import countdown_service_dependency, parse_job_id
from countdown.core.errors import InvalidDelay, NotFound
from countdown.scheduler.service import CountdownService


router = APIRouter()


class CreateCountdownRequest(BaseModel):
    name: str = ""
    # Checked by the registry so booleans, floats and strings map to 400.
    delay: Any

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "tea",
                "delay": 180,
            }
        }
    )


@router.get("/status", tags=["countdowns"])
async def list_statuses(service: CountdownService = Depends(countdown_service_dependency)) -> List[Dict[str, Any]]:
    now = service.clock.now()
    return [service.describe(job, now) for job in service.list_jobs()]


@router.get("/status/{job_id}", tags=["countdowns"])
async def job_status(job_id: str, service: CountdownService = Depends(countdown_service_dependency)) -> Dict[str, Any]:
    parsed = parse_job_id(job_id, "/api/status/<ID>")
    try:
        job = service.get_job(parsed)
    except NotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return service.describe(job)


@router.post("/jobs", tags=["countdowns"], status_code=status.HTTP_201_CREATED)
async def create_countdown(
    payload: CreateCountdownRequest,
    service: CountdownService = Depends(countdown_service_dependency),
) -> Dict[str, Any]:
    try:
        job = service.create_job(payload.name, payload.delay)
    except InvalidDelay as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid delay value") from exc
    return service.describe(job)
