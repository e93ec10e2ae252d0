"""FastAPI dependencies resolving the countdown service attached to the app."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request

from countdown.scheduler.service import CountdownService


def set_countdown_service(app: FastAPI, service: Optional[CountdownService]) -> None:
    app.state.countdown_service = service


def service_from_app(app: FastAPI) -> CountdownService:
    service = getattr(app.state, "countdown_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Countdown service not ready")
    return service


def get_countdown_service(request: Request) -> CountdownService:
    return service_from_app(request.app)


def countdown_service_dependency(service: CountdownService = Depends(get_countdown_service)) -> CountdownService:
    return service


def parse_job_id(raw: str, usage: str) -> int:
    """Convert a path segment into a job ID or answer 400 with a usage hint."""
    try:
        return int(raw)
    except ValueError as exc:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid request URL format. Use {usage}",
        ) from exc
