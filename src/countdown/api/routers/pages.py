"""Human-facing HTML pages: history, start form and status views."""

from fastapi import APIRouter, Depends, Form, HTTPException, status
from fastapi.responses import HTMLResponse, RedirectResponse

from countdown.api.dependencies import countdown_service_dependency, parse_job_id
from countdown.api.rendering import (
    render_home,
    render_start_form,
    render_status_detail,
    render_status_index,
)
from countdown.core.errors import NotFound
from countdown.scheduler.service import CountdownService


router = APIRouter()


@router.get("/", response_class=HTMLResponse, tags=["pages"])
async def index(service: CountdownService = Depends(countdown_service_dependency)) -> HTMLResponse:
    now = service.clock.now()
    rows = [(job, service.derive(job, now)) for job in service.history()]
    return HTMLResponse(render_home(rows, service.max_history))


@router.get("/start", response_class=HTMLResponse, tags=["pages"])
async def start_form() -> HTMLResponse:
    return HTMLResponse(render_start_form())


@router.post("/start", tags=["pages"])
async def start_countdown(
    name: str = Form(""),
    delay: str = Form(""),
    service: CountdownService = Depends(countdown_service_dependency),
) -> RedirectResponse:
    try:
        service.create_job(name, int(delay))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid delay value") from exc
    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/status", response_class=HTMLResponse, tags=["pages"])
async def status_index(service: CountdownService = Depends(countdown_service_dependency)) -> HTMLResponse:
    rows, active_count, total = service.active_jobs()
    return HTMLResponse(render_status_index(rows, active_count, total))


@router.get("/status/{job_id}", response_class=HTMLResponse, tags=["pages"])
async def status_detail(
    job_id: str,
    service: CountdownService = Depends(countdown_service_dependency),
) -> HTMLResponse:
    parsed = parse_job_id(job_id, "/status/<ID>")
    try:
        job = service.get_job(parsed)
    except NotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return HTMLResponse(render_status_detail(job, service.derive(job)))
