"""HTTP router factory wiring pages, the JSON API and health endpoints."""

from fastapi import APIRouter

from . import countdowns, health, pages


def create_router() -> APIRouter:
    router = APIRouter()
    router.include_router(pages.router)
    router.include_router(countdowns.router, prefix="/api")
    router.include_router(health.router, prefix="/health")
    return router
