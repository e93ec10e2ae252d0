"""FastAPI application factory that boots the countdown service."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from countdown import __version__
from countdown.api.dependencies import set_countdown_service
from countdown.api.routers import create_router
from countdown.api.websockets import register_websockets
from countdown.configs.env_config import Env
from countdown.scheduler.service import CountdownService


def create_app(service: Optional[CountdownService] = None) -> FastAPI:
    """Build the application around ``service`` (a default one when omitted)."""
    if service is None:
        service = CountdownService(seed_file=Env.SEED_FILE)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        set_countdown_service(app, service)
        await service.startup()
        try:
            yield
        finally:
            try:
                await service.shutdown()
            finally:
                set_countdown_service(app, None)

    app = FastAPI(title="Countdown As A Service", version=__version__, lifespan=lifespan)
    app.include_router(create_router())
    register_websockets(app)
    return app
