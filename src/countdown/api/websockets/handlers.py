"""WebSocket handlers streaming countdown snapshots and live events."""

import asyncio

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder

from countdown.api.dependencies import service_from_app


def register(app: FastAPI) -> None:
    @app.websocket("/ws/countdowns")
    async def countdown_events(websocket: WebSocket) -> None:
        await websocket.accept()

        try:
            service = service_from_app(websocket.app)
        except HTTPException as exc:
            await websocket.send_json({"type": "error", "detail": exc.detail})
            await websocket.close(code=1011)
            return

        queue = service.subscribe()
        # Client messages are ignored; reading them surfaces the disconnect.
        disconnected = asyncio.create_task(_wait_for_disconnect(websocket))
        try:
            now = service.clock.now()
            snapshot = {
                "type": "snapshot",
                "status": service.status(),
                "jobs": [service.describe(job, now) for job in service.history()],
            }
            await websocket.send_json(jsonable_encoder(snapshot))

            while True:
                next_event = asyncio.create_task(queue.get())
                done, _ = await asyncio.wait(
                    {next_event, disconnected}, return_when=asyncio.FIRST_COMPLETED
                )
                if disconnected in done:
                    next_event.cancel()
                    break
                await websocket.send_json(jsonable_encoder(next_event.result()))
        except WebSocketDisconnect:
            pass
        finally:
            disconnected.cancel()
            service.unsubscribe(queue)


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return
