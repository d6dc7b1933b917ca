"""Server-Sent Events for live dashboard updates."""

from __future__ import annotations

import asyncio
import json
import logging

from fastapi import APIRouter, Request
from starlette.responses import StreamingResponse

from ecoflux.strategy import recommend_strategy

router = APIRouter()
logger = logging.getLogger(__name__)


def build_event(app_state) -> dict:
    """Payload pushed to clients on each interval."""
    loop = app_state.simulation
    controls = loop.controls.snapshot()
    return {
        "tick": loop.state.tick_count,
        "telemetry": loop.snapshot.to_dict(),
        "controls": controls.model_dump(mode="json"),
        "notifications": loop.notifications.items(),
        "strategy": recommend_strategy(
            app_state.weather.current, controls.source_priority
        ).to_dict(),
    }


@router.get("/events")
async def event_stream(request: Request, max_events: int = 0) -> StreamingResponse:
    """SSE endpoint for live telemetry. ``max_events`` > 0 ends the stream early."""
    interval = request.app.state.config.dashboard.sse_interval_seconds

    async def generate():
        sent = 0
        while True:
            if await request.is_disconnected():
                break
            try:
                data = build_event(request.app.state)
                yield f"data: {json.dumps(data)}\n\n"
            except Exception as e:
                logger.error("SSE error: %s", e)
                yield f"data: {json.dumps({'error': str(e)})}\n\n"

            sent += 1
            if max_events and sent >= max_events:
                break
            await asyncio.sleep(interval)

    return StreamingResponse(
        generate(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )
