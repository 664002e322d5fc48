"""
Route registration for the realtime coach API.

Responsibilities:
- Define HTTP and WebSocket endpoints
- Wire gateway to WebSocket lifecycle
- Pull dependencies from app.state
"""

from __future__ import annotations

import asyncio
import json
import time

from fastapi import WebSocket, WebSocketDisconnect, FastAPI
from fastapi.responses import JSONResponse

from observability.logger import log_event
from session.gateway import SessionGateway, GatewayResult


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def register_routes(app: FastAPI) -> None:
    """Register all routes on the FastAPI app."""
    @app.get("/health")
    async def health() -> dict[str, str]: # pyright: ignore[reportUnusedFunction]
        return {"status": "ok"}

    @app.get("/api/session")
    async def mint_session() -> JSONResponse: # pyright: ignore[reportUnusedFunction]
        """Short-lived client secret for a browser-side realtime connection."""
        secret = await app.state.credential_provider.fetch()
        if not secret:
            return JSONResponse(status_code=502, content={"error": "credential_unavailable"})
        return JSONResponse(content={"client_secret": {"value": secret}})

    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket) -> None: # pyright: ignore[reportUnusedFunction]
        await ws.accept()

        gateway = SessionGateway(
            config=app.state.config,
            credential_provider=app.state.credential_provider,
            recorder=None,
            agent_set=ws.query_params.get("agentConfig"),
        )
        pump: asyncio.Task[None] | None = None

        try:
            result = await gateway.on_ws_connect()
            await _flush_gateway_result(ws, result)

            # Transport-driven updates arrive outside the request loop.
            pump = asyncio.create_task(_pump_control(ws, gateway))

            while True:
                text = await ws.receive_text()
                result = await gateway.on_json_message(text)
                await _flush_gateway_result(ws, result)

        except WebSocketDisconnect:
            await gateway.on_ws_disconnect(reason="client_disconnect")

        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "WS_FATAL_ERROR",
                "session_id": gateway.session.session_id if gateway.session else None,
                "exception": type(exc).__name__,
                "message": str(exc),
            }, level="error")
            await gateway.on_ws_disconnect(reason="server_error")

        finally:
            if pump is not None:
                pump.cancel()
                await asyncio.gather(pump, return_exceptions=True)


async def _pump_control(ws: WebSocket, gateway: SessionGateway) -> None:
    session = gateway.session
    if session is None:
        return
    while True:
        for msg in await session.wait_control():
            await ws.send_text(json.dumps(msg))


async def _flush_gateway_result(
    ws: WebSocket,
    result: GatewayResult,
) -> None:
    for msg in result.outbound_json:
        await ws.send_text(json.dumps(msg))
