"""WebSocket stream of counter updates.

Protocol: {"type": "init" | "tick", "data": <NowcastStateView>}. A new
connection receives exactly one "init", then "tick" messages from the
broadcast timer.
"""

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from displacement_api.core.runtime import NowcastRuntime
from displacement_api.domain.exceptions import TransportError
from displacement_api.routes.dependencies import get_runtime

logger = logging.getLogger(__name__)

router = APIRouter(tags=["stream"])


@router.websocket("/ws")
async def stream(websocket: WebSocket, runtime: NowcastRuntime = Depends(get_runtime)) -> None:
    await websocket.accept()
    manager = runtime.manager
    try:
        await manager.register(websocket, runtime.engine.public_view())
    except TransportError as e:
        logger.info(f"[Broadcast] Init failed: {e}")
        return

    try:
        # Viewers don't send anything meaningful; this waits for the close
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(websocket)
