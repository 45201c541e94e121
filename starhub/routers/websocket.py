"""WebSocket endpoint for presence, chat relay and call signaling.

Provides:
- ``WS /ws``: accept, heartbeat, receive loop feeding the session lifecycle.
"""

from __future__ import annotations

import asyncio
import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from starhub.services import ws_messages
from starhub.services.hub import Hub

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

HEARTBEAT_INTERVAL: float = 30.0  # seconds between heartbeat pings

# ---------------------------------------------------------------------------
# Router
# ---------------------------------------------------------------------------

router = APIRouter()


# ---------------------------------------------------------------------------
# Heartbeat task
# ---------------------------------------------------------------------------


async def _heartbeat(websocket: WebSocket) -> None:
    """Send periodic ping messages to keep the connection alive.

    Runs as a background task per WebSocket connection. If sending fails
    (connection dead), the task ends and disconnect cleanup takes over.
    """
    try:
        while True:
            await asyncio.sleep(HEARTBEAT_INTERVAL)
            await websocket.send_json(ws_messages.ping())
    except Exception as exc:
        # The receive loop handles cleanup
        logger.debug("Heartbeat stopped: %s", exc)


# ---------------------------------------------------------------------------
# WS /ws
# ---------------------------------------------------------------------------


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """Accept, start the heartbeat, feed frames to the session, clean up.

    The client must send ``{"type": "identify", "userId": ...}`` before
    anything else is routed.
    """
    hub: Hub = websocket.app.state.hub

    await websocket.accept()
    session = hub.open_session(websocket)
    logger.info("Connection %s opened", session.connection.connection_id)

    heartbeat_task = asyncio.create_task(_heartbeat(websocket))

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            text = message.get("text")
            if text is None:
                logger.debug("Ignored binary frame on %s", session.connection.connection_id)
                continue
            try:
                data = json.loads(text)
            except ValueError:
                logger.debug("Ignored non-JSON frame on %s", session.connection.connection_id)
                continue
            await session.handle(data)
    except WebSocketDisconnect:
        pass
    except Exception as exc:
        logger.warning(
            "Connection %s ended with error: %s",
            session.connection.connection_id,
            exc,
            exc_info=True,
        )
    finally:
        heartbeat_task.cancel()
        try:
            await heartbeat_task
        except asyncio.CancelledError:
            pass
        await session.close()
