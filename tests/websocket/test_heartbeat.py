"""Tests for the per-connection heartbeat task."""

from __future__ import annotations

import logging
from unittest.mock import patch

from starhub.routers.websocket import _heartbeat


async def test_heartbeat_stops_and_logs_when_send_fails(make_ws, caplog):
    ws = make_ws(dead=True)
    with patch("starhub.routers.websocket.HEARTBEAT_INTERVAL", 0), caplog.at_level(
        logging.DEBUG, logger="starhub.routers.websocket"
    ):
        await _heartbeat(ws)

    ws.send_json.assert_awaited_once_with({"type": "ping"})
    assert "Heartbeat stopped: connection closed" in caplog.text
