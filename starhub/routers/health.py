"""Health check endpoint."""

from __future__ import annotations

import time

from fastapi import APIRouter, Request

router = APIRouter()

_start_time = time.monotonic()


@router.get("")
async def health_check(request: Request):
    """Return hub health status."""
    uptime = time.monotonic() - _start_time

    db_status = "ok"
    try:
        db = request.app.state.db
        await db.execute("SELECT 1")
    except Exception:
        db_status = "error"

    hub = getattr(request.app.state, "hub", None)

    return {
        "status": "ok" if db_status == "ok" and hub is not None else "degraded",
        "uptime_seconds": round(uptime, 1),
        "database": db_status,
        "online_users": len(hub.registry.snapshot()) if hub is not None else 0,
        "version": "1.0.0",
    }
