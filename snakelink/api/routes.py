from __future__ import annotations

import logging
from typing import Optional

from fastapi.encoders import jsonable_encoder
from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from ..core.context import AppContext
from ..core.timeutil import now_ms
from ..domain.models import AppConfig, Reading, SensorConfigDocument, SensorSpec
from ..domain.status import evaluate, is_stale
from ..services.log_query import DEFAULT_LIMIT, query_logs
from .schemas import AppConfigUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependency getter (overridden in main via app.dependency_overrides) ---
def get_context() -> AppContext:  # overridden in main
    raise RuntimeError("Application context not configured")


def _public_sensor(sensor: SensorSpec, live: dict[str, Reading], cfg: AppConfig, now: int) -> dict:
    reading = live.get(sensor.id)
    current = reading
    if reading is not None and is_stale(reading, cfg.sensor_system.retention_minutes, now):
        current = None
    return {
        "id": sensor.id,
        "name": sensor.name,
        "type": sensor.type,
        "unit": sensor.unit,
        "limits": sensor.limits.model_dump(mode="json", by_alias=True),
        "reading": reading.model_dump(mode="json", by_alias=True) if reading else None,
        "status": evaluate(sensor, current, cfg.general),
    }


@router.get("/health")
async def health(ctx: AppContext = Depends(get_context)):
    return {
        "ok": True,
        "polling": ctx.polling.running,
        "logging": ctx.sensor_logging.running,
        "watching": ctx.watching.running,
        "pending_notifications": ctx.queue.pending,
    }


# --- Live ---
@router.get("/live")
async def live(ctx: AppContext = Depends(get_context)):
    cfg = ctx.storage.app_config_store().load()
    sensors = ctx.storage.sensor_config_store().load().sensors
    live = ctx.storage.live_store().load()
    now = now_ms()
    return [_public_sensor(s, live, cfg, now) for s in sensors]


@router.get("/live/{sensor_id}")
async def live_sensor(sensor_id: str, ctx: AppContext = Depends(get_context)):
    cfg = ctx.storage.app_config_store().load()
    for s in ctx.storage.sensor_config_store().load().sensors:
        if s.id == sensor_id:
            return _public_sensor(s, ctx.storage.live_store().load(), cfg, now_ms())
    raise HTTPException(status_code=404, detail="Sensor not found")


@router.websocket("/ws")
async def live_ws(ws: WebSocket, ctx: AppContext = Depends(get_context)):
    await ws.accept()
    ctx.broadcaster.add(ws)
    try:
        while True:
            await ws.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        ctx.broadcaster.remove(ws)


# --- Logs ---
@router.get("/logs")
async def logs(
    from_: Optional[int] = Query(default=None, alias="from"),
    to: Optional[int] = None,
    sensor: Optional[str] = None,
    limit: int = Query(default=DEFAULT_LIMIT, ge=0, le=20000),
    offset: int = Query(default=0, ge=0),
    ctx: AppContext = Depends(get_context),
):
    if sensor is not None:
        known = {s.id for s in ctx.storage.sensor_config_store().load().sensors}
        if sensor not in known:
            raise HTTPException(status_code=404, detail=f"Sensor not found: {sensor}")

    page = query_logs(
        ctx.storage.log_store().load([]),
        now_ms=now_ms(),
        from_ms=from_,
        to_ms=to,
        sensor_id=sensor,
        limit=limit,
        offset=offset,
    )
    return {
        "total": page.total,
        "from": page.from_ms,
        "to": page.to_ms,
        "limit": page.limit,
        "offset": page.offset,
        "count": page.count,
        "results": page.results,
    }


# --- Config ---
@router.get("/config/sensors")
async def get_sensors(ctx: AppContext = Depends(get_context)):
    doc = ctx.storage.sensor_config_store().load()
    return doc.model_dump(mode="json", by_alias=True)["sensors"]


@router.post("/config/sensors")
async def replace_sensors(sensors: list[SensorSpec], ctx: AppContext = Depends(get_context)):
    ids = [s.id for s in sensors]
    if len(ids) != len(set(ids)):
        raise HTTPException(status_code=400, detail="Duplicate sensor id")
    ctx.storage.sensor_config_store().save(SensorConfigDocument(sensors=sensors))
    return {"success": True, "count": len(sensors)}


@router.get("/config/sensors/{sensor_id}")
async def get_sensor(sensor_id: str, ctx: AppContext = Depends(get_context)):
    for s in ctx.storage.sensor_config_store().load().sensors:
        if s.id == sensor_id:
            return s.model_dump(mode="json", by_alias=True)
    raise HTTPException(status_code=404, detail="Sensor not found")


@router.get("/config/app")
async def get_app_config(ctx: AppContext = Depends(get_context)):
    return ctx.storage.app_config_store().load().model_dump(mode="json", by_alias=True)


@router.post("/config/app")
async def update_app_config(req: AppConfigUpdate, ctx: AppContext = Depends(get_context)):
    store = ctx.storage.app_config_store()
    merged = store.load().model_dump(mode="json", by_alias=True)
    if req.general:
        merged["general"].update(req.general)
    if req.sensor_system:
        merged["sensorSystem"].update(req.sensor_system)

    try:
        cfg = AppConfig.model_validate(merged)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=jsonable_encoder(e.errors(include_url=False, include_context=False)))

    store.save(cfg)
    await ctx.restart_sensor_services()
    logger.info("App config updated, sensor services restarted")
    return {"success": True}


# --- Alerts ---
@router.post("/alerts/test")
async def send_test_alert(ctx: AppContext = Depends(get_context)):
    recipients = await ctx.alerts.send_test()
    return {"success": True, "recipients": recipients}
