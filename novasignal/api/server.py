# novasignal/api/server.py
from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from novasignal.api.state import get_runtime, has_runtime, set_runtime
from novasignal.app.engine import SignalRuntime
from novasignal.infrastructure.logging.logging import configure_logging, get_logger
from novasignal.infrastructure.utils.config import get_config
from novasignal.models.instruments import INSTRUMENTS, TIMEFRAMES
from novasignal.services.scan.scan_gate import ScanInProgressError

app = FastAPI(title="NovaSignal API", version="0.1.0")
_log = get_logger("api")
_owns_runtime = False


# CORS (frontend)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().api.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def _start_runtime() -> None:
    global _owns_runtime
    if has_runtime():
        return
    config = get_config()
    configure_logging(config.log_level, json_logs=config.monitoring.json_logs)
    runtime = SignalRuntime(config)
    set_runtime(runtime)
    _owns_runtime = True
    await runtime.start()
    _log.info("runtime_started", instrument=runtime.session.instrument.id, timeframe=runtime.session.timeframe)


@app.on_event("shutdown")
async def _stop_runtime() -> None:
    global _owns_runtime
    if _owns_runtime and has_runtime():
        await get_runtime().stop()
        set_runtime(None)
        _owns_runtime = False


class SessionPayload(BaseModel):
    instrument: Optional[str] = None
    timeframe: Optional[str] = None


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/metrics")
def metrics():
    return asdict(get_runtime().metrics)


@app.get("/instruments")
def instruments():
    return [asdict(i) for i in INSTRUMENTS]


@app.get("/timeframes")
def timeframes():
    return TIMEFRAMES


@app.get("/analysis")
def analysis():
    rt = get_runtime()
    result = rt.session.latest_result()
    return {
        "ready": result is not None,
        "connected": rt.session.connected,
        "instrument": rt.session.instrument.id,
        "timeframe": rt.session.timeframe,
        "price": rt.session.last_price,
        "result": result.to_dict() if result is not None else None,
    }


@app.post("/session")
async def switch_session(payload: SessionPayload):
    rt = get_runtime()
    try:
        generation = await rt.switch(payload.instrument, payload.timeframe)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "instrument": rt.session.instrument.id,
        "timeframe": rt.session.timeframe,
        "generation": generation,
    }


@app.post("/scan")
async def scan():
    rt = get_runtime()
    try:
        return await rt.scan()
    except ScanInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
