# novasignal/api/state.py
from __future__ import annotations

from typing import Optional

from novasignal.app.engine import SignalRuntime

_runtime: Optional[SignalRuntime] = None


def set_runtime(runtime: Optional[SignalRuntime]) -> None:
    global _runtime
    _runtime = runtime


def has_runtime() -> bool:
    return _runtime is not None


def get_runtime() -> SignalRuntime:
    if _runtime is None:
        raise RuntimeError("API state not initialized. Start the runtime first (or inject one).")
    return _runtime
