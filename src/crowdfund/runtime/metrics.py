# src/crowdfund/runtime/metrics.py
from __future__ import annotations

import os
import threading
import time
from typing import Dict, List

_ENABLED_VALUES = {"1", "true", "yes", "y", "on"}

_lock = threading.Lock()
_counters: Dict[str, int] = {}
_gauges: Dict[str, int] = {}
_started_ms = int(time.time() * 1000)


def metrics_enabled() -> bool:
    """GET /v1/metrics is served only when CROWDFUND_METRICS_ENABLED is truthy."""
    return (os.environ.get("CROWDFUND_METRICS_ENABLED") or "").strip().lower() in _ENABLED_VALUES


def _metric_name(name: str) -> str:
    # Prometheus names: letters, digits, underscores.
    raw = str(name or "").strip()
    return "".join(ch if ch.isalnum() or ch == "_" else "_" for ch in raw)


def inc_counter(name: str, value: int = 1) -> None:
    n = _metric_name(name)
    if not n:
        return
    with _lock:
        _counters[n] = _counters.get(n, 0) + int(value)


def set_gauge(name: str, value: int) -> None:
    n = _metric_name(name)
    if not n:
        return
    with _lock:
        _gauges[n] = int(value)


def reset() -> None:
    """Drop every counter and gauge (tests; process restart semantics)."""
    with _lock:
        _counters.clear()
        _gauges.clear()


def snapshot() -> dict:
    now_ms = int(time.time() * 1000)
    with _lock:
        return {
            "ts_ms": now_ms,
            "uptime_ms": now_ms - _started_ms,
            "counters": dict(_counters),
            "gauges": dict(_gauges),
        }


def format_prometheus(prefix: str = "crowdfund_") -> str:
    """Prometheus text exposition.

    Counters are the `<operation>_ok` / `<operation>_rejected` outcomes the
    ledger records per call; gauges hold current sizes such as
    `campaigns_total`.
    """
    pre = _metric_name(prefix) or "crowdfund_"
    snap = snapshot()
    lines: List[str] = [f"{pre}uptime_ms {int(snap['uptime_ms'])}"]

    for kind, values in (("counter", snap["counters"]), ("gauge", snap["gauges"])):
        for name in sorted(values):
            lines.append(f"# TYPE {pre}{name} {kind}")
            lines.append(f"{pre}{name} {int(values[name])}")

    return "\n".join(lines) + "\n"
