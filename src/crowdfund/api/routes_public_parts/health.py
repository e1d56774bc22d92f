from __future__ import annotations

import time
from typing import Any, Optional

from fastapi import APIRouter, Request

router = APIRouter()


def _now_ms() -> int:
    return int(time.time() * 1000)


def _health_payload(request: Request) -> dict[str, object]:
    # health must never crash; best-effort telemetry only
    rt: Optional[Any] = getattr(request.app.state, "runtime", None)

    ledger_id = None
    variant = None
    mode = None
    campaigns = None
    tokens = None

    if rt is not None:
        cfg = getattr(rt, "cfg", None)
        ledger_id = getattr(cfg, "ledger_id", None)
        variant = getattr(cfg, "variant", None)
        mode = getattr(cfg, "mode", None)
        try:
            campaigns = len(rt.ledger.get_campaigns()) - 1
            tokens = rt.ledger.get_tokens()
        except Exception:
            campaigns = None
            tokens = None

    return {
        "ok": True,
        "service": "crowdfund-ledger",
        "version": "v1",
        "ts_ms": _now_ms(),
        "ready": rt is not None,
        "ledger_id": ledger_id,
        "mode": mode,
        "variant": variant,
        "campaigns": campaigns,
        "tokens": tokens,
    }


@router.get("/v1/health")
def v1_health(request: Request) -> dict[str, object]:
    return _health_payload(request)


@router.get("/healthz")
def healthz(request: Request) -> dict[str, object]:
    # Kubernetes-style alias
    return _health_payload(request)
