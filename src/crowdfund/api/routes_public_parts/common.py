from __future__ import annotations

from typing import Any, Dict

from fastapi import Request

from crowdfund.api.errors import ApiError
from crowdfund.runtime.boot import LedgerRuntime
from crowdfund.runtime.crowdfund import CrowdFund
from crowdfund.tokens.memory import MemoryToken

Json = Dict[str, Any]


def _runtime(request: Request) -> LedgerRuntime:
    rt = getattr(request.app.state, "runtime", None)
    if rt is None:
        raise ApiError.internal("not_ready", "ledger runtime not attached to app.state", {})
    return rt


def _ledger(request: Request) -> CrowdFund:
    return _runtime(request).ledger


def _token(request: Request, address: str) -> MemoryToken:
    tok = _runtime(request).tokens.get(str(address or "").strip())
    if tok is None:
        raise ApiError.not_found("token_not_found", "token is not served by this ledger", {"token": address})
    return tok


def _require_dev_mode(request: Request) -> None:
    """Token faucets exist only for dev/testnet ledgers."""
    mode = str(_runtime(request).cfg.mode or "prod").strip().lower()
    if mode == "prod":
        raise ApiError.forbidden("dev_only", "endpoint is disabled in prod mode", {"mode": mode})
