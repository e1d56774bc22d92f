from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from crowdfund.api.routes_public_parts.common import _ledger, _require_dev_mode, _runtime, _token
from crowdfund.api.schemas import TokenApproveRequest, TokenMintRequest
from crowdfund.api.security import require_caller

router = APIRouter()

Json = Dict[str, Any]


@router.get("/tokens")
def get_tokens(request: Request) -> Json:
    return {"ok": True, "tokens": _ledger(request).get_tokens()}


@router.get("/tokens/{address}/balances/{owner}")
def get_balance(address: str, owner: str, request: Request) -> Json:
    tok = _token(request, address)
    ledger_address = _runtime(request).cfg.ledger_address
    return {
        "ok": True,
        "token": tok.address,
        "owner": owner,
        "balance": tok.balance_of(owner),
        "allowance": tok.allowance(owner, ledger_address),
    }


@router.post("/tokens/{address}/mint")
def mint(address: str, body: TokenMintRequest, request: Request) -> Json:
    _require_dev_mode(request)
    tok = _token(request, address)
    tok.mint(body.to, body.amount)
    return {"ok": True, "token": tok.address, "to": body.to, "balance": tok.balance_of(body.to)}


@router.post("/tokens/{address}/approve")
def approve(address: str, body: TokenApproveRequest, request: Request) -> Json:
    """Caller grants the ledger an allowance to pull up to `amount`."""
    _require_dev_mode(request)
    caller = require_caller(request)
    tok = _token(request, address)
    ledger_address = _runtime(request).cfg.ledger_address
    tok.approve(caller, ledger_address, body.amount)
    return {"ok": True, "token": tok.address, "owner": caller, "allowance": tok.allowance(caller, ledger_address)}
