from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from crowdfund.api.routes_public_parts.common import _ledger
from crowdfund.api.security import require_caller

router = APIRouter()

Json = Dict[str, Any]


@router.post("/campaigns/{campaign_id}/withdraw")
def withdraw_funds(campaign_id: int, request: Request) -> Json:
    caller = require_caller(request)
    payout = _ledger(request).withdraw_funds(caller, campaign_id)
    return {"ok": True, "campaign_id": campaign_id, "creator": caller, "released": payout}


@router.post("/campaigns/{campaign_id}/refund")
def refund(campaign_id: int, request: Request) -> Json:
    caller = require_caller(request)
    released = _ledger(request).refund(caller, campaign_id)
    return {"ok": True, "campaign_id": campaign_id, "contributor": caller, "released": released}
