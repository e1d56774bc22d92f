from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from crowdfund.api.routes_public_parts.common import _ledger
from crowdfund.api.schemas import ContributeRequest
from crowdfund.api.security import require_caller

router = APIRouter()

Json = Dict[str, Any]


@router.post("/campaigns/{campaign_id}/contributions")
def contribute(campaign_id: int, body: ContributeRequest, request: Request) -> Json:
    caller = require_caller(request)
    total = _ledger(request).contribute(caller, campaign_id, body.amount, body.token)
    return {"ok": True, "campaign_id": campaign_id, "contributor": caller, "contribution": total}


@router.delete("/campaigns/{campaign_id}/contributions")
def cancel_contribution(campaign_id: int, request: Request) -> Json:
    caller = require_caller(request)
    released = _ledger(request).cancel_contribution(caller, campaign_id)
    return {"ok": True, "campaign_id": campaign_id, "contributor": caller, "released": released}


@router.get("/campaigns/{campaign_id}/contributions")
def list_contributions(campaign_id: int, request: Request) -> Json:
    contributors = _ledger(request).get_contributors(campaign_id)
    return {"ok": True, "campaign_id": campaign_id, "count": len(contributors), "contributors": contributors}


@router.get("/campaigns/{campaign_id}/contributions/{contributor}")
def get_contribution(campaign_id: int, contributor: str, request: Request) -> Json:
    ledger = _ledger(request)
    amount = ledger.get_contribution(campaign_id, contributor)
    return {
        "ok": True,
        "campaign_id": campaign_id,
        "contributor": contributor,
        "amount": amount,
        "tokens": ledger.get_contribution_breakdown(campaign_id, contributor),
    }
