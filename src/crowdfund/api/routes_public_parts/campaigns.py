from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from crowdfund.api.routes_public_parts.common import _ledger
from crowdfund.api.schemas import CreateCampaignRequest
from crowdfund.api.security import require_caller

router = APIRouter()

Json = Dict[str, Any]


@router.post("/campaigns")
def create_campaign(body: CreateCampaignRequest, request: Request) -> Json:
    caller = require_caller(request)
    campaign_id = _ledger(request).create_campaign(caller, body.goal, body.duration)
    return {"ok": True, "campaign_id": campaign_id}


@router.get("/campaigns")
def list_campaigns(request: Request) -> Json:
    """All campaigns in id order; index 0 is the empty sentinel."""
    campaigns = [c.to_json() for c in _ledger(request).get_campaigns()]
    return {"ok": True, "count": len(campaigns) - 1, "campaigns": campaigns}


@router.get("/campaigns/{campaign_id}")
def get_campaign(campaign_id: int, request: Request) -> Json:
    status, phase = _ledger(request).describe_campaign(campaign_id)
    out: Json = {"ok": True, "campaign_id": campaign_id}
    out.update(status.to_json())
    out["phase"] = phase.value
    return out
