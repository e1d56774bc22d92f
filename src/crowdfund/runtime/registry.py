# src/crowdfund/runtime/registry.py
from __future__ import annotations

"""Campaign Registry.

Owns the `campaigns` root of ledger state: a list indexed by campaign id whose
slot 0 is a permanent all-default sentinel. Ids are handed out sequentially,
so the id counter is simply the list length.
"""

from typing import Any, Dict, List

from crowdfund.ledger.constants import FIRST_CAMPAIGN_ID, SENTINEL_CAMPAIGN_ID, ZERO_ADDRESS, is_null_identity
from crowdfund.ledger.state import CampaignStatus, CampaignView
from crowdfund.runtime.errors import CampaignNotFound, InvalidAmount, ZeroDuration, ZeroGoal

Json = Dict[str, Any]


def _sentinel() -> Json:
    return {"goal": 0, "deadline": 0, "creator": ZERO_ADDRESS, "total_raised": 0, "withdrawn": False}


def as_uint(v: Any, *, field: str) -> int:
    # bool is an int subclass; disallow it explicitly
    if isinstance(v, bool) or not isinstance(v, int):
        raise InvalidAmount(field, v)
    if v < 0:
        raise InvalidAmount(field, v)
    return int(v)


def _ensure_campaigns(state: Json) -> List[Json]:
    root = state.get("campaigns")
    if not isinstance(root, list) or not root:
        root = [_sentinel()]
        state["campaigns"] = root
    return root


def campaign_count(state: Json) -> int:
    """Highest assigned campaign id (0 when none exist)."""
    return len(_ensure_campaigns(state)) - 1


def validate_new_campaign(goal: Any, duration: Any) -> tuple[int, int]:
    g = as_uint(goal, field="goal")
    d = as_uint(duration, field="duration")
    if g == 0:
        raise ZeroGoal()
    if d == 0:
        raise ZeroDuration()
    return g, d


def create_campaign(state: Json, *, creator: str, goal: Any, duration: Any, now: int) -> int:
    g, d = validate_new_campaign(goal, duration)

    campaigns = _ensure_campaigns(state)
    campaign_id = len(campaigns)
    campaigns.append(
        {
            "goal": g,
            "deadline": int(now) + d,
            "creator": str(creator),
            "total_raised": 0,
            "withdrawn": False,
            "created_at": int(now),
        }
    )
    return campaign_id


def require_campaign(state: Json, campaign_id: Any) -> Json:
    """Return the mutable record for `campaign_id` or raise CampaignNotFound."""
    # Ids are exact ints: no bools, floats or numeric strings.
    if isinstance(campaign_id, bool) or not isinstance(campaign_id, int):
        raise CampaignNotFound(SENTINEL_CAMPAIGN_ID)
    cid = int(campaign_id)

    campaigns = _ensure_campaigns(state)
    if cid < FIRST_CAMPAIGN_ID or cid >= len(campaigns):
        raise CampaignNotFound(cid)

    rec = campaigns[cid]
    if not isinstance(rec, dict) or is_null_identity(rec.get("creator")):
        raise CampaignNotFound(cid)
    return rec


def campaign_view(state: Json, campaign_id: Any) -> CampaignView:
    rec = require_campaign(state, campaign_id)
    return CampaignView.from_record(int(campaign_id), rec)


def campaign_status(state: Json, campaign_id: Any, *, now: int) -> CampaignStatus:
    view = campaign_view(state, campaign_id)
    return CampaignStatus(
        seconds_remaining=view.seconds_remaining(now),
        goal=view.goal,
        total_raised=view.total_raised,
    )


def list_campaigns(state: Json) -> List[CampaignView]:
    """All campaign records in id order, sentinel included."""
    return [CampaignView.from_record(i, rec) for i, rec in enumerate(_ensure_campaigns(state))]


__all__ = [
    "as_uint",
    "campaign_count",
    "campaign_status",
    "campaign_view",
    "create_campaign",
    "list_campaigns",
    "require_campaign",
    "validate_new_campaign",
]
