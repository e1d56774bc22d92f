# src/crowdfund/runtime/settlement.py
from __future__ import annotations

"""Settlement Engine.

A campaign has four logical phases, all derived from stored fields:

  ACTIVE              now < deadline
  EXPIRED_GOAL_MET    now >= deadline and total_raised >= goal
  EXPIRED_GOAL_UNMET  now >= deadline and total_raised < goal
  SETTLED             withdrawn (reachable only from EXPIRED_GOAL_MET)

withdraw_funds and refund are mutually exclusive for a campaign's lifetime:
the withdrawn flag blocks refunds, and refunds can only ever shrink
total_raised below a goal it was already under.
"""

from enum import Enum
from typing import Any, Dict

from crowdfund.ledger.state import CampaignView
from crowdfund.runtime.contributions import require_contribution
from crowdfund.runtime.errors import (
    AlreadyWithdrawn,
    CampaignEnded,
    CampaignGoalNotReached,
    CampaignGoalReached,
    CampaignNotEnded,
    NotCampaignCreator,
)

Json = Dict[str, Any]


class CampaignPhase(Enum):
    ACTIVE = "active"
    EXPIRED_GOAL_MET = "expired_goal_met"
    EXPIRED_GOAL_UNMET = "expired_goal_unmet"
    SETTLED = "settled"


def campaign_phase(view: CampaignView, *, now: int) -> CampaignPhase:
    if view.withdrawn:
        return CampaignPhase.SETTLED
    if view.is_active(now):
        return CampaignPhase.ACTIVE
    if view.goal_reached():
        return CampaignPhase.EXPIRED_GOAL_MET
    return CampaignPhase.EXPIRED_GOAL_UNMET


def _deadline(campaign: Json) -> int:
    return int(campaign.get("deadline", 0) or 0)


def _goal(campaign: Json) -> int:
    return int(campaign.get("goal", 0) or 0)


def _raised(campaign: Json) -> int:
    return int(campaign.get("total_raised", 0) or 0)


def require_active(campaign: Json, *, now: int) -> None:
    if int(now) >= _deadline(campaign):
        raise CampaignEnded(_deadline(campaign))


def require_ended(campaign: Json, *, now: int) -> None:
    if int(now) < _deadline(campaign):
        raise CampaignNotEnded(_deadline(campaign))


def check_withdraw(campaign: Json, *, campaign_id: int, caller: str, now: int) -> int:
    """Validate a creator withdrawal; returns the amount that will be released."""
    creator = str(campaign.get("creator") or "")
    if str(caller) != creator:
        raise NotCampaignCreator(creator)
    require_ended(campaign, now=now)
    if _raised(campaign) < _goal(campaign):
        raise CampaignGoalNotReached(_goal(campaign), _raised(campaign))
    if bool(campaign.get("withdrawn", False)):
        raise AlreadyWithdrawn(campaign_id)
    return _raised(campaign)


def check_refund(state: Json, campaign: Json, *, campaign_id: int, caller: str, now: int) -> int:
    """Validate a contributor refund; returns the contributor's current amount."""
    require_ended(campaign, now=now)
    if bool(campaign.get("withdrawn", False)):
        raise AlreadyWithdrawn(campaign_id)
    amount = require_contribution(state, campaign_id, caller)
    if _raised(campaign) >= _goal(campaign):
        raise CampaignGoalReached(_goal(campaign), _raised(campaign))
    return amount


def _paid_out(campaign: Json) -> Dict[str, int]:
    paid = campaign.get("paid_out")
    return paid if isinstance(paid, dict) else {}


def outstanding_payout(campaign: Json, raised_by_token: Dict[str, int]) -> Dict[str, int]:
    """Per-token amounts the creator is still owed.

    Equal to `raised_by_token` unless an earlier withdrawal stopped part-way.
    """
    paid = _paid_out(campaign)
    out: Dict[str, int] = {}
    for tok, amt in raised_by_token.items():
        owed = int(amt) - int(paid.get(tok, 0) or 0)
        if owed > 0:
            out[str(tok)] = owed
    return out


def mark_withdrawn(campaign: Json, payout: Dict[str, int], *, now: int) -> None:
    # total_raised is left untouched as the campaign's permanent record.
    paid = campaign.setdefault("paid_out", {})
    for tok, amt in payout.items():
        paid[tok] = int(paid.get(tok, 0) or 0) + int(amt)
    campaign["withdrawn"] = True
    campaign["withdrawn_at"] = int(now)


def reopen_withdrawal(campaign: Json, unpaid: Dict[str, int]) -> None:
    """Undo `mark_withdrawn` for the legs that were never pushed.

    Legs already delivered stay in `paid_out`, so a retry only sends the rest.
    """
    paid = _paid_out(campaign)
    for tok, amt in unpaid.items():
        left = int(paid.get(tok, 0) or 0) - int(amt)
        if left > 0:
            paid[tok] = left
        else:
            paid.pop(tok, None)
    if not paid:
        campaign.pop("paid_out", None)
    campaign["withdrawn"] = False
    campaign.pop("withdrawn_at", None)


__all__ = [
    "CampaignPhase",
    "campaign_phase",
    "check_refund",
    "check_withdraw",
    "mark_withdrawn",
    "outstanding_payout",
    "reopen_withdrawal",
    "require_active",
    "require_ended",
]
