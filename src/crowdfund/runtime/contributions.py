# src/crowdfund/runtime/contributions.py
from __future__ import annotations

from typing import Any, Dict

from crowdfund.ledger.constants import is_null_identity
from crowdfund.runtime.errors import ContributeByCreator, ZeroAddress, ZeroContribution, ZeroContributions
from crowdfund.runtime.registry import as_uint

Json = Dict[str, Any]


def _ensure_contributions(state: Json) -> Json:
    root = state.get("contributions")
    if not isinstance(root, dict):
        root = {}
        state["contributions"] = root
    return root


def _ensure_raised_by_token(state: Json) -> Json:
    root = state.get("raised_by_token")
    if not isinstance(root, dict):
        root = {}
        state["raised_by_token"] = root
    return root


def _entry(state: Json, campaign_id: int, contributor: str) -> Json:
    by_campaign = _ensure_contributions(state).get(str(int(campaign_id)))
    if not isinstance(by_campaign, dict):
        return {}
    e = by_campaign.get(str(contributor))
    return e if isinstance(e, dict) else {}


def _ensure_entry(state: Json, campaign_id: int, contributor: str) -> Json:
    root = _ensure_contributions(state)
    by_campaign = root.setdefault(str(int(campaign_id)), {})
    e = by_campaign.get(str(contributor))
    if not isinstance(e, dict):
        e = {"amount": 0, "tokens": {}}
        by_campaign[str(contributor)] = e
    e.setdefault("tokens", {})
    return e


# ---------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------


def contribution_of(state: Json, campaign_id: int, contributor: str) -> int:
    """Token-agnostic sum currently pledged by `contributor`."""
    try:
        return int(_entry(state, campaign_id, contributor).get("amount", 0) or 0)
    except Exception:
        return 0


def token_breakdown(state: Json, campaign_id: int, contributor: str) -> Dict[str, int]:
    tokens = _entry(state, campaign_id, contributor).get("tokens")
    if not isinstance(tokens, dict):
        return {}
    return {str(k): int(v) for k, v in tokens.items() if int(v or 0) > 0}


def raised_by_token(state: Json, campaign_id: int) -> Dict[str, int]:
    r = _ensure_raised_by_token(state).get(str(int(campaign_id)))
    if not isinstance(r, dict):
        return {}
    return {str(k): int(v) for k, v in r.items() if int(v or 0) > 0}


def contributors_of(state: Json, campaign_id: int) -> Dict[str, int]:
    """Nonzero contributor entries for a campaign."""
    by_campaign = _ensure_contributions(state).get(str(int(campaign_id)))
    if not isinstance(by_campaign, dict):
        return {}
    out: Dict[str, int] = {}
    for who, e in by_campaign.items():
        amt = int(e.get("amount", 0) or 0) if isinstance(e, dict) else 0
        if amt:
            out[str(who)] = amt
    return out


def require_identity(v: Any, *, field: str = "contributor") -> str:
    if is_null_identity(v):
        raise ZeroAddress(field)
    return str(v)


# ---------------------------------------------------------------------
# Checks (never mutate)
# ---------------------------------------------------------------------


def check_contribution(campaign: Json, *, contributor: str, amount: Any) -> int:
    n = as_uint(amount, field="amount")
    if n == 0:
        raise ZeroContribution()
    creator = str(campaign.get("creator") or "")
    if str(contributor) == creator:
        raise ContributeByCreator(creator)
    return n


def require_contribution(state: Json, campaign_id: int, contributor: str) -> int:
    amt = contribution_of(state, campaign_id, contributor)
    if amt <= 0:
        raise ZeroContributions(campaign_id, contributor)
    return amt


# ---------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------


def record_contribution(
    state: Json,
    campaign: Json,
    *,
    campaign_id: int,
    contributor: str,
    token: str,
    amount: int,
) -> int:
    """Credit `amount` of `token`; returns the contributor's new total.

    Amounts of different tokens are added as raw numbers.
    """
    n = int(amount)
    e = _ensure_entry(state, campaign_id, contributor)
    e["amount"] = int(e.get("amount", 0) or 0) + n
    tokens = e["tokens"]
    tokens[str(token)] = int(tokens.get(str(token), 0) or 0) + n

    by_token = _ensure_raised_by_token(state).setdefault(str(int(campaign_id)), {})
    by_token[str(token)] = int(by_token.get(str(token), 0) or 0) + n

    campaign["total_raised"] = int(campaign.get("total_raised", 0) or 0) + n
    return int(e["amount"])


def release_contribution(state: Json, campaign: Json, *, campaign_id: int, contributor: str) -> Dict[str, int]:
    """Zero the contributor's entry and return the per-token amounts to send back."""
    amount = require_contribution(state, campaign_id, contributor)
    released = token_breakdown(state, campaign_id, contributor)

    e = _ensure_entry(state, campaign_id, contributor)
    e["amount"] = 0
    e["tokens"] = {}

    by_token = _ensure_raised_by_token(state).setdefault(str(int(campaign_id)), {})
    for tok, amt in released.items():
        by_token[tok] = max(0, int(by_token.get(tok, 0) or 0) - int(amt))

    campaign["total_raised"] = int(campaign.get("total_raised", 0) or 0) - int(amount)
    return released


def restore_contribution(
    state: Json,
    campaign: Json,
    *,
    campaign_id: int,
    contributor: str,
    unpaid: Dict[str, int],
) -> None:
    """Credit back the legs of a release that were never pushed to the contributor."""
    for tok, amt in sorted(unpaid.items()):
        if int(amt) > 0:
            record_contribution(
                state, campaign, campaign_id=campaign_id, contributor=contributor, token=tok, amount=int(amt)
            )


__all__ = [
    "check_contribution",
    "contribution_of",
    "contributors_of",
    "raised_by_token",
    "record_contribution",
    "release_contribution",
    "require_contribution",
    "require_identity",
    "restore_contribution",
    "token_breakdown",
]
