from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator

from crowdfund.ledger.constants import ZERO_ADDRESS


Json = Dict[str, Any]


def _as_int(v: Any, default: int = 0) -> int:
    try:
        if isinstance(v, bool):
            return int(default)
        return int(v)
    except Exception:
        return int(default)


@dataclass(frozen=True, slots=True)
class CampaignView:
    """
    Immutable read-only view of one stored campaign record.

    The sentinel at slot 0 is a CampaignView with every field at its default.
    """

    campaign_id: int = 0
    goal: int = 0
    deadline: int = 0
    creator: str = ZERO_ADDRESS
    total_raised: int = 0
    withdrawn: bool = False

    @classmethod
    def from_record(cls, campaign_id: int, rec: Any) -> "CampaignView":
        r = rec if isinstance(rec, dict) else {}
        return cls(
            campaign_id=int(campaign_id),
            goal=_as_int(r.get("goal")),
            deadline=_as_int(r.get("deadline")),
            creator=str(r.get("creator") or ZERO_ADDRESS),
            total_raised=_as_int(r.get("total_raised")),
            withdrawn=bool(r.get("withdrawn", False)),
        )

    def to_json(self) -> Json:
        return {
            "campaign_id": int(self.campaign_id),
            "goal": int(self.goal),
            "deadline": int(self.deadline),
            "creator": self.creator,
            "total_raised": int(self.total_raised),
            "withdrawn": bool(self.withdrawn),
        }

    # ---- derived lifecycle (no extra stored state) ----

    def is_active(self, now: int) -> bool:
        return int(now) < int(self.deadline)

    def goal_reached(self) -> bool:
        return int(self.total_raised) >= int(self.goal)

    def seconds_remaining(self, now: int) -> int:
        return max(0, int(self.deadline) - int(now))


@dataclass(frozen=True, slots=True)
class CampaignStatus:
    """Result of get_campaign: (seconds_remaining, goal, total_raised)."""

    seconds_remaining: int
    goal: int
    total_raised: int

    def __iter__(self) -> Iterator[int]:
        """Allow `remaining, goal, raised = ledger.get_campaign(...)` unpacking."""
        yield self.seconds_remaining
        yield self.goal
        yield self.total_raised

    def to_json(self) -> Json:
        return {
            "seconds_remaining": int(self.seconds_remaining),
            "goal": int(self.goal),
            "total_raised": int(self.total_raised),
        }
