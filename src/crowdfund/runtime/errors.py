from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(eq=False)
class LedgerError(Exception):
    """Canonical error type for every rejected ledger operation.

    Subclasses pin `code`/`reason` and expose their context both as attributes
    and in `details`, so HTTP callers and tests can reconstruct the decision.
    """

    code: str
    reason: str
    details: Any | None = None

    def __str__(self) -> str:  # pragma: no cover
        if self.details is None:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"


# --- registry ---------------------------------------------------------------


class ZeroGoal(LedgerError):
    def __init__(self) -> None:
        super().__init__("invalid_payload", "zero_campaign_goal", {})


class ZeroDuration(LedgerError):
    def __init__(self) -> None:
        super().__init__("invalid_payload", "zero_campaign_duration", {})


class CampaignNotFound(LedgerError):
    def __init__(self, campaign_id: int) -> None:
        self.campaign_id = int(campaign_id)
        super().__init__("not_found", "campaign_not_found", {"campaign_id": self.campaign_id})


class InvalidAmount(LedgerError):
    """Amounts, goals and durations are unsigned integers."""

    def __init__(self, field: str, value: Any) -> None:
        self.field = str(field)
        self.value = value
        super().__init__("invalid_payload", "invalid_amount", {"field": self.field, "value": repr(value)})


# --- contributions ----------------------------------------------------------


class CampaignEnded(LedgerError):
    def __init__(self, deadline: int) -> None:
        self.deadline = int(deadline)
        super().__init__("forbidden", "campaign_ended", {"deadline": self.deadline})


class ZeroContribution(LedgerError):
    def __init__(self) -> None:
        super().__init__("invalid_payload", "zero_amount", {})


ZeroAmount = ZeroContribution


class ContributeByCreator(LedgerError):
    def __init__(self, creator: str) -> None:
        self.creator = str(creator)
        super().__init__("forbidden", "contribute_by_creator", {"creator": self.creator})


class ZeroContributions(LedgerError):
    def __init__(self, campaign_id: int, contributor: str) -> None:
        self.campaign_id = int(campaign_id)
        self.contributor = str(contributor)
        super().__init__(
            "conflict",
            "zero_contributions",
            {"campaign_id": self.campaign_id, "contributor": self.contributor},
        )


class ZeroAddress(LedgerError):
    def __init__(self, field: str = "address") -> None:
        self.field = str(field)
        super().__init__("invalid_payload", "zero_address", {"field": self.field})


class TokenNotAvailable(LedgerError):
    def __init__(self, token: str) -> None:
        self.token = str(token)
        super().__init__("invalid_payload", "token_not_available", {"token": self.token})


class EmptyTokensArray(LedgerError):
    def __init__(self) -> None:
        super().__init__("invalid_payload", "empty_tokens_array", {})


# --- settlement -------------------------------------------------------------


class NotCampaignCreator(LedgerError):
    def __init__(self, creator: str) -> None:
        self.creator = str(creator)
        super().__init__("forbidden", "not_campaign_creator", {"creator": self.creator})


class CampaignNotEnded(LedgerError):
    def __init__(self, deadline: int) -> None:
        self.deadline = int(deadline)
        super().__init__("forbidden", "campaign_not_ended", {"deadline": self.deadline})


class CampaignGoalNotReached(LedgerError):
    def __init__(self, goal: int, total_raised: int) -> None:
        self.goal = int(goal)
        self.total_raised = int(total_raised)
        super().__init__(
            "conflict",
            "campaign_goal_not_reached",
            {"goal": self.goal, "total_raised": self.total_raised},
        )


class CampaignGoalReached(LedgerError):
    def __init__(self, goal: int, total_raised: int) -> None:
        self.goal = int(goal)
        self.total_raised = int(total_raised)
        super().__init__(
            "conflict",
            "campaign_goal_reached",
            {"goal": self.goal, "total_raised": self.total_raised},
        )


class AlreadyWithdrawn(LedgerError):
    def __init__(self, campaign_id: int) -> None:
        self.campaign_id = int(campaign_id)
        super().__init__("conflict", "already_withdrawn", {"campaign_id": self.campaign_id})


# --- ledger guard -----------------------------------------------------------


class ReentrantCall(LedgerError):
    """A mutating operation was invoked while another one is still running."""

    def __init__(self, operation: str, active: str) -> None:
        self.operation = str(operation)
        self.active = str(active)
        super().__init__("conflict", "reentrant_call", {"operation": self.operation, "active": self.active})


# --- token collaborator -----------------------------------------------------


class TokenError(LedgerError):
    pass


class InsufficientAllowance(TokenError):
    def __init__(self, spender: str, allowance: int, requested: int) -> None:
        self.spender = str(spender)
        self.allowance = int(allowance)
        self.requested = int(requested)
        super().__init__(
            "token_error",
            "insufficient_allowance",
            {"spender": self.spender, "allowance": self.allowance, "requested": self.requested},
        )


class InsufficientBalance(TokenError):
    def __init__(self, account: str, balance: int, requested: int) -> None:
        self.account = str(account)
        self.balance = int(balance)
        self.requested = int(requested)
        super().__init__(
            "token_error",
            "insufficient_balance",
            {"account": self.account, "balance": self.balance, "requested": self.requested},
        )


__all__ = [
    "AlreadyWithdrawn",
    "CampaignEnded",
    "CampaignGoalNotReached",
    "CampaignGoalReached",
    "CampaignNotEnded",
    "CampaignNotFound",
    "ContributeByCreator",
    "EmptyTokensArray",
    "InsufficientAllowance",
    "InsufficientBalance",
    "InvalidAmount",
    "LedgerError",
    "NotCampaignCreator",
    "ReentrantCall",
    "TokenError",
    "TokenNotAvailable",
    "ZeroAddress",
    "ZeroAmount",
    "ZeroContribution",
    "ZeroContributions",
    "ZeroDuration",
    "ZeroGoal",
]
