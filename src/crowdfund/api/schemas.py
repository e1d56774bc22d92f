from __future__ import annotations

"""Pydantic request schemas for the public API.

Keep this module intentionally small and stable. Amount semantics (zero goal,
zero contribution, ...) are enforced by the ledger so HTTP callers get the
same named errors as in-process callers; these models only check shape.
"""

from typing import Optional

from pydantic import BaseModel, Field


class CreateCampaignRequest(BaseModel):
    goal: int = Field(..., ge=0, description="Funding goal in raw token units")
    duration: int = Field(..., ge=0, description="Seconds from now until the deadline")


class ContributeRequest(BaseModel):
    amount: int = Field(..., ge=0, description="Raw token units to pledge")
    token: Optional[str] = Field(default=None, description="Token address (multi-token ledgers only)")


class TokenMintRequest(BaseModel):
    to: str = Field(..., description="Recipient identity")
    amount: int = Field(..., ge=0)


class TokenApproveRequest(BaseModel):
    amount: int = Field(..., ge=0, description="Allowance granted to the ledger")
