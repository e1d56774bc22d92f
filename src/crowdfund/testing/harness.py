from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from crowdfund.ledger.constants import DEFAULT_LEDGER_ADDRESS
from crowdfund.runtime.clock import ManualClock
from crowdfund.runtime.crowdfund import CrowdFund
from crowdfund.tokens.gateway import LedgerTokenGateway
from crowdfund.tokens.memory import MemoryToken

CREATOR = "@creator"
CONTRIBUTOR = "@alice"
OTHER = "@bob"

GOAL = 100
DURATION = 100


@dataclass
class Harness:
    """A ledger wired to MemoryTokens and a ManualClock.

    TEST ONLY. The contributor starts with `balance` of every token and has
    approved the ledger for `allowance` of each.
    """

    ledger: CrowdFund
    clock: ManualClock
    tokens: List[MemoryToken]
    ledger_address: str = DEFAULT_LEDGER_ADDRESS
    created_at: Dict[int, int] = field(default_factory=dict)

    @property
    def token(self) -> MemoryToken:
        return self.tokens[0]

    def create(self, *, goal: int = GOAL, duration: int = DURATION, creator: str = CREATOR) -> int:
        cid = self.ledger.create_campaign(creator, goal, duration)
        self.created_at[cid] = self.clock.now()
        return cid

    def deadline(self, campaign_id: int) -> int:
        return self.ledger.get_campaigns()[campaign_id].deadline

    def expire(self, campaign_id: int) -> None:
        """Move the clock exactly to the campaign deadline (first expired second)."""
        self.clock.set(max(self.clock.now(), self.deadline(campaign_id)))

    def fund(self, who: str, amount: int, *, token: Optional[MemoryToken] = None) -> None:
        tok = token or self.token
        tok.mint(who, amount)
        tok.approve(who, self.ledger_address, tok.allowance(who, self.ledger_address) + amount)

    def balance(self, who: str, *, token: Optional[MemoryToken] = None) -> int:
        return (token or self.token).balance_of(who)

    def held(self, *, token: Optional[MemoryToken] = None) -> int:
        return self.balance(self.ledger_address, token=token)


def _tokens(n: int, *, balance: int, allowance: int, ledger_address: str) -> List[MemoryToken]:
    out: List[MemoryToken] = []
    for i in range(n):
        sym = "MTK" if i == 0 else f"MTK{i + 1}"
        t = MemoryToken(sym, name=f"myToken{'' if i == 0 else i + 1}", symbol=sym)
        t.mint(CONTRIBUTOR, balance)
        t.approve(CONTRIBUTOR, ledger_address, allowance)
        out.append(t)
    return out


def single_token_harness(*, balance: int = 100, allowance: int = 100, start: int = 1_700_000_000) -> Harness:
    clock = ManualClock(start)
    tokens = _tokens(1, balance=balance, allowance=allowance, ledger_address=DEFAULT_LEDGER_ADDRESS)
    ledger = CrowdFund.single_token(LedgerTokenGateway(tokens[0]), clock=clock)
    return Harness(ledger=ledger, clock=clock, tokens=tokens)


def multi_token_harness(
    *,
    n_tokens: int = 2,
    balance: int = 100,
    allowance: int = 100,
    start: int = 1_700_000_000,
) -> Harness:
    clock = ManualClock(start)
    tokens = _tokens(n_tokens, balance=balance, allowance=allowance, ledger_address=DEFAULT_LEDGER_ADDRESS)
    ledger = CrowdFund.multi_token(tokens, clock=clock)
    return Harness(ledger=ledger, clock=clock, tokens=tokens)
