# src/crowdfund/runtime/crowdfund.py
from __future__ import annotations

import copy
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from crowdfund.ledger.constants import DEFAULT_LEDGER_ADDRESS
from crowdfund.ledger.state import CampaignStatus, CampaignView
from crowdfund.runtime import contributions, registry, settlement
from crowdfund.runtime.clock import Clock, SystemClock
from crowdfund.runtime.errors import ReentrantCall
from crowdfund.runtime.ledger_logging import ledger_log, log_event
from crowdfund.runtime.metrics import inc_counter, set_gauge
from crowdfund.tokens.gateway import (
    AllowListRouter,
    LedgerTokenGateway,
    SingleTokenRouter,
    TokenBackend,
    TokenGateway,
    TokenRouter,
    token_address,
)

Json = Dict[str, Any]
Leg = Tuple[str, TokenGateway, int]


def _initial_state() -> Json:
    st: Json = {}
    registry.campaign_count(st)
    st["contributions"] = {}
    st["raised_by_token"] = {}
    return st


class _Tx:
    """Pre-call snapshot of ledger state, dropped once effects are committed."""

    __slots__ = ("state", "_snapshot")

    def __init__(self, state: Json) -> None:
        self.state = state
        self._snapshot: Optional[Json] = copy.deepcopy(state)

    def commit(self) -> None:
        self._snapshot = None

    def rollback(self) -> None:
        if self._snapshot is None:
            return
        # Restore in place so holders of `CrowdFund.state` keep a valid reference.
        self.state.clear()
        self.state.update(self._snapshot)
        self._snapshot = None


class CrowdFund:
    """Campaign/contribution ledger with serialized operations.

    Every mutating operation follows the same shape:

      1. read the clock once
      2. run every check against current state (no mutation)
      3. apply effects to state
      4. move tokens through the gateway, last

    A failure in 2-3, or in the single pull of `contribute`, restores the
    pre-call snapshot. Operations that push value out (cancel, refund,
    withdraw) commit their effects before the first push; if a push fails,
    only the legs that were never delivered are credited back, so a retry
    pays exactly what is still owed.

    A gateway may call read operations while a mutation is in flight and sees
    the committed effects. Calling another mutating operation raises
    ReentrantCall.

    The single-token and multi-token variants differ only in the TokenRouter
    they are built with (see `single_token` / `multi_token`).
    """

    def __init__(
        self,
        *,
        router: TokenRouter,
        clock: Optional[Clock] = None,
        state: Optional[Json] = None,
        ledger_id: str = "crowdfund-dev",
    ) -> None:
        self.ledger_id = str(ledger_id)
        self._router = router
        self._clock: Clock = clock or SystemClock()
        self._lock = threading.RLock()
        self._active_op: Optional[str] = None
        self.state: Json = state if isinstance(state, dict) and state else _initial_state()

    # ---- construction helpers ----

    @classmethod
    def single_token(
        cls,
        token: TokenGateway | TokenBackend,
        *,
        clock: Optional[Clock] = None,
        ledger_address: str = DEFAULT_LEDGER_ADDRESS,
        ledger_id: str = "crowdfund-dev",
    ) -> "CrowdFund":
        return cls(router=SingleTokenRouter(_as_gateway(token, ledger_address)), clock=clock, ledger_id=ledger_id)

    @classmethod
    def multi_token(
        cls,
        tokens: Sequence[TokenGateway | TokenBackend],
        *,
        clock: Optional[Clock] = None,
        ledger_address: str = DEFAULT_LEDGER_ADDRESS,
        ledger_id: str = "crowdfund-dev",
    ) -> "CrowdFund":
        gateways = [_as_gateway(t, ledger_address) for t in (tokens or [])]
        return cls(router=AllowListRouter(gateways), clock=clock, ledger_id=ledger_id)

    # ---- plumbing ----

    @property
    def clock(self) -> Clock:
        return self._clock

    def _now(self) -> int:
        return int(self._clock.now())

    @contextmanager
    def _transaction(self, op: str) -> Iterator[_Tx]:
        with self._lock:
            # Reads may re-enter from a gateway; mutations may not.
            if self._active_op is not None:
                inc_counter(f"{op}_reentrant")
                raise ReentrantCall(op, self._active_op)
            self._active_op = op
            tx = _Tx(self.state)
            try:
                yield tx
            except Exception:
                tx.rollback()
                inc_counter(f"{op}_rejected")
                raise
            finally:
                self._active_op = None
            inc_counter(f"{op}_ok")

    def snapshot(self) -> Json:
        with self._lock:
            return copy.deepcopy(self.state)

    # ---- Campaign Registry ----

    def create_campaign(self, caller: str, goal: int, duration: int) -> int:
        with self._transaction("create_campaign") as tx:
            now = self._now()
            creator = contributions.require_identity(caller, field="caller")
            campaign_id = registry.create_campaign(tx.state, creator=creator, goal=goal, duration=duration, now=now)
            deadline = registry.campaign_view(tx.state, campaign_id).deadline

        set_gauge("campaigns_total", campaign_id)
        log_event(
            ledger_log,
            "campaign_created",
            ledger_id=self.ledger_id,
            campaign_id=campaign_id,
            creator=creator,
            goal=int(goal),
            deadline=deadline,
        )
        return campaign_id

    def get_campaign(self, campaign_id: int) -> CampaignStatus:
        with self._lock:
            return registry.campaign_status(self.state, campaign_id, now=self._now())

    def get_campaigns(self) -> List[CampaignView]:
        with self._lock:
            return registry.list_campaigns(self.state)

    def campaign_phase(self, campaign_id: int) -> settlement.CampaignPhase:
        with self._lock:
            view = registry.campaign_view(self.state, campaign_id)
            return settlement.campaign_phase(view, now=self._now())

    def describe_campaign(self, campaign_id: int) -> Tuple[CampaignStatus, settlement.CampaignPhase]:
        """Status and phase computed from a single clock reading."""
        with self._lock:
            now = self._now()
            view = registry.campaign_view(self.state, campaign_id)
            status = CampaignStatus(
                seconds_remaining=view.seconds_remaining(now),
                goal=view.goal,
                total_raised=view.total_raised,
            )
            return status, settlement.campaign_phase(view, now=now)

    # ---- Contribution Ledger ----

    def contribute(self, caller: str, campaign_id: int, amount: int, token: Optional[str] = None) -> int:
        """Pledge `amount` toward an active campaign; returns the caller's new total."""
        with self._transaction("contribute") as tx:
            now = self._now()
            who = contributions.require_identity(caller, field="caller")
            campaign = registry.require_campaign(tx.state, campaign_id)
            settlement.require_active(campaign, now=now)
            self._router.check_token(token)
            n = contributions.check_contribution(campaign, contributor=who, amount=amount)
            gateway = self._router.resolve(token)

            total = contributions.record_contribution(
                tx.state,
                campaign,
                campaign_id=campaign_id,
                contributor=who,
                token=gateway.address,
                amount=n,
            )

            gateway.pull(who, n)

        log_event(
            ledger_log,
            "contributed",
            ledger_id=self.ledger_id,
            campaign_id=campaign_id,
            contributor=who,
            token=gateway.address,
            amount=n,
        )
        return total

    def cancel_contribution(self, caller: str, campaign_id: int) -> Dict[str, int]:
        """Withdraw the caller's whole pledge before the deadline; returns per-token amounts sent back."""
        with self._transaction("cancel_contribution") as tx:
            now = self._now()
            who = contributions.require_identity(caller, field="caller")
            campaign = registry.require_campaign(tx.state, campaign_id)
            settlement.require_active(campaign, now=now)
            contributions.require_contribution(tx.state, campaign_id, who)

            released = contributions.release_contribution(tx.state, campaign, campaign_id=campaign_id, contributor=who)
            legs = self._legs(released)
            tx.commit()

            self._settle(
                "cancel_contribution",
                campaign_id,
                who,
                legs,
                lambda unpaid: contributions.restore_contribution(
                    tx.state, campaign, campaign_id=campaign_id, contributor=who, unpaid=unpaid
                ),
            )

        log_event(
            ledger_log,
            "contribution_cancelled",
            ledger_id=self.ledger_id,
            campaign_id=campaign_id,
            contributor=who,
            amounts=released,
        )
        return released

    def get_contribution(self, campaign_id: int, contributor: str) -> int:
        with self._lock:
            registry.require_campaign(self.state, campaign_id)
            who = contributions.require_identity(contributor)
            return contributions.contribution_of(self.state, campaign_id, who)

    def get_contribution_breakdown(self, campaign_id: int, contributor: str) -> Dict[str, int]:
        with self._lock:
            registry.require_campaign(self.state, campaign_id)
            who = contributions.require_identity(contributor)
            return contributions.token_breakdown(self.state, campaign_id, who)

    def get_contributors(self, campaign_id: int) -> Dict[str, int]:
        """Contributors with a nonzero pledge and their token-agnostic amounts."""
        with self._lock:
            registry.require_campaign(self.state, campaign_id)
            return contributions.contributors_of(self.state, campaign_id)

    # ---- Settlement Engine ----

    def withdraw_funds(self, caller: str, campaign_id: int) -> Dict[str, int]:
        """Release a successful campaign's raised total to its creator.

        Returns the per-token amounts sent by this call. After a withdrawal
        that stopped part-way, a retry sends only the legs still owed.
        """
        with self._transaction("withdraw_funds") as tx:
            now = self._now()
            campaign = registry.require_campaign(tx.state, campaign_id)
            total = settlement.check_withdraw(campaign, campaign_id=campaign_id, caller=str(caller), now=now)
            payout = settlement.outstanding_payout(campaign, contributions.raised_by_token(tx.state, campaign_id))

            settlement.mark_withdrawn(campaign, payout, now=now)
            legs = self._legs(payout)
            tx.commit()

            self._settle(
                "withdraw_funds",
                campaign_id,
                str(caller),
                legs,
                lambda unpaid: settlement.reopen_withdrawal(campaign, unpaid),
            )

        log_event(
            ledger_log,
            "funds_withdrawn",
            ledger_id=self.ledger_id,
            campaign_id=campaign_id,
            creator=str(caller),
            total=total,
            amounts=payout,
        )
        return payout

    def refund(self, caller: str, campaign_id: int) -> Dict[str, int]:
        """Return the caller's pledge from an expired campaign that missed its goal."""
        with self._transaction("refund") as tx:
            now = self._now()
            who = contributions.require_identity(caller, field="caller")
            campaign = registry.require_campaign(tx.state, campaign_id)
            settlement.check_refund(tx.state, campaign, campaign_id=campaign_id, caller=who, now=now)

            released = contributions.release_contribution(tx.state, campaign, campaign_id=campaign_id, contributor=who)
            legs = self._legs(released)
            tx.commit()

            self._settle(
                "refund",
                campaign_id,
                who,
                legs,
                lambda unpaid: contributions.restore_contribution(
                    tx.state, campaign, campaign_id=campaign_id, contributor=who, unpaid=unpaid
                ),
            )

        log_event(
            ledger_log,
            "refunded",
            ledger_id=self.ledger_id,
            campaign_id=campaign_id,
            contributor=who,
            amounts=released,
        )
        return released

    # ---- tokens ----

    def get_tokens(self) -> List[str]:
        return self._router.addresses()

    def get_token(self) -> str:
        """Primary accepted token (the only one in the single-token variant)."""
        return self._router.addresses()[0]

    def _legs(self, amounts: Dict[str, int]) -> List[Leg]:
        # Resolve every gateway before anything is committed or moved.
        return [(tok, self._router.gateway(tok), int(amt)) for tok, amt in sorted(amounts.items()) if int(amt) > 0]

    def _settle(
        self,
        op: str,
        campaign_id: int,
        recipient: str,
        legs: List[Leg],
        credit_back: Callable[[Dict[str, int]], None],
    ) -> None:
        """Push each leg in order; on failure, hand the undelivered legs to `credit_back` and re-raise."""
        for i, (tok, gw, amt) in enumerate(legs):
            try:
                gw.push(recipient, amt)
            except Exception as e:
                unpaid = {t: a for t, _gw, a in legs[i:]}
                credit_back(unpaid)
                log_event(
                    ledger_log,
                    "push_failed",
                    ledger_id=self.ledger_id,
                    operation=op,
                    campaign_id=campaign_id,
                    recipient=recipient,
                    token=tok,
                    delivered={t: a for t, _gw, a in legs[:i]},
                    unpaid=unpaid,
                    error=type(e).__name__,
                )
                raise


def _as_gateway(token: Any, ledger_address: str) -> Any:
    """Wrap raw token backends; gateways (anything with pull/push) pass through."""
    if token is None:
        return None
    if hasattr(token, "pull") and hasattr(token, "push"):
        return token
    if not token_address(token):
        return None
    return LedgerTokenGateway(token, ledger_address=ledger_address)


__all__ = ["CrowdFund"]
