from __future__ import annotations

import pytest

from crowdfund.ledger.constants import ZERO_ADDRESS
from crowdfund.runtime.errors import (
    CampaignEnded,
    CampaignNotFound,
    ContributeByCreator,
    InsufficientAllowance,
    ZeroAddress,
    ZeroAmount,
    ZeroContribution,
    ZeroContributions,
)
from crowdfund.testing.harness import CONTRIBUTOR, CREATOR, OTHER, single_token_harness


def test_contribute_unknown_campaign() -> None:
    h = single_token_harness()
    with pytest.raises(CampaignNotFound) as e:
        h.ledger.contribute(CONTRIBUTOR, 0, 100)
    assert e.value.campaign_id == 0

    with pytest.raises(CampaignNotFound) as e:
        h.ledger.contribute(CONTRIBUTOR, 1, 100)
    assert e.value.campaign_id == 1


def test_contribute_after_deadline_reports_deadline() -> None:
    h = single_token_harness()
    cid = h.create()
    h.clock.advance(100)

    with pytest.raises(CampaignEnded) as e:
        h.ledger.contribute(CONTRIBUTOR, cid, 100)
    assert e.value.deadline == h.created_at[cid] + 100


def test_contribute_zero_amount_leaves_state_unchanged() -> None:
    h = single_token_harness()
    cid = h.create()
    before = h.ledger.snapshot()

    with pytest.raises(ZeroContribution):
        h.ledger.contribute(CONTRIBUTOR, cid, 0)

    assert ZeroAmount is ZeroContribution
    assert h.ledger.snapshot() == before
    assert h.ledger.get_campaign(cid).total_raised == 0


def test_creator_cannot_contribute_to_own_campaign() -> None:
    h = single_token_harness()
    cid = h.create()
    h.fund(CREATOR, 100)

    with pytest.raises(ContributeByCreator) as e:
        h.ledger.contribute(CREATOR, cid, 100)
    assert e.value.creator == CREATOR
    assert h.balance(CREATOR) == 100


def test_ended_is_checked_before_zero_amount() -> None:
    h = single_token_harness()
    cid = h.create()
    h.clock.advance(500)
    with pytest.raises(CampaignEnded):
        h.ledger.contribute(CONTRIBUTOR, cid, 0)


def test_contribute_beyond_allowance_rolls_back() -> None:
    h = single_token_harness()
    cid = h.create()
    before = h.ledger.snapshot()

    with pytest.raises(InsufficientAllowance) as e:
        h.ledger.contribute(CONTRIBUTOR, cid, 101)

    assert (e.value.spender, e.value.allowance, e.value.requested) == (h.ledger_address, 100, 101)
    assert h.ledger.snapshot() == before
    assert h.ledger.get_contribution(cid, CONTRIBUTOR) == 0
    assert h.balance(CONTRIBUTOR) == 100


def test_contribute_moves_tokens_and_accumulates() -> None:
    h = single_token_harness()
    cid = h.create()

    assert h.ledger.contribute(CONTRIBUTOR, cid, 60) == 60
    assert h.ledger.contribute(CONTRIBUTOR, cid, 40) == 100

    assert h.balance(CONTRIBUTOR) == 0
    assert h.held() == 100
    assert h.ledger.get_contribution(cid, CONTRIBUTOR) == 100
    assert h.ledger.get_campaign(cid).total_raised == 100


def test_cancel_contribution_unknown_campaign() -> None:
    h = single_token_harness()
    with pytest.raises(CampaignNotFound) as e:
        h.ledger.cancel_contribution(CONTRIBUTOR, 1)
    assert e.value.campaign_id == 1


def test_cancel_contribution_after_deadline() -> None:
    h = single_token_harness()
    cid = h.create()
    h.ledger.contribute(CONTRIBUTOR, cid, 100)
    h.clock.advance(100)

    with pytest.raises(CampaignEnded) as e:
        h.ledger.cancel_contribution(CONTRIBUTOR, cid)
    assert e.value.deadline == h.created_at[cid] + 100


def test_cancel_without_contribution() -> None:
    h = single_token_harness()
    cid = h.create()
    with pytest.raises(ZeroContributions):
        h.ledger.cancel_contribution(CONTRIBUTOR, cid)


def test_cancel_contribution_returns_full_amount() -> None:
    h = single_token_harness()
    cid = h.create()
    h.ledger.contribute(CONTRIBUTOR, cid, 100)
    h.clock.advance(10)

    released = h.ledger.cancel_contribution(CONTRIBUTOR, cid)

    assert released == {h.token.address: 100}
    assert h.balance(CONTRIBUTOR) == 100
    assert h.held() == 0
    assert tuple(h.ledger.get_campaign(cid)) == (90, 100, 0)
    assert h.ledger.get_contribution(cid, CONTRIBUTOR) == 0

    with pytest.raises(ZeroContributions):
        h.ledger.cancel_contribution(CONTRIBUTOR, cid)


def test_get_contribution_checks_campaign_then_identity() -> None:
    h = single_token_harness()
    with pytest.raises(CampaignNotFound):
        h.ledger.get_contribution(1, ZERO_ADDRESS)

    cid = h.create()
    h.ledger.contribute(CONTRIBUTOR, cid, 100)

    with pytest.raises(ZeroAddress):
        h.ledger.get_contribution(cid, ZERO_ADDRESS)
    with pytest.raises(ZeroAddress):
        h.ledger.get_contribution(cid, "")

    assert h.ledger.get_contribution(cid, CONTRIBUTOR) == 100
    assert h.ledger.get_contribution(cid, CREATOR) == 0
    assert h.ledger.get_contribution(cid, OTHER) == 0


def test_get_token_returns_configured_token() -> None:
    h = single_token_harness()
    assert h.ledger.get_token() == h.token.address
    assert h.ledger.get_tokens() == [h.token.address]


def test_single_token_ledger_rejects_null_token() -> None:
    from crowdfund.runtime.crowdfund import CrowdFund

    with pytest.raises(ZeroAddress):
        CrowdFund.single_token(None)  # type: ignore[arg-type]


def test_get_contributors_lists_nonzero_pledges() -> None:
    h = single_token_harness()
    cid = h.create()
    h.fund(OTHER, 20)
    h.ledger.contribute(CONTRIBUTOR, cid, 50)
    h.ledger.contribute(OTHER, cid, 20)
    assert h.ledger.get_contributors(cid) == {CONTRIBUTOR: 50, OTHER: 20}

    h.ledger.cancel_contribution(OTHER, cid)
    assert h.ledger.get_contributors(cid) == {CONTRIBUTOR: 50}

    with pytest.raises(CampaignNotFound):
        h.ledger.get_contributors(cid + 1)
