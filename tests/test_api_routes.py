from __future__ import annotations

from typing import Tuple

import pytest
from fastapi.testclient import TestClient

from crowdfund.runtime.boot import LedgerRuntime, build_runtime
from crowdfund.runtime.clock import ManualClock
from crowdfund.runtime.ledger_config import LedgerConfig

CREATOR = {"X-Crowdfund-Caller": "@creator"}
ALICE = {"X-Crowdfund-Caller": "@alice"}


def _client(
    monkeypatch: pytest.MonkeyPatch,
    *,
    mode: str = "dev",
    variant: str = "single",
    tokens: Tuple[str, ...] = ("MTK",),
) -> Tuple[TestClient, LedgerRuntime, ManualClock]:
    from crowdfund.api import app as api_app

    cfg = LedgerConfig(
        ledger_id="crowdfund-test",
        mode=mode,
        ledger_address="crowdfund-ledger",
        variant=variant,
        tokens=tokens,
    )
    clock = ManualClock()
    rt = build_runtime(cfg, clock=clock)
    monkeypatch.setattr(api_app, "build_runtime", lambda: rt)
    return TestClient(api_app.create_app(boot_runtime=True)), rt, clock


def _fund(c: TestClient, who: dict, amount: int, token: str = "MTK") -> None:
    r = c.post(f"/v1/tokens/{token}/mint", json={"to": who["X-Crowdfund-Caller"], "amount": amount})
    assert r.status_code == 200, r.text
    r = c.post(f"/v1/tokens/{token}/approve", json={"amount": amount}, headers=who)
    assert r.status_code == 200, r.text


def test_health_reports_ledger(monkeypatch: pytest.MonkeyPatch) -> None:
    c, _rt, _clock = _client(monkeypatch)
    j = c.get("/v1/health").json()
    assert j["ok"] is True
    assert j["ready"] is True
    assert j["ledger_id"] == "crowdfund-test"
    assert j["variant"] == "single"
    assert j["campaigns"] == 0
    assert j["tokens"] == ["MTK"]


def test_successful_campaign_over_http(monkeypatch: pytest.MonkeyPatch) -> None:
    c, rt, clock = _client(monkeypatch)
    _fund(c, ALICE, 100)

    r = c.post("/v1/campaigns", json={"goal": 100, "duration": 100}, headers=CREATOR)
    assert r.status_code == 200
    cid = r.json()["campaign_id"]
    assert cid == 1

    r = c.post(f"/v1/campaigns/{cid}/contributions", json={"amount": 100}, headers=ALICE)
    assert r.status_code == 200
    assert r.json()["contribution"] == 100

    r = c.get(f"/v1/campaigns/{cid}")
    j = r.json()
    assert (j["seconds_remaining"], j["goal"], j["total_raised"]) == (100, 100, 100)
    assert j["phase"] == "active"

    r = c.get(f"/v1/campaigns/{cid}/contributions/@alice")
    assert r.json()["amount"] == 100
    assert r.json()["tokens"] == {"MTK": 100}

    r = c.get(f"/v1/campaigns/{cid}/contributions")
    assert r.json()["contributors"] == {"@alice": 100}

    clock.advance(101)
    r = c.post(f"/v1/campaigns/{cid}/withdraw", headers=CREATOR)
    assert r.status_code == 200
    assert r.json()["released"] == {"MTK": 100}
    assert rt.tokens["MTK"].balance_of("@creator") == 100

    r = c.post(f"/v1/campaigns/{cid}/withdraw", headers=CREATOR)
    assert r.status_code == 409
    assert r.json()["error"]["message"] == "AlreadyWithdrawn"

    r = c.get("/v1/campaigns")
    j = r.json()
    assert j["count"] == 1
    assert j["campaigns"][0]["creator"] == "0x" + "0" * 40
    assert j["campaigns"][1]["withdrawn"] is True


def test_cancel_and_refund_over_http(monkeypatch: pytest.MonkeyPatch) -> None:
    c, rt, clock = _client(monkeypatch)
    _fund(c, ALICE, 100)
    cid = c.post("/v1/campaigns", json={"goal": 100, "duration": 100}, headers=CREATOR).json()["campaign_id"]

    c.post(f"/v1/campaigns/{cid}/contributions", json={"amount": 30}, headers=ALICE)
    r = c.delete(f"/v1/campaigns/{cid}/contributions", headers=ALICE)
    assert r.status_code == 200
    assert r.json()["released"] == {"MTK": 30}

    c.post(f"/v1/campaigns/{cid}/contributions", json={"amount": 50}, headers=ALICE)
    clock.advance(100)
    r = c.post(f"/v1/campaigns/{cid}/refund", headers=ALICE)
    assert r.status_code == 200
    assert r.json()["released"] == {"MTK": 50}

    r = c.get("/v1/tokens/MTK/balances/@alice")
    assert r.json()["balance"] == 100
    assert r.json()["allowance"] == 20


def test_ledger_errors_map_to_status_codes(monkeypatch: pytest.MonkeyPatch) -> None:
    c, _rt, _clock = _client(monkeypatch)

    r = c.get("/v1/campaigns/7")
    assert r.status_code == 404
    err = r.json()["error"]
    assert err["code"] == "campaign_not_found"
    assert err["message"] == "CampaignNotFound"
    assert err["details"] == {"campaign_id": 7}

    r = c.post("/v1/campaigns", json={"goal": 0, "duration": 100}, headers=CREATOR)
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "ZeroGoal"

    cid = c.post("/v1/campaigns", json={"goal": 100, "duration": 100}, headers=CREATOR).json()["campaign_id"]

    r = c.post(f"/v1/campaigns/{cid}/contributions", json={"amount": 10}, headers=CREATOR)
    assert r.status_code == 403
    assert r.json()["error"]["message"] == "ContributeByCreator"

    r = c.post(f"/v1/campaigns/{cid}/contributions", json={"amount": 10}, headers=ALICE)
    assert r.status_code == 402
    assert r.json()["error"]["message"] == "InsufficientAllowance"

    r = c.delete(f"/v1/campaigns/{cid}/contributions", headers=ALICE)
    assert r.status_code == 409
    assert r.json()["error"]["message"] == "ZeroContributions"


def test_caller_header_is_required(monkeypatch: pytest.MonkeyPatch) -> None:
    c, _rt, _clock = _client(monkeypatch)

    r = c.post("/v1/campaigns", json={"goal": 100, "duration": 100})
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "caller_missing"

    r = c.post(
        "/v1/campaigns",
        json={"goal": 100, "duration": 100},
        headers={"X-Crowdfund-Caller": "0x" + "0" * 40},
    )
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "caller_invalid"


def test_token_faucet_is_dev_only(monkeypatch: pytest.MonkeyPatch) -> None:
    c, _rt, _clock = _client(monkeypatch, mode="prod")

    r = c.post("/v1/tokens/MTK/mint", json={"to": "@alice", "amount": 5})
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "dev_only"

    r = c.get("/v1/tokens/NOPE/balances/@alice")
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "token_not_found"


def test_multi_token_contribution_over_http(monkeypatch: pytest.MonkeyPatch) -> None:
    c, _rt, _clock = _client(monkeypatch, variant="multi", tokens=("MTK", "MTK2"))
    _fund(c, ALICE, 100, "MTK")
    _fund(c, ALICE, 100, "MTK2")
    assert c.get("/v1/tokens").json()["tokens"] == ["MTK", "MTK2"]

    cid = c.post("/v1/campaigns", json={"goal": 100, "duration": 100}, headers=CREATOR).json()["campaign_id"]

    r = c.post(f"/v1/campaigns/{cid}/contributions", json={"amount": 10}, headers=ALICE)
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "ZeroAddress"

    r = c.post(f"/v1/campaigns/{cid}/contributions", json={"amount": 10, "token": "XYZ"}, headers=ALICE)
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "TokenNotAvailable"

    c.post(f"/v1/campaigns/{cid}/contributions", json={"amount": 100, "token": "MTK"}, headers=ALICE)
    r = c.post(f"/v1/campaigns/{cid}/contributions", json={"amount": 100, "token": "MTK2"}, headers=ALICE)
    assert r.json()["contribution"] == 200


def test_metrics_endpoint_is_opt_in(monkeypatch: pytest.MonkeyPatch) -> None:
    c, _rt, _clock = _client(monkeypatch)
    assert c.get("/v1/metrics").status_code == 404

    monkeypatch.setenv("CROWDFUND_METRICS_ENABLED", "1")
    c.post("/v1/campaigns", json={"goal": 100, "duration": 100}, headers=CREATOR)
    r = c.get("/v1/metrics")
    assert r.status_code == 200
    assert "crowdfund_create_campaign_ok 1" in r.text
    assert "crowdfund_campaigns_total 1" in r.text


def test_requests_are_logged_with_caller_and_campaign(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    import json
    import logging

    c, _rt, _clock = _client(monkeypatch)
    caplog.set_level(logging.INFO, logger="crowdfund.http")

    r = c.get("/v1/campaigns/3", headers={**ALICE, "x-request-id": "req-1"})
    assert r.status_code == 404
    assert r.headers["x-request-id"] == "req-1"

    lines = [json.loads(rec.getMessage()) for rec in caplog.records if rec.name == "crowdfund.http"]
    assert lines[-1]["event"] == "http_request"
    assert lines[-1]["request_id"] == "req-1"
    assert lines[-1]["campaign_id"] == 3
    assert lines[-1]["caller"] == "@alice"
    assert lines[-1]["status"] == 404
