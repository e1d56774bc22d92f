# src/crowdfund/runtime/boot.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from crowdfund.runtime.clock import Clock, SystemClock
from crowdfund.runtime.crowdfund import CrowdFund
from crowdfund.runtime.ledger_config import LedgerConfig, load_ledger_config
from crowdfund.tokens.gateway import LedgerTokenGateway
from crowdfund.tokens.memory import MemoryToken


@dataclass
class LedgerRuntime:
    """Everything the API needs: config, the ledger, and the token backends it talks to."""

    cfg: LedgerConfig
    ledger: CrowdFund
    tokens: Dict[str, MemoryToken]


def build_runtime(cfg: Optional[LedgerConfig] = None, *, clock: Optional[Clock] = None) -> LedgerRuntime:
    """
    Build a ledger from an explicit config or, if omitted, from environment
    variables / CROWDFUND_CONFIG_PATH.

    Token balances live in in-process MemoryToken backends; a deployment that
    fronts a real token service swaps those for its own TokenGateway objects.
    """
    c = cfg or load_ledger_config()

    tokens: Dict[str, MemoryToken] = {}
    for addr in c.tokens:
        tokens[addr] = MemoryToken(addr, symbol=addr)

    gateways = [LedgerTokenGateway(t, ledger_address=c.ledger_address) for t in tokens.values()]
    clk = clock or SystemClock()

    if c.variant == "single":
        ledger = CrowdFund.single_token(gateways[0], clock=clk, ledger_id=c.ledger_id)
    else:
        ledger = CrowdFund.multi_token(gateways, clock=clk, ledger_id=c.ledger_id)

    return LedgerRuntime(cfg=c, ledger=ledger, tokens=tokens)
