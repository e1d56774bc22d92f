# src/crowdfund/ledger/constants.py
from __future__ import annotations

"""Ledger-wide constants.

Identities and token addresses are opaque strings. The null identity is the
empty string or the all-zero 20-byte hex address used by EVM-style tooling.
"""

ZERO_ADDRESS: str = "0x" + "0" * 40

NULL_IDENTITIES = frozenset({"", ZERO_ADDRESS})

# Slot 0 of the campaign list is a permanent "does not exist" placeholder.
SENTINEL_CAMPAIGN_ID: int = 0
FIRST_CAMPAIGN_ID: int = 1

# Default identity of the ledger itself as seen by token backends (spender / holder).
DEFAULT_LEDGER_ADDRESS: str = "crowdfund-ledger"


def is_null_identity(v: object) -> bool:
    if v is None:
        return True
    return str(v).strip().lower() in NULL_IDENTITIES
