from __future__ import annotations

import threading
from typing import Dict, Tuple

from crowdfund.ledger.constants import is_null_identity
from crowdfund.runtime.errors import InsufficientAllowance, InsufficientBalance, InvalidAmount, ZeroAddress


def _amount(v: int, *, field: str = "amount") -> int:
    if isinstance(v, bool) or not isinstance(v, int) or v < 0:
        raise InvalidAmount(field, v)
    return int(v)


class MemoryToken:
    """
    Minimal in-process fungible token used for unit tests and dev nodes.

    - Does not talk to any chain
    - Keeps balances and allowances in plain dicts
    - Provides the surface LedgerTokenGateway expects:
        address, transfer(), transfer_from()
    """

    def __init__(self, address: str, *, name: str = "", symbol: str = "", decimals: int = 18) -> None:
        if is_null_identity(address):
            raise ZeroAddress("token")
        self.address = str(address)
        self.name = str(name or address)
        self.symbol = str(symbol or address).upper()
        self.decimals = int(decimals)
        self._lock = threading.RLock()
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}
        self.total_supply = 0

    def __repr__(self) -> str:
        return f"MemoryToken(address={self.address!r}, symbol={self.symbol!r})"

    # ---- reads ----

    def balance_of(self, account: str) -> int:
        with self._lock:
            return int(self._balances.get(str(account), 0))

    def allowance(self, owner: str, spender: str) -> int:
        with self._lock:
            return int(self._allowances.get((str(owner), str(spender)), 0))

    def balances(self) -> Dict[str, int]:
        with self._lock:
            return {k: v for k, v in self._balances.items() if v}

    # ---- writes ----

    def mint(self, to: str, amount: int) -> None:
        if is_null_identity(to):
            raise ZeroAddress("to")
        n = _amount(amount)
        with self._lock:
            self._balances[str(to)] = self.balance_of(to) + n
            self.total_supply += n

    def approve(self, owner: str, spender: str, amount: int) -> None:
        if is_null_identity(owner):
            raise ZeroAddress("owner")
        if is_null_identity(spender):
            raise ZeroAddress("spender")
        n = _amount(amount)
        with self._lock:
            self._allowances[(str(owner), str(spender))] = n

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        if is_null_identity(recipient):
            raise ZeroAddress("recipient")
        n = _amount(amount)
        with self._lock:
            bal = self.balance_of(sender)
            if bal < n:
                raise InsufficientBalance(str(sender), bal, n)
            self._balances[str(sender)] = bal - n
            self._balances[str(recipient)] = self.balance_of(recipient) + n

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> None:
        n = _amount(amount)
        with self._lock:
            allowed = self.allowance(owner, spender)
            if allowed < n:
                raise InsufficientAllowance(str(spender), allowed, n)
            self.transfer(owner, recipient, n)
            self._allowances[(str(owner), str(spender))] = allowed - n
