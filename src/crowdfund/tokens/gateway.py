"""
Crowdfund: token gateway (abstract value-transfer layer)

Goal:
  Keep the ledger free of token mechanics. The ledger only ever asks a gateway
  to pull value from a contributor or push value to a recipient; balances and
  allowances stay with the token service.

Two routers select the gateway for a contribution:
  - SingleTokenRouter: exactly one accepted token (token argument ignored)
  - AllowListRouter: fixed allow-list configured at construction time

Both expose the same surface, so the ledger composes one router instead of
subclassing per variant.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from crowdfund.ledger.constants import DEFAULT_LEDGER_ADDRESS, is_null_identity
from crowdfund.runtime.errors import EmptyTokensArray, TokenNotAvailable, ZeroAddress


# ---------------------------------------------------------------------
# Interfaces
# ---------------------------------------------------------------------

@runtime_checkable
class TokenGateway(Protocol):
    """
    Value movement for one token.

    pull() fails with InsufficientAllowance(spender, allowance, requested) when
    the sender has not pre-authorized the ledger; push() fails only when the
    ledger's own balance is short.
    """

    @property
    def address(self) -> str: ...

    def pull(self, sender: str, amount: int) -> None: ...
    def push(self, recipient: str, amount: int) -> None: ...


@runtime_checkable
class TokenBackend(Protocol):
    """ERC20-style token surface (MemoryToken in tests and dev)."""

    address: str

    def transfer(self, sender: str, recipient: str, amount: int) -> None: ...
    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> None: ...


@runtime_checkable
class TokenRouter(Protocol):
    def check_token(self, token: Optional[str]) -> None: ...
    def resolve(self, token: Optional[str]) -> TokenGateway: ...
    def gateway(self, address: str) -> TokenGateway: ...
    def addresses(self) -> List[str]: ...


# ---------------------------------------------------------------------
# Gateway shim
# ---------------------------------------------------------------------

class LedgerTokenGateway:
    """Adapts a TokenBackend to pull/push with the ledger as spender and holder."""

    def __init__(self, token: TokenBackend, *, ledger_address: str = DEFAULT_LEDGER_ADDRESS) -> None:
        if token is None or is_null_identity(getattr(token, "address", None)):
            raise ZeroAddress("token")
        if is_null_identity(ledger_address):
            raise ZeroAddress("ledger_address")
        self._token = token
        self._ledger = str(ledger_address)

    def __repr__(self) -> str:
        return f"LedgerTokenGateway(token={self.address!r}, ledger={self._ledger!r})"

    @property
    def address(self) -> str:
        return str(self._token.address)

    @property
    def token(self) -> TokenBackend:
        return self._token

    @property
    def ledger_address(self) -> str:
        return self._ledger

    def pull(self, sender: str, amount: int) -> None:
        self._token.transfer_from(self._ledger, str(sender), self._ledger, int(amount))

    def push(self, recipient: str, amount: int) -> None:
        self._token.transfer(self._ledger, str(recipient), int(amount))


def token_address(v: Any) -> str:
    """Accept either an address string or anything carrying `.address`."""
    if v is None:
        return ""
    addr = getattr(v, "address", v)
    return str(addr).strip() if addr is not None else ""


def _require_gateway(gw: Any) -> TokenGateway:
    if gw is None or is_null_identity(token_address(gw)):
        raise ZeroAddress("token")
    return gw


# ---------------------------------------------------------------------
# Variant routers
# ---------------------------------------------------------------------

class SingleTokenRouter:
    def __init__(self, gateway: TokenGateway) -> None:
        self._gw = _require_gateway(gateway)

    def check_token(self, token: Optional[str]) -> None:
        return None

    def resolve(self, token: Optional[str]) -> TokenGateway:
        return self._gw

    def gateway(self, address: str) -> TokenGateway:
        if token_address(address) != self._gw.address:
            raise TokenNotAvailable(token_address(address))
        return self._gw

    def addresses(self) -> List[str]:
        return [self._gw.address]


class AllowListRouter:
    def __init__(self, gateways: Sequence[TokenGateway]) -> None:
        gws = list(gateways or [])
        if not gws:
            raise EmptyTokensArray()

        by_address: Dict[str, TokenGateway] = {}
        order: List[str] = []
        for gw in gws:
            _require_gateway(gw)
            addr = gw.address
            if addr not in by_address:
                order.append(addr)
            by_address[addr] = gw

        self._by_address = by_address
        self._order = order

    def check_token(self, token: Optional[str]) -> None:
        if is_null_identity(token_address(token)):
            raise ZeroAddress("token")

    def resolve(self, token: Optional[str]) -> TokenGateway:
        self.check_token(token)
        return self.gateway(token_address(token))

    def gateway(self, address: str) -> TokenGateway:
        gw = self._by_address.get(token_address(address))
        if gw is None:
            raise TokenNotAvailable(token_address(address))
        return gw

    def addresses(self) -> List[str]:
        return list(self._order)


__all__ = [
    "AllowListRouter",
    "LedgerTokenGateway",
    "SingleTokenRouter",
    "TokenBackend",
    "TokenGateway",
    "TokenRouter",
    "token_address",
]
