"""
Funds held incidentally by the registry and the owner-only drain.

The registry does not sell anything; a balance only appears when some outside
party credits it. `withdraw` moves the whole balance to the owner through a
`FundsTransfer` primitive. `BalanceBook` is an in-memory primitive for
standalone use and tests.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Protocol

from .types import Address, AddressLike, normalize_address, require_uint

logger = logging.getLogger(__name__)


class FundsTransfer(Protocol):
    def transfer(self, to: Address, amount: int) -> None: ...


class BalanceBook:
    """Records every credit it receives, keyed by address."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._balances: Dict[Address, int] = {}

    def transfer(self, to: Address, amount: int) -> None:
        with self._lock:
            self._balances[to] = self._balances.get(to, 0) + amount

    def balance(self, address: AddressLike) -> int:
        return self._balances.get(normalize_address(address, allow_zero=True), 0)


class Treasury:
    def __init__(self, funds: FundsTransfer, balance: int = 0) -> None:
        self._funds = funds
        self._balance = require_uint(balance, name="balance")

    @property
    def balance(self) -> int:
        return self._balance

    def credit(self, amount: int) -> int:
        self._balance += require_uint(amount, name="amount")
        return self._balance

    def drain_to(self, to: Address) -> int:
        """Transfer the full balance to `to`; zero balances are a no-op."""
        amount = self._balance
        if amount == 0:
            return 0
        self._funds.transfer(to, amount)
        self._balance = 0
        logger.info("withdrew %d to %s", amount, to)
        return amount


__all__ = ["FundsTransfer", "BalanceBook", "Treasury"]
