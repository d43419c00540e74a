"""
collection.ledger
=================

Ownership and enumeration ledger consumed by the registry.

The registry never keeps its own holder table: it asks the ledger to create
tokens and reads the live token count back from it. Two capability contracts
are described as Protocols so any conforming backend can be injected:

  - OwnershipLedger : holder of each token, balances, minting, transfers
  - EnumerableIndex : global and per-holder enumeration by index

`EnumerableLedger` combines the two and is what the registry accepts.

`InMemoryLedger` satisfies both and is what the registry uses by default.
It is thread-safe; `mint_batch` validates every assignment before applying
any of them, so a failed batch leaves the ledger untouched.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Protocol, Sequence, Tuple, runtime_checkable

from .errors import LedgerError, UnknownToken
from .types import Address, AddressLike, TokenId, normalize_address

logger = logging.getLogger(__name__)

__all__ = ["OwnershipLedger", "EnumerableIndex", "EnumerableLedger", "InMemoryLedger"]


@runtime_checkable
class OwnershipLedger(Protocol):
    name: str
    symbol: str

    def mint_batch(self, assignments: Sequence[Tuple[TokenId, Address]]) -> None: ...

    def owner_of(self, token_id: TokenId) -> Address: ...

    def balance_of(self, holder: AddressLike) -> int: ...

    def total_supply(self) -> int: ...

    def transfer(self, caller: AddressLike, to: AddressLike, token_id: TokenId) -> None: ...


@runtime_checkable
class EnumerableIndex(Protocol):
    def token_by_index(self, index: int) -> TokenId: ...

    def token_of_owner_by_index(self, holder: AddressLike, index: int) -> TokenId: ...


@runtime_checkable
class EnumerableLedger(OwnershipLedger, EnumerableIndex, Protocol):
    """What the registry needs from an injected ledger: both capabilities."""


class InMemoryLedger:
    """
    Process-local ledger. Tokens are kept in mint order for global
    enumeration; per-holder lists use swap-and-pop on transfer, so per-holder
    order is not stable across transfers.
    """

    def __init__(self, name: str = "", symbol: str = "") -> None:
        self.name = name
        self.symbol = symbol
        self._lock = threading.RLock()
        self._owners: Dict[TokenId, Address] = {}
        self._all: List[TokenId] = []
        self._held: Dict[Address, List[TokenId]] = {}

    # -- minting ---------------------------------------------------------------

    def mint(self, token_id: TokenId, to: AddressLike) -> None:
        self.mint_batch([(token_id, to)])

    def mint_batch(self, assignments: Sequence[Tuple[TokenId, AddressLike]]) -> None:
        staged: List[Tuple[TokenId, Address]] = []
        with self._lock:
            seen = set()
            for token_id, to in assignments:
                holder = normalize_address(to, role="recipient")
                if token_id in self._owners or token_id in seen:
                    raise LedgerError("token already minted", context={"token_id": token_id})
                seen.add(token_id)
                staged.append((token_id, holder))
            for token_id, holder in staged:
                self._owners[token_id] = holder
                self._all.append(token_id)
                self._held.setdefault(holder, []).append(token_id)
        logger.debug("ledger minted %d token(s)", len(staged))

    # -- ownership -------------------------------------------------------------

    def owner_of(self, token_id: TokenId) -> Address:
        holder = self._owners.get(token_id)
        if holder is None:
            raise UnknownToken(token_id=token_id)
        return holder

    def balance_of(self, holder: AddressLike) -> int:
        addr = normalize_address(holder, role="holder")
        return len(self._held.get(addr, ()))

    def total_supply(self) -> int:
        return len(self._all)

    def transfer(self, caller: AddressLike, to: AddressLike, token_id: TokenId) -> None:
        """Move `token_id` from its current holder (who must be `caller`) to `to`."""
        sender = normalize_address(caller, role="caller")
        dest = normalize_address(to, role="recipient")
        with self._lock:
            current = self.owner_of(token_id)
            if current != sender:
                raise LedgerError(
                    "caller does not hold token",
                    context={"token_id": token_id, "caller": sender},
                )
            if dest == sender:
                return
            lst = self._held[sender]
            i = lst.index(token_id)
            lst[i] = lst[-1]
            lst.pop()
            if not lst:
                del self._held[sender]
            self._held.setdefault(dest, []).append(token_id)
            self._owners[token_id] = dest
        logger.debug("ledger transfer id=%s %s -> %s", token_id, sender, dest)

    # -- enumeration -----------------------------------------------------------

    def token_by_index(self, index: int) -> TokenId:
        if index < 0 or index >= len(self._all):
            raise LedgerError("global index out of bounds", context={"index": index})
        return self._all[index]

    def token_of_owner_by_index(self, holder: AddressLike, index: int) -> TokenId:
        addr = normalize_address(holder, role="holder")
        held = self._held.get(addr, [])
        if index < 0 or index >= len(held):
            raise LedgerError(
                "owner index out of bounds", context={"holder": addr, "index": index}
            )
        return held[index]

    def tokens_of_owner(self, holder: AddressLike) -> List[TokenId]:
        addr = normalize_address(holder, role="holder")
        with self._lock:
            return list(self._held.get(addr, ()))

    def holders(self) -> Dict[TokenId, Address]:
        """Copy of the id -> holder map, in mint order."""
        with self._lock:
            return {tid: self._owners[tid] for tid in self._all}
