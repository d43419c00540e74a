"""
collection.registry
===================

Capped, owner-issued registry of non-fungible tokens.

The registry composes four facets behind one lock:

  - access    : `Ownable` gate consulted first by every mutating call
  - issuance  : id allocation against the supply cap, delegated to the ledger
  - metadata  : `MetadataResolver` (base locator + id + ".json")
  - royalty   : `RoyaltyPolicy` (receiver + bps, integer quotes)

plus a `Treasury` for the owner-only `withdraw`.

Invariants
----------
- `issued <= max_supply` at every instant, including mid-batch.
- ids are 1..issued, contiguous, strictly increasing in issuance order, never
  reused.
- a failed call changes nothing and emits nothing.
- exactly one notification per successful issuance call. A sink that raises
  is logged and does not undo or fail the issuance.

Mutations are serialized by `self._lock`. Queries read the issued counter and
the facets' single-reference state without locking; those references are
replaced in one assignment, so a query sees either the state before a
mutation or after it, never a half-applied one.

Usage
-----
    reg = CollectionRegistry.create(
        name="Genesis", symbol="GEN", max_supply=100,
        base_locator="ipfs://X/", royalty_receiver=artist, royalty_bps=500,
        owner=admin,
    )
    last = reg.issue_batch(admin, [alice, bob, carol])   # -> 3
    reg.token_uri(2)                                     # -> "ipfs://X/2.json"
    reg.royalty_info(2, 1000)                            # -> (artist, 50)
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from .access import Ownable
from .config import CollectionConfig
from .errors import (
    CollectionError,
    EmptyBatch,
    InvalidArgument,
    LedgerError,
    SupplyExhausted,
    UnknownToken,
)
from .ledger import EnumerableLedger, InMemoryLedger
from .metadata import MetadataResolver
from .metrics import METRICS, Metrics
from .notify import EventSink, NullSink
from .royalty import RoyaltyPolicy
from .treasury import BalanceBook, FundsTransfer, Treasury
from .types import (
    Address,
    AddressLike,
    BatchIssued,
    Event,
    Issued,
    RoyaltyInfo,
    TokenId,
    normalize_address,
    require_uint,
)

logger = logging.getLogger(__name__)

# ERC-165 interface ids answered by supports_interface.
IFACE_ERC165 = 0x01FFC9A7
IFACE_ERC721 = 0x80AC58CD
IFACE_ERC721_METADATA = 0x5B5E139F
IFACE_ERC721_ENUMERABLE = 0x780E9D63
IFACE_ERC2981 = 0x2A55205A

SUPPORTED_INTERFACES = frozenset(
    {
        IFACE_ERC165,
        IFACE_ERC721,
        IFACE_ERC721_METADATA,
        IFACE_ERC721_ENUMERABLE,
        IFACE_ERC2981,
    }
)

STATE_VERSION = 1


class CollectionRegistry:
    def __init__(
        self,
        config: CollectionConfig,
        *,
        ledger: Optional[EnumerableLedger] = None,
        sink: Optional[EventSink] = None,
        funds: Optional[FundsTransfer] = None,
        metrics: Optional[Metrics] = None,
    ) -> None:
        config.validate()
        self._config = config
        self._lock = threading.RLock()
        self._access = Ownable(config.owner)
        self._max_supply = config.max_supply
        self._metadata = MetadataResolver(config.base_locator)
        self._royalty = RoyaltyPolicy(config.royalty_receiver, config.royalty_bps)
        self._ledger = ledger if ledger is not None else InMemoryLedger(config.name, config.symbol)
        if not isinstance(self._ledger, EnumerableLedger):
            raise LedgerError(
                "ledger must support ownership and enumeration",
                context={"ledger": type(self._ledger).__name__},
            )
        self._sink = sink if sink is not None else NullSink()
        self._treasury = Treasury(funds if funds is not None else BalanceBook())
        self._metrics = metrics if metrics is not None else METRICS

        issued = self._ledger.total_supply()
        if issued > self._max_supply:
            raise LedgerError(
                "ledger already holds more tokens than max_supply",
                context={"issued": issued, "max_supply": self._max_supply},
            )
        self._issued = issued
        self._metrics.set_supply(self._issued, self._max_supply)
        logger.info(
            "collection %r (%s) ready: max_supply=%d issued=%d owner=%s",
            config.name, config.symbol, self._max_supply, self._issued, self._access.owner,
        )

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        *,
        name: str,
        symbol: str,
        max_supply: int,
        base_locator: str,
        royalty_receiver: AddressLike,
        royalty_bps: int,
        owner: AddressLike,
        **collaborators: Any,
    ) -> "CollectionRegistry":
        cfg = CollectionConfig(
            name=name,
            symbol=symbol,
            max_supply=max_supply,
            owner=owner,  # type: ignore[arg-type]
            royalty_receiver=royalty_receiver,  # type: ignore[arg-type]
            royalty_bps=royalty_bps,
            base_locator=base_locator,
        )
        return cls(cfg, **collaborators)

    @classmethod
    def from_config(cls, config: CollectionConfig, **collaborators: Any) -> "CollectionRegistry":
        return cls(config, **collaborators)

    # ------------------------------------------------------------------
    # Mutation guard
    # ------------------------------------------------------------------

    @contextmanager
    def _mutation(self, caller: AddressLike, action: str) -> Iterator[Address]:
        """Serialize, gate on the owner, and count rejections by reason."""
        with self._lock:
            try:
                yield self._access.require_owner(caller, action)
            except CollectionError as e:
                self._metrics.record_rejection(e.reason)
                logger.debug("%s rejected: %s", action, e)
                raise

    # ------------------------------------------------------------------
    # Issuance
    # ------------------------------------------------------------------

    def issue_one(self, caller: AddressLike, recipient: AddressLike) -> TokenId:
        """Issue the next id to `recipient` and return it."""
        with self._mutation(caller, "issue_one"):
            to = normalize_address(recipient, role="recipient")
            if self._issued >= self._max_supply:
                raise SupplyExhausted(issued=self._issued, requested=1, max_supply=self._max_supply)
            token_id = self._issued + 1
            self._ledger.mint_batch([(token_id, to)])
            self._issued = token_id
            self._metrics.record_issue("single", 1)
            self._metrics.set_supply(token_id, self._max_supply)
            self._notify(Issued(recipient=to, token_id=token_id))
        logger.info("issued id=%d to %s", token_id, to)
        return token_id

    def issue_batch(self, caller: AddressLike, recipients: Sequence[AddressLike]) -> TokenId:
        """
        Issue ids start..start+n-1 to `recipients` in order and return the last.

        The whole range is reserved against the cap before the ledger is
        touched, and every recipient is validated first, so either all n
        tokens are issued or none are.
        """
        with self._mutation(caller, "issue_batch"):
            if isinstance(recipients, (str, bytes, bytearray)):
                raise InvalidArgument("recipients must be a sequence of addresses", name="recipients")
            targets = [normalize_address(r, role="recipient") for r in recipients]
            count = len(targets)
            if count == 0:
                raise EmptyBatch()
            if self._issued + count > self._max_supply:
                raise SupplyExhausted(
                    issued=self._issued, requested=count, max_supply=self._max_supply
                )
            start = self._issued + 1
            self._ledger.mint_batch([(start + i, to) for i, to in enumerate(targets)])
            last = start + count - 1
            self._issued = last
            self._metrics.record_issue("batch", count)
            self._metrics.set_supply(last, self._max_supply)
            self._notify(BatchIssued(recipients=tuple(targets), start_id=start, count=count))
        logger.info("issued batch ids=%d..%d (%d recipients)", start, last, count)
        return last

    def _notify(self, event: Event) -> None:
        # Tokens are already on the ledger here; sink failures are logged, never raised.
        try:
            self._sink.emit(event)
        except Exception as e:
            logger.warning("sink error on topic=%s: %s", event.topic, e, exc_info=True)

    def exists(self, token_id: TokenId) -> bool:
        if isinstance(token_id, bool) or not isinstance(token_id, int):
            return False
        return 1 <= token_id <= self._issued

    def _require_exists(self, token_id: TokenId) -> int:
        if not self.exists(token_id):
            raise UnknownToken(token_id=token_id, issued=self._issued)
        return token_id

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def set_base_locator(self, caller: AddressLike, locator: str) -> None:
        with self._mutation(caller, "set_base_locator"):
            self._metadata.set_base_locator(locator)

    def token_uri(self, token_id: TokenId) -> str:
        return self._metadata.locator_for(self._require_exists(token_id))

    # ------------------------------------------------------------------
    # Royalty
    # ------------------------------------------------------------------

    def set_royalty(self, caller: AddressLike, receiver: AddressLike, bps: int) -> RoyaltyInfo:
        with self._mutation(caller, "set_royalty"):
            return self._royalty.update(receiver, bps)

    def royalty_info(self, token_id: TokenId, sale_price: int) -> Tuple[Address, int]:
        self._require_exists(token_id)
        return self._royalty.quote(sale_price)

    # ------------------------------------------------------------------
    # Funds
    # ------------------------------------------------------------------

    def credit(self, amount: int) -> int:
        """Record funds received by the collection; returns the new balance."""
        with self._lock:
            return self._treasury.credit(amount)

    def withdraw(self, caller: AddressLike) -> int:
        """Drain the collection balance to the owner; returns the amount moved."""
        with self._mutation(caller, "withdraw") as owner:
            return self._treasury.drain_to(owner)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def symbol(self) -> str:
        return self._config.symbol

    @property
    def owner(self) -> Address:
        return self._access.owner

    @property
    def max_supply(self) -> int:
        return self._max_supply

    @property
    def issued(self) -> int:
        return self._issued

    def total_supply(self) -> int:
        return self._issued

    def remaining_supply(self) -> int:
        return self._max_supply - self._issued

    @property
    def base_locator(self) -> str:
        return self._metadata.base_locator

    @property
    def royalty(self) -> RoyaltyInfo:
        return self._royalty.info

    @property
    def balance(self) -> int:
        return self._treasury.balance

    @property
    def ledger(self) -> EnumerableLedger:
        return self._ledger

    def is_owner(self, caller: AddressLike) -> bool:
        return self._access.is_owner(caller)

    def owner_of(self, token_id: TokenId) -> Address:
        return self._ledger.owner_of(self._require_exists(token_id))

    def balance_of(self, holder: AddressLike) -> int:
        return self._ledger.balance_of(holder)

    def token_by_index(self, index: int) -> TokenId:
        return self._ledger.token_by_index(index)

    def token_of_owner_by_index(self, holder: AddressLike, index: int) -> TokenId:
        return self._ledger.token_of_owner_by_index(holder, index)

    @staticmethod
    def supports_interface(interface_id: int) -> bool:
        if isinstance(interface_id, (bytes, bytearray)):
            interface_id = int.from_bytes(interface_id, "big")
        return interface_id in SUPPORTED_INTERFACES

    # ------------------------------------------------------------------
    # State export / restore
    # ------------------------------------------------------------------

    def export_state(self) -> Dict[str, Any]:
        """Durable fields plus current holders, as JSON-friendly data."""
        with self._lock:
            royalty = self._royalty.info
            return {
                "version": STATE_VERSION,
                "name": self.name,
                "symbol": self.symbol,
                "max_supply": self._max_supply,
                "owner": self.owner,
                "base_locator": self._metadata.base_locator,
                "royalty": royalty.to_dict(),
                "balance": self._treasury.balance,
                "holders": [self._ledger.owner_of(i) for i in range(1, self._issued + 1)],
            }

    @classmethod
    def from_state(cls, data: Mapping[str, Any], **collaborators: Any) -> "CollectionRegistry":
        """
        Rebuild a registry from `export_state()` output. Holders are written to
        a fresh ledger directly; no issuance notifications are replayed.
        """
        if not isinstance(data, Mapping):
            raise InvalidArgument("state must be a mapping", name="state", value=type(data).__name__)
        if data.get("version") != STATE_VERSION:
            raise InvalidArgument("unsupported state version", name="version", value=data.get("version"))
        royalty = data.get("royalty") or {}
        if not isinstance(royalty, Mapping):
            raise InvalidArgument("royalty must be a mapping", name="royalty", value=royalty)
        cfg = CollectionConfig.from_dict(
            {
                "name": data.get("name"),
                "symbol": data.get("symbol"),
                "max_supply": data.get("max_supply"),
                "owner": data.get("owner"),
                "royalty_receiver": royalty.get("receiver"),
                "royalty_bps": royalty.get("bps", 0),
                "base_locator": data.get("base_locator", ""),
            }
        )
        holders: List[str] = list(data.get("holders") or [])
        ledger = collaborators.pop("ledger", None) or InMemoryLedger(cfg.name, cfg.symbol)
        if holders:
            ledger.mint_batch([(i + 1, h) for i, h in enumerate(holders)])
        reg = cls(cfg, ledger=ledger, **collaborators)
        balance = require_uint(data.get("balance", 0), name="balance")
        if balance:
            reg.credit(balance)
        return reg

    def __repr__(self) -> str:
        return (
            f"CollectionRegistry(name={self.name!r}, symbol={self.symbol!r}, "
            f"issued={self._issued}, max_supply={self._max_supply})"
        )


__all__ = [
    "CollectionRegistry",
    "SUPPORTED_INTERFACES",
    "IFACE_ERC165",
    "IFACE_ERC721",
    "IFACE_ERC721_METADATA",
    "IFACE_ERC721_ENUMERABLE",
    "IFACE_ERC2981",
]
