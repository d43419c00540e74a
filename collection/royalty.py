"""
Royalty policy: one receiver and one basis-point rate for the whole
collection, quoted on a hypothetical sale price.

Arithmetic is integer-only. The amount owed is

    amount = sale_price * bps // 10_000

which floors toward zero for the non-negative inputs accepted here; there is
no floating point anywhere, so quotes never drift.

Example
-------
>>> p = RoyaltyPolicy("0x" + "11" * 20, 500)
>>> p.quote(1000)
('0x1111111111111111111111111111111111111111', 50)
"""

from __future__ import annotations

import logging
from typing import Tuple

from .errors import InvalidRate
from .types import MAX_BPS, Address, AddressLike, RoyaltyInfo, normalize_address, require_uint

logger = logging.getLogger(__name__)


def validate_bps(bps: int) -> int:
    if isinstance(bps, bool) or not isinstance(bps, int) or bps < 0 or bps > MAX_BPS:
        raise InvalidRate(bps=bps)
    return bps


def royalty_amount(sale_price: int, bps: int) -> int:
    sale_price = require_uint(sale_price, name="sale_price")
    return (sale_price * validate_bps(bps)) // MAX_BPS


class RoyaltyPolicy:
    """
    Holds the current RoyaltyInfo. Updates swap in a new frozen RoyaltyInfo in
    a single assignment, so a concurrent reader sees either the old pair or
    the new pair, never a mix.
    """

    __slots__ = ("_info",)

    def __init__(self, receiver: AddressLike, bps: int) -> None:
        self._info = self._build(receiver, bps)

    @staticmethod
    def _build(receiver: AddressLike, bps: int) -> RoyaltyInfo:
        bps = validate_bps(bps)
        return RoyaltyInfo(receiver=normalize_address(receiver, role="royalty_receiver"), bps=bps)

    @property
    def info(self) -> RoyaltyInfo:
        return self._info

    def update(self, receiver: AddressLike, bps: int) -> RoyaltyInfo:
        new = self._build(receiver, bps)
        prev, self._info = self._info, new
        logger.info(
            "royalty changed receiver=%s bps=%d (was receiver=%s bps=%d)",
            new.receiver, new.bps, prev.receiver, prev.bps,
        )
        return new

    def quote(self, sale_price: int) -> Tuple[Address, int]:
        info = self._info
        return info.receiver, royalty_amount(sale_price, info.bps)


__all__ = ["validate_bps", "royalty_amount", "RoyaltyPolicy"]
