"""
Core value types shared by the collection registry.

Addresses are 20-byte account identifiers rendered canonically as lowercase
0x-prefixed hex. Everything that crosses a module boundary (callers,
recipients, royalty receivers) goes through `normalize_address` first so that
equality checks never depend on input casing or encoding.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, Tuple, Union

from .errors import InvalidAddress, InvalidArgument

Address = str
AddressLike = Union[str, bytes, bytearray]
TokenId = int

ADDRESS_BYTES = 20
ZERO_ADDRESS: Address = "0x" + "00" * ADDRESS_BYTES

MAX_BPS = 10_000

_HEX_ADDR_RE = re.compile(r"^0[xX][0-9a-fA-F]{40}$")


def normalize_address(value: AddressLike, *, role: str = "address", allow_zero: bool = False) -> Address:
    """
    Return the canonical form of `value` or raise InvalidAddress.

    Accepts 0x-prefixed hex strings (any case) and raw 20-byte values.
    The zero address is rejected unless `allow_zero` is set.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != ADDRESS_BYTES:
            raise InvalidAddress(value=bytes(value), role=role)
        addr = "0x" + bytes(value).hex()
    elif isinstance(value, str):
        if not _HEX_ADDR_RE.match(value):
            raise InvalidAddress(value=value, role=role)
        addr = "0x" + value[2:].lower()
    else:
        raise InvalidAddress(value=value, role=role)
    if addr == ZERO_ADDRESS and not allow_zero:
        raise InvalidAddress(value=value, role=role)
    return addr


def require_uint(value: Any, *, name: str) -> int:
    """Reject bools, non-ints and negatives."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"{name} must be an unsigned int", name=name, value=value)
    if value < 0:
        raise InvalidArgument(f"{name} must be non-negative", name=name, value=value)
    return value


@dataclass(frozen=True)
class RoyaltyInfo:
    """Receiver and rate applied uniformly to every token in the collection."""

    receiver: Address
    bps: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# --------------------------------------------------------------------------------------
# Notifications
# --------------------------------------------------------------------------------------


@dataclass(frozen=True)
class Issued:
    recipient: Address
    token_id: TokenId

    topic = "Issued"

    def to_payload(self) -> Dict[str, Any]:
        return {"recipient": self.recipient, "id": self.token_id}


@dataclass(frozen=True)
class BatchIssued:
    """One notification for a whole batch; ids are start_id .. start_id+count-1."""

    recipients: Tuple[Address, ...]
    start_id: TokenId
    count: int

    topic = "BatchIssued"

    @property
    def last_id(self) -> TokenId:
        return self.start_id + self.count - 1

    def to_payload(self) -> Dict[str, Any]:
        return {
            "recipients": list(self.recipients),
            "startId": self.start_id,
            "count": self.count,
        }


Event = Union[Issued, BatchIssued]

__all__ = [
    "Address",
    "AddressLike",
    "TokenId",
    "ADDRESS_BYTES",
    "ZERO_ADDRESS",
    "MAX_BPS",
    "normalize_address",
    "require_uint",
    "RoyaltyInfo",
    "Issued",
    "BatchIssued",
    "Event",
]
