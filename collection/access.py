"""
collection.access
=================

Single-owner access gate for the collection registry.

- read the owner (`owner`)
- check a caller (`is_owner`)
- reject a non-owner (`require_owner`)

The owner is fixed at construction. Reassigning it belongs to the ownership
layer around the registry and is not offered here. The gate is a pure function
of (owner, caller): it never mutates state, so a rejected call leaves the
registry exactly as it was.
"""

from __future__ import annotations

import logging
from typing import Optional

from .errors import InvalidAddress, Unauthorized
from .types import Address, AddressLike, normalize_address

logger = logging.getLogger(__name__)

__all__ = ["Ownable"]


class Ownable:
    __slots__ = ("_owner",)

    def __init__(self, owner: AddressLike) -> None:
        self._owner = normalize_address(owner, role="owner")

    @property
    def owner(self) -> Address:
        return self._owner

    def is_owner(self, caller: AddressLike) -> bool:
        try:
            return normalize_address(caller, role="caller", allow_zero=True) == self._owner
        except InvalidAddress:
            return False

    def require_owner(self, caller: AddressLike, action: Optional[str] = None) -> Address:
        """Raise Unauthorized unless `caller` is the owner; return the canonical caller."""
        if not self.is_owner(caller):
            shown = caller.hex() if isinstance(caller, (bytes, bytearray)) else str(caller)
            logger.debug("rejected %s from non-owner %s", action or "call", shown)
            raise Unauthorized(caller=shown, action=action)
        return self._owner

    def __repr__(self) -> str:
        return f"Ownable(owner={self._owner})"
