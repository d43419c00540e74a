"""
Metadata locator derivation.

A token's metadata address is the collection's base locator followed by the
decimal token id and a ".json" suffix:

>>> MetadataResolver("ipfs://X/").locator_for(7)
'ipfs://X/7.json'

The base is taken verbatim. No separator is inserted, nothing is
percent-encoded, and an empty base is allowed (the result is then just
"<id>.json"). Whether a token exists is the registry's call; this module only
formats.
"""

from __future__ import annotations

import logging

from .errors import InvalidArgument
from .types import TokenId

logger = logging.getLogger(__name__)

METADATA_SUFFIX = ".json"


class MetadataResolver:
    __slots__ = ("_base",)

    def __init__(self, base_locator: str = "") -> None:
        self._base = self._check(base_locator)

    @staticmethod
    def _check(locator: str) -> str:
        if not isinstance(locator, str):
            raise InvalidArgument("base locator must be a string", name="base_locator", value=locator)
        return locator

    @property
    def base_locator(self) -> str:
        return self._base

    def set_base_locator(self, locator: str) -> str:
        """Replace the base unconditionally; returns the previous value."""
        prev, self._base = self._base, self._check(locator)
        logger.info("base locator changed %r -> %r", prev, locator)
        return prev

    def locator_for(self, token_id: TokenId) -> str:
        return f"{self._base}{int(token_id)}{METADATA_SUFFIX}"


__all__ = ["METADATA_SUFFIX", "MetadataResolver"]
