"""
collection.errors
-----------------

Typed exceptions for the capped collection registry. These are designed to be:
- Richly structured (carry machine-parsable context via `.to_dict()`).
- JSON-RPC friendly (stable integer `code` values).
- Easy to log (clean __str__ plus a compact `reason`).

Hierarchy:

    CollectionError (base)
    ├── Unauthorized
    ├── SupplyExhausted
    ├── EmptyBatch
    ├── UnknownToken
    ├── InvalidRate
    ├── InvalidAddress
    ├── InvalidArgument
    └── LedgerError

Every error leaves registry state untouched; callers own any retry policy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

__all__ = [
    "CollectionErrorCode",
    "CollectionError",
    "Unauthorized",
    "SupplyExhausted",
    "EmptyBatch",
    "UnknownToken",
    "InvalidRate",
    "InvalidAddress",
    "InvalidArgument",
    "LedgerError",
]


class CollectionErrorCode:
    """
    Stable numeric error codes reserved for collection errors.

    Range 1200–1299 is reserved for the collection registry.
    """

    UNAUTHORIZED = 1200
    SUPPLY_EXHAUSTED = 1201
    EMPTY_BATCH = 1202
    UNKNOWN_TOKEN = 1203
    INVALID_RATE = 1204
    INVALID_ADDRESS = 1205
    INVALID_ARGUMENT = 1206
    LEDGER = 1299


@dataclass(eq=False)
class CollectionError(Exception):
    """
    Base class for collection registry errors.

    Attributes
    ----------
    code : int
        Stable integer code (see CollectionErrorCode).
    reason : str
        Short, machine-friendly reason (snake_case).
    message : str
        Human-readable message.
    context : Dict[str, Any]
        Structured details safe for logs and JSON payloads.
    """

    code: int
    reason: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        ctx = ""
        if self.context:
            parts = []
            for k, v in self.context.items():
                if v is None:
                    continue
                s = str(v)
                if len(s) > 64:
                    s = s[:61] + "..."
                parts.append(f"{k}={s}")
            if parts:
                ctx = " [" + ", ".join(parts) + "]"
        return f"{self.reason}: {self.message}{ctx}"

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable error object."""
        return {
            "code": self.code,
            "reason": self.reason,
            "message": self.message,
            "context": dict(self.context) if self.context else {},
        }


@dataclass(eq=False)
class Unauthorized(CollectionError):
    """The caller is not the collection owner."""

    def __init__(self, *, caller: str, action: Optional[str] = None) -> None:
        super().__init__(
            code=CollectionErrorCode.UNAUTHORIZED,
            reason="unauthorized",
            message="caller is not the collection owner",
            context={"caller": caller, "action": action},
        )


@dataclass(eq=False)
class SupplyExhausted(CollectionError):
    """Issuing `requested` more tokens would exceed the maximum supply."""

    def __init__(self, *, issued: int, requested: int, max_supply: int) -> None:
        super().__init__(
            code=CollectionErrorCode.SUPPLY_EXHAUSTED,
            reason="supply_exhausted",
            message=(
                f"cannot issue {requested} token(s): {issued} of {max_supply} already issued"
            ),
            context={"issued": issued, "requested": requested, "max_supply": max_supply},
        )


@dataclass(eq=False)
class EmptyBatch(CollectionError):
    def __init__(self) -> None:
        super().__init__(
            code=CollectionErrorCode.EMPTY_BATCH,
            reason="empty_batch",
            message="batch issuance requires at least one recipient",
        )


@dataclass(eq=False)
class UnknownToken(CollectionError):
    """Query on an identifier outside [1, issued]."""

    def __init__(self, *, token_id: Any, issued: Optional[int] = None) -> None:
        super().__init__(
            code=CollectionErrorCode.UNKNOWN_TOKEN,
            reason="unknown_token",
            message=f"token {token_id!r} does not exist",
            context={"token_id": token_id, "issued": issued},
        )


@dataclass(eq=False)
class InvalidRate(CollectionError):
    """Royalty rate outside [0, 10000] basis points."""

    def __init__(self, *, bps: Any) -> None:
        super().__init__(
            code=CollectionErrorCode.INVALID_RATE,
            reason="invalid_rate",
            message=f"royalty rate must be an int in [0, 10000] bps, got {bps!r}",
            context={"bps": bps},
        )


@dataclass(eq=False)
class InvalidAddress(CollectionError):
    def __init__(self, *, value: Any, role: Optional[str] = None) -> None:
        shown = value.hex() if isinstance(value, (bytes, bytearray)) else value
        super().__init__(
            code=CollectionErrorCode.INVALID_ADDRESS,
            reason="invalid_address",
            message=f"not a valid non-zero 20-byte address: {shown!r}",
            context={"role": role},
        )


@dataclass(eq=False)
class InvalidArgument(CollectionError):
    def __init__(self, message: str, *, name: Optional[str] = None, value: Any = None) -> None:
        super().__init__(
            code=CollectionErrorCode.INVALID_ARGUMENT,
            reason="invalid_argument",
            message=message,
            context={"name": name, "value": value},
        )


@dataclass(eq=False)
class LedgerError(CollectionError):
    """
    Raised by the ownership ledger (duplicate mint, transfer by a non-holder,
    out-of-range enumeration index).
    """

    def __init__(self, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            code=CollectionErrorCode.LEDGER,
            reason="ledger_error",
            message=message,
            context=context or {},
        )
