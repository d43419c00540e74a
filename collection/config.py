"""
Collection configuration.

Typed construction parameters for a capped collection:
- name / symbol passed through to the ownership ledger
- maximum supply (fixed for the life of the collection)
- initial base locator for metadata addresses
- initial royalty receiver and rate (basis points)
- the owner allowed to mutate the registry

Provides:
- Dataclass-based config with validation
- Loading from environment variables (prefix configurable)
- Loading from a JSON or YAML file
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import InvalidAddress
from .types import MAX_BPS, normalize_address

_REQUIRED = ("name", "symbol", "max_supply", "royalty_receiver", "owner")


@dataclass
class CollectionConfig:
    """
    name, symbol: collection labels, not interpreted by the registry
    max_supply: positive cap on issued tokens
    owner: address allowed to issue and reconfigure
    royalty_receiver: address quoted by royalty_info
    royalty_bps: 0..10000 basis points
    base_locator: prefix of every metadata address (may be empty)
    """

    name: str
    symbol: str
    max_supply: int
    owner: str
    royalty_receiver: str
    royalty_bps: int = 0
    base_locator: str = ""

    def validate(self) -> None:
        if not isinstance(self.name, str) or not isinstance(self.symbol, str):
            raise ValueError("name and symbol must be strings")
        if isinstance(self.max_supply, bool) or not isinstance(self.max_supply, int):
            raise ValueError("max_supply must be an int")
        if self.max_supply <= 0:
            raise ValueError("max_supply must be > 0")
        if isinstance(self.royalty_bps, bool) or not isinstance(self.royalty_bps, int):
            raise ValueError("royalty_bps must be an int")
        if not (0 <= self.royalty_bps <= MAX_BPS):
            raise ValueError(f"royalty_bps must be between 0 and {MAX_BPS}")
        if not isinstance(self.base_locator, str):
            raise ValueError("base_locator must be a string")
        for f_name in ("owner", "royalty_receiver"):
            try:
                setattr(self, f_name, normalize_address(getattr(self, f_name), role=f_name))
            except InvalidAddress as e:
                raise ValueError(f"{f_name} is not a valid address: {e}") from e

    # -------------------------
    # Serialization helpers
    # -------------------------

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "CollectionConfig":
        missing = [k for k in _REQUIRED if data.get(k) is None]
        if missing:
            raise ValueError(f"missing required config keys: {', '.join(missing)}")
        cfg = CollectionConfig(
            name=data["name"],
            symbol=data["symbol"],
            max_supply=data["max_supply"],
            owner=data["owner"],
            royalty_receiver=data["royalty_receiver"],
            royalty_bps=data.get("royalty_bps", 0),
            base_locator=data.get("base_locator", ""),
        )
        cfg.validate()
        return cfg

    # -------------------------
    # Loaders
    # -------------------------

    @staticmethod
    def from_env(prefix: str = "COLLECTION_") -> "CollectionConfig":
        """
        Load configuration from environment variables.

        Supported keys:
          - COLLECTION_NAME=Genesis Pieces         (required)
          - COLLECTION_SYMBOL=GEN                  (required)
          - COLLECTION_MAX_SUPPLY=10000            (required)
          - COLLECTION_OWNER=0x…                   (required)
          - COLLECTION_ROYALTY_RECEIVER=0x…        (required)
          - COLLECTION_ROYALTY_BPS=500
          - COLLECTION_BASE_LOCATOR=ipfs://bafy…/
        """

        def _get(name: str, cast: Any, default: Any) -> Any:
            key = prefix + name
            raw = os.getenv(key)
            if raw is None:
                return default
            try:
                return cast(raw)
            except Exception as e:
                raise ValueError(f"Invalid value for {key}: {raw!r}") from e

        return CollectionConfig.from_dict(
            {
                "name": _get("NAME", str, None),
                "symbol": _get("SYMBOL", str, None),
                "max_supply": _get("MAX_SUPPLY", int, None),
                "owner": _get("OWNER", str, None),
                "royalty_receiver": _get("ROYALTY_RECEIVER", str, None),
                "royalty_bps": _get("ROYALTY_BPS", int, 0),
                "base_locator": _get("BASE_LOCATOR", str, ""),
            }
        )

    @staticmethod
    def from_file(path: str) -> "CollectionConfig":
        """
        Load configuration from a JSON or YAML file whose keys mirror the
        dataclass fields. Example (YAML):

            name: Genesis Pieces
            symbol: GEN
            max_supply: 10000
            owner: "0x…"
            royalty_receiver: "0x…"
            royalty_bps: 500
            base_locator: "ipfs://bafy…/"
        """
        data = _parse_json_or_yaml(_read_text(path), path)
        if not isinstance(data, dict):
            raise ValueError(f"{path!r} must contain a mapping at top level")
        return CollectionConfig.from_dict(data)


def load_config(path: Optional[str] = None, *, prefix: str = "COLLECTION_") -> CollectionConfig:
    """Prefer an explicit file; otherwise read the environment."""
    if path:
        return CollectionConfig.from_file(path)
    return CollectionConfig.from_env(prefix)


# -------------------------
# Utilities
# -------------------------


def _read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _parse_json_or_yaml(text: str, path_hint: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    try:
        return yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse {path_hint!r} as JSON or YAML: {e}") from e


__all__ = ["CollectionConfig", "load_config"]
