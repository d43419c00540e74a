"""
Animica capped collection registry.

Owner-issued, supply-capped non-fungible tokens with sequential ids, derived
metadata locators, and basis-point royalty quotes.

Lightweight public surface:
- CollectionRegistry, CollectionConfig, load_config
- __version__ / get_version()
"""
from __future__ import annotations

from .version import __version__, get_version
from .config import CollectionConfig, load_config
from .registry import CollectionRegistry

__all__ = [
    "__version__",
    "get_version",
    "CollectionConfig",
    "CollectionRegistry",
    "load_config",
]
