# -*- coding: utf-8 -*-
"""
collection.tests.conftest
=========================

Shared fixtures for the collection registry tests.

- Stable, human-tagged addresses derived with SHA3 (no randomness).
- A private Prometheus registry per test so instruments never collide.
- A `make_registry` factory wired to an `EventLog` sink.
"""
from __future__ import annotations

import hashlib
from typing import Any, Callable, Dict

import pytest
from prometheus_client import CollectorRegistry

from collection.metrics import Metrics
from collection.notify import EventLog
from collection.registry import CollectionRegistry


def det_address(tag: str) -> str:
    """Stable 20-byte hex address (0x...) from a tag."""
    return "0x" + hashlib.sha3_256(tag.encode("utf-8")).hexdigest()[:40]


ADMIN = det_address("admin")
ARTIST = det_address("artist")
ALICE = det_address("alice")
BOB = det_address("bob")
CAROL = det_address("carol")
MALLORY = det_address("mallory")


@pytest.fixture
def prom_registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def metrics(prom_registry: CollectorRegistry) -> Metrics:
    return Metrics(registry=prom_registry)


@pytest.fixture
def events() -> EventLog:
    return EventLog()


@pytest.fixture
def make_registry(metrics: Metrics, events: EventLog) -> Callable[..., CollectionRegistry]:
    def _make(**overrides: Any) -> CollectionRegistry:
        params: Dict[str, Any] = dict(
            name="Genesis Pieces",
            symbol="GEN",
            max_supply=10,
            base_locator="ipfs://X/",
            royalty_receiver=ARTIST,
            royalty_bps=500,
            owner=ADMIN,
            sink=events,
            metrics=metrics,
        )
        params.update(overrides)
        return CollectionRegistry.create(**params)

    return _make


@pytest.fixture
def registry(make_registry: Callable[..., CollectionRegistry]) -> CollectionRegistry:
    return make_registry()
