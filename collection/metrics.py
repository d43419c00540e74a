"""
Prometheus metrics for the collection registry.

Instruments:
  • issued_tokens_total     : tokens created, across single and batch calls
  • issuance_calls_total    : successful issuance calls per kind (single|batch)
  • rejections_total        : failed mutating calls per error reason
  • batch_size              : recipients per successful batch
  • issued_supply/max_supply: current supply against the cap

Label cardinality is bounded: `kind` has two values and `reason` is drawn from
the error reasons in `collection.errors`.

Usage
-----
    from collection.metrics import METRICS

    METRICS.record_issue("batch", 3)
    METRICS.record_rejection("supply_exhausted")

Tests and embedders that build many registries should pass their own
`CollectorRegistry` to `Metrics(...)`; instruments register once per registry.
"""

from __future__ import annotations

from typing import Iterable

from prometheus_client import REGISTRY, Counter, Gauge, Histogram

_ISSUE_KINDS = ("single", "batch")

_BATCH_SIZE_BUCKETS = (1, 2, 5, 10, 25, 50, 100, 250, 500, 1000, 5000)


class Metrics:
    """
    Container for all collection Prometheus instruments.

    Args:
        namespace: Prometheus metric namespace (prefix).
        subsystem: Prometheus metric subsystem.
        registry:  Prometheus registry to register the metrics with.
    """

    def __init__(
        self,
        *,
        namespace: str = "animica",
        subsystem: str = "collection",
        registry=REGISTRY,
        batch_buckets: Iterable[float] = _BATCH_SIZE_BUCKETS,
    ) -> None:
        self.issued_tokens_total = Counter(
            "issued_tokens_total",
            "Number of tokens issued.",
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.issuance_calls_total = Counter(
            "issuance_calls_total",
            "Successful issuance calls, labeled by kind.",
            labelnames=("kind",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.rejections_total = Counter(
            "rejections_total",
            "Rejected mutating calls, labeled by error reason.",
            labelnames=("reason",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.batch_size = Histogram(
            "batch_size",
            "Recipients per successful batch issuance.",
            buckets=tuple(batch_buckets),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.issued_supply = Gauge(
            "issued_supply",
            "Tokens issued so far.",
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.max_supply = Gauge(
            "max_supply",
            "Maximum number of tokens the collection may issue.",
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )

        for kind in _ISSUE_KINDS:
            self.issuance_calls_total.labels(kind=kind)

    def record_issue(self, kind: str, count: int) -> None:
        if kind not in _ISSUE_KINDS:
            raise ValueError(f"unknown issue kind {kind!r}; expected one of {_ISSUE_KINDS}")
        self.issuance_calls_total.labels(kind=kind).inc()
        self.issued_tokens_total.inc(count)
        if kind == "batch":
            self.batch_size.observe(count)

    def record_rejection(self, reason: str) -> None:
        self.rejections_total.labels(reason=reason).inc()

    def set_supply(self, issued: int, max_supply: int) -> None:
        self.issued_supply.set(issued)
        self.max_supply.set(max_supply)


# Default, module-level metrics instance.
METRICS = Metrics()

__all__ = ["Metrics", "METRICS"]
