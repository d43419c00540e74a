"""
collection.notify
=================

Notification sinks for issuance events. The registry only ever writes to a
sink; it never reads back. Two topics exist:

  - "Issued"      : {"recipient": "0x..", "id": 7}
  - "BatchIssued" : {"recipients": ["0x..", ...], "startId": 1, "count": 3}

Exactly one event is written per successful issuance call; a batch never fans
out into per-token events.

Sinks
-----
- EventLog      : keeps every event in order (handy for tests and the CLI).
- EventBus      : synchronous dispatch of typed events to listeners keyed by
                  event class; listener exceptions are logged and skipped.
- FanoutSink    : writes each event to several sinks in order, logging and
                  skipping a sink that raises.

Usage
-----
    bus = EventBus()
    bus.subscribe(lambda ev: print(ev.to_payload()), BatchIssued)
    registry = CollectionRegistry.create(..., sink=bus)
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple, Type

from .types import BatchIssued, Event, Issued

logger = logging.getLogger(__name__)

Listener = Callable[[Event], None]


class EventSink(Protocol):
    def emit(self, event: Event) -> None: ...


class NullSink:
    def emit(self, event: Event) -> None:
        return None


class EventLog:
    """Append-only, thread-safe record of emitted events."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: List[Event] = []

    def emit(self, event: Event) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> List[Event]:
        with self._lock:
            return list(self._events)

    def of_topic(self, topic: str) -> List[Event]:
        return [e for e in self.events if e.topic == topic]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def __len__(self) -> int:
        return len(self._events)


# --------------------------------------------------------------------------------------
# Event bus
# --------------------------------------------------------------------------------------

EVENT_TYPES: Tuple[Type[Any], ...] = (Issued, BatchIssued)


class Subscription:
    """Handle returned by `EventBus.subscribe`; `cancel()` detaches the listener."""

    __slots__ = ("_bus", "_kind", "_listener")

    def __init__(self, bus: "EventBus", kind: Optional[Type[Any]], listener: Listener):
        self._bus = bus
        self._kind = kind
        self._listener = listener

    def cancel(self) -> None:
        self._bus._detach(self._kind, self._listener)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.cancel()


class EventBus:
    """
    Synchronous, thread-safe dispatch of issuance events to listeners.

    Listeners are keyed by event class (`Issued`, `BatchIssued`); a listener
    subscribed with no kind receives every event. Listeners get the typed
    event object. A raising listener is logged and skipped; the others still
    run. The bus is itself an `EventSink`.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: Dict[Optional[Type[Any]], List[Listener]] = {}

    def subscribe(self, listener: Listener, kind: Optional[Type[Any]] = None) -> Subscription:
        if not callable(listener):
            raise TypeError("listener must be callable")
        if kind is not None and kind not in EVENT_TYPES:
            raise TypeError(f"unknown event kind: {kind!r}")
        with self._lock:
            self._listeners.setdefault(kind, []).append(listener)
        return Subscription(self, kind, listener)

    def _detach(self, kind: Optional[Type[Any]], listener: Listener) -> None:
        with self._lock:
            lst = self._listeners.get(kind)
            if lst and listener in lst:
                lst.remove(listener)
                if not lst:
                    del self._listeners[kind]

    def listener_count(self, kind: Optional[Type[Any]] = None) -> int:
        with self._lock:
            return len(self._listeners.get(kind, ()))

    def emit(self, event: Event) -> None:
        self.publish(event)

    def publish(self, event: Event) -> int:
        """Deliver `event`; returns how many listeners handled it without raising."""
        with self._lock:
            targets = self._listeners.get(type(event), []) + self._listeners.get(None, [])
        delivered = 0
        for listener in targets:
            try:
                listener(event)
                delivered += 1
            except Exception as e:
                logger.warning("listener error on topic=%s: %s", event.topic, e, exc_info=True)
        return delivered


class FanoutSink:
    """Writes each event to several sinks in order; one failing sink does not stop the rest."""

    def __init__(self, sinks: Iterable[EventSink]) -> None:
        self.sinks = list(sinks)

    def emit(self, event: Event) -> None:
        for sink in self.sinks:
            try:
                sink.emit(event)
            except Exception as e:
                logger.warning(
                    "sink %s failed on topic=%s: %s", type(sink).__name__, event.topic, e, exc_info=True
                )


__all__ = [
    "EventSink",
    "NullSink",
    "EventLog",
    "EVENT_TYPES",
    "Subscription",
    "EventBus",
    "FanoutSink",
]
