"""Push sources that can feed a :class:`pydiffy.DiffEngine`.

The engine only needs "give me a callback slot, tell me when to stop
caring". :class:`StateSource` describes that contract and
:class:`LifecycleScope` describes the "when to stop" half, which
:class:`contextlib.ExitStack` and :class:`contextlib.AsyncExitStack`
already satisfy.

:class:`LiveState` is a small reference source: it holds the latest value
and delivers every new one to its subscribers, either synchronously or on
an asyncio loop.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

from pydiffy.exceptions import DiffySourceError

_logger = logging.getLogger(__name__)

S = TypeVar("S")
S_co = TypeVar("S_co", covariant=True)

_UNSET: Any = object()


@dataclass(frozen=True, slots=True)
class Subscription:
    """Opaque handle returned by :meth:`StateSource.subscribe`."""

    id: int


class StateSource(Protocol[S_co]):
    """A push source with subscribe/unsubscribe semantics."""

    def subscribe(self, callback: Callable[[S_co], None]) -> Subscription: ...

    def unsubscribe(self, subscription: Subscription) -> None: ...


class LifecycleScope(Protocol):
    """Anything that runs registered callbacks when it ends."""

    def callback(self, callback: Callable[..., Any], /, *args: Any, **kwds: Any) -> Any: ...


class LiveState(Generic[S]):
    """Observable holder of the latest state snapshot.

    Values passed to :meth:`set_value` are delivered synchronously on the
    calling thread. :meth:`post_value` may be called from any thread; it
    hands the value to the bound event loop, and posts that pile up before
    the loop gets to them are coalesced so only the newest is delivered.

    Subscribing does not replay the held value. Call :meth:`redeliver`
    once all observers are wired up to push it out.
    """

    def __init__(self, initial: Any = _UNSET, *, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._value: Any = initial
        self._loop = loop
        self._subscribers: dict[int, Callable[[S], None]] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._pending: Any = _UNSET

    def __repr__(self) -> str:
        return f"<LiveState subscribers={len(self._subscribers)} has_value={self.has_value}>"

    @property
    def has_value(self) -> bool:
        return self._value is not _UNSET

    @property
    def value(self) -> S:
        if self._value is _UNSET:
            raise DiffySourceError("LiveState has no value yet")
        return self._value

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def bind_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Bind the event loop used by :meth:`post_value`."""
        self._loop = loop

    def subscribe(self, callback: Callable[[S], None]) -> Subscription:
        subscription = Subscription(next(self._ids))
        self._subscribers[subscription.id] = callback
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a subscriber. Unknown or already removed handles are ignored."""
        self._subscribers.pop(subscription.id, None)

    def set_value(self, value: S) -> None:
        """Store *value* and deliver it to every subscriber.

        Subscribers run in subscription order. An exception raised by a
        subscriber propagates and the remaining subscribers are skipped.
        """
        self._value = value
        self._dispatch(value)

    def redeliver(self) -> None:
        """Deliver the held value again, e.g. to prime freshly attached engines."""
        self._dispatch(self.value)

    def post_value(self, value: S) -> None:
        """Thread-safe variant of :meth:`set_value` that delivers on the bound loop."""
        loop = self._loop
        if loop is None:
            raise DiffySourceError("post_value() requires a bound event loop")
        with self._lock:
            schedule = self._pending is _UNSET
            self._pending = value
        if schedule:
            loop.call_soon_threadsafe(self._flush_pending)
        else:
            _logger.debug("Coalesced posted value into pending delivery")

    def _flush_pending(self) -> None:
        with self._lock:
            value = self._pending
            self._pending = _UNSET
        if value is _UNSET:
            return
        self.set_value(value)

    def _dispatch(self, value: S) -> None:
        for sub_id, callback in list(self._subscribers.items()):
            # Skip subscribers removed by an earlier callback in this round.
            if sub_id not in self._subscribers:
                continue
            callback(value)
