"""Slice-level change detection over successive state snapshots.

Using a single state architecture, any change to the state would normally
re-render everything that depends on it. :class:`DiffEngine` lets each
consumer observe one slice of the state and be called only when that slice
changes::

    engine = (
        DiffEngine[AppState]()
        .register(lambda s: s.title, set_title)
        .register(select("user.name"), set_user_name)
    )
    engine.ingest(snapshot)
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydiffy._logfmt import summarize_for_log
from pydiffy.config import DiffyConfig, ErrorPolicy
from pydiffy.exceptions import DiffyStateError
from pydiffy.sources import LifecycleScope, StateSource, Subscription

_logger = logging.getLogger(__name__)

S = TypeVar("S")
T = TypeVar("T")

# Stands in for "no prior snapshot" so that ``None`` stays a valid snapshot.
_ABSENT: Any = object()


@dataclass(frozen=True, slots=True)
class _Observer(Generic[S, T]):
    """A selector and the callback fed with its value when it changes."""

    selector: Callable[[S], T]
    on_change: Callable[[T], None]


class DiffEngine(Generic[S]):
    """Diff successive snapshots of ``S`` and notify per-slice observers.

    The engine is not thread-safe. The host must serialize calls to
    :meth:`ingest` (for example by delivering snapshots from one event loop)
    and treat every snapshot as immutable once ingested.
    """

    def __init__(self, config: DiffyConfig | None = None) -> None:
        self._config = config or DiffyConfig()
        self._prior_state: S = _ABSENT
        # Type-erased: the selector/callback link is checked by register() only.
        self._observers: list[_Observer[S, Any]] = []
        self._ingest_count = 0

    def __len__(self) -> int:
        return len(self._observers)

    def __repr__(self) -> str:
        return f"<DiffEngine observers={len(self._observers)} primed={self.primed}>"

    @property
    def config(self) -> DiffyConfig:
        return self._config

    @property
    def primed(self) -> bool:
        """Whether at least one snapshot has been ingested successfully."""
        return self._prior_state is not _ABSENT

    @property
    def prior_state(self) -> S:
        """The most recently ingested snapshot.

        Raises
        ------
        DiffyStateError
            If no snapshot has been ingested yet.
        """
        if self._prior_state is _ABSENT:
            raise DiffyStateError("No snapshot has been ingested yet")
        return self._prior_state

    @property
    def ingest_count(self) -> int:
        """Number of successful :meth:`ingest` calls."""
        return self._ingest_count

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, selector: Callable[[S], T], on_change: Callable[[T], None]) -> DiffEngine[S]:
        """Register a slice observer.

        Parameters
        ----------
        selector
            Pure function extracting one slice from a snapshot.
        on_change
            Called with the new slice value on the first ingestion and
            whenever the slice differs from its value in the prior snapshot.

        Returns
        -------
        DiffEngine
            This engine, so registrations can be chained.
        """
        if not callable(selector):
            raise TypeError(f"selector must be callable, got {type(selector).__name__}")
        if not callable(on_change):
            raise TypeError(f"on_change must be callable, got {type(on_change).__name__}")
        self._observers.append(_Observer(selector, on_change))
        return self

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def ingest(self, new_state: S) -> None:
        """Diff *new_state* against the prior snapshot and notify observers.

        Observers are evaluated in registration order. On the first
        ingestion every observer fires. Afterwards an observer fires when
        ``selector(prior) != selector(new_state)``.

        If a selector or callback raises, the prior snapshot is not
        replaced. Callbacks that already ran are not undone. What happens
        to the remaining observers depends on
        :attr:`DiffyConfig.error_policy`.
        """
        prior = self._prior_state
        first = prior is _ABSENT
        collect = self._config.error_policy is ErrorPolicy.COLLECT
        errors: list[Exception] = []
        fired = 0

        # Observers registered by a callback wait for the next ingest.
        for index, observer in enumerate(tuple(self._observers)):
            try:
                fired += self._diff(index, observer, prior, new_state, first)
            except Exception as exc:
                if not collect:
                    raise
                exc.add_note(f"pydiffy: observer #{index} selector={observer.selector!r}")
                errors.append(exc)

        if errors:
            raise ExceptionGroup(f"{len(errors)} observer(s) failed during ingest", errors)

        self._prior_state = new_state
        self._ingest_count += 1
        _logger.debug(
            "Ingested snapshot #%d first=%s fired=%d/%d",
            self._ingest_count,
            first,
            fired,
            len(self._observers),
        )

    def _diff(self, index: int, observer: _Observer[S, T], prior: S, new_state: S, first: bool) -> int:
        new_value = observer.selector(new_state)
        if not first:
            old_value = observer.selector(prior)
            if old_value == new_value:
                return 0
        if self._config.log_values:
            _logger.debug(
                "Observer #%d changed value=%s",
                index,
                summarize_for_log(new_value, max_string=self._config.max_log_string),
            )
        observer.on_change(new_value)
        return 1

    async def drain(self, snapshots: AsyncIterable[S]) -> int:
        """Ingest every snapshot produced by *snapshots*, in order.

        Returns the number of snapshots ingested. An observer failure
        propagates and stops consumption of the iterable.
        """
        count = 0
        async for snapshot in snapshots:
            self.ingest(snapshot)
            count += 1
        _logger.debug("Snapshot stream exhausted after %d snapshot(s)", count)
        return count

    # ------------------------------------------------------------------
    # Source wiring
    # ------------------------------------------------------------------

    def attach_to(self, source: StateSource[S], scope: LifecycleScope | None = None) -> Subscription:
        """Forward every value *source* delivers into :meth:`ingest`.

        When *scope* is given (for example a :class:`contextlib.ExitStack`),
        the subscription is released when the scope closes. Otherwise the
        caller owns the returned handle.
        """
        subscription = source.subscribe(self.ingest)
        if scope is not None:
            scope.callback(source.unsubscribe, subscription)
        _logger.debug("Attached to source=%r subscription=%s scoped=%s", source, subscription.id, scope is not None)
        return subscription

    @classmethod
    def attach(
        cls,
        source: StateSource[S],
        scope: LifecycleScope | None = None,
        *,
        config: DiffyConfig | None = None,
    ) -> DiffEngine[S]:
        """Create an engine fed by *source*.

        Example::

            with ExitStack() as scope:
                DiffEngine.attach(live_state, scope).register(lambda s: s.foo, on_foo)
        """
        engine: DiffEngine[S] = cls(config)
        engine.attach_to(source, scope)
        return engine
