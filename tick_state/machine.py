"""StateMachine - named states, guarded transitions, and timed states."""
from __future__ import annotations

import contextlib
import logging
import time
import weakref
from typing import Any, Callable, Generic, Protocol, TypeVar

from tick_state.registry import StateRegistry, default_registry
from tick_state.types import (
    MachineDestroyedError,
    SnapshotError,
    State,
    StateConfigError,
    TransitionDepthError,
)

logger = logging.getLogger(__name__)

C = TypeVar("C")

DEFAULT_MAX_DEPTH = 32
_SNAPSHOT_VERSION = 1


class CleanupRegistrar(Protocol):
    """Collects teardown actions run together by ``close()``."""

    def callback(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Any: ...

    def close(self) -> None: ...


class StateMachine(Generic[C]):
    """Finite state machine owned by a single entity.

    States are registered with :meth:`add_state`; the first one registered is
    entered immediately. Transitions are explicit (:meth:`change_state`) or
    driven by :meth:`update` once a timed state's duration has elapsed. Every
    committed transition is published to the machine's :class:`StateRegistry`
    under its identity, so other code can read the state by name alone.

    Hooks take a single argument, the ``ctx`` payload passed to
    ``change_state`` (None for automatic transitions). A state with no
    ``enter`` hook can always be entered unless ``strict_guards`` is set.
    """

    def __init__(
        self,
        name: str | None = None,
        *,
        registry: StateRegistry | None = None,
        clock: Callable[[], float] | None = None,
        cleanup: CleanupRegistrar | None = None,
        strict_guards: bool = False,
        max_depth: int = DEFAULT_MAX_DEPTH,
        on_transition: Callable[[StateMachine[C], str, str], None] | None = None,
    ) -> None:
        if max_depth < 1:
            raise ValueError("max_depth must be positive")
        self._registry = registry if registry is not None else default_registry()
        self._clock = clock if clock is not None else time.monotonic
        self._cleanup = cleanup if cleanup is not None else contextlib.ExitStack()
        self._strict_guards = strict_guards
        self._max_depth = max_depth
        self._on_transition = on_transition

        self._states: dict[str, State] = {}
        self._state_order: list[str] = []
        self._state: str = ""
        self._duration: float = 0
        self._entry_time: float = 0.0
        self._depth: int = 0
        self._destroyed: bool = False

        self._name, self._auto_named = self._registry._register(name)
        # Drops the registry entry if the machine is collected without destroy().
        self._finalizer = weakref.finalize(
            self, self._registry._release, self._name, self._auto_named
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> str:
        """Current state name. Empty string until the first transition."""
        return self._state

    @property
    def duration(self) -> float:
        """Duration of the active state. 0 means it lasts indefinitely."""
        return self._duration

    @property
    def entry_time(self) -> float:
        return self._entry_time

    @property
    def registry(self) -> StateRegistry:
        return self._registry

    @property
    def cleanup(self) -> CleanupRegistrar:
        """Teardown actions registered here run when the machine is destroyed."""
        return self._cleanup

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    # --- Registration ---

    def add_state(
        self,
        name: str,
        duration: float = 0,
        enter: Callable[[C | None], Any] | None = None,
        started: Callable[[C | None], Any] | None = None,
        completed: Callable[[C | None], Any] | None = None,
    ) -> None:
        """Register a state. Overwrites if the name exists, keeping its ordinal.

        The first state registered on a machine is entered right away
        (subject to its ``enter`` guard). A positive ``duration`` requires a
        ``completed`` hook that returns the name of the next state.
        """
        self._check_alive()
        if not name:
            raise ValueError("state name must be non-empty")
        if duration is None:
            duration = 0
        if duration < 0:
            raise ValueError(f"duration must be >= 0, got {duration!r}")

        first = not self._state_order
        if name not in self._states:
            self._state_order.append(name)
        self._states[name] = State(
            name=name,
            duration=duration,
            enter=enter,
            started=started,
            completed=completed,
        )
        if first:
            self.change_state(name)

    def definition(self, name: str) -> State | None:
        """Look up a state definition by name."""
        self._check_alive()
        return self._states.get(name)

    def has_state(self, name: str) -> bool:
        self._check_alive()
        return name in self._states

    def states(self) -> list[str]:
        """List state names in registration order."""
        self._check_alive()
        return list(self._state_order)

    # --- Ordinals ---

    def name_from_ordinal(self, index: int) -> str | None:
        """State name at 1-based registration position. None if out of range."""
        self._check_alive()
        if 1 <= index <= len(self._state_order):
            return self._state_order[index - 1]
        return None

    def ordinal_from_name(self, name: str) -> int | None:
        """1-based registration position of ``name``. None if not registered."""
        self._check_alive()
        for ordinal, state_name in enumerate(self._state_order, start=1):
            if state_name == name:
                return ordinal
        return None

    # --- Transitions ---

    def change_state(self, target: str | int, ctx: C | None = None) -> None:
        """Move to ``target`` (a state name or ordinal) if its guard allows.

        Entering the current state, an unknown state, or a state whose guard
        rejects ``ctx`` does nothing. On success the outgoing state's
        ``completed`` hook runs, the new state is committed and its
        ``started`` hook runs, all with ``ctx``.
        """
        self._check_alive()
        if isinstance(target, bool):
            raise TypeError("state ordinal must be an int, not bool")
        if isinstance(target, int):
            resolved = self.name_from_ordinal(target)
            if resolved is None:
                return
            target = resolved

        if target == self._state:
            return
        next_state = self._states.get(target)
        if next_state is None:
            return

        if self._depth >= self._max_depth:
            raise TransitionDepthError(self._name, self._depth + 1)
        self._depth += 1
        try:
            self._transition(next_state, ctx)
        finally:
            self._depth -= 1

    def _transition(self, next_state: State, ctx: C | None) -> None:
        if next_state.enter is not None:
            allowed = next_state.enter(ctx)
        else:
            allowed = not self._strict_guards
        if not allowed:
            logger.debug(
                "%s: guard blocked %r -> %r", self._name, self._state, next_state.name
            )
            return

        old = self._state
        old_state = self._states.get(old)
        if old_state is not None and old_state.completed is not None:
            old_state.completed(ctx)

        self._state = next_state.name
        self._duration = next_state.duration
        self._entry_time = self._clock()
        self._registry._publish(self._name, self._state)
        logger.debug("%s: %r -> %r", self._name, old, next_state.name)
        if self._on_transition is not None:
            self._on_transition(self, old, next_state.name)

        # Runs last so transitions it starts are reported after this one.
        if next_state.started is not None:
            next_state.started(ctx)

    # --- Timing ---

    def elapsed(self) -> float:
        """Seconds spent in the current state. 0.0 before the first transition."""
        self._check_alive()
        if not self._state:
            return 0.0
        return self._clock() - self._entry_time

    def time_remaining(self) -> float | None:
        """Seconds until the active timed state expires. None if untimed."""
        self._check_alive()
        if not self._state or self._duration <= 0:
            return None
        return max(0.0, self._duration - self.elapsed())

    def update(self) -> None:
        """Poll the active state's timer. Call once per host tick.

        When a timed state has run for at least its duration, its
        ``completed`` hook is called with None and must return the name of
        the state to move to. Raises StateConfigError if the hook is missing
        or returns anything but a string.
        """
        self._check_alive()
        if not self._state or self._duration <= 0:
            return
        if self.elapsed() < self._duration:
            return

        current = self._states[self._state]
        if current.completed is None:
            raise StateConfigError(
                self._name,
                current.name,
                "state has a duration but no completed hook",
            )
        next_name = current.completed(None)
        if not isinstance(next_name, str):
            raise StateConfigError(
                self._name,
                current.name,
                f"completed hook returned {type(next_name).__name__}, "
                "expected the name of the next state",
            )
        logger.debug(
            "%s: %r expired after %.3fs, next %r",
            self._name, current.name, self._duration, next_name,
        )
        self.change_state(next_name)

    # --- Lifecycle ---

    def destroy(self) -> None:
        """Unregister from the registry and run cleanup. Safe to call twice."""
        if self._destroyed:
            return
        self._destroyed = True
        self._finalizer()
        logger.debug("Destroyed %s", self._name)
        self._cleanup.close()

    def _check_alive(self) -> None:
        if self._destroyed:
            raise MachineDestroyedError(self._name)

    def __enter__(self) -> StateMachine[C]:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.destroy()

    # --- Replication ---

    def snapshot(self) -> dict[str, Any]:
        """Compact, JSON-compatible record of the current state."""
        self._check_alive()
        return {
            "version": _SNAPSHOT_VERSION,
            "name": self._name,
            "state": self.ordinal_from_name(self._state),
            "elapsed": self.elapsed(),
        }

    def restore(self, data: dict[str, Any]) -> None:
        """Apply a :meth:`snapshot` record without running any hooks."""
        self._check_alive()
        version = data.get("version")
        if version != _SNAPSHOT_VERSION:
            raise SnapshotError(
                f"Unsupported snapshot version {version!r}, expected {_SNAPSHOT_VERSION}"
            )

        name = data.get("name")
        if name is not None and name != self._name:
            raise SnapshotError(
                f"Snapshot is for {name!r}, cannot restore into {self._name!r}"
            )
        ordinal = data.get("state")
        if ordinal is not None and (
            isinstance(ordinal, bool) or not isinstance(ordinal, int)
        ):
            raise SnapshotError(f"State ordinal must be an int, got {ordinal!r}")
        elapsed = data.get("elapsed", 0.0)
        if isinstance(elapsed, bool) or not isinstance(elapsed, (int, float)):
            raise SnapshotError(f"Elapsed must be a number, got {elapsed!r}")

        if ordinal is None:
            self._state = ""
            self._duration = 0
            self._entry_time = 0.0
        else:
            state_name = self.name_from_ordinal(ordinal)
            if state_name is None:
                raise SnapshotError(
                    f"{self._name} has no state at ordinal {ordinal!r}"
                )
            self._state = state_name
            self._duration = self._states[state_name].duration
            self._entry_time = self._clock() - float(elapsed)
        self._registry._publish(self._name, self._state)
