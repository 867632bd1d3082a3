"""State definitions, callback aliases, and errors for tick-state."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

# Every hook receives the context payload given to change_state (None on
# auto-activation and timer-driven transitions).
Callback = Callable[[Any], Any]


@dataclass(frozen=True, slots=True)
class State:
    """A named state. ``duration`` of 0 means the state lasts indefinitely.

    ``enter`` gates entry (truthy return allows it), ``started`` runs once the
    state is committed, ``completed`` runs when the state is left. A state
    with a positive duration must have a ``completed`` hook returning the
    name of the next state.
    """

    name: str
    duration: float = 0
    enter: Callback | None = None
    started: Callback | None = None
    completed: Callback | None = None

    @property
    def timed(self) -> bool:
        return self.duration > 0


class StateMachineError(Exception):
    """Base class for tick-state errors."""


class StateConfigError(StateMachineError):
    """Raised by ``update()`` when a timed state is misconfigured."""

    def __init__(self, identity: str, state: str, message: str) -> None:
        self.identity = identity
        self.state = state
        super().__init__(f"{identity}: state {state!r}: {message}")


class TransitionDepthError(StateMachineError):
    """Raised when nested transitions exceed the machine's ``max_depth``."""

    def __init__(self, identity: str, depth: int) -> None:
        self.identity = identity
        self.depth = depth
        super().__init__(
            f"{identity}: nested change_state depth {depth} exceeded"
        )


class MachineDestroyedError(StateMachineError):
    """Raised when operating on a machine after ``destroy()``."""

    def __init__(self, identity: str) -> None:
        self.identity = identity
        super().__init__(f"State machine {identity!r} has been destroyed")


class DuplicateIdentityError(StateMachineError, KeyError):
    """Raised when registering an identity that is already live."""

    def __init__(self, identity: str) -> None:
        self.identity = identity
        super().__init__(f"Identity {identity!r} is already registered")

    def __str__(self) -> str:
        return str(self.args[0])


class SnapshotError(StateMachineError):
    """Raised on restore failures (version mismatch, unknown ordinal)."""
