"""tick-state - Per-entity state machines with timed states and a shared state registry."""
from __future__ import annotations

from tick_state.clock import TickClock
from tick_state.machine import StateMachine
from tick_state.registry import StateRegistry, default_registry, get_current_state
from tick_state.ticker import Ticker
from tick_state.types import (
    DuplicateIdentityError,
    MachineDestroyedError,
    SnapshotError,
    State,
    StateConfigError,
    StateMachineError,
    TransitionDepthError,
)

__all__ = [
    "StateMachine",
    "State",
    "StateRegistry",
    "default_registry",
    "get_current_state",
    "TickClock",
    "Ticker",
    "StateMachineError",
    "StateConfigError",
    "TransitionDepthError",
    "MachineDestroyedError",
    "DuplicateIdentityError",
    "SnapshotError",
]
