"""Ticker - fixed-rate host loop that polls state machine timers."""
from __future__ import annotations

import logging
import time
from typing import Any

from tick_state.clock import TickClock
from tick_state.machine import StateMachine
from tick_state.registry import StateRegistry

logger = logging.getLogger(__name__)


class Ticker:
    """Owns a clock and a registry and calls ``update()`` on its machines.

    Machines created with :meth:`spawn` read time from the ticker's clock, so
    durations are measured in simulated seconds (``tick_number / tps``).
    """

    def __init__(self, tps: int = 20, registry: StateRegistry | None = None) -> None:
        self._clock = TickClock(tps)
        self._registry = registry if registry is not None else StateRegistry()
        self._machines: list[StateMachine[Any]] = []
        self._stop_requested: bool = False

    @property
    def clock(self) -> TickClock:
        return self._clock

    @property
    def registry(self) -> StateRegistry:
        return self._registry

    def spawn(self, name: str | None = None, **kwargs: Any) -> StateMachine[Any]:
        """Create a machine bound to this ticker's clock and registry."""
        machine: StateMachine[Any] = StateMachine(
            name, registry=self._registry, clock=self._clock, **kwargs
        )
        self._machines.append(machine)
        return machine

    def add(self, machine: StateMachine[Any]) -> None:
        """Track an existing machine. It keeps its own clock and registry."""
        if machine not in self._machines:
            self._machines.append(machine)

    def remove(self, machine: StateMachine[Any]) -> None:
        try:
            self._machines.remove(machine)
        except ValueError:
            pass

    def machines(self) -> list[StateMachine[Any]]:
        """Live tracked machines, in the order they were added."""
        return [m for m in self._machines if not m.destroyed]

    def request_stop(self) -> None:
        self._stop_requested = True

    def _tick(self) -> None:
        self._clock.advance()
        for machine in list(self._machines):
            if machine.destroyed:
                self._machines.remove(machine)
                continue
            machine.update()
            if self._stop_requested:
                break

    def step(self) -> None:
        self._stop_requested = False
        self._tick()

    def run(self, n: int) -> None:
        self._stop_requested = False
        for _ in range(n):
            self._tick()
            if self._stop_requested:
                break

    def run_for(self, seconds: float) -> None:
        """Run enough ticks for ``seconds`` of simulated time to pass."""
        self.run(self._clock.ticks_for(seconds))

    def run_forever(self) -> None:
        self._stop_requested = False
        logger.debug("Ticker running at %d tps", self._clock.tps)
        dt = self._clock.dt
        while not self._stop_requested:
            start = time.monotonic()
            self._tick()
            if self._stop_requested:
                break
            elapsed = time.monotonic() - start
            sleep_time = dt - elapsed
            if sleep_time > 0:
                time.sleep(sleep_time)
        logger.debug("Ticker stopped at tick %d", self._clock.tick_number)
