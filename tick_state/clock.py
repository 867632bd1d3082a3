"""Fixed-timestep clock usable as a state machine time source."""

import math


class TickClock:
    """Counts ticks at a fixed rate. ``now()`` is the simulated time in seconds.

    The clock is itself callable, so it can be handed to a StateMachine as
    its ``clock``.
    """

    def __init__(self, tps: int) -> None:
        if tps <= 0:
            raise ValueError("tps must be positive")
        self._tps = tps
        self._dt = 1.0 / tps
        self._tick_number = 0

    @property
    def tps(self) -> int:
        return self._tps

    @property
    def dt(self) -> float:
        return self._dt

    @property
    def tick_number(self) -> int:
        return self._tick_number

    def now(self) -> float:
        # Dividing the tick count keeps whole-second boundaries exact.
        return self._tick_number / self._tps

    __call__ = now

    def ticks_for(self, seconds: float) -> int:
        """Whole ticks needed for ``seconds`` of simulated time to pass."""
        if seconds <= 0:
            return 0
        return math.ceil(seconds * self._tps - 1e-9)

    def advance(self, ticks: int = 1) -> int:
        self._tick_number += ticks
        return self._tick_number

    def reset(self, tick_number: int = 0) -> None:
        self._tick_number = tick_number
