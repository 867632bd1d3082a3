"""StateRegistry - shared identity to current-state lookup."""
from __future__ import annotations

import logging
import threading

from tick_state.types import DuplicateIdentityError

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "StateMachine"


class StateRegistry:
    """Maps machine identities to the name of their current state.

    Holds strings only, never the machines themselves. Entries are written by
    the owning machine on every committed transition and removed when it is
    destroyed. Safe to share between threads.
    """

    def __init__(self, prefix: str = DEFAULT_PREFIX) -> None:
        self._prefix = prefix
        self._states: dict[str, str] = {}
        self._counter: int = 0
        self._lock = threading.Lock()

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def counter(self) -> int:
        """Number of auto identities issued and not yet released."""
        return self._counter

    # --- Queries ---

    def get(self, identity: str) -> str | None:
        """Current state of ``identity``. None if it is not registered."""
        with self._lock:
            return self._states.get(identity)

    def has(self, identity: str) -> bool:
        with self._lock:
            return identity in self._states

    def identities(self) -> list[str]:
        """List all registered identities in registration order."""
        with self._lock:
            return list(self._states)

    def __contains__(self, identity: object) -> bool:
        with self._lock:
            return identity in self._states

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    # --- Internal (called by StateMachine) ---

    def _register(self, identity: str | None) -> tuple[str, bool]:
        """Claim an identity, synthesizing one when None.

        Returns ``(identity, auto)``. Raises DuplicateIdentityError if an
        explicit identity is already registered.
        """
        with self._lock:
            if identity is None:
                self._counter += 1
                candidate = f"{self._prefix}{self._counter}"
                while candidate in self._states:
                    self._counter += 1
                    candidate = f"{self._prefix}{self._counter}"
                self._states[candidate] = ""
                return candidate, True
            if identity in self._states:
                raise DuplicateIdentityError(identity)
            self._states[identity] = ""
            return identity, False

    def _publish(self, identity: str, state: str) -> None:
        with self._lock:
            if identity in self._states:
                self._states[identity] = state

    def _release(self, identity: str, auto: bool) -> None:
        """Drop ``identity``. Auto identities also give back their counter slot."""
        with self._lock:
            if self._states.pop(identity, None) is None:
                return
            if auto and self._counter > 0:
                self._counter -= 1
        logger.debug("Released identity %s", identity)


_default_registry = StateRegistry()


def default_registry() -> StateRegistry:
    """Process-wide registry used by machines created without ``registry=``."""
    return _default_registry


def get_current_state(
    identity: str, registry: StateRegistry | None = None
) -> str | None:
    """Current state name for ``identity``, or None if it is not registered."""
    if registry is None:
        registry = _default_registry
    return registry.get(identity)
