"""
Minimal observable state holder shared by the client stores.
"""

import logging
from typing import Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

S = TypeVar("S")
Listener = Callable[[S], None]


class Observable(Generic[S]):
    """
    Holds one immutable state value and notifies listeners on replacement.

    State is only ever swapped as a whole, so listeners never observe a
    half-applied change.
    """

    def __init__(self, initial: S):
        self._state = initial
        self._listeners: List[Listener] = []

    @property
    def state(self) -> S:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener and call it once with the current state.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)
        listener(self._state)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, new_state: S) -> None:
        if new_state is self._state:
            return
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:
                # Remaining listeners still run
                logger.exception(f"State listener {listener!r} failed")
