"""
Live position stream for MapNav.

Positions are pushed to listeners rather than polled. Subscribing
returns a :class:`Subscription` handle; cancelling it is synchronous
and safe to repeat.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Protocol, Tuple

from mapnav.models import Coordinate

logger = logging.getLogger(__name__)

PositionCallback = Callable[[Coordinate], None]


class Subscription:
    """Cancellation handle for a position listener."""

    def __init__(self, cancel: Callable[[], None]) -> None:
        self._cancel: Optional[Callable[[], None]] = cancel

    @property
    def active(self) -> bool:
        return self._cancel is not None

    def cancel(self) -> None:
        """Release the listener. Further calls do nothing."""
        cancel, self._cancel = self._cancel, None
        if cancel is not None:
            cancel()


class PositionSource(Protocol):
    def subscribe(self, callback: PositionCallback) -> Subscription:
        ...


class ManualPositionSource:
    """Position source fed by explicit :meth:`push` calls.

    The Streamlit page pushes the positions the user reports; tests and
    simulations push scripted tracks.
    """

    def __init__(self) -> None:
        # (token, callback); the token identifies one subscription even when
        # the same callback is registered more than once
        self._listeners: List[Tuple[object, PositionCallback]] = []
        self.last_position: Optional[Coordinate] = None

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, callback: PositionCallback) -> Subscription:
        entry = (object(), callback)
        self._listeners.append(entry)
        logger.debug("Position listener added (%d live)", len(self._listeners))

        def _remove() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)
                logger.debug("Position listener removed (%d live)", len(self._listeners))

        return Subscription(_remove)

    def push(self, position: Coordinate) -> None:
        """Deliver ``position`` to every live listener, in subscription order."""
        self.last_position = position
        # A listener may unsubscribe while being notified
        for entry in list(self._listeners):
            if entry in self._listeners:
                entry[1](position)
