"""Online/offline state with transition listeners."""

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

Listener = Callable[[bool], None]


class Connectivity:
    """Tracks whether the client is online and notifies on transitions.

    Stores flip it offline when a cloud call fails for connectivity
    reasons; whoever observes the network coming back calls
    :meth:`set_online` with True, which fires the listeners.
    """

    def __init__(self, online: bool = True):
        self._online = online
        self._listeners: list[Listener] = []

    @property
    def is_online(self) -> bool:
        return self._online

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_online(self, online: bool) -> None:
        """Record the new state and notify listeners if it changed."""
        if online == self._online:
            return
        self._online = online
        logger.info("Connectivity changed: %s", "online" if online else "offline")
        for listener in list(self._listeners):
            listener(online)

    def mark_offline(self) -> None:
        self.set_online(False)
