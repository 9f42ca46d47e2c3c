"""Synchronous fan-out of change notifications."""

import logging
from typing import Callable, List, Union

from .base import ChangeListener, CallbackListener

logger = logging.getLogger(__name__)

ListenerLike = Union[ChangeListener, Callable[[str], None]]


class ChangeNotifier:
    """Registry of change listeners, notified in registration order."""

    def __init__(self) -> None:
        self.listeners: List[ChangeListener] = []

    def register(self, listener: ListenerLike) -> ChangeListener:
        """Register a listener or plain callable.

        Returns:
            The registered listener handle, needed to unregister a callable
        """
        if not isinstance(listener, ChangeListener):
            listener = CallbackListener(listener)
        self.listeners.append(listener)
        logger.debug(f"Registered change listener {listener.listener_type}")
        return listener

    def unregister(self, listener: ListenerLike) -> bool:
        """Remove a listener.

        Accepts either the handle returned by :meth:`register` or the
        callable that was registered.

        Returns:
            True if a listener was removed
        """
        for registered in self.listeners:
            if registered is listener or (
                    isinstance(registered, CallbackListener)
                    and registered.callback is listener):
                self.listeners.remove(registered)
                return True
        return False

    def notify(self, name: str) -> None:
        """Deliver a change notification to every enabled listener.

        A failing listener is logged and does not stop delivery to the rest.
        """
        for listener in list(self.listeners):
            if not listener.enabled:
                continue

            try:
                listener.on_change(name)
            except Exception as e:
                logger.error(f"Error in change listener {listener.listener_type}: {e}")

    def __len__(self) -> int:
        return len(self.listeners)
