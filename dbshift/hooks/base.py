"""Base classes for change listeners."""

from abc import ABC, abstractmethod
from typing import Callable


class ChangeListener(ABC):
    """Receives the name of a table or resource whenever it changes."""

    def __init__(self) -> None:
        self.enabled = True

    @abstractmethod
    def on_change(self, name: str) -> None:
        """Handle a change notification. Override in subclasses.

        Args:
            name: Table or resource that changed
        """
        ...

    @property
    def listener_type(self) -> str:
        """Get the type name of this listener."""
        return self.__class__.__name__

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(enabled={self.enabled})"


class CallbackListener(ChangeListener):
    """Adapts a plain callable to the listener interface."""

    def __init__(self, callback: Callable[[str], None]) -> None:
        super().__init__()
        self.callback = callback

    def on_change(self, name: str) -> None:
        self.callback(name)

    @property
    def listener_type(self) -> str:
        return getattr(self.callback, '__name__', type(self.callback).__name__)
