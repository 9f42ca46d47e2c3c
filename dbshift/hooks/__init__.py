"""Change notification listeners."""

from .base import ChangeListener, CallbackListener
from .notifier import ChangeNotifier

__all__ = ['ChangeListener', 'CallbackListener', 'ChangeNotifier']
