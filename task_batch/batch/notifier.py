"""Multi-subscriber change notification."""

from typing import Protocol


class Observer(Protocol):
    """Anything that wants to hear about a change."""

    def update(self) -> None:
        """React to a change notification."""
        ...


class Notifier:
    """Calls the ``update`` hook of every subscribed observer on demand.

    Dispatch works on a snapshot of the subscribers, so observers added during
    a ``notify_all`` call are first reached by the next one, and observers may
    unsubscribe themselves from inside ``update``.
    """

    def __init__(self) -> None:
        self._observers: dict[Observer, None] = {}

    def subscribe(self, observer: Observer) -> None:
        self._observers[observer] = None

    def unsubscribe(self, observer: Observer) -> None:
        self._observers.pop(observer, None)

    def notify_all(self) -> None:
        for observer in list(self._observers):
            observer.update()

    def __len__(self) -> int:
        return len(self._observers)
