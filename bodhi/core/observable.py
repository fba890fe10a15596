# bodhi/core/observable.py
from typing import Callable, Generic, List, TypeVar

T = TypeVar("T")

Subscriber = Callable[[T], None]
Disposer = Callable[[], None]


class Observable(Generic[T]):
    """
    A value holder with synchronous change fan-out.

    subscribe() delivers the current value right away and then every change,
    until the returned disposer is called.
    """

    def __init__(self, value: T):
        self._value = value
        self._subscribers: List[Subscriber] = []

    def get(self) -> T:
        return self._value

    def set(self, value: T):
        self._value = value
        # iterate over a copy so callbacks may unsubscribe while being notified
        for cb in list(self._subscribers):
            cb(value)

    def update(self, fn: Callable[[T], T]):
        self.set(fn(self._value))

    def subscribe(self, callback: Subscriber) -> Disposer:
        self._subscribers.append(callback)
        callback(self._value)

        def dispose():
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass

        return dispose

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
