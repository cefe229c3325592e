""" Thread-safe registry of callbacks. Each registration returns a
    :class:`Subscription` handle, which is the only way to remove the
    callback again.
"""

from __future__ import annotations

import itertools
import threading
from typing import Callable, Dict, List

_sequence = itertools.count(1)


class Subscription:
    """ Handle for one registered callback. A subscription can be cancelled
        via :func:`cancel`, or via the ``unsubscribe`` method of whatever
        issued it; both are no-ops if it is already cancelled.
    """

    def __init__(self, registry: Registry, callback: Callable):
        self.id = next(_sequence)
        self.callback = callback
        self._registry = registry

    def __repr__(self):
        name = getattr(self.callback, '__qualname__', None) or repr(self.callback)
        return '<Subscription %d: %s>' % (self.id, name)

    @property
    def active(self) -> bool:
        return self in self._registry

    def cancel(self) -> bool:
        return self._registry.remove(self)


class Registry:

    def __init__(self):
        self._subscriptions: Dict[int, Subscription] = dict()
        self._lock = threading.Lock()

    def __contains__(self, subscription):
        with self._lock:
            return self._subscriptions.get(subscription.id) is subscription

    def __len__(self):
        with self._lock:
            return len(self._subscriptions)

    def add(self, callback: Callable) -> Subscription:

        if callable(callback):
            pass
        else:
            raise TypeError('callback must be callable')

        subscription = Subscription(self, callback)

        with self._lock:
            self._subscriptions[subscription.id] = subscription

        return subscription

    def remove(self, subscription: Subscription) -> bool:
        """ Remove *subscription*. Returns True if it was registered here,
            False otherwise.
        """

        with self._lock:
            if self._subscriptions.get(subscription.id) is subscription:
                del self._subscriptions[subscription.id]
                return True

        return False

    def snapshot(self) -> List[Subscription]:
        """ Return the current subscriptions. The caller iterates over the
            returned list without holding any lock.
        """

        with self._lock:
            return list(self._subscriptions.values())

    def clear(self) -> None:
        with self._lock:
            self._subscriptions.clear()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
