""" Delivery of decoded messages to registered callbacks.

    Every callback invocation is submitted to a worker pool as its own unit
    of work; the receive loop never waits for a callback to run, let alone
    finish. The consequence is relaxed ordering: if messages A and B arrive
    in that order, a given callback may still see B before A when the pool
    is busy. Callers that need strict ordering must serialize on their own,
    for example by sequence numbers in the message body.

    A callback that raises does not affect any other callback, nor any other
    message. The exception is logged, and reported to the error callbacks
    wrapped in an :class:`~mcqueue.errors.ObserverError`.
"""

from __future__ import annotations

import concurrent.futures
import logging
from typing import Any, Optional

from .config import default_workers
from .errors import ObserverError
from .registry import Registry, Subscription

log = logging.getLogger(__name__)


class Dispatcher:

    def __init__(self, observers: Registry, errors: Registry, workers: int = default_workers, name: Optional[str] = None):
        self.observers = observers
        self.errors = errors

        prefix = 'mcqueue-dispatch'
        if name:
            prefix = prefix + '-' + name

        self.workers = concurrent.futures.ThreadPoolExecutor(max_workers=workers, thread_name_prefix=prefix)
        self.shutdown = False

    def dispatch(self, message: Any) -> int:
        """ Schedule delivery of *message* to every registered callback.
            Returns the number of deliveries scheduled.
        """

        count = 0

        for subscription in self.observers.snapshot():
            if self._submit(self._deliver, subscription, message):
                count += 1

        return count

    def report(self, error: BaseException) -> int:
        """ Schedule delivery of *error* to every registered error callback.
            With no error callbacks registered the error is only logged.
        """

        subscriptions = self.errors.snapshot()

        if not subscriptions:
            log.warning('unhandled %s: %s', type(error).__name__, error)
            return 0

        count = 0

        for subscription in subscriptions:
            if self._submit(self._notify, subscription, error):
                count += 1

        return count

    def close(self) -> None:
        """ Stop accepting new work. Deliveries already scheduled may still
            run to completion; this call does not wait for them.
        """

        self.shutdown = True
        self.workers.shutdown(wait=False)

    def _submit(self, method, subscription, argument):

        if self.shutdown:
            return False

        try:
            self.workers.submit(method, subscription, argument)
        except RuntimeError:
            # The pool was shut down between the check and the submit.
            log.debug('dropped delivery to %r, dispatcher is closed', subscription)
            return False

        return True

    def _deliver(self, subscription: Subscription, message: Any) -> None:

        try:
            subscription.callback(message)
        except Exception as exc:
            log.exception('%r failed to handle a message', subscription)
            self.report(ObserverError(subscription, message, exc))

    def _notify(self, subscription: Subscription, error: BaseException) -> None:

        # Failures here are only logged; reporting them would recurse.

        try:
            subscription.callback(error)
        except Exception:
            log.exception('error callback %r failed', subscription)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
