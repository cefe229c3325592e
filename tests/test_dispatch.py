import threading
import time

import mcqueue
from mcqueue.dispatch import Dispatcher
from mcqueue.registry import Registry

from conftest import wait_for


def make_dispatcher(workers=4):
    return Dispatcher(Registry(), Registry(), workers, 'test')


def test_fan_out():

    dispatcher = make_dispatcher()
    received = list()
    lock = threading.Lock()

    def first(message):
        with lock:
            received.append(('first', message))

    def second(message):
        with lock:
            received.append(('second', message))

    dispatcher.observers.add(first)
    dispatcher.observers.add(second)

    assert dispatcher.dispatch({'id': 1}) == 2
    assert wait_for(lambda: len(received) == 2)
    assert sorted(received) == [('first', {'id': 1}), ('second', {'id': 1})]

    dispatcher.close()


def test_no_observers():

    dispatcher = make_dispatcher()
    assert dispatcher.dispatch('ignored') == 0
    dispatcher.close()


def test_raising_observer_is_isolated():

    dispatcher = make_dispatcher()
    delivered = list()
    errors = list()

    def broken(message):
        raise RuntimeError('broken on ' + str(message))

    broken_subscription = dispatcher.observers.add(broken)
    dispatcher.observers.add(delivered.append)
    dispatcher.errors.add(errors.append)

    dispatcher.dispatch('M')
    dispatcher.dispatch('M+1')

    assert wait_for(lambda: len(delivered) == 2 and len(errors) == 2)
    assert sorted(delivered) == ['M', 'M+1']

    for error in errors:
        assert isinstance(error, mcqueue.ObserverError)
        assert isinstance(error.exception, RuntimeError)
        assert error.__cause__ is error.exception
        assert error.subscription is broken_subscription

    assert sorted(error.message for error in errors) == ['M', 'M+1']

    dispatcher.close()


def test_raising_error_observer_is_only_logged():

    dispatcher = make_dispatcher()
    called = threading.Event()

    def broken(error):
        called.set()
        raise RuntimeError('error handler failed')

    dispatcher.errors.add(broken)
    assert dispatcher.report(mcqueue.DecodeError('bad frame')) == 1
    assert called.wait(5)

    dispatcher.close()


def test_unhandled_error_is_logged(caplog):

    dispatcher = make_dispatcher()

    with caplog.at_level('WARNING', logger='mcqueue.dispatch'):
        assert dispatcher.report(mcqueue.DecodeError('bad frame')) == 0

    assert 'bad frame' in caplog.text
    dispatcher.close()


def test_slow_observer_does_not_block_dispatch():

    dispatcher = make_dispatcher(workers=8)
    release = threading.Event()
    fast = list()

    def slow(message):
        release.wait(5)

    dispatcher.observers.add(slow)
    dispatcher.observers.add(fast.append)

    begin = time.time()
    for count in range(3):
        dispatcher.dispatch(count)
    elapsed = time.time() - begin

    # Three slow deliveries are still blocked, yet dispatch() returned
    # promptly and the other callback saw every message.

    assert elapsed < 1
    assert wait_for(lambda: len(fast) == 3)
    assert sorted(fast) == [0, 1, 2]

    release.set()
    dispatcher.close()


def test_closed_dispatcher_drops_work():

    dispatcher = make_dispatcher()
    received = list()
    dispatcher.observers.add(received.append)

    dispatcher.close()
    dispatcher.close()

    assert dispatcher.dispatch('late') == 0
    assert dispatcher.report(RuntimeError('late')) == 0
    assert received == []


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
