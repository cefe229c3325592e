import os
import time
import uuid

import pytest

import mcqueue


def wait_for(condition, timeout=5):
    """ Poll *condition* until it returns something true, or *timeout*
        seconds elapse. Returns the last value *condition* returned.
    """

    expiration = time.time() + timeout

    while True:
        result = condition()
        if result or time.time() > expiration:
            return result
        time.sleep(0.005)


@pytest.fixture
def listener():
    """ Unique listener names, so that no two tests share a binding.
    """

    def make(prefix='test'):
        return '%s-%s' % (prefix, uuid.uuid4().hex[:12])

    return make


@pytest.fixture
def make_queue():
    """ Factory for in-process queues; every queue created is closed when
        the test ends.
    """

    created = list()

    def make(ip='224.1.2.3', port=8001, listener=None, **kwargs):
        if listener is None:
            listener = 'test-' + uuid.uuid4().hex[:12]
        kwargs.setdefault('transport', 'memory')
        queue = mcqueue.MulticastQueue(ip, port, listener, **kwargs)
        created.append(queue)
        return queue

    yield make

    for queue in created:
        queue.close()


def pytest_collection_modifyitems(config, items):

    if os.environ.get('MCQUEUE_NETWORK_TESTS') == '1':
        return

    skip = pytest.mark.skip(reason='set MCQUEUE_NETWORK_TESTS=1 to run')
    for item in items:
        if 'network' in item.keywords:
            item.add_marker(skip)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
