import threading

import pytest

import mcqueue
from mcqueue import channel
from mcqueue.address import validate
from mcqueue.transport import MemoryTransport, UdpTransport, select
from mcqueue.config import Settings

group = validate('224.1.2.3', 8001)
other = validate('224.1.2.4', 8001)


def test_select():

    assert isinstance(select('memory', Settings()), MemoryTransport)
    assert isinstance(select('udp', Settings()), UdpTransport)
    assert isinstance(select(None, Settings(transport='memory')), MemoryTransport)

    existing = MemoryTransport()
    assert select(existing) is existing

    with pytest.raises(ValueError):
        select('carrier-pigeon', Settings())


def test_names():

    assert channel.local_name('test-a') == '.\\private$\\test-a'
    assert channel.format_name(group) == 'FormatName:MULTICAST=224.1.2.3:8001'

    for bad in ('', '   '):
        with pytest.raises(ValueError):
            channel.local_name(bad)

    with pytest.raises(TypeError):
        channel.local_name(None)


def test_create_then_reopen(listener):

    transport = MemoryTransport()
    name = listener()
    host = transport.host

    assert not host.exists(channel.local_name(name))

    first = channel.open_inbound(group, name, transport)
    assert host.exists(first.name)
    assert first.binding.references == 1

    second = channel.open_inbound(group, name, transport)
    assert second.binding is first.binding
    assert first.binding.references == 2

    first.close()
    assert host.exists(second.name)

    second.close()
    assert not host.exists(second.name)

    # Closing twice does not release the binding twice.

    second.close()


def test_reopen_with_different_group(listener):

    transport = MemoryTransport()
    name = listener()

    inbound = channel.open_inbound(group, name, transport)

    with pytest.raises(mcqueue.ChannelOpenError, match='already bound'):
        channel.open_inbound(other, name, transport)

    assert inbound.binding.references == 1
    inbound.close()


def test_memory_delivery(listener):

    transport = MemoryTransport()
    inbound = channel.open_inbound(group, listener(), transport)
    elsewhere = channel.open_inbound(other, listener(), transport)
    outbound = channel.open_outbound(group, transport)

    outbound.send(b'frame')
    assert inbound.receive() == b'frame'

    # Nothing was sent to the other group.

    elsewhere.cancel()
    assert elsewhere.receive() is None

    outbound.close()
    inbound.close()
    elsewhere.close()


def test_cancel_wakes_receiver(listener):

    transport = MemoryTransport()
    inbound = channel.open_inbound(group, listener(), transport)
    result = list()

    def receive():
        result.append(inbound.receive())

    thread = threading.Thread(target=receive)
    thread.start()

    inbound.cancel()
    thread.join(5)

    assert not thread.is_alive()
    assert result == [None]

    # Cancelled channels never block.

    assert inbound.receive() is None
    inbound.close()
    inbound.cancel()


def test_shared_binding_competes(listener):

    transport = MemoryTransport()
    name = listener()
    first = channel.open_inbound(group, name, transport)
    second = channel.open_inbound(group, name, transport)
    outbound = channel.open_outbound(group, transport)

    outbound.send(b'one')
    outbound.send(b'two')

    # ZeroMQ balances the frames across the two channels: each one is
    # received exactly once. The timers only matter if that goes wrong.

    timers = [threading.Timer(5, first.cancel), threading.Timer(5, second.cancel)]
    for timer in timers:
        timer.start()

    received = [first.receive(), second.receive()]

    for timer in timers:
        timer.cancel()

    assert None not in received
    assert sorted(received) == [b'one', b'two']

    outbound.close()
    first.close()
    second.close()


def test_open_errors_are_wrapped(listener):

    class Unreachable(MemoryTransport):
        def _bind(self, name, group):
            raise OSError('no multicast route')

        def open_outbound(self, name, group):
            raise OSError('network is unreachable')

    transport = Unreachable()
    name = listener()

    with pytest.raises(mcqueue.ChannelOpenError) as caught:
        channel.open_inbound(group, name, transport)

    assert isinstance(caught.value.__cause__, OSError)
    assert not transport.host.exists(channel.local_name(name))

    with pytest.raises(mcqueue.ChannelOpenError):
        channel.open_outbound(group, transport)


def test_closed_memory_outbound(listener):

    outbound = channel.open_outbound(group, MemoryTransport())
    outbound.close()

    with pytest.raises(OSError):
        outbound.send(b'frame')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
