""" In-process multicast transport. Frames sent to a group are delivered to
    every binding in this process joined to the same group, with the same
    competing-consumer semantics as the UDP transport when several channels
    share one binding. Useful for tests, and for applications where every
    member of the group lives in one process.
"""

from __future__ import annotations

import itertools
import logging
import threading

import zmq

from .base import Binding, Host, InboundChannel, OutboundChannel, Transport, zmq_context

log = logging.getLogger(__name__)

_sequence = itertools.count()


class MemoryBinding(Binding):
    """ A PUSH socket on an inproc endpoint; each attached channel connects
        a PULL socket to it, and ZeroMQ balances frames across them.
    """

    def __init__(self, name, group):
        Binding.__init__(self, name, group)

        self.endpoint = 'inproc://mcqueue.memory:%d' % (next(_sequence))
        self.closed = False
        self.lock = threading.Lock()

        self.socket = zmq_context.socket(zmq.PUSH)
        self.socket.setsockopt(zmq.LINGER, 0)
        self.socket.bind(self.endpoint)

    def deliver(self, frame: bytes) -> bool:
        """ Queue *frame* for one of the attached channels. Returns False if
            the frame was dropped, either because nothing is attached or
            because the attached channels are not keeping up.
        """

        with self.lock:
            if self.closed:
                return False

            try:
                self.socket.send(frame, zmq.NOBLOCK)
            except zmq.Again:
                log.debug('%r dropped a frame, no receiver ready', self.name)
                return False

        return True

    def close(self):
        with self.lock:
            self.closed = True
            self.socket.close()


class MemoryInbound(InboundChannel):

    def __init__(self, transport, binding):
        InboundChannel.__init__(self, transport, binding)

        try:
            self.socket = zmq_context.socket(zmq.PULL)
            self.socket.setsockopt(zmq.LINGER, 0)
            self.socket.connect(binding.endpoint)
        except zmq.ZMQError:
            self._signal_tx.close()
            self._signal_rx.close()
            raise

    @property
    def target(self):
        return self.socket

    def _read(self):
        try:
            return self.socket.recv(zmq.NOBLOCK)
        except zmq.Again:
            return None

    def _close(self):
        self.socket.close()


class MemoryOutbound(OutboundChannel):

    def send(self, frame):

        if self.closed:
            raise OSError('channel is closed: ' + self.name)

        for binding in self.transport.host.bindings(self.group):
            binding.deliver(frame)

    def close(self):
        self.closed = True


class MemoryTransport(Transport):

    name = 'memory'
    host = Host()

    def _bind(self, name, group):
        return MemoryBinding(name, group)

    def _inbound(self, binding):
        return MemoryInbound(self, binding)

    def open_outbound(self, name, group):
        return MemoryOutbound(self, name, group)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
