"""Transport interface.

This is the (small) contract that transport implementations follow. A
transport provides three primitives: create or open a named inbound binding
joined to a multicast group, send a frame to a group, and wait for the next
inbound frame without spinning.

Inbound bindings are named, and the names are scoped to the host (in
practice, this process). Opening a name that already exists attaches to the
existing binding rather than creating a second one; the binding is torn
down when the last channel attached to it is closed.
"""

from __future__ import annotations

import itertools
import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Tuple

import zmq

from ..address import MulticastGroupAddress
from ..config import Settings
from ..errors import ChannelOpenError

log = logging.getLogger(__name__)

zmq_context = zmq.Context.instance()

_sequence = itertools.count()


class Binding(ABC):
    """ A host-local named binding to a multicast group. Any number of
        :class:`InboundChannel` instances may be attached to one binding;
        they compete for the frames it receives.
    """

    def __init__(self, name: str, group: MulticastGroupAddress):
        self.name = name
        self.group = group
        self.references = 0

    def __repr__(self):
        return '%s(%r, %s)' % (type(self).__name__, self.name, self.group)

    @abstractmethod
    def close(self) -> None:
        """Release the underlying socket(s)."""


class Host:
    """ Registry of the named bindings present on this host for a single
        transport backend.
    """

    def __init__(self):
        self._bindings: Dict[str, Binding] = dict()
        self._lock = threading.Lock()

    def __contains__(self, name):
        return self.exists(name)

    def exists(self, name: str) -> bool:
        with self._lock:
            return name in self._bindings

    def acquire(self, name: str, group: MulticastGroupAddress, factory: Callable[[str, MulticastGroupAddress], Binding]) -> Tuple[Binding, bool]:
        """ Return a (binding, created) tuple for *name*. An existing binding
            is reused if there is one; otherwise *factory* is invoked to
            create it. Reusing a binding that is joined to a different group
            than the one requested raises :class:`ChannelOpenError`.
        """

        with self._lock:
            try:
                binding = self._bindings[name]
            except KeyError:
                binding = factory(name, group)
                self._bindings[name] = binding
                created = True
            else:
                if binding.group != group:
                    raise ChannelOpenError('%r is already bound to %s, cannot bind it to %s' % (name, binding.group, group))
                created = False

            binding.references += 1

        return binding, created

    def release(self, binding: Binding) -> None:
        """ Drop one reference to *binding*, closing it if that was the
            last one.
        """

        with self._lock:
            binding.references -= 1

            if binding.references > 0:
                return

            if self._bindings.get(binding.name) is binding:
                del self._bindings[binding.name]

        log.debug('closing binding %r', binding.name)
        binding.close()

    def bindings(self, group: Optional[MulticastGroupAddress] = None) -> List[Binding]:
        """ Return a snapshot of the current bindings, optionally limited to
            those joined to *group*.
        """

        with self._lock:
            bindings = list(self._bindings.values())

        if group is None:
            return bindings

        return [binding for binding in bindings if binding.group == group]


class InboundChannel(ABC):
    """ One receive handle attached to a :class:`Binding`. :func:`receive`
        blocks the calling thread in a :class:`zmq.Poller` until a frame
        arrives or :func:`cancel` is called from any other thread.

        A channel is intended to be driven by exactly one receiving thread;
        :func:`close` should be called from that same thread once it is
        done receiving, or from any thread if receiving never started.
    """

    poll_interval = 10000

    def __init__(self, transport: Transport, binding: Binding):
        self.transport = transport
        self.binding = binding
        self.cancelled = False
        self.closed = False
        self._lock = threading.Lock()

        internal = 'inproc://mcqueue.InboundChannel:signal:%d' % (next(_sequence))
        self._signal_rx = zmq_context.socket(zmq.PAIR)
        self._signal_rx.setsockopt(zmq.LINGER, 0)
        self._signal_rx.bind(internal)
        self._signal_tx = zmq_context.socket(zmq.PAIR)
        self._signal_tx.setsockopt(zmq.LINGER, 0)
        self._signal_tx.connect(internal)

    def __repr__(self):
        return '%s(%r)' % (type(self).__name__, self.name)

    @property
    def name(self) -> str:
        return self.binding.name

    @property
    def group(self) -> MulticastGroupAddress:
        return self.binding.group

    @property
    @abstractmethod
    def target(self):
        """The socket or file descriptor polled for inbound frames."""

    @abstractmethod
    def _read(self) -> Optional[bytes]:
        """ Read one frame without blocking. Returns None if another
            channel attached to the same binding got there first.
        """

    @abstractmethod
    def _close(self) -> None:
        """Release any sockets owned by this channel."""

    def receive(self) -> Optional[bytes]:
        """ Block until the next frame arrives and return it. Returns None,
            immediately or whenever it happens, once the channel has been
            cancelled.
        """

        poller = zmq.Poller()
        poller.register(self._signal_rx, zmq.POLLIN)
        poller.register(self.target, zmq.POLLIN)

        while not self.cancelled:
            for active, _flag in poller.poll(self.poll_interval):
                if active == self._signal_rx:
                    return None
                elif active == self.target:
                    frame = self._read()
                    if frame is not None and not self.cancelled:
                        return frame

        return None

    def cancel(self) -> None:
        """ Wake any thread blocked in :func:`receive`; it and every later
            call will return None.
        """

        with self._lock:
            if self.cancelled or self.closed:
                self.cancelled = True
                return

            self.cancelled = True
            self._signal_tx.send(b'')

    def close(self) -> None:
        with self._lock:
            if self.closed:
                return
            self.closed = True
            self.cancelled = True

            self._signal_tx.close()
            self._signal_rx.close()
            self._close()

        self.transport.host.release(self.binding)


class OutboundChannel(ABC):
    """Send-only handle addressed to a multicast group."""

    #: Largest frame, in bytes, the transport will accept. None if unlimited.
    max_frame: Optional[int] = None

    def __init__(self, transport: Transport, name: str, group: MulticastGroupAddress):
        self.transport = transport
        self.name = name
        self.group = group
        self.closed = False

    def __repr__(self):
        return '%s(%r)' % (type(self).__name__, self.name)

    @abstractmethod
    def send(self, frame: bytes) -> None:
        """Transmit one frame to every member of the group."""

    @abstractmethod
    def close(self) -> None:
        """Release the underlying socket."""


class Transport(ABC):
    """ Entry point for a transport backend. Subclasses provide a class-level
        :class:`Host` so that bindings are shared by every instance of the
        same backend in this process.
    """

    name: str = ''
    host: Host

    def __init__(self, settings: Optional[Settings] = None):
        if settings is None:
            settings = Settings()
        self.settings = settings

    def __repr__(self):
        return '%s()' % (type(self).__name__)

    def open_inbound(self, name: str, group: MulticastGroupAddress) -> Tuple[InboundChannel, bool]:
        """ Attach a new :class:`InboundChannel` to the binding called *name*,
            creating the binding if it does not yet exist. Returns a
            (channel, created) tuple.
        """

        binding, created = self.host.acquire(name, group, self._bind)

        try:
            channel = self._inbound(binding)
        except BaseException:
            self.host.release(binding)
            raise

        return channel, created

    @abstractmethod
    def _bind(self, name: str, group: MulticastGroupAddress) -> Binding:
        """Create a new binding joined to *group*."""

    @abstractmethod
    def _inbound(self, binding: Binding) -> InboundChannel:
        """Attach a new channel to an existing *binding*."""

    @abstractmethod
    def open_outbound(self, name: str, group: MulticastGroupAddress) -> OutboundChannel:
        """Open a send-only channel addressed to *group*."""


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
