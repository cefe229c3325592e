""" The :class:`MulticastQueue` is the primary public interface: a typed
    publish/subscribe endpoint joined to one multicast group.

    Example::

        queue = mcqueue.MulticastQueue('239.1.2.3', 8001, 'my-listener')

        @queue.on_message
        def handle(message):
            print(message)

        queue.send({'id': 1})
        ...
        queue.close()
"""

from __future__ import annotations

import enum
import ipaddress
import logging
import threading
from typing import Any, Callable, Generic, Optional, Type, TypeVar, Union

import zmq

from . import channel
from . import codec as codecs
from .address import MulticastGroupAddress, validate
from .config import Settings
from .dispatch import Dispatcher
from .errors import ClosedError, SendError
from .loop import ReceiveLoop
from .registry import Registry, Subscription
from . import transport as transports

log = logging.getLogger(__name__)

T = TypeVar('T')


class Lifecycle(enum.Enum):
    OPEN = 'open'
    CLOSED = 'closed'


class MulticastQueue(Generic[T]):
    """ Join the multicast group at *ip* and *port*, and start receiving
        broadcasts from the group immediately.

        :param ip: Group address, dotted-quad text or an
            :class:`ipaddress.IPv4Address`, in the interval 224.0.0.0 to
            239.255.255.255.
        :param port: Group port; conventionally above 1024, 8001 is common.
        :param listener: Name for this queue's inbound channel, unique on
            this host. Queues sharing a listener name share one inbound
            channel and compete for its messages.
        :param kind: Type of the messages exchanged. Inbound messages that
            do not decode to this type are reported as
            :class:`~mcqueue.errors.DecodeError` instead of being delivered.
        :param codec: :class:`~mcqueue.codec.Codec` instance; every member
            of the group must use the same codec.
        :param transport: Transport backend name or instance.
        :param workers: Number of threads delivering messages to callbacks.

        Construction raises :class:`~mcqueue.errors.InvalidAddress` or
        :class:`~mcqueue.errors.ChannelOpenError`; in either case nothing
        is left open.
    """

    def __init__(self, ip: Union[str, ipaddress.IPv4Address], port: int, listener: str,
                 kind: Type[T] = object, codec: Optional[codecs.Codec] = None,
                 transport: Union[str, transports.Transport, None] = None,
                 workers: Optional[int] = None, settings: Optional[Settings] = None):

        self.group: MulticastGroupAddress = validate(ip, port)
        self.local_name = channel.local_name(listener)
        self.format_name = channel.format_name(self.group)
        self.listener = listener

        if self.group.port <= 1024:
            log.warning('group port %d is privileged or reserved, ports above 1024 are conventional', self.group.port)

        if settings is None:
            settings = Settings.from_environ()

        if codec is None:
            codec = codecs.default()

        if workers is None:
            workers = settings.workers

        self.kind = kind
        self.codec = codec
        self.transport = transports.select(transport, settings)

        self.observers = Registry()
        self.errors = Registry()

        self._state = Lifecycle.OPEN
        self._lock = threading.Lock()
        self._send_lock = threading.Lock()

        self.dispatcher = Dispatcher(self.observers, self.errors, workers, listener)
        self.loop = None
        self.outbound = None

        inbound = None

        try:
            inbound = channel.open_inbound(self.group, listener, self.transport)
            self.loop = ReceiveLoop(inbound, self._decode, self.dispatcher, listener)
            self.loop.start()
            self.outbound = channel.open_outbound(self.group, self.transport)
        except BaseException:
            self._rollback(inbound)
            raise

        log.debug('%r open', self)

    def __repr__(self):
        return '<MulticastQueue %s %r: %s>' % (self.group, self.listener, self._state.value)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    @property
    def closed(self) -> bool:
        return self._state is Lifecycle.CLOSED

    def send(self, message: T) -> None:
        """ Broadcast *message* to every member of the group, including any
            queue on this host listening to the same group. Returns as soon
            as the transport accepts the message; there is no
            acknowledgment from any recipient.

            Raises :class:`~mcqueue.errors.SendError` if the message cannot
            be encoded or the transport rejects it, and
            :class:`~mcqueue.errors.ClosedError` if the queue is closed.
        """

        if self._state is Lifecycle.CLOSED:
            raise ClosedError('cannot send, %r is closed' % (self))

        frame = codecs.pack(self.codec, message, self.kind)

        maximum = self.outbound.max_frame
        if maximum is not None and len(frame) > maximum:
            raise SendError('message too large: %d bytes encoded, %s allows %d' % (len(frame), self.transport.name, maximum))

        with self._send_lock:
            if self._state is Lifecycle.CLOSED:
                raise ClosedError('cannot send, %r is closed' % (self))

            try:
                self.outbound.send(frame)
            except (OSError, zmq.ZMQError) as exc:
                raise SendError('%s rejected the message: %s' % (self.format_name, exc)) from exc

    def subscribe(self, callback: Callable[[T], Any]) -> Subscription:
        """ Register *callback* to be invoked with every message received.
            Callbacks run on worker threads and may run concurrently with
            each other, including for the same callback. Returns the handle
            to pass to :func:`unsubscribe`.
        """

        return self.observers.add(callback)

    def on_message(self, callback: Callable[[T], Any]) -> Callable[[T], Any]:
        """ Decorator form of :func:`subscribe`; returns *callback*.
        """

        self.subscribe(callback)
        return callback

    def subscribe_errors(self, callback: Callable[[Exception], Any]) -> Subscription:
        """ Register *callback* to be invoked with every error encountered
            on the receiving side: frames that fail to decode, callbacks
            that raise, and transport failures.
        """

        return self.errors.add(callback)

    def unsubscribe(self, subscription: Subscription) -> bool:
        """ Remove a message or error callback. Returns False if it was not
            registered, which is not an error.
        """

        if self.observers.remove(subscription):
            return True

        return self.errors.remove(subscription)

    def close(self) -> None:
        """ Release the inbound and then the outbound channel. Calling
            :func:`close` more than once is harmless. Deliveries already
            scheduled may still run after this returns.
        """

        with self._lock:
            if self._state is Lifecycle.CLOSED:
                return
            self._state = Lifecycle.CLOSED

        self.loop.close()

        with self._send_lock:
            self.outbound.close()

        self.dispatcher.close()
        log.debug('%r closed', self)

    dispose = close

    def _decode(self, frame: bytes) -> T:
        return codecs.unpack(self.codec, frame, self.kind)

    def _rollback(self, inbound):

        self._state = Lifecycle.CLOSED

        if self.loop is not None:
            self.loop.close()
        elif inbound is not None:
            inbound.close()

        if self.outbound is not None:
            self.outbound.close()

        self.dispatcher.close()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
