r""" The receive loop: a dedicated thread per queue that waits for the next
    inbound frame, decodes it, hands the result to the dispatcher, and waits
    again, until the loop is closed.

    States::

        IDLE --start()--> ARMED --frame--> COMPLETING --re-arm--> ARMED
          \                  \                                      ...
           `---close()--------`----------close()----------> CLOSED

    Each transition into ARMED counts as one arm request; after N
    completions the loop has issued N+1 arm requests. A frame that fails to
    decode is reported on the error path and the loop re-arms as usual.
"""

from __future__ import annotations

import enum
import logging
import threading
from typing import Any, Callable, Optional

import zmq

from .dispatch import Dispatcher
from .errors import DecodeError, ReceiveError
from .transport import InboundChannel

log = logging.getLogger(__name__)


class State(enum.Enum):
    IDLE = 'idle'
    ARMED = 'armed'
    COMPLETING = 'completing'
    CLOSED = 'closed'


class ReceiveLoop:

    #: Seconds to wait for the loop thread in :func:`close`.
    join_timeout = 2.0

    #: Seconds to back off after the transport fails outright.
    error_delay = 0.1

    def __init__(self, channel: InboundChannel, decode: Callable[[bytes], Any], dispatcher: Dispatcher, name: Optional[str] = None):
        self.channel = channel
        self.decode = decode
        self.dispatcher = dispatcher

        self.state = State.IDLE
        self.arms = 0
        self.completions = 0

        self._lock = threading.Lock()
        self._closing = threading.Event()

        if name is None:
            name = channel.name

        self.thread = threading.Thread(target=self.run, name='mcqueue-receive-' + name)
        self.thread.daemon = True

    def __repr__(self):
        return '<ReceiveLoop %s: %s, %d armed, %d completed>' % (self.channel.name, self.state.value, self.arms, self.completions)

    @property
    def closed(self) -> bool:
        return self.state is State.CLOSED

    def start(self) -> None:
        """ Issue the first arm request and start the loop thread. Frames
            arriving on the channel from this point on will be received.
        """

        with self._lock:
            if self.state is not State.IDLE:
                raise RuntimeError('receive loop already started')
            self._arm()

        try:
            self.thread.start()
        except RuntimeError:
            with self._lock:
                self.state = State.IDLE
                self.arms = 0
            raise

    def close(self) -> None:
        """ Transition to CLOSED. Any outstanding receive is cancelled and its
            result, if any, discarded. The inbound channel is released by the
            loop thread as it exits; if the loop never started, it is
            released here instead.
        """

        with self._lock:
            if self.state is State.CLOSED:
                return

            started = self.state is not State.IDLE
            self.state = State.CLOSED

        self._closing.set()

        if not started:
            self.channel.close()
            return

        self.channel.cancel()

        if threading.current_thread() is self.thread:
            return

        self.thread.join(self.join_timeout)

        if self.thread.is_alive():
            log.warning('%r did not stop within %.1f seconds', self, self.join_timeout)

    def run(self) -> None:
        try:
            self._run()
        finally:
            self.channel.close()
            log.debug('%r stopped', self)

    def _run(self):

        while self.state is not State.CLOSED:

            try:
                frame = self.channel.receive()
            except (OSError, zmq.ZMQError) as exc:
                if self.state is State.CLOSED:
                    break

                log.exception('%r: receive failed', self)
                error = ReceiveError('receive failed on %s: %s' % (self.channel.name, exc))
                error.__cause__ = exc
                self.dispatcher.report(error)

                self._closing.wait(self.error_delay)
                continue

            with self._lock:
                if frame is None or self.state is State.CLOSED:
                    # Cancelled; whatever was in flight is discarded.
                    break

                self.state = State.COMPLETING
                self.completions += 1

            self._complete(frame)

            with self._lock:
                if self.state is State.CLOSED:
                    break
                self._arm()

    def _complete(self, frame):

        # Anything raised while decoding, including by a user-supplied kind
        # or codec, counts against this frame only.

        try:
            message = self.decode(frame)
        except DecodeError as exc:
            error = exc
        except Exception as exc:
            error = DecodeError('cannot decode frame: %s: %s' % (type(exc).__name__, exc), frame)
            error.__cause__ = exc
        else:
            self.dispatcher.dispatch(message)
            return

        log.debug('%r: discarding undecodable frame: %s', self, error)
        self.dispatcher.report(error)

    def _arm(self):
        # Caller holds self._lock.
        self.state = State.ARMED
        self.arms += 1


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
