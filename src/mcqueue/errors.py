""" Exceptions raised by :mod:`mcqueue`. Everything raised deliberately by
    this package derives from :class:`MulticastQueueError`.
"""


class MulticastQueueError(Exception):
    """Base class for all mcqueue errors."""


class InvalidAddress(MulticastQueueError, ValueError):
    """ The requested group address is malformed, or is not an IPv4
        multicast address.
    """


class ChannelOpenError(MulticastQueueError):
    """ The transport could not create or open an inbound or outbound
        channel.
    """


class SendError(MulticastQueueError):
    """The transport rejected an outbound message."""


class EncodeError(SendError):
    """An outbound message could not be encoded by the codec."""


class DecodeError(MulticastQueueError):
    """ An inbound frame could not be decoded, or the decoded body is not
        of the type the queue was constructed for.
    """

    def __init__(self, text, frame=None):
        MulticastQueueError.__init__(self, text)
        self.frame = frame


class ReceiveError(MulticastQueueError):
    """The transport failed while waiting for an inbound message."""


class ObserverError(MulticastQueueError):
    """ A registered callback raised an exception while handling a message.
        The original exception is available as *exception*, and also as the
        ``__cause__`` of this exception.
    """

    def __init__(self, subscription, message, exception):
        text = '%r raised %s: %s' % (subscription, type(exception).__name__, exception)
        MulticastQueueError.__init__(self, text)
        self.subscription = subscription
        self.message = message
        self.exception = exception
        self.__cause__ = exception


class ClosedError(MulticastQueueError):
    """The operation was attempted after the queue was closed."""


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
