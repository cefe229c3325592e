""" Setup of the two channels owned by a queue: the inbound channel, bound
    to a host-local name derived from the listener identity, and the
    outbound channel, addressed to the group by its format name.

    Two queues on the same host constructed with the same listener identity
    attach to the same inbound binding, and compete for the messages it
    receives. Choose listener identities accordingly.
"""

from __future__ import annotations

import logging

import zmq

from .address import MulticastGroupAddress
from .errors import ChannelOpenError
from .transport import InboundChannel, OutboundChannel, Transport

log = logging.getLogger(__name__)

local_prefix = '.\\private$\\'
multicast_prefix = 'FormatName:MULTICAST='


def local_name(listener: str) -> str:
    """ Return the host-local inbound channel name for *listener*.
    """

    if not isinstance(listener, str):
        raise TypeError('listener identity must be a string, not ' + type(listener).__name__)

    if listener.strip() == '':
        raise ValueError('listener identity must be a non-empty string')

    return local_prefix + listener


def format_name(group: MulticastGroupAddress) -> str:
    """ Return the outbound channel name addressing *group*.
    """

    return multicast_prefix + str(group)


def open_inbound(group: MulticastGroupAddress, listener: str, transport: Transport) -> InboundChannel:
    """ Attach to the inbound binding for *listener*, creating it and joining
        it to *group* if it does not already exist. If it does exist, it is
        reused as long as it is joined to the same *group*; attaching to a
        binding for a different group raises :class:`ChannelOpenError`.
    """

    name = local_name(listener)

    try:
        channel, created = transport.open_inbound(name, group)
    except ChannelOpenError:
        raise
    except (OSError, zmq.ZMQError) as exc:
        raise ChannelOpenError('cannot open inbound channel %r for %s: %s' % (name, group, exc)) from exc

    if created:
        log.debug('created inbound channel %r for %s', name, group)
    else:
        log.debug('reopened existing inbound channel %r for %s', name, group)

    return channel


def open_outbound(group: MulticastGroupAddress, transport: Transport) -> OutboundChannel:
    """ Open a send-only channel addressed to *group*. There is no existence
        check; a multicast destination is just an address.
    """

    name = format_name(group)

    try:
        channel = transport.open_outbound(name, group)
    except (OSError, zmq.ZMQError) as exc:
        raise ChannelOpenError('cannot open outbound channel %r: %s' % (name, exc)) from exc

    log.debug('opened outbound channel %r', name)
    return channel


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
