"""Transport layer implementations."""

from __future__ import annotations

from typing import Optional, Union

from ..config import Settings
from .base import (
    Binding,
    Host,
    InboundChannel,
    OutboundChannel,
    Transport,
)
from .memory import MemoryTransport
from .udp import UdpTransport

backends = dict()
backends[UdpTransport.name] = UdpTransport
backends[MemoryTransport.name] = MemoryTransport


def select(choice: Union[str, Transport, None] = None, settings: Optional[Settings] = None) -> Transport:
    """ Return a :class:`Transport` instance. *choice* may be an existing
        instance, which is returned as-is, or the name of a backend; if it
        is None the backend named in *settings* is used.
    """

    if isinstance(choice, Transport):
        return choice

    if settings is None:
        settings = Settings.from_environ()

    if choice is None:
        choice = settings.transport

    try:
        backend = backends[choice]
    except KeyError:
        raise ValueError('unknown transport backend: %r' % (choice,))

    return backend(settings)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
