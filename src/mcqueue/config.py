""" Runtime settings for :mod:`mcqueue`. Settings are read from environment
    variables when a :class:`~mcqueue.MulticastQueue` is created; explicit
    arguments to the constructor take precedence.

    ``MCQUEUE_TRANSPORT``
        Transport backend, either ``udp`` (the default) or ``memory``.

    ``MCQUEUE_TTL``
        Multicast time-to-live for outbound datagrams. The default of 1
        keeps traffic on the local network.

    ``MCQUEUE_LOOPBACK``
        Whether outbound datagrams are looped back to listeners on the
        sending host. Enabled by default.

    ``MCQUEUE_INTERFACE``
        IPv4 address of the local interface used to join groups and send
        datagrams. The default lets the host choose.

    ``MCQUEUE_WORKERS``
        Number of threads delivering messages to callbacks, per queue.
"""

from __future__ import annotations

import ipaddress
import os
from dataclasses import dataclass
from typing import Mapping, Optional

default_transport = 'udp'
default_ttl = 1
default_workers = 8

_true = ('1', 'true', 'yes', 'on')
_false = ('0', 'false', 'no', 'off')


@dataclass(frozen=True)
class Settings:
    transport: str = default_transport
    ttl: int = default_ttl
    loopback: bool = True
    interface: Optional[str] = None
    workers: int = default_workers

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> Settings:
        """ Build a :class:`Settings` instance from *environ*, which defaults
            to :data:`os.environ`. A :class:`ValueError` naming the offending
            variable is raised for any value that cannot be interpreted.
        """

        if environ is None:
            environ = os.environ

        transport = environ.get('MCQUEUE_TRANSPORT', default_transport)
        transport = transport.strip().lower()

        ttl = _integer(environ, 'MCQUEUE_TTL', default_ttl, 0, 255)
        workers = _integer(environ, 'MCQUEUE_WORKERS', default_workers, 1, None)
        loopback = _boolean(environ, 'MCQUEUE_LOOPBACK', True)

        interface = environ.get('MCQUEUE_INTERFACE')
        if interface is not None:
            interface = interface.strip()
            if interface == '':
                interface = None
            else:
                try:
                    ipaddress.IPv4Address(interface)
                except ValueError:
                    raise ValueError('MCQUEUE_INTERFACE must be an IPv4 address: ' + repr(interface))

        return cls(transport=transport, ttl=ttl, loopback=loopback, interface=interface, workers=workers)


def _integer(environ, name, default, minimum, maximum):

    try:
        value = environ[name]
    except KeyError:
        return default

    try:
        value = int(value)
    except ValueError:
        raise ValueError('%s must be an integer: %r' % (name, value))

    if value < minimum or (maximum is not None and value > maximum):
        raise ValueError('%s out of range: %d' % (name, value))

    return value


def _boolean(environ, name, default):

    try:
        value = environ[name]
    except KeyError:
        return default

    lowered = value.strip().lower()

    if lowered in _true:
        return True
    if lowered in _false:
        return False

    raise ValueError('%s must be a boolean: %r' % (name, value))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
