""" Validation of multicast group addresses. A :class:`MulticastGroupAddress`
    can only be obtained via :func:`validate`, which guarantees that the
    address is a well-formed IPv4 address in the multicast range
    224.0.0.0 through 239.255.255.255.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Union

from .errors import InvalidAddress

first_octet_min = 224
first_octet_max = 239

port_min = 1
port_max = 65535


@dataclass(frozen=True)
class MulticastGroupAddress:
    address: ipaddress.IPv4Address
    port: int

    def __str__(self):
        return '%s:%d' % (self.address, self.port)

    @property
    def host(self) -> str:
        return str(self.address)

    @classmethod
    def parse(cls, text: str) -> MulticastGroupAddress:
        """ Parse 'address:port' text, as produced by ``str()`` on an
            instance, into a validated :class:`MulticastGroupAddress`.
        """

        try:
            address, port = str(text).rsplit(':', 1)
        except ValueError:
            raise InvalidAddress('malformed group address, expected address:port: %r' % (text,))

        return validate(address, port)


def validate(candidate: Union[str, ipaddress.IPv4Address], port) -> MulticastGroupAddress:
    """ Return a :class:`MulticastGroupAddress` for the supplied *candidate*
        address and *port*. The *candidate* can be dotted-quad text or an
        :class:`ipaddress.IPv4Address`. :class:`InvalidAddress` is raised if
        the address is malformed, if it is outside of the multicast range,
        or if the port is not a valid port number.
    """

    if isinstance(candidate, ipaddress.IPv4Address):
        address = candidate
    elif isinstance(candidate, str):
        address = _parse(candidate)
    else:
        raise InvalidAddress('malformed IPv4 address: %r' % (candidate,))

    first = address.packed[0]
    if first < first_octet_min or first > first_octet_max:
        raise InvalidAddress('out of multicast range, address must be in the interval 224.0.0.0 to 239.255.255.255: ' + str(address))

    if isinstance(port, bool):
        raise InvalidAddress('invalid port: %r' % (port,))

    try:
        port = int(port)
    except (TypeError, ValueError):
        raise InvalidAddress('invalid port: %r' % (port,))

    if port < port_min or port > port_max:
        raise InvalidAddress('port out of range: %d' % (port))

    return MulticastGroupAddress(address, port)


def _parse(text):

    # Only four plain decimal octets are accepted. Leading zeros are
    # normalized away here, since ipaddress rejects them in some releases
    # and not others.

    octets = text.strip().split('.')
    if len(octets) != 4:
        raise InvalidAddress('malformed IPv4 address: %r' % (text,))

    for octet in octets:
        if octet.isdigit() and octet.isascii() and len(octet) <= 3:
            pass
        else:
            raise InvalidAddress('malformed IPv4 address: %r' % (text,))

        if int(octet) > 255:
            raise InvalidAddress('malformed IPv4 address: %r' % (text,))

    normalized = '.'.join(str(int(octet)) for octet in octets)
    return ipaddress.IPv4Address(normalized)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
