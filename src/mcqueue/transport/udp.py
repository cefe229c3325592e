"""UDP multicast transport."""

from __future__ import annotations

import logging
import socket
import struct
import sys
from typing import Optional

from ..address import MulticastGroupAddress
from .base import Binding, Host, InboundChannel, OutboundChannel, Transport

log = logging.getLogger(__name__)

# Largest UDP payload that fits in a single IPv4 datagram.
max_datagram = 65507
buffer_size = 65535


class UdpBinding(Binding):
    """ A UDP socket bound to the group port and joined to the group on
        the configured interface.
    """

    def __init__(self, name: str, group: MulticastGroupAddress, interface: Optional[str] = None):
        Binding.__init__(self, name, group)

        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)

        try:
            # Allow multiple bindings, in this process or others, to receive
            # from the same group and port.

            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

            if sys.platform == 'darwin':
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)

            # Binding to the group address filters out unrelated datagrams
            # sent to the same port; only Linux permits it.

            if sys.platform.startswith('linux'):
                sock.bind((group.host, group.port))
            else:
                sock.bind(('', group.port))

            local = interface or '0.0.0.0'
            mreq = struct.pack('4s4s', socket.inet_aton(group.host), socket.inet_aton(local))
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, mreq)
            sock.setblocking(False)
        except OSError:
            sock.close()
            raise

        self.socket = sock
        self.fileno = sock.fileno()

    def close(self):
        self.socket.close()


class UdpInbound(InboundChannel):

    def __init__(self, transport, binding):
        InboundChannel.__init__(self, transport, binding)
        self._socket = binding.socket

    @property
    def target(self):
        return self.binding.fileno

    def _read(self):
        try:
            frame, _sender = self._socket.recvfrom(buffer_size)
        except (BlockingIOError, InterruptedError):
            return None

        return frame

    def _close(self):
        # The socket belongs to the binding.
        pass


class UdpOutbound(OutboundChannel):

    max_frame = max_datagram

    def __init__(self, transport, name, group):
        OutboundChannel.__init__(self, transport, name, group)
        settings = transport.settings

        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)

        try:
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, settings.ttl)
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_LOOP, 1 if settings.loopback else 0)

            if settings.interface is not None:
                sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_IF, socket.inet_aton(settings.interface))
        except OSError:
            sock.close()
            raise

        self.socket = sock
        self.destination = (group.host, group.port)

    def send(self, frame):
        self.socket.sendto(frame, self.destination)

    def close(self):
        if self.closed:
            return
        self.closed = True
        self.socket.close()


class UdpTransport(Transport):

    name = 'udp'
    host = Host()

    def _bind(self, name, group):
        return UdpBinding(name, group, self.settings.interface)

    def _inbound(self, binding):
        return UdpInbound(self, binding)

    def open_outbound(self, name, group):
        return UdpOutbound(self, name, group)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
