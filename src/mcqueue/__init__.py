""" Python implementation of a typed multicast message queue. A
    :class:`MulticastQueue` joins a multicast group, broadcasts messages to
    every other member of the group, and invokes registered callbacks for
    every message broadcast by its peers.
"""

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Utility components.

from . import config
from . import errors
from . import address
from . import codec

# Submodules used by multiple other components.

from . import transport
from . import registry
from . import dispatch
from . import loop
from . import channel

# Primary public-facing interfaces.

from .address import MulticastGroupAddress, validate
from .errors import (
    MulticastQueueError,
    InvalidAddress,
    ChannelOpenError,
    SendError,
    EncodeError,
    DecodeError,
    ReceiveError,
    ObserverError,
    ClosedError,
)
from .endpoint import MulticastQueue

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
