""" Codecs translate between Python objects and the bytes placed on the
    wire. Every encoded body is wrapped in a small frame identifying the
    frame format version and the codec used; a receiver only accepts frames
    produced by the same codec it was configured with.

    Frame layout::

        b'MCQ' + version (1 byte) + codec tag (1 byte) + body

    :class:`MsgpackCodec` is the default. Without a concrete *kind*, the
    msgspec codecs only accept values that decode back to an equal value of
    the same type: None, bool, int, float, str, list and dict, plus bytes
    for MessagePack; dict keys must be str (or int, for MessagePack). Tuples,
    sets, dataclasses and the like are refused with :class:`EncodeError`
    unless the queue is constructed with a matching *kind*, in which case
    the receiver converts them back. :class:`PickleCodec` handles
    arbitrary Python objects, and should only be used on trusted networks:
    unpickling data from an untrusted peer can execute arbitrary code.
"""

from __future__ import annotations

import pickle
import typing
from abc import ABC, abstractmethod
from typing import Any, Dict

import msgspec

from .errors import DecodeError, EncodeError

magic = b'MCQ'

# This is the version of the frame format implemented here; it is identified
# by a single byte.

version = b'a'

header_length = len(magic) + len(version) + 1


class Codec(ABC):
    """ Minimal contract for a codec. Implementations must be symmetric: any
        value encoded by one instance must be decodable by any other instance
        of the same class.
    """

    #: Single byte identifying the codec on the wire.
    tag: bytes = b''

    @abstractmethod
    def encode(self, value: Any, kind: Any = object) -> bytes:
        """ Return the encoded bytes for *value*, or raise EncodeError.
            *kind* is the type the receiver will decode to.
        """

    @abstractmethod
    def decode(self, body: bytes, kind: Any = object) -> Any:
        """ Return the value encoded in *body* as an instance of *kind*, or
            raise DecodeError.
        """

    def __repr__(self):
        return '%s()' % (type(self).__name__)


class MsgpackCodec(Codec):
    """ Binary MessagePack encoding via :mod:`msgspec`. When a concrete
        *kind* is requested the decoded body is validated against, and
        converted to, that type; this includes :class:`msgspec.Struct`
        subclasses and dataclasses.
    """

    tag = b'm'
    module = msgspec.msgpack

    #: Types that decode back to themselves when no kind is given.
    portable = (type(None), bool, int, float, str, bytes, list, dict)
    portable_keys = (str, int)

    def __init__(self):
        self._decoders: Dict[Any, Any] = dict()

    def encode(self, value, kind=object):

        if _untyped(kind):
            self._check(value)

        try:
            return self.module.encode(value)
        except (msgspec.EncodeError, TypeError, OverflowError) as exc:
            raise EncodeError('cannot encode %s: %s' % (type(value).__name__, exc)) from exc

    def decode(self, body, kind=object):

        try:
            decoder = self._decoders[kind]
        except KeyError:
            decoder = self._decoder(kind)
            self._decoders[kind] = decoder

        try:
            value = decoder.decode(body)
        except msgspec.DecodeError as exc:
            raise DecodeError('cannot decode body as %s: %s' % (_name(kind), exc)) from exc

        return downcast(value, kind)

    def _check(self, value):

        kind = type(value)

        if kind not in self.portable:
            raise EncodeError('%s would not decode as a %s without a kind, pass kind= to the queue or use PickleCodec' % (type(self).__name__, kind.__name__))

        if kind is list:
            for item in value:
                self._check(item)
        elif kind is dict:
            for key, item in value.items():
                if type(key) not in self.portable_keys:
                    raise EncodeError('%s would not decode a %s dict key without a kind' % (type(self).__name__, type(key).__name__))
                self._check(item)

    def _decoder(self, kind):

        if _untyped(kind):
            return self.module.Decoder()

        try:
            return self.module.Decoder(type=kind)
        except TypeError:
            # Not a type msgspec understands; decode untyped and let the
            # downcast check sort it out.
            return self.module.Decoder()


class JsonCodec(MsgpackCodec):
    """ JSON encoding via :mod:`msgspec`. Useful when peers implemented in
        other languages need to read the traffic.
    """

    tag = b'j'
    module = msgspec.json

    portable = (type(None), bool, int, float, str, list, dict)
    portable_keys = (str,)


class PickleCodec(Codec):
    """ Encoding via :mod:`pickle`. Handles any picklable Python object;
        only suitable when every member of the group is trusted.
    """

    tag = b'p'

    def __init__(self, protocol=pickle.HIGHEST_PROTOCOL):
        self.protocol = protocol

    def encode(self, value, kind=object):
        try:
            return pickle.dumps(value, protocol=self.protocol)
        except (pickle.PicklingError, TypeError, AttributeError) as exc:
            raise EncodeError('cannot pickle %s: %s' % (type(value).__name__, exc)) from exc

    def decode(self, body, kind=object):

        # Unpickling can fail in a great many ways, depending on what the
        # body refers to; all of them mean the same thing here.

        try:
            value = pickle.loads(body)
        except Exception as exc:
            raise DecodeError('cannot unpickle body: %s: %s' % (type(exc).__name__, exc)) from exc

        return downcast(value, kind)


codecs = dict()
for _codec in (MsgpackCodec, JsonCodec, PickleCodec):
    codecs[_codec.tag] = _codec
del _codec


def default() -> Codec:
    return MsgpackCodec()


def downcast(value, kind):
    """ Confirm that *value* is an instance of *kind*, raising
        :class:`DecodeError` if it is not. Subscripted generic kinds such as
        ``dict[str, int]`` are checked against their origin type only.
    """

    if _untyped(kind):
        return value

    check = typing.get_origin(kind) or kind

    if isinstance(check, type):
        if isinstance(value, check):
            return value
        raise DecodeError('decoded %s, expected %s' % (type(value).__name__, _name(kind)))

    return value


def pack(codec: Codec, value: Any, kind: Any = object) -> bytes:
    """ Encode *value* with *codec* and return the complete frame. *kind*
        is the type the receiver decodes to; see :func:`unpack`.
    """

    body = codec.encode(value, kind)
    return magic + version + codec.tag + body


def unpack(codec: Codec, frame: bytes, kind: Any = object) -> Any:
    """ Check the header of *frame* and decode its body with *codec*,
        returning an instance of *kind*. :class:`DecodeError` is raised
        for any frame this codec cannot accept.
    """

    frame = bytes(frame)

    if len(frame) < header_length or frame[:len(magic)] != magic:
        raise DecodeError('not an mcqueue frame', frame)

    their_version = frame[3:4]
    if their_version != version:
        raise DecodeError('frame is version %r, recipient expects %r' % (their_version, version), frame)

    their_tag = frame[4:5]
    if their_tag != codec.tag:
        try:
            sender = codecs[their_tag].__name__
        except KeyError:
            sender = 'unknown codec %r' % (their_tag,)
        raise DecodeError('frame was encoded with %s, recipient uses %s' % (sender, type(codec).__name__), frame)

    body = frame[header_length:]

    try:
        return codec.decode(body, kind)
    except DecodeError as exc:
        exc.frame = frame
        raise


def _untyped(kind):
    return kind is object or kind is Any or kind is None


def _name(kind):
    try:
        return kind.__name__
    except AttributeError:
        return repr(kind)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
