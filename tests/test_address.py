import ipaddress

import pytest

import mcqueue
from mcqueue.address import MulticastGroupAddress, validate


def test_multicast_range_accepted():

    for text in ('224.0.0.0', '224.1.2.3', '230.10.20.30', '239.255.255.255'):
        group = validate(text, 8001)
        assert isinstance(group, MulticastGroupAddress)
        assert str(group.address) == text
        assert group.port == 8001


def test_outside_multicast_range_rejected():

    for text in ('192.168.1.5', '0.0.0.0', '10.0.0.1', '223.255.255.255', '240.0.0.0', '255.255.255.255'):
        with pytest.raises(mcqueue.InvalidAddress, match='out of multicast range'):
            validate(text, 8001)


def test_every_first_octet():

    for first in range(256):
        text = '%d.1.2.3' % (first)
        if 224 <= first <= 239:
            validate(text, 8001)
        else:
            with pytest.raises(mcqueue.InvalidAddress):
                validate(text, 8001)


def test_malformed_rejected():

    for text in ('', '224.1.2', '224.1.2.3.4', '224.1.2.256', '224.-1.2.3', 'a.b.c.d', '224.1.2.3/24', '224..2.3', '::1', '224.1.2.３'):
        with pytest.raises(mcqueue.InvalidAddress, match='malformed'):
            validate(text, 8001)

    with pytest.raises(mcqueue.InvalidAddress):
        validate(3758096385, 8001)


def test_invalid_address_is_a_value_error():

    with pytest.raises(ValueError):
        validate('192.168.1.5', 8001)


def test_structured_address():

    group = validate(ipaddress.IPv4Address('239.1.1.1'), 9000)
    assert group.host == '239.1.1.1'

    with pytest.raises(mcqueue.InvalidAddress):
        validate(ipaddress.IPv4Address('127.0.0.1'), 9000)


def test_leading_zeros_normalized():

    group = validate('224.001.002.003', 8001)
    assert group.host == '224.1.2.3'


def test_ports():

    assert validate('224.1.2.3', '8001').port == 8001

    for port in (0, -1, 65536, 'eighty', None, True):
        with pytest.raises(mcqueue.InvalidAddress):
            validate('224.1.2.3', port)


def test_immutable_and_comparable():

    group = validate('224.1.2.3', 8001)

    with pytest.raises(AttributeError):
        group.port = 8002

    assert group == validate('224.1.2.3', 8001)
    assert group != validate('224.1.2.3', 8002)
    assert str(group) == '224.1.2.3:8001'


def test_parse():

    group = MulticastGroupAddress.parse('239.0.0.7:5007')
    assert group == validate('239.0.0.7', 5007)

    with pytest.raises(mcqueue.InvalidAddress):
        MulticastGroupAddress.parse('239.0.0.7')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
