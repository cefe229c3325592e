import pytest

from mcqueue.config import Settings


def test_defaults():

    settings = Settings.from_environ(dict())

    assert settings == Settings()
    assert settings.transport == 'udp'
    assert settings.ttl == 1
    assert settings.loopback is True
    assert settings.interface is None
    assert settings.workers == 8


def test_values():

    environ = dict()
    environ['MCQUEUE_TRANSPORT'] = ' Memory '
    environ['MCQUEUE_TTL'] = '4'
    environ['MCQUEUE_LOOPBACK'] = 'off'
    environ['MCQUEUE_INTERFACE'] = '10.0.0.2'
    environ['MCQUEUE_WORKERS'] = '2'

    settings = Settings.from_environ(environ)

    assert settings.transport == 'memory'
    assert settings.ttl == 4
    assert settings.loopback is False
    assert settings.interface == '10.0.0.2'
    assert settings.workers == 2


def test_blank_interface():

    settings = Settings.from_environ({'MCQUEUE_INTERFACE': ' '})
    assert settings.interface is None


def test_invalid_values():

    bad = (
        ('MCQUEUE_TTL', 'many'),
        ('MCQUEUE_TTL', '256'),
        ('MCQUEUE_WORKERS', '0'),
        ('MCQUEUE_LOOPBACK', 'maybe'),
        ('MCQUEUE_INTERFACE', 'eth0'),
    )

    for name, value in bad:
        with pytest.raises(ValueError, match=name):
            Settings.from_environ({name: value})


def test_reads_os_environ(monkeypatch):

    monkeypatch.setenv('MCQUEUE_WORKERS', '3')
    assert Settings.from_environ().workers == 3


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
