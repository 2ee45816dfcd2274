"""Address normaliser tests."""
from __future__ import annotations

import logging
import socket

import pytest

from sptp import addresses
from sptp.addresses import is_ip_literal, lookup_host, normalize_address


@pytest.mark.parametrize("value", ["192.0.2.1", "2001:db8::1", "::1", "fe80::1%eth0"])
def test_literal_addresses_skip_lookup(value: str, resolver) -> None:
    """Literal IPv4/IPv6 addresses are returned as given without a lookup."""
    assert normalize_address(value, resolver) == value
    assert resolver.calls == []


@pytest.mark.parametrize("value", ["host-a", "192.0.2", "time.example.com", ""])
def test_is_ip_literal_rejects_names(value: str) -> None:
    """Hostnames and partial addresses are not literals."""
    assert is_ip_literal(value) is False


def test_hostname_resolves_to_first_address(resolver) -> None:
    """The first returned address replaces the hostname."""
    assert normalize_address("host-a", resolver) == "192.0.2.10"
    assert resolver.calls == ["host-a"]


def test_failed_lookup_keeps_identifier(resolver, caplog: pytest.LogCaptureFixture) -> None:
    """Resolution failures degrade to the identifier as given."""
    caplog.set_level(logging.DEBUG, logger="sptp.addresses")

    assert normalize_address("unknown.invalid", resolver) == "unknown.invalid"
    assert "Could not resolve unknown.invalid" in caplog.text


def test_empty_lookup_keeps_identifier(resolver) -> None:
    """A lookup with no results keeps the identifier."""
    assert normalize_address("empty.example.com", resolver) == "empty.example.com"


def test_unicode_error_is_not_fatal() -> None:
    """IDNA encoding failures from the resolver are treated as lookup failures."""

    def broken(name: str) -> list[str]:
        raise UnicodeError("label too long")

    assert normalize_address("x" * 70 + ".example", broken) == "x" * 70 + ".example"


def test_lookup_host_deduplicates(monkeypatch: pytest.MonkeyPatch) -> None:
    """lookup_host keeps resolver order and drops duplicate addresses."""

    def fake_getaddrinfo(host: str, port: object, **kwargs: object) -> list[tuple]:
        assert host == "time.example.com"
        return [
            (socket.AF_INET6, socket.SOCK_DGRAM, 17, "", ("2001:db8::7", 0, 0, 0)),
            (socket.AF_INET, socket.SOCK_DGRAM, 17, "", ("198.51.100.7", 0)),
            (socket.AF_INET6, socket.SOCK_DGRAM, 17, "", ("2001:db8::7", 0, 0, 0)),
        ]

    monkeypatch.setattr(addresses.socket, "getaddrinfo", fake_getaddrinfo)

    assert lookup_host("time.example.com") == ["2001:db8::7", "198.51.100.7"]


def test_default_resolver_failure_is_not_fatal(monkeypatch: pytest.MonkeyPatch) -> None:
    """socket.gaierror from the default resolver falls back to the identifier."""

    def fake_getaddrinfo(host: str, port: object, **kwargs: object) -> list[tuple]:
        raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

    monkeypatch.setattr(addresses.socket, "getaddrinfo", fake_getaddrinfo)

    assert normalize_address("nowhere.invalid") == "nowhere.invalid"
