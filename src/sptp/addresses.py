"""Best-effort normalisation of server identifiers to network addresses."""
from __future__ import annotations

import ipaddress
import logging
import socket
from collections.abc import Callable, Sequence

LOGGER = logging.getLogger(__name__)

Resolver = Callable[[str], Sequence[str]]


def lookup_host(name: str) -> list[str]:
    """Return the unique addresses *name* resolves to, in resolver order."""
    infos = socket.getaddrinfo(name, None, proto=socket.IPPROTO_UDP)
    addresses: list[str] = []
    for _family, _type, _proto, _canonname, sockaddr in infos:
        address = str(sockaddr[0])
        if address not in addresses:
            addresses.append(address)
    return addresses


def is_ip_literal(value: str) -> bool:
    """Return ``True`` when *value* is a literal IPv4 or IPv6 address."""
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def normalize_address(identifier: str, resolver: Resolver = lookup_host) -> str:
    """Return the first address *identifier* resolves to.

    Literal addresses are returned without a lookup. When resolution fails or
    yields nothing the identifier is returned unchanged.
    """
    if is_ip_literal(identifier):
        return identifier
    try:
        addresses = resolver(identifier)
    except (OSError, UnicodeError) as exc:
        LOGGER.debug("Could not resolve %s, using it as given: %s", identifier, exc)
        return identifier
    if not addresses:
        LOGGER.debug("Resolving %s returned no addresses, using it as given", identifier)
        return identifier
    return addresses[0]


__all__ = ["Resolver", "is_ip_literal", "lookup_host", "normalize_address"]
