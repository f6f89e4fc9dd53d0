"""
Canonical multiaddress of the local node.

A multiaddress is a self-describing address made of protocol/value
pairs. Hornet peers are dialed over TCP on IPv4, so the address we
advertise always has the shape::

    /ip4/<host>/tcp/<port>/p2p/<peer_id>

It is computed once at startup from immutable inputs and compared
byte-for-byte against what the main node has stored.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass

from .exceptions import ConfigError

__all__ = [
    "LocalAddress",
    "build_local_address",
    "parse_multiaddr",
]

MAX_PORT = 65535


@dataclass(frozen=True, slots=True)
class LocalAddress:
    """
    Structured form of the canonical multiaddress.

    Attributes:
        host: Dotted-quad IPv4 address.
        port: TCP gossip port.
        peer_id: Base58 PeerId of the node.
    """

    host: str
    port: int
    peer_id: str

    def __str__(self) -> str:
        return f"/ip4/{self.host}/tcp/{self.port}/p2p/{self.peer_id}"


def build_local_address(ip: str, port: int, peer_id: str) -> LocalAddress:
    """
    Validate the inputs and build the local address.

    Args:
        ip: IPv4 address of the local pod.
        port: Gossip protocol port.
        peer_id: Base58 PeerId derived from the node identity.

    Raises:
        ConfigError: If the IP is not IPv4, the port is out of range,
            or the PeerId is empty or contains a path separator.
    """
    try:
        host = str(ipaddress.IPv4Address(ip))
    except ValueError as exc:
        raise ConfigError(f"invalid IPv4 address {ip!r}: {exc}") from exc

    if not 0 < port <= MAX_PORT:
        raise ConfigError(f"invalid gossip port {port}, expected 1..{MAX_PORT}")

    if not peer_id or "/" in peer_id:
        raise ConfigError(f"invalid peer id {peer_id!r}")

    return LocalAddress(host=host, port=port, peer_id=peer_id)


def parse_multiaddr(multiaddr: str) -> LocalAddress:
    """
    Parse a canonical `/ip4/.../tcp/.../p2p/...` multiaddress.

    Raises:
        ValueError: If the address has any other shape.
    """
    # "/ip4/10.0.0.5/tcp/15600/p2p/Qm" -> ["ip4", "10.0.0.5", "tcp", "15600", "p2p", "Qm"]
    parts = multiaddr.split("/")
    if parts[0] != "" or len(parts) != 7:
        raise ValueError(f"Not a canonical multiaddr: {multiaddr}")

    _, ip4, host, tcp, port, p2p, peer_id = parts
    if (ip4, tcp, p2p) != ("ip4", "tcp", "p2p"):
        raise ValueError(f"Unsupported protocols in multiaddr: {multiaddr}")
    if not port.isdigit():
        raise ValueError(f"Invalid port in multiaddr: {multiaddr}")

    try:
        return build_local_address(host, int(port), peer_id)
    except ConfigError as exc:
        raise ValueError(str(exc)) from exc
