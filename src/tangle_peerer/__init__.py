"""
Hornet peering sidecar.

Derives the local node's libp2p identity and multiaddress, then keeps a
matching peer record on the cluster's main Hornet node.
"""

from .config import PeererConfig, parse_duration
from .exceptions import (
    ConfigError,
    FatalError,
    IdentityError,
    PeererError,
    RecoverableError,
    RemoteError,
    ResolutionError,
)
from .multiaddr import LocalAddress, build_local_address, parse_multiaddr
from .sidecar import PeeringSidecar

__all__ = [
    "ConfigError",
    "FatalError",
    "IdentityError",
    "LocalAddress",
    "PeererConfig",
    "PeererError",
    "PeeringSidecar",
    "RecoverableError",
    "RemoteError",
    "ResolutionError",
    "build_local_address",
    "parse_duration",
    "parse_multiaddr",
]
