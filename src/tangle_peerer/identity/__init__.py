"""Local node identity: Ed25519 key loading and PeerId derivation."""

from .keypair import FileWaiter, IdentityKeypair, PollingFileWaiter, load_identity
from .peer_id import Base58, KeyType, Multihash, MultihashCode, PeerId, PublicKeyProto

__all__ = [
    "Base58",
    "FileWaiter",
    "IdentityKeypair",
    "KeyType",
    "Multihash",
    "MultihashCode",
    "PeerId",
    "PollingFileWaiter",
    "PublicKeyProto",
    "load_identity",
]
