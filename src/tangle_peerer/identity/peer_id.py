"""
PeerId derivation from Ed25519 public keys.

Hornet identifies gossip peers by libp2p PeerIds. A PeerId is derived
from the node's public key:
    1. Encode the public key as protobuf (libp2p-crypto format)
    2. If encoded <= 42 bytes: PeerId = multihash(identity, encoded)
    3. If encoded > 42 bytes: PeerId = multihash(sha256, sha256(encoded))
    4. Base58-encode the multihash for display

Protobuf wire format (from crypto.proto):
    message PublicKey {
        required KeyType Type = 1;  // Field 1, varint
        required bytes Data = 2;    // Field 2, length-delimited
    }

An Ed25519 public key is 32 bytes, so the encoded message is
[0x08][0x01][0x12][0x20][32 key bytes] = 36 bytes. That is below the
threshold, so the identity multihash is used and every Ed25519 PeerId
starts with "12D3KooW".

References:
    - https://github.com/libp2p/specs/blob/master/peer-ids/peer-ids.md
    - https://github.com/multiformats/multihash
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import IntEnum
from typing import Final

from .varint import encode_varint

__all__ = [
    "Base58",
    "KeyType",
    "Multihash",
    "MultihashCode",
    "PeerId",
    "PublicKeyProto",
]

ED25519_PUBLIC_KEY_SIZE: Final = 32
"""Raw Ed25519 public key length in bytes."""


class KeyType(IntEnum):
    """libp2p-crypto key type codes (from crypto.proto KeyType enum)."""

    RSA = 0
    ED25519 = 1
    SECP256K1 = 2
    ECDSA = 3


class MultihashCode(IntEnum):
    """Multihash function codes used for PeerIds."""

    IDENTITY = 0x00
    """Identity "hash": the data is wrapped, not hashed."""

    SHA256 = 0x12
    """SHA-256 (32-byte output)."""


class _ProtobufTag(IntEnum):
    """Protobuf tags for the PublicKey message: (field_number << 3) | wire_type."""

    TYPE = 0x08  # field 1, varint
    DATA = 0x12  # field 2, length-delimited


class Base58:
    """
    Base58 encoding with the Bitcoin alphabet.

    The alphabet leaves out the look-alike characters 0, O, I and l.
    """

    ALPHABET: Final[str] = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"

    @classmethod
    def encode(cls, data: bytes) -> str:
        """Encode bytes as Base58. Leading zero bytes become leading '1's."""
        leading_zeros = len(data) - len(data.lstrip(b"\x00"))

        num = int.from_bytes(data, "big")
        result: list[str] = []
        while num > 0:
            num, remainder = divmod(num, 58)
            result.append(cls.ALPHABET[remainder])

        result.extend([cls.ALPHABET[0]] * leading_zeros)
        return "".join(reversed(result))


_IDENTITY_THRESHOLD: Final[int] = 42
"""Largest encoded key that is wrapped with the identity multihash."""


@dataclass(frozen=True, slots=True)
class Multihash:
    """
    A self-describing hash: [code (varint)][length (varint)][digest].

    Attributes:
        code: Hash function identifier.
        digest: Hash output, or the raw data for the identity code.
    """

    code: MultihashCode
    digest: bytes

    def encode(self) -> bytes:
        """Serialize as multihash bytes."""
        return encode_varint(self.code) + encode_varint(len(self.digest)) + self.digest

    @classmethod
    def from_data(cls, data: bytes) -> Multihash:
        """
        Wrap data using libp2p's size-based selection.

        Data up to 42 bytes is inlined with the identity code. Anything
        longer is replaced by its SHA-256 digest.
        """
        if len(data) <= _IDENTITY_THRESHOLD:
            return cls(code=MultihashCode.IDENTITY, digest=data)
        return cls(code=MultihashCode.SHA256, digest=hashlib.sha256(data).digest())


@dataclass(frozen=True, slots=True)
class PublicKeyProto:
    """
    A public key in libp2p-crypto protobuf format.

    Attributes:
        key_type: Cryptographic algorithm identifier.
        key_data: Raw public key bytes.
    """

    key_type: KeyType
    key_data: bytes

    def encode(self) -> bytes:
        """
        Encode as deterministic protobuf: Type first, then Data.

        Wire encoding:
            [0x08][type_varint][0x12][length_varint][key_bytes]
        """
        type_field = bytes([_ProtobufTag.TYPE]) + encode_varint(self.key_type)
        data_field = (
            bytes([_ProtobufTag.DATA]) + encode_varint(len(self.key_data)) + self.key_data
        )
        return type_field + data_field


@dataclass(frozen=True, slots=True)
class PeerId:
    """
    A libp2p peer identifier.

    Stable for as long as the underlying key does not change. Displayed
    as the Base58 encoding of its multihash.

    Attributes:
        multihash: Raw multihash bytes.
    """

    multihash: bytes

    def __str__(self) -> str:
        return Base58.encode(self.multihash)

    def __repr__(self) -> str:
        return f"PeerId({self!s})"

    def to_base58(self) -> str:
        """Return the Base58 string form used inside multiaddresses."""
        return Base58.encode(self.multihash)

    @classmethod
    def from_public_key(cls, public_key: PublicKeyProto) -> PeerId:
        """Derive a PeerId from a protobuf-wrapped public key."""
        return cls(multihash=Multihash.from_data(public_key.encode()).encode())

    @classmethod
    def from_ed25519(cls, public_key_bytes: bytes) -> PeerId:
        """
        Derive a PeerId from a raw Ed25519 public key.

        Args:
            public_key_bytes: 32-byte Ed25519 public key.

        Returns:
            PeerId whose string form starts with "12D3KooW".

        Raises:
            ValueError: If the key is not 32 bytes.
        """
        if len(public_key_bytes) != ED25519_PUBLIC_KEY_SIZE:
            raise ValueError(
                f"Ed25519 public key must be {ED25519_PUBLIC_KEY_SIZE} bytes, "
                f"got {len(public_key_bytes)}"
            )
        return cls.from_public_key(PublicKeyProto(KeyType.ED25519, public_key_bytes))
