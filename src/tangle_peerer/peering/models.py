"""
Peer records of the Hornet peering API.

The records are owned by the remote service and only loosely specified:
fields may be added, and a record can lack any of the ones we read.
Every field is therefore optional. A field of the wrong JSON type is
read as missing, so one malformed peer never breaks decoding of the
table. Callers decide what a missing field means.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from ..types import LooseModel, StrictBaseModel


class PeerRecord(LooseModel):
    """One entry of the main node's peer table."""

    id: str | None = None
    """PeerId of the peer, Base58."""

    alias: str | None = None
    """Human-assigned label. We set it to the Kubernetes node name."""

    multi_address: list[str] = Field(default_factory=list)
    """Advertised addresses, without the /p2p component."""

    @field_validator("id", "alias", mode="before")
    @classmethod
    def _string_or_missing(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None

    @field_validator("multi_address", mode="before")
    @classmethod
    def _string_list_or_missing(cls, value: Any) -> list[str]:
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            return []
        return value

    def full_multiaddr(self) -> str | None:
        """
        Reconstruct the record's full address as `<first address>/p2p/<id>`.

        Returns None when the id or the first address is missing.
        """
        if not self.id or not self.multi_address:
            return None
        return f"{self.multi_address[0]}/p2p/{self.id}"


class CreatePeerRequest(StrictBaseModel):
    """Body of `POST /peers`."""

    multi_address: str
    alias: str
