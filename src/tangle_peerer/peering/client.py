"""
Client for the peering endpoints of the Hornet REST API.

Endpoints under `http://<main-ip>:<port>/api/core/v2/peers`:

- GET    /peers       -> 200, JSON array of peer records
- POST   /peers       -> 2xx, body {"multiAddress": ..., "alias": ...}
- DELETE /peers/{id}  -> 204

Any other status, a transport failure or an undecodable body raises
RemoteError. The caller treats that as a failed cycle.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any, Final

import httpx
from pydantic import TypeAdapter, ValidationError

from ..config import REQUEST_TIMEOUT_SECS
from ..exceptions import RemoteError
from .models import CreatePeerRequest, PeerRecord

logger = logging.getLogger(__name__)

PEERS_PATH: Final = "/api/core/v2/peers"
"""Path of the peer table resource."""

_BODY_PREVIEW_CHARS: Final = 200
"""Longest response body excerpt included in error messages."""

_PEER_LIST: Final = TypeAdapter(list[Any])


def _describe(response: httpx.Response) -> str:
    return f"{response.status_code}, body: {response.text[:_BODY_PREVIEW_CHARS]}"


class PeeringClient:
    """
    Talks to the peering API of one Hornet node.

    Use as an async context manager. One instance serves one
    reconciliation cycle and shares its HTTP connection pool::

        async with PeeringClient(main_ip, 14265) as client:
            peers = await client.list_peers()
    """

    def __init__(
        self,
        host: str,
        port: int,
        timeout: float = REQUEST_TIMEOUT_SECS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        # IPv6 pod IPs must be bracketed inside URLs.
        if ":" in host:
            host = f"[{host}]"
        self.base_url = f"http://{host}:{port}{PEERS_PATH}"
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self) -> PeeringClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the underlying connection pool."""
        await self._http.aclose()

    async def list_peers(self) -> list[PeerRecord]:
        """
        Fetch the node's current peer table.

        Raises:
            RemoteError: On transport failure, a status other than 200,
                or a body that is not a JSON array. Entries that are not
                objects are skipped.
        """
        try:
            response = await self._http.get(
                self.base_url, headers={"Accept": "application/json"}
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise RemoteError(f"failed to get main node peers: {exc}") from exc

        if response.status_code != 200:
            raise RemoteError(
                f"unexpected status when getting main node peers: {_describe(response)}"
            )

        try:
            entries = _PEER_LIST.validate_json(response.content)
        except ValidationError as exc:
            raise RemoteError(f"failed to parse get peers response: {exc}") from exc

        peers = []
        for entry in entries:
            if not isinstance(entry, dict):
                logger.debug("Skipping peer entry that is not an object: %r", entry)
                continue
            peers.append(PeerRecord.model_validate(entry))
        return peers

    async def delete_peer(self, peer_id: str) -> None:
        """
        Remove a peer record by id.

        Raises:
            RemoteError: On transport failure or a status other than 204.
        """
        try:
            response = await self._http.delete(f"{self.base_url}/{peer_id}")
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise RemoteError(f"failed to delete old peering {peer_id}: {exc}") from exc

        if response.status_code != 204:
            raise RemoteError(
                f"unexpected status when deleting old peering {peer_id}: {_describe(response)}"
            )

    async def create_peer(self, alias: str, multiaddr: str) -> None:
        """
        Add a peer record.

        Raises:
            RemoteError: On transport failure or a non-2xx status.
        """
        body = CreatePeerRequest(multi_address=multiaddr, alias=alias)

        try:
            response = await self._http.post(
                self.base_url,
                json=body.model_dump(by_alias=True),
                headers={"Accept": "application/json"},
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise RemoteError(f"failed to post peering request: {exc}") from exc

        if not response.is_success:
            raise RemoteError(
                f"unexpected status when establishing peering: {_describe(response)}"
            )
