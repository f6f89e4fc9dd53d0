"""
Reconciliation of our peer record on the main node.

One cycle compares the desired record (our alias and multiaddress)
with the main node's peer table and drives it to convergence:

    Start -> Listed -> Converged                    (nothing to do)
                    -> NeedsCreate -> Created       (POST)
                    -> NeedsReplace -> Deleted -> NeedsCreate -> Created
                                                    (DELETE, then POST)

Any error aborts the cycle. The next attempt starts from a fresh listing.

Records are replaced rather than updated in place because Hornet
derives a peer's identity from its address. A new address is a new
peer, so the old record has to go before the new one is added,
otherwise the alias would be left pointing at a stale duplicate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto

from ..exceptions import RemoteError
from .client import PeeringClient
from .models import PeerRecord

logger = logging.getLogger(__name__)


class ReconcileOutcome(Enum):
    """How a successful cycle reached convergence."""

    CONVERGED = auto()
    """The record was already correct. No mutating call was issued."""

    CREATED = auto()
    """No record carried our alias. One was created."""

    REPLACED = auto()
    """Stale records were deleted and a fresh one was created."""

    PRUNED = auto()
    """A correct record existed. Stale duplicates next to it were deleted."""


@dataclass(frozen=True, slots=True)
class DesiredPeering:
    """The record the main node should hold for us."""

    alias: str
    """Name of the local Kubernetes node."""

    multiaddr: str
    """Canonical `/ip4/.../tcp/.../p2p/...` address of the local node."""


def _stale_record_id(record: PeerRecord) -> str:
    if not record.id:
        raise RemoteError(
            f"PeerID not found in peer corresponding to this node ({record.alias}) "
            "in get peers response"
        )
    return record.id


class PeeringReconciler:
    """Runs reconciliation cycles for one desired peering."""

    def __init__(self, desired: DesiredPeering) -> None:
        self.desired = desired

    async def reconcile(self, client: PeeringClient) -> ReconcileOutcome:
        """
        Run one cycle against the node behind `client`.

        Raises:
            RemoteError: If any call fails, or a record carrying our alias
                has no id and therefore cannot be replaced.
        """
        logger.info("Checking current peers")
        peers = await client.list_peers()
        logger.info("Gathered %d current peers", len(peers))

        matches = [peer for peer in peers if peer.alias == self.desired.alias]

        current: list[PeerRecord] = []
        stale_ids: list[str] = []
        for record in matches:
            full_multiaddr = record.full_multiaddr()
            if full_multiaddr == self.desired.multiaddr:
                current.append(record)
                continue

            if record.id and not record.multi_address:
                logger.warning(
                    "Multiaddress not found in peer corresponding to this node (%s), "
                    "replacing it",
                    record.alias,
                )
            stale_ids.append(_stale_record_id(record))
            if full_multiaddr is not None:
                logger.info(
                    "Multiaddress in main node is stale (mine (%s) != in main (%s))",
                    self.desired.multiaddr,
                    full_multiaddr,
                )

        for peer_id in stale_ids:
            logger.info("Deleting old peering %s", peer_id)
            await client.delete_peer(peer_id)
            logger.info("Old peering %s deleted", peer_id)

        if current:
            if stale_ids:
                return ReconcileOutcome.PRUNED
            logger.info("Already peered with main node")
            return ReconcileOutcome.CONVERGED

        logger.info("Establishing peering as %s", self.desired.alias)
        await client.create_peer(self.desired.alias, self.desired.multiaddr)
        logger.info("Peering established")

        return ReconcileOutcome.REPLACED if stale_ids else ReconcileOutcome.CREATED
