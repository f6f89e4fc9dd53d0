"""Peering with the main Hornet node: REST client and reconciler."""

from .client import PEERS_PATH, PeeringClient
from .models import CreatePeerRequest, PeerRecord
from .reconciler import DesiredPeering, PeeringReconciler, ReconcileOutcome

__all__ = [
    "CreatePeerRequest",
    "DesiredPeering",
    "PEERS_PATH",
    "PeerRecord",
    "PeeringClient",
    "PeeringReconciler",
    "ReconcileOutcome",
]
