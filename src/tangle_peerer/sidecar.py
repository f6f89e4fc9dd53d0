"""
Peering sidecar: startup sequence and the per-cycle attempt.

Startup (once per process):
    1. Idle if this sidecar runs next to the main node itself
    2. Connect to the cluster's membership directory
    3. Wait for and load the node identity
    4. Build the canonical multiaddress

Every attempt then resolves the main node again and reconciles our
record on it. Recoverable errors are logged and turn into a failed
attempt. Fatal errors propagate to the CLI.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from .config import REQUEST_TIMEOUT_SECS, PeererConfig
from .directory import KubernetesPodDirectory, MainNodeLocator, PodDirectory
from .exceptions import RecoverableError
from .identity import FileWaiter, load_identity
from .multiaddr import LocalAddress, build_local_address
from .peering import DesiredPeering, PeeringClient, PeeringReconciler
from .scheduler import run_forever

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PeeringSidecar:
    """Keeps this node's peer record on the main node correct."""

    locator: MainNodeLocator
    """Finds the main node at the start of each attempt."""

    reconciler: PeeringReconciler
    """Holds the desired record and runs one cycle."""

    rest_api_port: int
    """Port of the main node's REST API."""

    transport: httpx.AsyncBaseTransport | None = None
    """Custom transport for the peering API, used by tests."""

    async def try_peering(self) -> bool:
        """
        Run one attempt.

        Returns:
            True once the main node holds exactly our record.
        """
        try:
            logger.info("Getting main hornet node")
            main_ip = await self.locator.resolve()

            async with PeeringClient(
                main_ip, self.rest_api_port, REQUEST_TIMEOUT_SECS, self.transport
            ) as client:
                outcome = await self.reconciler.reconcile(client)
        except RecoverableError as exc:
            logger.error("%s, will try again later", exc)
            return False

        logger.info("Peering with %s reconciled: %s", main_ip, outcome.name.lower())
        return True

    async def run(
        self, refresh_period: float, retry_period: float, stop: asyncio.Event | None = None
    ) -> None:
        """Keep reconciling on the configured cadence until `stop` is set."""
        await run_forever(self.try_peering, refresh_period, retry_period, stop)

    @classmethod
    async def start(
        cls,
        config: PeererConfig,
        directory_factory: Callable[[], PodDirectory] = KubernetesPodDirectory.in_cluster,
        waiter: FileWaiter | None = None,
        stop: asyncio.Event | None = None,
    ) -> None:
        """
        Run the sidecar described by `config`.

        Raises:
            ConfigError: If the cluster cannot be reached or the address is invalid.
            IdentityError: If the key file holds no usable Ed25519 key.
        """
        if config.is_main_node:
            logger.warning("Is main node, not running")
            await (stop or asyncio.Event()).wait()
            return

        directory = directory_factory()

        address = await resolve_local_address(config, waiter)
        logger.info("Multiaddress is %s", address)

        sidecar = cls(
            locator=MainNodeLocator(
                directory=directory,
                label_selector=config.hornet_selector,
                namespace=config.hornet_namespace,
                main_node_name=config.main_node_name,
            ),
            reconciler=PeeringReconciler(
                DesiredPeering(alias=config.my_node_name, multiaddr=str(address))
            ),
            rest_api_port=config.rest_api_port,
        )
        await sidecar.run(config.refresh_period, config.retry_period, stop)


async def resolve_local_address(
    config: PeererConfig, waiter: FileWaiter | None = None
) -> LocalAddress:
    """Load the node identity and build its canonical multiaddress."""
    keypair = await load_identity(config.private_key_file, waiter)
    peer_id = keypair.to_peer_id()
    return build_local_address(config.my_ip, config.gossip_port, peer_id.to_base58())
