"""
Runtime configuration for the peering sidecar.

Values come from two places:

- Command-line flags describe the deployment (main node, selector, ports).
- The environment describes the pod the sidecar runs in. Kubernetes
  injects `MY_NODE_NAME` and `MY_IP` through the downward API.

Everything is validated up front. A missing value is fatal before the
reconciliation loop starts.
"""

from __future__ import annotations

import argparse
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Final

from pydantic import Field, ValidationError

from .exceptions import ConfigError
from .types import StrictBaseModel

DEFAULT_REFRESH_PERIOD_SECS: Final = 300.0
"""Period between checks that the peering is still correct."""

DEFAULT_RETRY_PERIOD_SECS: Final = 5.0
"""Period between attempts while the peering is not established."""

DEFAULT_REST_API_PORT: Final = 14265
"""Port of the main node's Hornet REST API."""

DEFAULT_GOSSIP_PORT: Final = 15600
"""Port of the Hornet gossip protocol, advertised in the multiaddress."""

REQUEST_TIMEOUT_SECS: Final = 5.0
"""Timeout of a single remote call (directory lookup or peering API)."""

ENV_NODE_NAME: Final = "MY_NODE_NAME"
ENV_POD_IP: Final = "MY_IP"

_DURATION_UNITS: Final[dict[str, float]] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_TERM = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(text: str) -> float:
    """
    Parse a Go-style duration string into seconds.

    Accepts a sequence of decimal numbers with units, e.g. "300ms",
    "5s", "1h30m". A bare "0" is also accepted.

    Raises:
        ValueError: If the string is not a valid duration.
    """
    text = text.strip()
    if text == "0":
        return 0.0

    total = 0.0
    pos = 0
    for match in _DURATION_TERM.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()

    if pos == 0 or pos != len(text):
        raise ValueError(f"invalid duration {text!r}")
    return total


def _duration_arg(text: str) -> float:
    """argparse type for duration flags."""
    try:
        return parse_duration(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def add_arguments(parser: argparse.ArgumentParser) -> None:
    """Register the sidecar's configuration flags on `parser`."""
    parser.add_argument(
        "--main-node-name",
        default="",
        help="Name of the k8s node hosting the main Hornet pod",
    )
    parser.add_argument(
        "--iota-hornet-selector",
        default="",
        help="Label selector of the iota-hornet daemonset pods",
    )
    parser.add_argument(
        "--iota-hornet-ns",
        default="",
        help="Namespace of the iota-hornet daemonset",
    )
    parser.add_argument(
        "--private-key-file",
        default="",
        help="Path to the private key file of this Hornet node",
    )
    parser.add_argument(
        "--refresh-period",
        type=_duration_arg,
        default=DEFAULT_REFRESH_PERIOD_SECS,
        help="Period between checks if peering needs to be re-established, e.g. 5m (default: 5m)",
    )
    parser.add_argument(
        "--retry-period",
        type=_duration_arg,
        default=DEFAULT_RETRY_PERIOD_SECS,
        help="Period between retries of peering establishment, e.g. 5s (default: 5s)",
    )
    parser.add_argument(
        "--hornet-rest-api-port",
        type=int,
        default=DEFAULT_REST_API_PORT,
        help=f"Port of the main node's Hornet REST API (default: {DEFAULT_REST_API_PORT})",
    )
    parser.add_argument(
        "--gossip-protocol-port",
        type=int,
        default=DEFAULT_GOSSIP_PORT,
        help=f"Hornet gossip protocol port, included in the multiaddress "
        f"(default: {DEFAULT_GOSSIP_PORT})",
    )


class PeererConfig(StrictBaseModel):
    """Validated configuration of one sidecar process."""

    main_node_name: str = Field(min_length=1)
    """Kubernetes node hosting the main Hornet pod."""

    hornet_selector: str = Field(min_length=1)
    """Label selector matching the Hornet pods."""

    hornet_namespace: str = Field(min_length=1)
    """Namespace of the Hornet pods."""

    private_key_file: Path
    """PEM file holding this node's Ed25519 identity key."""

    refresh_period: float = Field(default=DEFAULT_REFRESH_PERIOD_SECS, gt=0)
    """Seconds between reconciliations once peering is established."""

    retry_period: float = Field(default=DEFAULT_RETRY_PERIOD_SECS, gt=0)
    """Seconds between attempts while reconciliation fails."""

    rest_api_port: int = Field(default=DEFAULT_REST_API_PORT, gt=0, le=65535)
    """Port of the main node's REST API."""

    gossip_port: int = Field(default=DEFAULT_GOSSIP_PORT, gt=0, le=65535)
    """Gossip port advertised in our multiaddress."""

    my_node_name: str = Field(min_length=1)
    """Kubernetes node this sidecar runs on. Used as the peer alias."""

    my_ip: str = Field(min_length=1)
    """IP address of the local Hornet pod."""

    @property
    def is_main_node(self) -> bool:
        """Whether this sidecar runs next to the main node itself."""
        return self.main_node_name == self.my_node_name

    @classmethod
    def load(cls, args: argparse.Namespace, environ: Mapping[str, str]) -> PeererConfig:
        """
        Build the configuration from parsed flags and the environment.

        Raises:
            ConfigError: Naming the first missing or invalid value.
        """
        required = {
            "--main-node-name": args.main_node_name,
            "--iota-hornet-selector": args.iota_hornet_selector,
            "--iota-hornet-ns": args.iota_hornet_ns,
            "--private-key-file": args.private_key_file,
            ENV_NODE_NAME: environ.get(ENV_NODE_NAME, ""),
            ENV_POD_IP: environ.get(ENV_POD_IP, ""),
        }
        for name, value in required.items():
            if not value:
                raise ConfigError(f"{name} not specified")

        try:
            return cls(
                main_node_name=args.main_node_name,
                hornet_selector=args.iota_hornet_selector,
                hornet_namespace=args.iota_hornet_ns,
                private_key_file=Path(args.private_key_file),
                refresh_period=float(args.refresh_period),
                retry_period=float(args.retry_period),
                rest_api_port=args.hornet_rest_api_port,
                gossip_port=args.gossip_protocol_port,
                my_node_name=environ[ENV_NODE_NAME],
                my_ip=environ[ENV_POD_IP],
            )
        except ValidationError as exc:
            raise ConfigError(f"invalid configuration: {exc}") from exc
