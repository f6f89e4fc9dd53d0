"""
Location of the main Hornet node inside the cluster.

The main node runs as one pod of a DaemonSet, pinned to a known
Kubernetes node. Its pod IP changes whenever the pod is rescheduled, so
it is looked up again at the start of every reconciliation cycle.

The lookup asks the Kubernetes API server for pods matching the Hornet
label selector and scheduled on the main node. Exactly one match with an
IP is a success. Zero or several matches are expected while a pod is
being replaced, so they are reported as recoverable errors and retried.
"""

from __future__ import annotations

import logging
import os
import ssl
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Protocol

import httpx
from pydantic import Field, ValidationError

from .config import REQUEST_TIMEOUT_SECS
from .exceptions import ConfigError, ResolutionError
from .types import LooseModel

__all__ = [
    "KubernetesPodDirectory",
    "MainNodeLocator",
    "PodDirectory",
    "PodEndpoint",
]

logger = logging.getLogger(__name__)

SERVICE_ACCOUNT_DIR: Final = Path("/var/run/secrets/kubernetes.io/serviceaccount")
"""Where Kubernetes mounts the pod's service account credentials."""


class PodMetadata(LooseModel):
    name: str = ""


class PodStatus(LooseModel):
    pod_ip: str | None = Field(default=None, alias="podIP")


class Pod(LooseModel):
    metadata: PodMetadata = PodMetadata()
    status: PodStatus = PodStatus()


class PodList(LooseModel):
    """Subset of the Kubernetes `PodList` response we rely on."""

    items: list[Pod] = []


@dataclass(frozen=True, slots=True)
class PodEndpoint:
    """A candidate main-node pod and its current IP, if assigned."""

    name: str
    ip: str | None


class PodDirectory(Protocol):
    """Membership directory listing the pods of the Hornet network."""

    async def list_pods(
        self, label_selector: str, namespace: str, node_name: str
    ) -> list[PodEndpoint]:
        """Return the pods matching `label_selector` that run on `node_name`."""
        ...


@dataclass(frozen=True, slots=True)
class KubernetesPodDirectory:
    """
    PodDirectory backed by the Kubernetes API server.

    Authenticates with the pod's service account token over TLS.
    """

    api_url: str
    """Base URL of the API server, e.g. "https://10.96.0.1:443"."""

    token: str
    """Bearer token of the service account."""

    verify: ssl.SSLContext | bool = True
    """TLS verification setting handed to httpx."""

    timeout: float = REQUEST_TIMEOUT_SECS
    """Timeout of one list call in seconds."""

    transport: httpx.AsyncBaseTransport | None = None
    """Custom transport, used by tests."""

    @classmethod
    def in_cluster(
        cls,
        environ: Mapping[str, str] | None = None,
        credentials_dir: Path = SERVICE_ACCOUNT_DIR,
    ) -> KubernetesPodDirectory:
        """
        Build a directory from the in-cluster service account.

        Raises:
            ConfigError: If the process is not running inside a cluster.
        """
        environ = os.environ if environ is None else environ
        host = environ.get("KUBERNETES_SERVICE_HOST", "")
        port = environ.get("KUBERNETES_SERVICE_PORT", "")
        if not host or not port:
            raise ConfigError(
                "KUBERNETES_SERVICE_HOST/PORT not set, is the sidecar running outside a cluster?"
            )

        try:
            token = (credentials_dir / "token").read_text().strip()
            verify = ssl.create_default_context(cafile=str(credentials_dir / "ca.crt"))
        except (OSError, ssl.SSLError) as exc:
            raise ConfigError(f"failed to load service account credentials: {exc}") from exc

        # IPv6 service hosts must be bracketed inside URLs.
        if ":" in host:
            host = f"[{host}]"

        return cls(api_url=f"https://{host}:{port}", token=token, verify=verify)

    async def list_pods(
        self, label_selector: str, namespace: str, node_name: str
    ) -> list[PodEndpoint]:
        """
        List the pods matching the selector and scheduled on `node_name`.

        Raises:
            ResolutionError: On transport failure, an error status, or a
                response that is not a pod list.
        """
        url = f"{self.api_url}/api/v1/namespaces/{namespace}/pods"
        params = {
            "labelSelector": label_selector,
            "fieldSelector": f"spec.nodeName={node_name}",
        }
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {self.token}",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, verify=self.verify, transport=self.transport
            ) as client:
                response = await client.get(url, params=params, headers=headers)
                response.raise_for_status()
                pod_list = PodList.model_validate_json(response.content)
        except httpx.HTTPStatusError as exc:
            raise ResolutionError(
                f"failed to list pods matching labels {label_selector} and nodeName "
                f"{node_name}: HTTP {exc.response.status_code}: {exc.response.text[:200]}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ResolutionError(
                f"failed to list pods matching labels {label_selector} and nodeName "
                f"{node_name}: {exc}"
            ) from exc
        except ValidationError as exc:
            raise ResolutionError(f"unexpected pod list response: {exc}") from exc

        return [
            PodEndpoint(name=pod.metadata.name, ip=pod.status.pod_ip) for pod in pod_list.items
        ]


@dataclass(frozen=True, slots=True)
class MainNodeLocator:
    """Resolves the IP of the single main Hornet pod."""

    directory: PodDirectory
    label_selector: str
    namespace: str
    main_node_name: str

    async def resolve(self) -> str:
        """
        Return the current IP of the main Hornet pod.

        Raises:
            ResolutionError: Unless exactly one pod matched and it has an IP.
        """
        pods = await self.directory.list_pods(
            self.label_selector, self.namespace, self.main_node_name
        )

        if len(pods) != 1:
            raise ResolutionError(
                f"there is not exactly 1 main hornet pod ({len(pods)} exist)"
            )

        pod = pods[0]
        if not pod.ip:
            raise ResolutionError(f"main hornet pod {pod.name} has no IP")

        logger.debug("Main hornet pod %s has IP %s", pod.name, pod.ip)
        return pod.ip
