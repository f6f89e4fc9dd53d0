"""Tests for locating the main Hornet pod."""

from __future__ import annotations

import asyncio
import datetime
import ssl
from pathlib import Path

import httpx
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from tangle_peerer.directory import KubernetesPodDirectory, MainNodeLocator, PodEndpoint
from tangle_peerer.exceptions import ConfigError, ResolutionError
from tests.fakes import FakeDirectory


def _self_signed_ca_pem() -> bytes:
    """Create a throwaway CA certificate."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "kubernetes")])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + datetime.timedelta(days=1))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )
    return cert.public_bytes(serialization.Encoding.PEM)


def _pod(name: str, ip: str | None) -> dict[str, object]:
    status: dict[str, object] = {"phase": "Running"}
    if ip is not None:
        status["podIP"] = ip
    return {"metadata": {"name": name, "namespace": "iota"}, "status": status}


class TestKubernetesPodDirectory:
    """Tests for the Kubernetes API backed directory."""

    def test_lists_pods_with_selectors(self) -> None:
        """Label and field selectors are sent, pod IPs decoded."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"kind": "PodList", "items": [_pod("hornet-0", "10.0.0.1"), _pod("x", None)]},
            )

        directory = KubernetesPodDirectory(
            api_url="https://k8s.local:443",
            token="secret-token",
            transport=httpx.MockTransport(handler),
        )
        pods = asyncio.run(directory.list_pods("app=iota-hornet", "iota", "node-a"))

        assert pods == [PodEndpoint("hornet-0", "10.0.0.1"), PodEndpoint("x", None)]

        request = seen[0]
        assert request.url.path == "/api/v1/namespaces/iota/pods"
        assert request.url.params["labelSelector"] == "app=iota-hornet"
        assert request.url.params["fieldSelector"] == "spec.nodeName=node-a"
        assert request.headers["Authorization"] == "Bearer secret-token"

    def test_error_status(self) -> None:
        """An API error is a resolution error."""
        directory = KubernetesPodDirectory(
            api_url="https://k8s.local:443",
            token="t",
            transport=httpx.MockTransport(lambda request: httpx.Response(403, text="forbidden")),
        )
        with pytest.raises(ResolutionError, match="HTTP 403: forbidden"):
            asyncio.run(directory.list_pods("app=iota-hornet", "iota", "node-a"))

    def test_transport_failure(self) -> None:
        """Connection failures are resolution errors."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        directory = KubernetesPodDirectory(
            api_url="https://k8s.local:443", token="t", transport=httpx.MockTransport(handler)
        )
        with pytest.raises(ResolutionError, match="connection refused"):
            asyncio.run(directory.list_pods("app=iota-hornet", "iota", "node-a"))

    def test_malformed_response(self) -> None:
        """A body that is not a pod list is a resolution error."""
        directory = KubernetesPodDirectory(
            api_url="https://k8s.local:443",
            token="t",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=["nope"])),
        )
        with pytest.raises(ResolutionError, match="unexpected pod list"):
            asyncio.run(directory.list_pods("app=iota-hornet", "iota", "node-a"))


class TestInCluster:
    """Tests for building the directory from the service account."""

    def test_outside_cluster(self, tmp_path: Path) -> None:
        """Without the service env vars the sidecar cannot run."""
        with pytest.raises(ConfigError, match="outside a cluster"):
            KubernetesPodDirectory.in_cluster(environ={}, credentials_dir=tmp_path)

    def test_missing_credentials(self, tmp_path: Path) -> None:
        """A missing token file is fatal."""
        env = {"KUBERNETES_SERVICE_HOST": "10.96.0.1", "KUBERNETES_SERVICE_PORT": "443"}
        with pytest.raises(ConfigError, match="service account credentials"):
            KubernetesPodDirectory.in_cluster(environ=env, credentials_dir=tmp_path)

    def test_loads_service_account(self, tmp_path: Path) -> None:
        """Token and CA are read from the mounted directory."""
        (tmp_path / "token").write_text("secret-token\n")
        (tmp_path / "ca.crt").write_bytes(_self_signed_ca_pem())
        env = {"KUBERNETES_SERVICE_HOST": "10.96.0.1", "KUBERNETES_SERVICE_PORT": "443"}

        directory = KubernetesPodDirectory.in_cluster(environ=env, credentials_dir=tmp_path)

        assert directory.api_url == "https://10.96.0.1:443"
        assert directory.token == "secret-token"
        assert isinstance(directory.verify, ssl.SSLContext)

    def test_ipv6_service_host(self, tmp_path: Path) -> None:
        """IPv6 hosts are bracketed in the URL."""
        (tmp_path / "token").write_text("t")
        (tmp_path / "ca.crt").write_bytes(_self_signed_ca_pem())
        env = {"KUBERNETES_SERVICE_HOST": "fd00::1", "KUBERNETES_SERVICE_PORT": "443"}

        directory = KubernetesPodDirectory.in_cluster(environ=env, credentials_dir=tmp_path)

        assert directory.api_url == "https://[fd00::1]:443"


class TestMainNodeLocator:
    """Tests for pinning the lookup to exactly one pod."""

    def _locator(self, directory: FakeDirectory) -> MainNodeLocator:
        return MainNodeLocator(
            directory=directory,
            label_selector="app=iota-hornet",
            namespace="iota",
            main_node_name="node-a",
        )

    def test_single_pod(self, directory: FakeDirectory) -> None:
        """Exactly one pod with an IP resolves to that IP."""
        assert asyncio.run(self._locator(directory).resolve()) == "10.0.0.1"
        assert directory.calls == [("app=iota-hornet", "iota", "node-a")]

    @pytest.mark.parametrize("count", [0, 2, 3])
    def test_wrong_pod_count(self, count: int) -> None:
        """Zero or several pods are a recoverable error naming the count."""
        directory = FakeDirectory(
            pods=[PodEndpoint(f"hornet-{i}", f"10.0.0.{i + 1}") for i in range(count)]
        )
        with pytest.raises(ResolutionError, match=rf"\({count} exist\)"):
            asyncio.run(self._locator(directory).resolve())

    @pytest.mark.parametrize("ip", [None, ""])
    def test_pod_without_ip(self, ip: str | None) -> None:
        """A pod still being scheduled has no IP yet."""
        directory = FakeDirectory(pods=[PodEndpoint("hornet-0", ip)])
        with pytest.raises(ResolutionError, match="has no IP"):
            asyncio.run(self._locator(directory).resolve())
