"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
from hypothesis import settings

from tangle_peerer.directory import PodEndpoint
from tangle_peerer.identity import IdentityKeypair
from tests.fakes import FakeDirectory, FakeHornet

# Create a profile named "no_deadline" with deadline disabled.
settings.register_profile("no_deadline", deadline=None)
settings.load_profile("no_deadline")


@pytest.fixture
def hornet() -> FakeHornet:
    """Fake Hornet node with an empty peer table."""
    return FakeHornet()


@pytest.fixture
def directory() -> FakeDirectory:
    """Fake directory holding exactly one main pod."""
    return FakeDirectory(pods=[PodEndpoint(name="hornet-main", ip="10.0.0.1")])


@pytest.fixture
def keypair() -> IdentityKeypair:
    """A fresh Ed25519 identity."""
    return IdentityKeypair.generate()


@pytest.fixture
def key_file(tmp_path: Path, keypair: IdentityKeypair) -> Path:
    """PEM file holding the `keypair` identity."""
    path = tmp_path / "identity.key"
    path.write_bytes(keypair.to_pem())
    return path
