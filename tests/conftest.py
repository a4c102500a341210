"""Shared pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Mapping

import pytest

from dsp_operator.credentials.base import SecretAlreadyExists, SecretStore
from dsp_operator.params.defaults import DefaultsRegistry


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring a live cluster")


# ── Fake secret store for deterministic testing ─────────────────────────


class FakeSecretStore(SecretStore):
    """In-memory secret store that records every call."""

    def __init__(self, secrets: dict[tuple[str, str], dict[str, bytes]] | None = None) -> None:
        self.secrets: dict[tuple[str, str], dict[str, bytes]] = dict(secrets or {})
        self.gets: list[tuple[str, str]] = []
        self.creates: list[tuple[str, str]] = []

    def get(self, namespace: str, name: str) -> dict[str, bytes] | None:
        self.gets.append((namespace, name))
        data = self.secrets.get((namespace, name))
        return dict(data) if data is not None else None

    def create(
        self,
        namespace: str,
        name: str,
        data: Mapping[str, bytes],
        *,
        labels: Mapping[str, str] | None = None,
    ) -> None:
        self.creates.append((namespace, name))
        if (namespace, name) in self.secrets:
            raise SecretAlreadyExists(namespace, name)
        self.secrets[(namespace, name)] = dict(data)

    @property
    def calls(self) -> int:
        return len(self.gets) + len(self.creates)


SAMPLE_IMAGES: dict[str, object] = {
    "Images": {
        "ApiServer": "quay.io/dsp/api-server:v1",
        "Artifact": "quay.io/dsp/artifact:v1",
        "Cache": "quay.io/dsp/cache:v1",
        "MoveResultsImage": "quay.io/dsp/move-results:v1",
        "PersistentAgent": "quay.io/dsp/persistenceagent:v1",
        "ScheduledWorkflow": "quay.io/dsp/scheduledworkflow:v1",
        "MariaDB": "quay.io/dsp/mariadb:10",
        "OAuthProxy": "quay.io/dsp/oauth-proxy:latest",
        "MlmdEnvoy": "quay.io/dsp/mlmd-envoy:v1",
        "MlmdGRPC": "quay.io/dsp/mlmd-grpc:v1",
        "MlmdWriter": "quay.io/dsp/mlmd-writer:v1",
    },
    "ImagesV2": {
        "Argo": {
            "ApiServer": "quay.io/dsp/api-server:v2-argo",
            "Artifact": "quay.io/dsp/artifact:v2-argo",
            "Cache": "quay.io/dsp/cache:v2-argo",
            "MoveResultsImage": "quay.io/dsp/move-results:v2-argo",
            "PersistentAgent": "quay.io/dsp/persistenceagent:v2-argo",
            "ScheduledWorkflow": "quay.io/dsp/scheduledworkflow:v2-argo",
            "MlmdEnvoy": "quay.io/dsp/mlmd-envoy:v2-argo",
            "MlmdGRPC": "quay.io/dsp/mlmd-grpc:v2-argo",
            "MlmdWriter": "quay.io/dsp/mlmd-writer:v2-argo",
        },
        "Tekton": {
            "ApiServer": "quay.io/dsp/api-server:v2-tekton",
            "PersistentAgent": "quay.io/dsp/persistenceagent:v2-tekton",
        },
    },
}


@pytest.fixture()
def secret_store() -> FakeSecretStore:
    return FakeSecretStore()


@pytest.fixture()
def registry() -> DefaultsRegistry:
    return DefaultsRegistry(SAMPLE_IMAGES)


@pytest.fixture()
def store_factory() -> type[FakeSecretStore]:
    """Build pre-populated stores: ``store_factory({(ns, name): data})``."""
    return FakeSecretStore
