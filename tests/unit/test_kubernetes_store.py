"""Unit tests for the Kubernetes secret store (CoreV1Api mocked)."""

from __future__ import annotations

import base64
from unittest.mock import MagicMock

import pytest
import urllib3
from kubernetes import client
from kubernetes.client.rest import ApiException

from dsp_operator.credentials.base import SecretAlreadyExists
from dsp_operator.credentials.kubernetes_store import (
    MANAGED_BY_LABEL,
    MANAGED_BY_VALUE,
    KubernetesSecretStore,
)
from dsp_operator.errors import TransientStoreError


@pytest.fixture()
def core_api() -> MagicMock:
    return MagicMock(spec=client.CoreV1Api)


@pytest.fixture()
def store(core_api: MagicMock) -> KubernetesSecretStore:
    return KubernetesSecretStore(core_api)


class TestGet:
    def test_decodes_data(self, store: KubernetesSecretStore, core_api: MagicMock) -> None:
        core_api.read_namespaced_secret.return_value = client.V1Secret(
            data={"password": base64.b64encode(b"hunter2").decode()}
        )
        assert store.get("ns", "db") == {"password": b"hunter2"}
        core_api.read_namespaced_secret.assert_called_once_with("db", "ns")

    def test_empty_data(self, store: KubernetesSecretStore, core_api: MagicMock) -> None:
        core_api.read_namespaced_secret.return_value = client.V1Secret(data=None)
        assert store.get("ns", "db") == {}

    def test_not_found_is_none(self, store: KubernetesSecretStore, core_api: MagicMock) -> None:
        core_api.read_namespaced_secret.side_effect = ApiException(status=404, reason="Not Found")
        assert store.get("ns", "db") is None

    def test_other_status_is_transient(self, store: KubernetesSecretStore, core_api: MagicMock) -> None:
        core_api.read_namespaced_secret.side_effect = ApiException(status=500, reason="Boom")
        with pytest.raises(TransientStoreError) as exc_info:
            store.get("ns", "db")
        assert exc_info.value.status == 500

    def test_connection_error_is_transient(
        self, store: KubernetesSecretStore, core_api: MagicMock
    ) -> None:
        core_api.read_namespaced_secret.side_effect = urllib3.exceptions.ProtocolError("reset")
        with pytest.raises(TransientStoreError):
            store.get("ns", "db")


class TestCreate:
    def test_body(self, store: KubernetesSecretStore, core_api: MagicMock) -> None:
        store.create("ns", "ds-pipeline-db-x", {"password": b"pw"}, labels={"app": "ds-pipeline-x"})

        namespace, body = core_api.create_namespaced_secret.call_args.args
        assert namespace == "ns"
        assert body.metadata.name == "ds-pipeline-db-x"
        assert body.metadata.labels == {MANAGED_BY_LABEL: MANAGED_BY_VALUE, "app": "ds-pipeline-x"}
        assert body.data == {"password": base64.b64encode(b"pw").decode()}
        assert body.type == "Opaque"

    def test_conflict_raises_already_exists(
        self, store: KubernetesSecretStore, core_api: MagicMock
    ) -> None:
        core_api.create_namespaced_secret.side_effect = ApiException(status=409, reason="Conflict")
        with pytest.raises(SecretAlreadyExists):
            store.create("ns", "db", {"password": b"pw"})

    def test_forbidden_is_transient(self, store: KubernetesSecretStore, core_api: MagicMock) -> None:
        core_api.create_namespaced_secret.side_effect = ApiException(status=403, reason="Forbidden")
        with pytest.raises(TransientStoreError) as exc_info:
            store.create("ns", "db", {"password": b"pw"})
        assert exc_info.value.status == 403
