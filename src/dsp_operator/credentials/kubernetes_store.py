"""Kubernetes implementation of the secret-store abstraction."""

from __future__ import annotations

import base64
import logging
from collections.abc import Mapping

import urllib3
from kubernetes import client, config
from kubernetes.client.rest import ApiException

from dsp_operator.credentials.base import SecretAlreadyExists, SecretStore
from dsp_operator.errors import TransientStoreError

logger = logging.getLogger(__name__)

MANAGED_BY_LABEL = "app.kubernetes.io/managed-by"
MANAGED_BY_VALUE = "data-science-pipelines-operator"


def load_core_api(kubeconfig: str = "") -> client.CoreV1Api:
    """Return a ``CoreV1Api``, preferring in-cluster credentials."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config(config_file=kubeconfig or None)
    return client.CoreV1Api()


class KubernetesSecretStore(SecretStore):
    """Secrets read from and created in the cluster via ``CoreV1Api``.

    Parameters
    ----------
    core_api:
        A configured ``CoreV1Api``.  When *None* one is built with
        :func:`load_core_api`.
    kubeconfig:
        Kubeconfig path used outside the cluster.
    """

    def __init__(self, core_api: client.CoreV1Api | None = None, *, kubeconfig: str = "") -> None:
        self._api = core_api if core_api is not None else load_core_api(kubeconfig)

    def get(self, namespace: str, name: str) -> dict[str, bytes] | None:
        try:
            secret = self._api.read_namespaced_secret(name, namespace)
        except ApiException as e:
            if e.status == 404:
                return None
            logger.error("Unable to fetch secret %s/%s (status %s)", namespace, name, e.status)
            raise TransientStoreError(
                f"Unable to fetch secret {namespace}/{name}: {e.reason}", status=e.status
            ) from e
        except urllib3.exceptions.HTTPError as e:
            raise TransientStoreError(f"Secret store unreachable reading {namespace}/{name}: {e}") from e
        return {key: base64.b64decode(value) for key, value in (secret.data or {}).items()}

    def create(
        self,
        namespace: str,
        name: str,
        data: Mapping[str, bytes],
        *,
        labels: Mapping[str, str] | None = None,
    ) -> None:
        body = client.V1Secret(
            api_version="v1",
            kind="Secret",
            type="Opaque",
            metadata=client.V1ObjectMeta(
                name=name,
                namespace=namespace,
                labels={MANAGED_BY_LABEL: MANAGED_BY_VALUE, **(labels or {})},
            ),
            data={key: base64.b64encode(value).decode("ascii") for key, value in data.items()},
        )
        try:
            self._api.create_namespaced_secret(namespace, body)
        except ApiException as e:
            if e.status == 409:
                raise SecretAlreadyExists(namespace, name) from e
            logger.error("Unable to create secret %s/%s (status %s)", namespace, name, e.status)
            raise TransientStoreError(
                f"Unable to create secret {namespace}/{name}: {e.reason}", status=e.status
            ) from e
        except urllib3.exceptions.HTTPError as e:
            raise TransientStoreError(f"Secret store unreachable creating {namespace}/{name}: {e}") from e
        logger.info("Created secret %s/%s", namespace, name)
