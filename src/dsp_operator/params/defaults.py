"""Compiled defaults and the layered image-defaults registry."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from dsp_operator.api.models import ResourceRequirements, Resources

if TYPE_CHECKING:
    from dsp_operator.config import Settings

logger = logging.getLogger(__name__)

# Returned for any image path the config map does not set.
DEFAULT_IMAGE_VALUE = "MustSetInConfig"

# ---------------------------------------------------------------------------
# Naming conventions
# ---------------------------------------------------------------------------

DSP_SERVICE_PREFIX = "ds-pipeline"
ML_PIPELINE_UI_CONFIGMAP_PREFIX = "ds-pipeline-ui-configmap-"
ARTIFACT_SCRIPT_CONFIGMAP_NAME_PREFIX = "ds-pipeline-artifact-script-"
ARTIFACT_SCRIPT_CONFIGMAP_KEY = "artifact_script"

DB_SECRET_NAME_PREFIX = "ds-pipeline-db-"
DB_SECRET_KEY = "password"

MARIADB_NAME = "mlpipeline"
MARIADB_HOST_PREFIX = "mariadb"
MARIADB_HOST_PORT = "3306"
MARIADB_USER = "mlpipeline"
MARIADB_PVC_SIZE = "10Gi"

MINIO_HOST_PREFIX = "minio"
MINIO_PORT = "9000"
MINIO_SCHEME = "http"
MINIO_DEFAULT_BUCKET = "mlpipeline"
MINIO_PVC_SIZE = "10Gi"

OBJECT_STORAGE_SECRET_NAME_PREFIX = "ds-pipeline-s3-"
OBJECT_STORAGE_ACCESS_KEY = "accesskey"
OBJECT_STORAGE_SECRET_KEY = "secretkey"

MLMD_GRPC_PORT = "8080"

SECURE_SCHEME = "https"

# ---------------------------------------------------------------------------
# Ungated config paths (not routed through the version / engine matrix)
# ---------------------------------------------------------------------------

MARIADB_IMAGE_PATH = "Images.MariaDB"
OAUTH_PROXY_IMAGE_PATH = "Images.OAuthProxy"

# Paths the operator refuses to report ready without.
REQUIRED_PATHS: tuple[str, ...] = (
    "Images.ApiServer",
    "Images.Artifact",
    "Images.PersistentAgent",
    "Images.ScheduledWorkflow",
    "Images.Cache",
    "Images.MoveResultsImage",
    MARIADB_IMAGE_PATH,
    OAUTH_PROXY_IMAGE_PATH,
)

# ---------------------------------------------------------------------------
# Default resource requirements
# ---------------------------------------------------------------------------


def _requirements(
    requests_cpu: str, requests_memory: str, limits_cpu: str, limits_memory: str
) -> ResourceRequirements:
    return ResourceRequirements(
        requests=Resources(cpu=requests_cpu, memory=requests_memory),
        limits=Resources(cpu=limits_cpu, memory=limits_memory),
    )


API_SERVER_RESOURCES = _requirements("250m", "500Mi", "500m", "1Gi")
PERSISTENCE_AGENT_RESOURCES = _requirements("120m", "500Mi", "250m", "1Gi")
SCHEDULED_WORKFLOW_RESOURCES = _requirements("120m", "100Mi", "250m", "250Mi")
MARIADB_RESOURCES = _requirements("300m", "800Mi", "1", "1Gi")
MINIO_RESOURCES = _requirements("200m", "100Mi", "250m", "1Gi")
ML_PIPELINE_UI_RESOURCES = _requirements("100m", "256Mi", "100m", "256Mi")
MLMD_ENVOY_RESOURCES = _requirements("100m", "256Mi", "100m", "256Mi")
MLMD_GRPC_RESOURCES = _requirements("100m", "256Mi", "100m", "256Mi")
MLMD_WRITER_RESOURCES = _requirements("100m", "256Mi", "100m", "256Mi")


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def _flatten(data: Mapping[str, Any], prefix: str = "") -> dict[str, str]:
    """Flatten nested mappings into lower-cased dotted paths."""
    flat: dict[str, str] = {}
    for key, value in data.items():
        path = f"{prefix}.{key}".lower() if prefix else str(key).lower()
        if isinstance(value, Mapping):
            flat.update(_flatten(value, path))
        elif value is not None:
            flat[path] = str(value)
    return flat


class DefaultsRegistry:
    """Read-only map from symbolic config paths to default values.

    Paths are dotted and case-insensitive (``Images.ApiServer`` and
    ``images.apiserver`` are the same key).  Layers passed to the
    constructor are applied in order, later ones winning.

    Parameters
    ----------
    layers:
        Nested or already-flattened mappings, lowest priority first.
    """

    def __init__(self, *layers: Mapping[str, Any]) -> None:
        merged: dict[str, str] = {}
        for layer in layers:
            merged.update(_flatten(layer))
        self._values: Mapping[str, str] = MappingProxyType(merged)

    @classmethod
    def from_settings(
        cls, config: Settings, fallbacks: Mapping[str, Any] | None = None
    ) -> DefaultsRegistry:
        """Build the registry from loaded :class:`~dsp_operator.config.Settings`.

        *fallbacks* are compiled-in values that the config map and the
        environment may override.
        """
        registry = cls(
            fallbacks or {},
            {"Images": config.images, "ImagesV2": config.images_v2},
        )
        missing = registry.missing_required()
        if missing:
            logger.warning("Config is missing required image paths: %s", ", ".join(missing))
        return registry

    def lookup(self, path: str) -> str:
        """Return the value at *path*, or :data:`DEFAULT_IMAGE_VALUE` when unset."""
        return self._values.get(path.lower(), DEFAULT_IMAGE_VALUE)

    def is_set(self, path: str) -> bool:
        return path.lower() in self._values

    def missing_required(self, paths: Iterable[str] = REQUIRED_PATHS) -> list[str]:
        """Return the required *paths* with no configured value."""
        return [p for p in paths if not self.is_set(p)]

    def __len__(self) -> int:
        return len(self._values)
