"""Version / engine-driver selection of default image paths.

The matrix is plain data: :data:`IMAGE_PATHS` maps every
``(component, version, engine driver)`` combination to the config path that
supplies the component's default image.  Legacy pipelines have a single
image family, keyed with ``None`` as the engine driver.
"""

from __future__ import annotations

from enum import Enum

from dsp_operator.errors import ConfigurationError


class Component(str, Enum):
    """Components whose default image depends on the pipeline version.

    The value is the key used inside an ``Images`` / ``ImagesV2.<Engine>``
    section of the config map.
    """

    API_SERVER = "ApiServer"
    ARTIFACT = "Artifact"
    CACHE = "Cache"
    MOVE_RESULTS = "MoveResultsImage"
    PERSISTENCE_AGENT = "PersistentAgent"
    SCHEDULED_WORKFLOW = "ScheduledWorkflow"
    MLMD_ENVOY = "MlmdEnvoy"
    MLMD_GRPC = "MlmdGRPC"
    MLMD_WRITER = "MlmdWriter"


class PipelineVersion(str, Enum):
    V1 = "v1"
    V2 = "v2"

    @classmethod
    def from_spec(cls, value: str | None) -> PipelineVersion:
        """Anything other than ``"v2"`` selects the legacy image family."""
        return cls.V2 if value == cls.V2.value else cls.V1


class EngineDriver(str, Enum):
    ARGO = "argo"
    TEKTON = "tekton"


_LEGACY_SECTION = "Images"
_V2_SECTIONS = {
    EngineDriver.ARGO: "ImagesV2.Argo",
    EngineDriver.TEKTON: "ImagesV2.Tekton",
}

ImageKey = tuple[Component, PipelineVersion, EngineDriver | None]

IMAGE_PATHS: dict[ImageKey, str] = {
    **{(c, PipelineVersion.V1, None): f"{_LEGACY_SECTION}.{c.value}" for c in Component},
    **{
        (c, PipelineVersion.V2, driver): f"{section}.{c.value}"
        for driver, section in _V2_SECTIONS.items()
        for c in Component
    },
}


class ImagePathSelector:
    """Pure lookup over :data:`IMAGE_PATHS`."""

    def __init__(self, table: dict[ImageKey, str] | None = None) -> None:
        self._table = IMAGE_PATHS if table is None else table

    def select(
        self,
        component: Component,
        version: PipelineVersion | str | None,
        engine_driver: EngineDriver | str | None = None,
    ) -> str:
        """Return the config path holding *component*'s default image.

        Raises
        ------
        ConfigurationError
            When *version* is v2 and *engine_driver* is missing or unknown;
            no image family can be chosen in that case.
        """
        if not isinstance(version, PipelineVersion):
            version = PipelineVersion.from_spec(version)
        return self._table[(component, version, self.engine_for(version, engine_driver))]

    @staticmethod
    def engine_for(
        version: PipelineVersion, engine_driver: EngineDriver | str | None
    ) -> EngineDriver | None:
        """Return the engine driver that keys *version*'s image family.

        Legacy pipelines ignore the driver and yield ``None``.
        """
        if version is PipelineVersion.V1:
            return None
        try:
            return EngineDriver(engine_driver)
        except ValueError:
            raise ConfigurationError(
                f"Illegal Engine Driver ({engine_driver}) specified, cannot continue."
            ) from None
