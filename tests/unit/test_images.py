"""Unit tests for the version / engine-driver image matrix."""

from __future__ import annotations

import itertools

import pytest

from dsp_operator.errors import ConfigurationError
from dsp_operator.params.images import (
    IMAGE_PATHS,
    Component,
    EngineDriver,
    ImagePathSelector,
    PipelineVersion,
)


@pytest.fixture()
def selector() -> ImagePathSelector:
    return ImagePathSelector()


class TestMatrix:
    def test_every_combination_is_mapped(self) -> None:
        expected = {(c, PipelineVersion.V1, None) for c in Component} | {
            (c, PipelineVersion.V2, e) for c, e in itertools.product(Component, EngineDriver)
        }
        assert set(IMAGE_PATHS) == expected

    def test_v2_paths_are_distinct(self) -> None:
        v2 = [p for (_, v, _), p in IMAGE_PATHS.items() if v is PipelineVersion.V2]
        assert len(v2) == len(set(v2)) == len(Component) * len(EngineDriver)

    def test_nine_components(self) -> None:
        assert len(Component) == 9


class TestSelect:
    @pytest.mark.parametrize("component", list(Component))
    def test_v2_argo(self, selector: ImagePathSelector, component: Component) -> None:
        assert selector.select(component, "v2", "argo") == f"ImagesV2.Argo.{component.value}"

    @pytest.mark.parametrize("component", list(Component))
    def test_v2_tekton(self, selector: ImagePathSelector, component: Component) -> None:
        assert selector.select(component, "v2", "tekton") == f"ImagesV2.Tekton.{component.value}"

    @pytest.mark.parametrize("driver", ["argo", "tekton", "bogus", None])
    def test_legacy_ignores_engine_driver(self, selector: ImagePathSelector, driver: str | None) -> None:
        assert selector.select(Component.API_SERVER, "v1", driver) == "Images.ApiServer"

    def test_deterministic(self, selector: ImagePathSelector) -> None:
        first = selector.select(Component.MLMD_GRPC, "v2", "argo")
        assert selector.select(Component.MLMD_GRPC, "v2", "argo") == first

    def test_accepts_enum_arguments(self, selector: ImagePathSelector) -> None:
        path = selector.select(Component.CACHE, PipelineVersion.V2, EngineDriver.TEKTON)
        assert path == "ImagesV2.Tekton.Cache"

    def test_unknown_version_is_legacy(self, selector: ImagePathSelector) -> None:
        assert selector.select(Component.ARTIFACT, "v3", "argo") == "Images.Artifact"

    @pytest.mark.parametrize("driver", ["bogus", "", None, "Argo"])
    def test_v2_unknown_driver_raises(self, selector: ImagePathSelector, driver: str | None) -> None:
        with pytest.raises(ConfigurationError, match="Illegal Engine Driver"):
            selector.select(Component.API_SERVER, "v2", driver)
