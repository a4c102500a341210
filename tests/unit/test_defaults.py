"""Unit tests for the defaults registry and layered settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from dsp_operator.config import Settings
from dsp_operator.params.defaults import (
    DEFAULT_IMAGE_VALUE,
    REQUIRED_PATHS,
    DefaultsRegistry,
)

CONFIG_YAML = """\
Images:
  ApiServer: quay.io/dsp/api-server:from-file
  MariaDB: quay.io/dsp/mariadb:from-file
ImagesV2:
  Argo:
    ApiServer: quay.io/dsp/api-server:v2-from-file
"""


@pytest.fixture()
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML)
    return path


class TestDefaultsRegistry:
    def test_lookup_nested_path(self, registry: DefaultsRegistry) -> None:
        assert registry.lookup("Images.ApiServer") == "quay.io/dsp/api-server:v1"
        assert registry.lookup("ImagesV2.Argo.MlmdGRPC") == "quay.io/dsp/mlmd-grpc:v2-argo"

    def test_lookup_is_case_insensitive(self, registry: DefaultsRegistry) -> None:
        assert registry.lookup("images.apiserver") == registry.lookup("Images.ApiServer")

    def test_unset_path_returns_sentinel(self, registry: DefaultsRegistry) -> None:
        assert registry.lookup("ImagesV2.Tekton.MlmdWriter") == DEFAULT_IMAGE_VALUE

    def test_empty_registry(self) -> None:
        registry = DefaultsRegistry()
        assert len(registry) == 0
        assert registry.lookup("Images.ApiServer") == DEFAULT_IMAGE_VALUE

    def test_later_layers_win(self) -> None:
        registry = DefaultsRegistry(
            {"Images": {"ApiServer": "fallback", "Cache": "fallback-cache"}},
            {"images.apiserver": "override"},
        )
        assert registry.lookup("Images.ApiServer") == "override"
        assert registry.lookup("Images.Cache") == "fallback-cache"

    def test_missing_required(self) -> None:
        registry = DefaultsRegistry({"Images": {"ApiServer": "x", "OAuthProxy": "y"}})
        missing = registry.missing_required()
        assert "Images.ApiServer" not in missing
        assert "Images.MariaDB" in missing
        assert len(missing) == len(REQUIRED_PATHS) - 2

    def test_sample_config_is_complete(self, registry: DefaultsRegistry) -> None:
        assert registry.missing_required() == []

    def test_values_are_read_only(self, registry: DefaultsRegistry) -> None:
        with pytest.raises(TypeError):
            registry._values["images.apiserver"] = "mutated"  # type: ignore[index]


class TestFromSettings:
    def test_yaml_file_layer(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DSPO_CONFIG_FILE", raising=False)
        registry = DefaultsRegistry.from_settings(Settings(config_file=str(config_file)))
        assert registry.lookup("Images.ApiServer") == "quay.io/dsp/api-server:from-file"
        assert registry.lookup("ImagesV2.Argo.ApiServer") == "quay.io/dsp/api-server:v2-from-file"

    def test_config_file_from_env(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DSPO_CONFIG_FILE", str(config_file))
        registry = DefaultsRegistry.from_settings(Settings())
        assert registry.lookup("Images.MariaDB") == "quay.io/dsp/mariadb:from-file"

    def test_env_overrides_yaml(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DSPO_IMAGES__APISERVER", "quay.io/dsp/api-server:from-env")
        registry = DefaultsRegistry.from_settings(Settings(config_file=str(config_file)))
        assert registry.lookup("Images.ApiServer") == "quay.io/dsp/api-server:from-env"
        assert registry.lookup("Images.MariaDB") == "quay.io/dsp/mariadb:from-file"

    def test_compiled_fallbacks_lowest_priority(
        self, config_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("DSPO_CONFIG_FILE", raising=False)
        fallbacks = {"Images": {"ApiServer": "compiled", "OAuthProxy": "compiled-proxy"}}
        registry = DefaultsRegistry.from_settings(Settings(config_file=str(config_file)), fallbacks)
        assert registry.lookup("Images.ApiServer") == "quay.io/dsp/api-server:from-file"
        assert registry.lookup("Images.OAuthProxy") == "compiled-proxy"

    def test_missing_file_yields_sentinels(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DSPO_CONFIG_FILE", raising=False)
        registry = DefaultsRegistry.from_settings(Settings(config_file=str(tmp_path / "absent.yaml")))
        assert registry.lookup("Images.ApiServer") == DEFAULT_IMAGE_VALUE
