"""Shared configuration loaded from environment / YAML.

Operator settings are layered, lowest priority first:

1. compiled defaults on :class:`Settings`
2. the YAML document named by ``DSPO_CONFIG_FILE`` (the operator's config map)
3. ``.env`` file and ``DSPO_``-prefixed environment variables

Image defaults use the same vocabulary as the config map, e.g.::

    Images:
      ApiServer: quay.io/opendatahub/ds-pipelines-api-server:latest
    ImagesV2:
      Argo:
        ApiServer: quay.io/opendatahub/ds-pipelines-api-server:v2

and can be overridden per key from the environment with
``DSPO_IMAGES__APISERVER=...`` or ``DSPO_IMAGES_V2__ARGO__APISERVER=...``.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

CONFIG_FILE_ENV = "DSPO_CONFIG_FILE"

# Top-level config map sections and the settings fields they populate.
_YAML_SECTIONS = {
    "images": "images",
    "imagesv2": "images_v2",
}


def _lower_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    return value


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Load settings from a YAML file.

    The file is the explicit ``config_file`` init argument when given,
    otherwise the path in ``DSPO_CONFIG_FILE``.
    """

    def __init__(self, settings_cls: type[BaseSettings], config_file: str | None = None) -> None:
        super().__init__(settings_cls)
        self._config_file = config_file

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        yaml_data = self._load_yaml_config()
        return yaml_data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return self._load_yaml_config()

    def _load_yaml_config(self) -> dict[str, Any]:
        config_file = self._config_file or os.environ.get(CONFIG_FILE_ENV)
        if not config_file:
            return {}
        path = Path(config_file)
        if not path.exists():
            return {}
        raw = yaml.safe_load(path.read_text()) or {}
        data: dict[str, Any] = {}
        for key, value in raw.items():
            name = _YAML_SECTIONS.get(str(key).lower(), str(key).lower())
            # Config map keys are case-insensitive.
            data[name] = _lower_keys(value)
        return data


class Settings(BaseSettings):
    """Operator-wide settings, populated from env vars, ``.env`` or the config map."""

    config_file: str = Field(
        default="",
        description="Path of the layered YAML config document (mounted config map).",
    )

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"

    # Image defaults, keyed like the config map
    images: dict[str, str] = Field(default_factory=dict)
    images_v2: dict[str, dict[str, str]] = Field(default_factory=dict)

    # Cluster access
    kubeconfig: str = Field(
        default="",
        description="Kubeconfig used when not running in-cluster. Empty means the default location.",
    )

    model_config = SettingsConfigDict(
        env_prefix="DSPO_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        init_kwargs = getattr(init_settings, "init_kwargs", {})
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, init_kwargs.get("config_file")),
            file_secret_settings,
        )


def configure_logging(config: Settings) -> None:
    """Apply the configured level and format to the root logger."""
    logging.basicConfig(level=config.log_level.upper(), format=config.log_format)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide :class:`Settings` (built once)."""
    return Settings()


# Singleton — import `settings` wherever needed.
settings = get_settings()
