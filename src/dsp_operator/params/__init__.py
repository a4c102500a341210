"""
Params — resolve a DataSciencePipelinesApplication into deployable parameters.

Public surface
--------------
- :class:`ParameterResolver` — main entry point, one call per reconcile pass.
- :class:`DefaultsRegistry` — image defaults from the operator config.
- :class:`ImagePathSelector` — version / engine-driver image matrix.
- :class:`DSPAParams`, :class:`DBConnection`, :class:`ObjectStorageConnection` — the resolved record.
"""

from dsp_operator.params.defaults import DEFAULT_IMAGE_VALUE, DefaultsRegistry
from dsp_operator.params.images import (
    Component,
    EngineDriver,
    ImagePathSelector,
    PipelineVersion,
)
from dsp_operator.params.models import (
    DBConnection,
    DSPAParams,
    GeneratedSecret,
    ObjectStorageConnection,
)
from dsp_operator.params.resolver import ParameterResolver

__all__ = [
    "Component",
    "DBConnection",
    "DEFAULT_IMAGE_VALUE",
    "DSPAParams",
    "DefaultsRegistry",
    "EngineDriver",
    "GeneratedSecret",
    "ImagePathSelector",
    "ObjectStorageConnection",
    "ParameterResolver",
    "PipelineVersion",
]
