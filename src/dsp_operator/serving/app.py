"""FastAPI application exposing probes and a dry-run resolve endpoint."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import lru_cache

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from dsp_operator import __version__
from dsp_operator.api.models import DataSciencePipelinesApplication
from dsp_operator.config import configure_logging, get_settings
from dsp_operator.credentials.base import SecretStore
from dsp_operator.errors import ConfigurationError, TransientStoreError
from dsp_operator.params.defaults import DefaultsRegistry
from dsp_operator.params.models import DSPAParams
from dsp_operator.params.resolver import ParameterResolver

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    configure_logging(get_settings())
    yield


app = FastAPI(
    title="DSP Operator Params API",
    version=__version__,
    description="Probes and dry-run parameter resolution for DataSciencePipelinesApplications.",
    lifespan=lifespan,
)


# ── Dependencies ──────────────────────────────────────────────────────
@lru_cache(maxsize=1)
def get_registry() -> DefaultsRegistry:
    """Image defaults, built once per process."""
    return DefaultsRegistry.from_settings(get_settings())


@lru_cache(maxsize=1)
def get_secret_store() -> SecretStore:
    """Cluster secret store (lazy so probes work without cluster access)."""
    from dsp_operator.credentials.kubernetes_store import KubernetesSecretStore

    return KubernetesSecretStore(kubeconfig=get_settings().kubeconfig)


# ── Error mapping ─────────────────────────────────────────────────────
@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"error": "ConfigurationError", "detail": str(exc)})


@app.exception_handler(TransientStoreError)
async def transient_error_handler(request: Request, exc: TransientStoreError) -> JSONResponse:
    return JSONResponse(status_code=503, content={"error": "TransientStoreError", "detail": str(exc)})


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.get("/ready")
async def ready(registry: DefaultsRegistry = Depends(get_registry)) -> JSONResponse:
    """Readiness probe: every required image path must be configured."""
    missing = registry.missing_required()
    if missing:
        return JSONResponse(status_code=503, content={"status": "not ready", "missing": missing})
    return JSONResponse(status_code=200, content={"status": "ready"})


@app.post("/resolve", response_model=DSPAParams)
def resolve(
    dspa: DataSciencePipelinesApplication,
    registry: DefaultsRegistry = Depends(get_registry),
    store: SecretStore = Depends(get_secret_store),
) -> DSPAParams:
    """Resolve *dspa* without creating secrets; credential values are redacted."""
    params = ParameterResolver(registry, store).resolve(dspa, persist_secrets=False)
    logger.info(
        "Dry-run resolved %s/%s (%d secret(s) pending creation)",
        params.namespace,
        params.name,
        len(params.generated_secrets),
    )
    return params.redacted()
