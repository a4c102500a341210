"""
Credentials — database and object-storage secrets.

Public surface
--------------
- :class:`SecretMaterializer` — read / generate / create-once credential secrets.
- :class:`CredentialReference`, :class:`Credential` — what to resolve and what came back.
- :class:`SecretStore` — abstract backend (subclass for other stores).
- :class:`KubernetesSecretStore` — cluster backend (lazy import).
"""

from dsp_operator.credentials.base import SecretAlreadyExists, SecretStore
from dsp_operator.credentials.materializer import (
    Credential,
    CredentialKind,
    CredentialOwner,
    CredentialReference,
    SecretMaterializer,
    generate_password,
)

__all__ = [
    "Credential",
    "CredentialKind",
    "CredentialOwner",
    "CredentialReference",
    "KubernetesSecretStore",
    "SecretAlreadyExists",
    "SecretMaterializer",
    "SecretStore",
    "generate_password",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import KubernetesSecretStore to avoid pulling in the kubernetes client at import time."""
    if name == "KubernetesSecretStore":
        from dsp_operator.credentials.kubernetes_store import KubernetesSecretStore

        return KubernetesSecretStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
