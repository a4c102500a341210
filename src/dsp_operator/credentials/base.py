"""Abstract base class for secret-store backends.

The materializer only needs two operations: read a secret and create one
that must not already exist.  There is no update: once a credential secret
exists the operator never writes to it again.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping


class SecretAlreadyExists(Exception):
    """Raised by :meth:`SecretStore.create` when the secret is already present."""

    def __init__(self, namespace: str, name: str) -> None:
        super().__init__(f"Secret {namespace}/{name} already exists")
        self.namespace = namespace
        self.name = name


class SecretStore(ABC):
    """Key/value secret store interface.

    Failures other than not-found / already-exists must be raised as
    :class:`~dsp_operator.errors.TransientStoreError`.
    """

    @abstractmethod
    def get(self, namespace: str, name: str) -> dict[str, bytes] | None:
        """Return the secret's decoded data, or ``None`` when it does not exist."""
        ...

    @abstractmethod
    def create(
        self,
        namespace: str,
        name: str,
        data: Mapping[str, bytes],
        *,
        labels: Mapping[str, str] | None = None,
    ) -> None:
        """Create a secret holding *data*.

        Raises
        ------
        SecretAlreadyExists
            When a secret with this name is already present.
        """
        ...
