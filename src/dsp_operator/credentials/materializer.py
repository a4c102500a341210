"""Credential materialization — make sure credential secrets exist.

A credential is either *user-owned* (the resource names the secret; it must
already exist) or *operator-owned* (the name is derived from the resource;
the operator generates material the first time and only reads it after).

The protocol has two phases so callers can choose when to write:

1. :meth:`SecretMaterializer.materialize` reads the secret and, only for an
   operator-owned identity that does not exist yet, generates new material.
   It never writes.
2. :meth:`SecretMaterializer.persist` creates the secret.  If another actor
   got there first the store answers "already exists"; that counts as
   success and the material already committed is read back and returned.

:meth:`SecretMaterializer.ensure` runs both phases.

An existing secret is never overwritten, not even when a key is missing.
"""

from __future__ import annotations

import base64
import logging
import secrets
import string
from dataclasses import dataclass, field
from enum import Enum

from dsp_operator.credentials.base import SecretAlreadyExists, SecretStore
from dsp_operator.errors import ConfigurationError, TransientStoreError

logger = logging.getLogger(__name__)

PASSWORD_ALPHABET = string.ascii_letters + string.digits


class CredentialOwner(str, Enum):
    USER = "user"
    OPERATOR = "operator"


class CredentialKind(str, Enum):
    """What a credential is for; decides the generated value lengths."""

    DATABASE = "database"
    OBJECT_STORAGE = "object-storage"


# (primary length, secondary length)
GENERATED_LENGTHS: dict[CredentialKind, tuple[int, int | None]] = {
    CredentialKind.DATABASE: (12, None),
    CredentialKind.OBJECT_STORAGE: (16, 24),
}


def generate_password(length: int) -> str:
    """Return a random alphanumeric string of *length* characters."""
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def b64(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


@dataclass(frozen=True)
class CredentialReference:
    """Where a credential lives: secret name plus the data keys holding it.

    Attributes
    ----------
    secret_name:
        Name of the secret in the resource's namespace.
    primary_key:
        Data key of the password / access key.
    secondary_key:
        Data key of the secret key, for two-part credentials.
    owner:
        Whether the operator may create this secret.
    kind:
        Credential kind, used to size generated values.
    """

    secret_name: str
    primary_key: str
    secondary_key: str | None = None
    owner: CredentialOwner = CredentialOwner.OPERATOR
    kind: CredentialKind = CredentialKind.DATABASE

    @property
    def keys(self) -> tuple[str, ...]:
        if self.secondary_key is None:
            return (self.primary_key,)
        return (self.primary_key, self.secondary_key)

    @property
    def user_owned(self) -> bool:
        return self.owner is CredentialOwner.USER


@dataclass(frozen=True)
class Credential:
    """Materialized credential values, base64-encoded for manifests.

    ``generated`` is ``True`` when the values were produced by this pass and
    the backing secret does not exist yet.
    """

    primary: str
    secondary: str = ""
    generated: bool = False
    data: dict[str, str] = field(default_factory=dict, compare=False, repr=False)


class SecretMaterializer:
    """Resolve a :class:`CredentialReference` against a :class:`SecretStore`.

    Parameters
    ----------
    store:
        Backend holding the secrets.
    namespace:
        Namespace of the resource being resolved.
    """

    def __init__(self, store: SecretStore, namespace: str) -> None:
        self._store = store
        self.namespace = namespace

    # -- public API -----------------------------------------------------------

    def materialize(self, ref: CredentialReference) -> Credential:
        """Read the credential, generating it only for a new operator-owned secret.

        Raises
        ------
        ConfigurationError
            The secret is user-owned and missing, or exists with an empty key.
        TransientStoreError
            The store could not be read.
        """
        data = self._store.get(self.namespace, ref.secret_name)
        if data is not None:
            return self._extract(ref, data)

        if ref.user_owned:
            logger.error(
                "Secret [%s] was specified in CR but does not exist in namespace %s",
                ref.secret_name,
                self.namespace,
            )
            raise ConfigurationError(
                f"{ref.kind.value} secret [{ref.secret_name}] was specified in CR but does not exist."
            )

        logger.info("Generating credentials for new secret %s/%s", self.namespace, ref.secret_name)
        return self._generate(ref)

    def persist(self, ref: CredentialReference, credential: Credential) -> Credential:
        """Create the secret for freshly generated *credential*.

        Returns the credential now stored under *ref*, which is *credential*
        itself unless a concurrent pass created the secret first.
        """
        if not credential.generated:
            return credential
        if ref.user_owned:
            raise ConfigurationError(f"Refusing to create user-owned secret [{ref.secret_name}]")

        raw = {key: base64.b64decode(value) for key, value in credential.data.items()}
        try:
            self._store.create(self.namespace, ref.secret_name, raw)
        except SecretAlreadyExists:
            logger.info(
                "Secret %s/%s was created concurrently, adopting stored credentials",
                self.namespace,
                ref.secret_name,
            )
            data = self._store.get(self.namespace, ref.secret_name)
            if data is None:
                raise TransientStoreError(
                    f"Secret [{ref.secret_name}] reported as existing but could not be read back."
                ) from None
            return self._extract(ref, data)
        return credential

    def ensure(self, ref: CredentialReference) -> Credential:
        """Materialize *ref* and persist it when it was newly generated."""
        return self.persist(ref, self.materialize(ref))

    # -- internals ------------------------------------------------------------

    def _extract(self, ref: CredentialReference, data: dict[str, bytes]) -> Credential:
        values = {key: b64(data.get(key, b"")) for key in ref.keys}
        empty = [key for key, value in values.items() if not value]
        if empty:
            keys = ", ".join(ref.keys)
            logger.error("Secret [%s] is missing values for keys %s", ref.secret_name, empty)
            raise ConfigurationError(
                f"{ref.kind.value} credentials from secret [{ref.secret_name}] for keys [{keys}] "
                "were not successfully retrieved, ensure that the secret with these keys exists."
            )
        return Credential(
            primary=values[ref.primary_key],
            secondary=values[ref.secondary_key] if ref.secondary_key else "",
            data=values,
        )

    def _generate(self, ref: CredentialReference) -> Credential:
        primary_len, secondary_len = GENERATED_LENGTHS[ref.kind]
        values = {ref.primary_key: b64(generate_password(primary_len).encode())}
        if ref.secondary_key is not None:
            values[ref.secondary_key] = b64(generate_password(secondary_len or primary_len).encode())
        return Credential(
            primary=values[ref.primary_key],
            secondary=values[ref.secondary_key] if ref.secondary_key else "",
            generated=True,
            data=values,
        )
