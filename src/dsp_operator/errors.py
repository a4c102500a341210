"""Error taxonomy for parameter resolution.

Every failure of a resolution pass is one of these types so the reconcile
loop can decide between recording a status condition and requeueing.
"""

from __future__ import annotations


class ResolutionError(Exception):
    """Base class for every failure surfaced by a resolution pass."""


class ConfigurationError(ResolutionError):
    """The desired state cannot be resolved without user action.

    Raised for missing mandatory descriptors, an unrecognised engine driver,
    and user-owned credential secrets that are absent or unusable. Retrying
    without changing the resource or the cluster will fail the same way.
    """


class TransientStoreError(ResolutionError):
    """The secret store failed for a reason other than not-found / already-exists.

    The underlying store exception is chained as ``__cause__``. Callers are
    expected to re-run the whole pass later.
    """

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
