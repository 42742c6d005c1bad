"""Error taxonomy shared by the reconciliation core and its adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING

from crmsync.config.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping


class MappingConfigurationError(ConfigurationError):
    """Raised when a mapping, attribute map or association is malformed."""


class ReconciliationError(RuntimeError):
    """Base class for runtime failures raised while reconciling records."""


class PersistenceError(ReconciliationError):
    """Raised by adapters when a store rejects a create or update.

    The engine catches these per record, so ``identity`` and ``attributes`` carry
    enough context to log what was attempted.
    """

    def __init__(
        self,
        message: str,
        *,
        identity: str | None = None,
        attributes: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message)
        self.identity = identity
        self.attributes = dict(attributes) if attributes is not None else None


class DuplicateRecordError(PersistenceError):
    """Raised when a uniqueness constraint (usually the lookup column) is violated."""


class TransientError(ReconciliationError):
    """Raised by adapters on I/O failures; the whole window is retried next cycle."""


class CycleCancelled(ReconciliationError):
    """Raised when a cycle is cancelled between change keys."""
