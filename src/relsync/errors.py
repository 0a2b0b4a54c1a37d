"""Exception hierarchy for relsync."""

from __future__ import annotations

from typing import Any

METHOD_NOT_IMPLEMENTED = "Method not implemented"
INVALID_METHOD_IMPLEMENTATION = "Invalid method implementation"
UNHANDLED_ACTION = "Unhandled action"


class RelsyncError(Exception):
    """Base exception for relsync.

    Attributes:
        details: Optional structured information (data key, entity ID, ...).
        cause: Optional original exception that triggered this error.
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.cause = cause


# ---------------------------------------------------------------------------
# Batch-level errors
# ---------------------------------------------------------------------------


class ConfigurationError(RelsyncError):
    """Raised when the sync setup is invalid; aborts the whole batch."""


class CircularDependencyError(ConfigurationError):
    """Raised when entity relations form a cycle."""

    def __init__(self, relation: str, target: str, dependent: str, chain: list[str]) -> None:
        self.relation = relation
        self.target = target
        self.dependent = dependent
        self.chain = list(chain)
        super().__init__(
            f'Circular dependency "{target}" (relation "{relation}") is required by "{dependent}": '
            f'{" -> ".join(self.chain)}',
            details={"relation": relation, "target": target, "dependent": dependent, "chain": self.chain},
        )


class ManifestError(ConfigurationError):
    """Raised when a manifest file cannot be parsed or validated."""


# ---------------------------------------------------------------------------
# Per-operation errors
# ---------------------------------------------------------------------------


class EndpointMissingError(RelsyncError):
    """Raised when the endpoint table has no callable for an operation kind."""

    def __init__(self, message: str = METHOD_NOT_IMPLEMENTED, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class EndpointContractError(RelsyncError):
    """Raised when an endpoint returns something that cannot be awaited."""

    def __init__(self, message: str = INVALID_METHOD_IMPLEMENTATION, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class RemoteCallError(RelsyncError):
    """Raised when an endpoint call fails, synchronously or asynchronously."""


class OperationTimeoutError(RemoteCallError):
    """Raised when an endpoint call exceeds the per-operation deadline."""


class UnhandledActionError(RelsyncError):
    """Raised when a queued action is none of LOAD, UPDATE or DELETE."""

    def __init__(self, message: str = UNHANDLED_ACTION, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class NoPendingActionError(UnhandledActionError):
    """Raised when the store has no queued action for an entity."""
