"""Error taxonomy for the token economy engine.

Business-rule violations and storage failures are distinct types so the API
layer can render each one differently. Every operation is all-or-nothing,
so none of these leave partial state behind.
"""

from __future__ import annotations


class EngineError(RuntimeError):
    """Base class for all token economy failures."""

    kind = "engine_error"


class InsufficientBalance(EngineError):
    """Raised when a redemption costs more than the current balance."""

    kind = "insufficient_balance"

    def __init__(self, balance: int, required: int) -> None:
        super().__init__(f"Insufficient balance: {required} tokens required, {balance} available")
        self.balance = balance
        self.required = required


class InvalidTransition(EngineError):
    """Raised when a status change is not allowed from the current state."""

    kind = "invalid_transition"

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(f"Cannot transition from '{current}' to '{requested}'")
        self.current = current
        self.requested = requested


class NotAuthorized(EngineError):
    """Raised when the acting user lacks the required role or ownership.

    The message is intentionally generic and never names the resource.
    """

    kind = "not_authorized"

    def __init__(self) -> None:
        super().__init__("Not authorized")


class NotFound(EngineError):
    """Raised when a referenced account, report, item or redemption is absent."""

    kind = "not_found"

    def __init__(self, resource: str) -> None:
        super().__init__(f"{resource} not found")
        self.resource = resource


class StorageError(EngineError):
    """Raised when the backend aborted the transaction.

    Transient; the whole user action can be retried from scratch.
    """

    kind = "storage_error"
