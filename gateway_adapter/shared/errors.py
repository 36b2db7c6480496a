"""Exceptions raised by the gateway adapter.

Processor declines are never raised; they come back as a failed
``TransactionResult``. Only gateway-level failures and programmer errors
abort control flow.
"""

from __future__ import annotations

from decimal import Decimal


class GatewayError(Exception):
    """The processor call could not be completed (vaulting failed, unknown transaction)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidArgumentsError(ValueError):
    """Caller passed arguments the adapter refuses to coerce."""


class RefundExceedsTransactionError(InvalidArgumentsError):
    def __init__(self, requested: Decimal, available: Decimal) -> None:
        super().__init__(
            f"refund of {requested} exceeds transaction amount of {available} (minor units)"
        )
        self.requested = requested
        self.available = available
