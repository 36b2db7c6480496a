from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Protocol


class TransactionStatus(str, Enum):
    AUTHORIZATION_EXPIRED = "authorization_expired"
    AUTHORIZED = "authorized"
    AUTHORIZING = "authorizing"
    FAILED = "failed"
    GATEWAY_REJECTED = "gateway_rejected"
    PROCESSOR_DECLINED = "processor_declined"
    SETTLED = "settled"
    SETTLEMENT_CONFIRMED = "settlement_confirmed"
    SETTLEMENT_DECLINED = "settlement_declined"
    SETTLEMENT_PENDING = "settlement_pending"
    SETTLING = "settling"
    SUBMITTED_FOR_SETTLEMENT = "submitted_for_settlement"
    VOIDED = "voided"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def parse(cls, value: str) -> "TransactionStatus":
        try:
            return cls(value)
        except ValueError:
            return cls.UNRECOGNIZED


@dataclass(frozen=True)
class TransactionResult:
    success: bool
    message: str
    params: dict[str, Any] = field(default_factory=dict)
    authorization: str = ""


@dataclass(frozen=True)
class RemoteTransaction:
    id: str
    status: TransactionStatus
    amount: Decimal


class ProcessorClient(Protocol):
    """Calls the adapter makes against the processor. Amounts are in minor units."""

    def authorize(self, amount: int, options: dict[str, Any]) -> TransactionResult: ...

    def capture(self, amount: int, reference: str) -> TransactionResult: ...

    def refund(self, reference: str, amount: Optional[int] = None) -> TransactionResult: ...

    def void(self, reference: str) -> TransactionResult: ...

    def store(self, payment_method: Any, options: dict[str, Any]) -> TransactionResult: ...

    def credit(self, amount: int, payment_method: Any) -> TransactionResult: ...

    def find_transaction(self, reference: str) -> RemoteTransaction: ...

    def generate_client_token(self, seed: Optional[dict[str, Any]] = None) -> str: ...

    def generate_nonce(self, token: str) -> str: ...
