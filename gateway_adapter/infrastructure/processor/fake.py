from __future__ import annotations

import base64
import json
import random
import uuid
from decimal import Decimal
from typing import Any, Optional

from gateway_adapter.application.ports.processor_client import (
    RemoteTransaction,
    TransactionResult,
    TransactionStatus,
)
from gateway_adapter.shared.errors import GatewayError
from gateway_adapter.shared.logging import get_logger

log = get_logger(__name__)

_BRANDS = {"3": "American Express", "4": "Visa", "5": "MasterCard", "6": "Discover"}

_REFUNDABLE = {TransactionStatus.SETTLED, TransactionStatus.SETTLING}
_VOIDABLE = {TransactionStatus.AUTHORIZED, TransactionStatus.SUBMITTED_FOR_SETTLEMENT}


def _ref(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class FakeProcessorClient:
    """Simulates the Braintree API in memory for local development and testing.

    Transactions move through the same statuses Braintree reports and the
    void/refund preconditions are enforced, so cancel and refund flows can be
    exercised end to end. Every call is appended to ``calls``.
    """

    def __init__(self, fail_rate: float = 0.0) -> None:
        self._fail_rate = fail_rate
        self.transactions: dict[str, dict[str, Any]] = {}
        self.customers: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def _declined(self) -> bool:
        return random.random() < self._fail_rate

    def _get(self, reference: str) -> Optional[dict[str, Any]]:
        return self.transactions.get(reference)

    @staticmethod
    def _not_found(reference: str) -> TransactionResult:
        return TransactionResult(success=False, message=f"Transaction {reference} not found")

    def _result(self, txn: dict[str, Any]) -> TransactionResult:
        return TransactionResult(
            success=True,
            message="OK",
            params={
                "braintree_transaction": {
                    "id": txn["id"],
                    "status": txn["status"].value,
                    "amount": str(txn["amount"]),
                },
                "credit_card_token": txn.get("token"),
                "customer_vault_id": txn.get("customer_id"),
            },
            authorization=txn["id"],
        )

    def _new_transaction(self, amount: int, status: TransactionStatus, **extra: Any) -> dict[str, Any]:
        txn = {
            "id": _ref("txn"),
            "status": status,
            "amount": Decimal(amount) / 100,
            **extra,
        }
        self.transactions[txn["id"]] = txn
        return txn

    def settle(self, reference: str) -> None:
        """Move a transaction to SETTLED, as the nightly batch would."""
        self.transactions[reference]["status"] = TransactionStatus.SETTLED

    def authorize(self, amount: int, options: dict[str, Any]) -> TransactionResult:
        self.calls.append(("authorize", (amount, options)))
        if self._declined():
            return TransactionResult(success=False, message="Do Not Honor")

        status = (
            TransactionStatus.SUBMITTED_FOR_SETTLEMENT
            if options.get("submit_for_settlement")
            else TransactionStatus.AUTHORIZED
        )
        token = options.get("payment_method_token")
        customer_id = None
        if options.get("store"):
            token = token or _ref("tok")
            customer_id = _ref("cus")
        txn = self._new_transaction(amount, status, token=token, customer_id=customer_id)
        log.info("fake authorize", extra={"transaction_id": txn["id"], "amount": amount})
        return self._result(txn)

    def capture(self, amount: int, reference: str) -> TransactionResult:
        self.calls.append(("capture", (amount, reference)))
        txn = self._get(reference)
        if txn is None:
            return self._not_found(reference)
        if txn["status"] != TransactionStatus.AUTHORIZED:
            return TransactionResult(
                success=False, message="Cannot submit for settlement unless status is authorized."
            )
        txn["status"] = TransactionStatus.SUBMITTED_FOR_SETTLEMENT
        txn["amount"] = Decimal(amount) / 100
        return self._result(txn)

    def refund(self, reference: str, amount: Optional[int] = None) -> TransactionResult:
        self.calls.append(("refund", (reference, amount)))
        txn = self._get(reference)
        if txn is None:
            return self._not_found(reference)
        if txn["status"] not in _REFUNDABLE:
            return TransactionResult(
                success=False, message="Cannot refund transaction unless it is settled."
            )
        refund_amount = txn["amount"] * 100 if amount is None else Decimal(amount)
        refund = self._new_transaction(
            int(refund_amount), TransactionStatus.SUBMITTED_FOR_SETTLEMENT, refunded_transaction_id=reference
        )
        log.info("fake refund", extra={"transaction_id": reference, "amount": str(refund_amount)})
        return self._result(refund)

    def void(self, reference: str) -> TransactionResult:
        self.calls.append(("void", (reference,)))
        txn = self._get(reference)
        if txn is None:
            return self._not_found(reference)
        if txn["status"] not in _VOIDABLE:
            return TransactionResult(
                success=False, message="Transaction can only be voided if status is authorized or submitted_for_settlement."
            )
        txn["status"] = TransactionStatus.VOIDED
        return self._result(txn)

    def credit(self, amount: int, payment_method: Any) -> TransactionResult:
        self.calls.append(("credit", (amount, payment_method)))
        return TransactionResult(success=False, message="Credits are disabled for this merchant account.")

    def store(self, payment_method: Any, options: dict[str, Any]) -> TransactionResult:
        self.calls.append(("store", (payment_method, options)))
        if self._declined():
            return TransactionResult(success=False, message="Credit card verification failed.")

        number = str(payment_method.number)
        customer_id = _ref("cus")
        card = {
            "last_4": number[-4:],
            "token": _ref("tok"),
            "card_type": _BRANDS.get(number[:1], "Unknown"),
        }
        self.customers[customer_id] = {"email": options.get("email"), "credit_cards": [card]}
        return TransactionResult(
            success=True,
            message="OK",
            params={
                "customer_vault_id": customer_id,
                "braintree_customer": {"id": customer_id, "credit_cards": [dict(card)]},
            },
        )

    def find_transaction(self, reference: str) -> RemoteTransaction:
        self.calls.append(("find_transaction", (reference,)))
        txn = self._get(reference)
        if txn is None:
            raise GatewayError(f"transaction {reference} not found")
        return RemoteTransaction(id=txn["id"], status=txn["status"], amount=txn["amount"])

    def generate_client_token(self, seed: Optional[dict[str, Any]] = None) -> str:
        self.calls.append(("generate_client_token", (seed,)))
        body = {"version": 2, "authorizationFingerprint": uuid.uuid4().hex, **(seed or {})}
        return base64.b64encode(json.dumps(body).encode()).decode()

    def generate_nonce(self, token: str) -> str:
        self.calls.append(("generate_nonce", (token,)))
        return f"fake-nonce-{token}"
