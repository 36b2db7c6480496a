from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Optional

from gateway_adapter.application.card_types import UNMAPPED, map_card_type
from gateway_adapter.application.options import adjust_billing_address, options_for_payment
from gateway_adapter.application.ports.processor_client import (
    ProcessorClient,
    TransactionResult,
    TransactionStatus,
)
from gateway_adapter.shared.config import BraintreeConfig
from gateway_adapter.shared.errors import GatewayError, RefundExceedsTransactionError
from gateway_adapter.shared.logging import get_logger

log = get_logger(__name__)

# A client-issued nonce is only accepted for this long after the card row is created.
NONCE_WINDOW = timedelta(minutes=2)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CancelStrategy(str, Enum):
    VOID = "void"
    REFUND = "refund"


def choose_cancel_strategy(status: TransactionStatus) -> CancelStrategy:
    """Void before settlement has begun, refund afterwards.

    Braintree only refunds settled or settling transactions; one that is
    still submitted for settlement must be voided.
    """
    if status == TransactionStatus.SUBMITTED_FOR_SETTLEMENT:
        return CancelStrategy.VOID
    return CancelStrategy.REFUND


class BraintreeGateway:
    """Translates host payment operations into Braintree processor calls."""

    payment_profiles_supported = False

    def __init__(
        self,
        config: BraintreeConfig,
        client: ProcessorClient,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config
        self._client = client
        self._clock = clock

    @property
    def options(self) -> dict[str, Any]:
        h: dict[str, Any] = {
            "environment": self._config.environment,
            "merchant_id": self._config.merchant_id,
            "merchant_account_id": self._config.merchant_account_id,
            "public_key": self._config.public_key,
            "private_key": self._config.private_key,
            "client_side_encryption_key": self._config.client_side_encryption_key,
        }
        # Braintree rejects an empty merchant_account_id.
        if not (h["merchant_account_id"] or "").strip():
            del h["merchant_account_id"]
        return h

    def _nonce_window_open(self, payment_method: Any) -> bool:
        created_at = payment_method.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return self._clock() - created_at < NONCE_WINDOW

    def authorize(
        self, amount: int, payment_method: Any, options: Optional[dict[str, Any]] = None
    ) -> TransactionResult:
        options = adjust_billing_address(payment_method, options or {})

        profile_id = payment_method.gateway_payment_profile_id
        if profile_id:
            if self._nonce_window_open(payment_method):
                options["payment_method_nonce"] = profile_id
                log.info("authorize with nonce", extra={"amount": amount})
            else:
                options["payment_method_token"] = profile_id
                options["payment_method_nonce"] = payment_method.verification_value
                log.info("authorize with vaulted token", extra={"amount": amount})

        result = self._client.authorize(amount, options)

        if result.success:
            payment_method.gateway_payment_profile_id = (
                result.params.get("credit_card_token") or self._first_payment_identifier(payment_method)
            )
            payment_method.gateway_customer_profile_id = result.params.get("customer_vault_id")
        else:
            log.warning("authorize declined", extra={"reason": result.message})

        return result

    @staticmethod
    def _first_payment_identifier(payment_method: Any) -> Optional[str]:
        payments = getattr(payment_method, "payments", None) or []
        return payments[0].identifier if payments else None

    def purchase(
        self, amount: int, payment_method: Any, options: Optional[dict[str, Any]] = None
    ) -> TransactionResult:
        return self.authorize(
            amount, payment_method, {**(options or {}), "submit_for_settlement": True}
        )

    def capture(
        self, amount: int, authorization_code: str, ignored_options: Optional[dict[str, Any]] = None
    ) -> TransactionResult:
        return self._client.capture(amount, authorization_code)

    def void(self, response_code: str, *ignored_options: Any) -> TransactionResult:
        return self._client.void(response_code)

    def cancel(self, response_code: str) -> TransactionResult:
        return self.cancel_with_strategy(response_code)[1]

    def cancel_with_strategy(self, response_code: str) -> tuple[CancelStrategy, TransactionResult]:
        transaction = self._client.find_transaction(response_code)
        strategy = choose_cancel_strategy(transaction.status)
        log.info(
            "cancel",
            extra={"transaction_status": transaction.status.value, "strategy": strategy.value},
        )
        if strategy is CancelStrategy.VOID:
            return strategy, self._client.void(response_code)
        return strategy, self._client.refund(response_code)

    def refund_by_reference(
        self, amount: int, response_code: str, options: Optional[dict[str, Any]] = None
    ) -> TransactionResult:
        transaction = self._client.find_transaction(response_code)
        requested = Decimal(str(amount))
        available = transaction.amount * 100

        if requested == available:
            log.info("full refund", extra={"amount": amount})
            return self._client.refund(response_code)
        if requested < available:
            log.info("partial refund", extra={"amount": amount, "available": str(available)})
            return self._client.refund(response_code, amount)
        raise RefundExceedsTransactionError(requested, available)

    def refund_by_reference_legacy(
        self,
        amount: int,
        payment_method: Any,
        response_code: str,
        options: Optional[dict[str, Any]] = None,
    ) -> TransactionResult:
        return self.refund_by_reference(amount, response_code, options)

    def credit_with_payment_profile(
        self,
        amount: int,
        payment_method: Any,
        response_code: str,
        options: Optional[dict[str, Any]] = None,
    ) -> TransactionResult:
        # Braintree disables direct credits unless the merchant opts in.
        return self._client.credit(amount, payment_method)

    def create_profile(self, payment: Any) -> None:
        source = payment.source
        if source.gateway_customer_profile_id is not None:
            return

        options = options_for_payment(payment)

        if not source.number:
            return

        response = self._client.store(source, options)
        if not response.success:
            log.warning("vaulting failed", extra={"reason": response.message})
            raise GatewayError(response.message)

        source.gateway_customer_profile_id = response.params.get("customer_vault_id")
        credit_cards = (response.params.get("braintree_customer") or {}).get("credit_cards") or []
        if credit_cards:
            self.update_card_number(source, credit_cards[0])

    def update_card_number(self, source: Any, cc: dict[str, Any]) -> None:
        last_4 = cc.get("last_4")
        if last_4:
            source.last_digits = last_4
        source.gateway_payment_profile_id = cc.get("token")
        card_type = map_card_type(cc.get("card_type"))
        if card_type is not UNMAPPED:
            source.cc_type = card_type

    def client_token(self, seed: Optional[dict[str, Any]] = None) -> str:
        return self._client.generate_client_token(seed)

    def noncify(self, token: str) -> str:
        return self._client.generate_nonce(token)
