from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

import braintree
from braintree.exceptions import NotFoundError

from gateway_adapter.application.ports.processor_client import (
    RemoteTransaction,
    TransactionResult,
    TransactionStatus,
)
from gateway_adapter.shared.config import BraintreeConfig
from gateway_adapter.shared.errors import GatewayError
from gateway_adapter.shared.logging import get_logger

log = get_logger(__name__)

ENVIRONMENTS: dict[str, braintree.Environment] = {
    "development": braintree.Environment.Development,
    "qa": braintree.Environment.QA,
    "sandbox": braintree.Environment.Sandbox,
    "production": braintree.Environment.Production,
}


def to_major_units(amount: int) -> str:
    return str((Decimal(amount) / 100).quantize(Decimal("0.01")))


def _billing(address: dict[str, Any], options: dict[str, Any]) -> dict[str, Any]:
    billing = {
        "first_name": options.get("first_name"),
        "last_name": options.get("last_name"),
        "company": address.get("company"),
        "street_address": address.get("address1"),
        "extended_address": address.get("address2"),
        "locality": address.get("city"),
        "region": address.get("state"),
        "postal_code": address.get("zip"),
        "country_code_alpha3": address.get("country_code_alpha3"),
    }
    return {k: v for k, v in billing.items() if v}


class BraintreeProcessorClient:
    """Processor client backed by an explicit braintree.BraintreeGateway.

    Each instance carries its own SDK configuration; the process-wide
    braintree.Configuration is never touched.
    """

    def __init__(self, config: BraintreeConfig, gateway: Optional[braintree.BraintreeGateway] = None) -> None:
        self._merchant_account_id = config.merchant_account_id.strip()
        if gateway is None:
            environment = ENVIRONMENTS.get(config.environment)
            if environment is None:
                raise ValueError(f"unknown braintree environment: {config.environment}")
            gateway = braintree.BraintreeGateway(
                braintree.Configuration(
                    environment=environment,
                    merchant_id=config.merchant_id,
                    public_key=config.public_key,
                    private_key=config.private_key,
                )
            )
        self._gateway = gateway

    # -- normalization -------------------------------------------------

    @staticmethod
    def _transaction_params(transaction: Any) -> dict[str, Any]:
        if transaction is None:
            return {}
        card = transaction.credit_card_details
        customer = transaction.customer_details
        return {
            "braintree_transaction": {
                "id": transaction.id,
                "status": transaction.status,
                "amount": str(transaction.amount),
            },
            "credit_card_token": getattr(card, "token", None),
            "customer_vault_id": getattr(customer, "id", None),
        }

    def _transaction_result(self, result: Any) -> TransactionResult:
        transaction = getattr(result, "transaction", None)
        if result.is_success:
            return TransactionResult(
                success=True,
                message="OK",
                params=self._transaction_params(transaction),
                authorization=transaction.id if transaction is not None else "",
            )
        return TransactionResult(
            success=False,
            message=result.message,
            params=self._transaction_params(transaction),
            authorization=transaction.id if transaction is not None else "",
        )

    # -- ProcessorClient ----------------------------------------------

    def authorize(self, amount: int, options: dict[str, Any]) -> TransactionResult:
        params: dict[str, Any] = {"amount": to_major_units(amount)}
        for key in ("payment_method_nonce", "payment_method_token", "order_id", "device_data"):
            if options.get(key):
                params[key] = options[key]
        if options.get("credit_card"):
            params["credit_card"] = options["credit_card"]
        if self._merchant_account_id:
            params["merchant_account_id"] = self._merchant_account_id

        customer = {
            "first_name": options.get("first_name"),
            "last_name": options.get("last_name"),
            "email": options.get("email"),
        }
        customer = {k: v for k, v in customer.items() if v}
        if customer:
            params["customer"] = customer
        if options.get("billing_address"):
            params["billing"] = _billing(options["billing_address"], options)

        sale_options: dict[str, Any] = {
            "submit_for_settlement": bool(options.get("submit_for_settlement")),
            "store_in_vault_on_success": bool(options.get("store")),
        }
        if "three_d_secure" in options:
            sale_options["three_d_secure"] = options["three_d_secure"]
        params["options"] = sale_options

        return self._transaction_result(self._gateway.transaction.sale(params))

    def capture(self, amount: int, reference: str) -> TransactionResult:
        return self._transaction_result(
            self._gateway.transaction.submit_for_settlement(reference, to_major_units(amount))
        )

    def refund(self, reference: str, amount: Optional[int] = None) -> TransactionResult:
        if amount is None:
            result = self._gateway.transaction.refund(reference)
        else:
            result = self._gateway.transaction.refund(reference, to_major_units(amount))
        return self._transaction_result(result)

    def void(self, reference: str) -> TransactionResult:
        return self._transaction_result(self._gateway.transaction.void(reference))

    def credit(self, amount: int, payment_method: Any) -> TransactionResult:
        params: dict[str, Any] = {
            "amount": to_major_units(amount),
            "payment_method_token": payment_method.gateway_payment_profile_id,
        }
        if self._merchant_account_id:
            params["merchant_account_id"] = self._merchant_account_id
        return self._transaction_result(self._gateway.transaction.credit(params))

    def store(self, payment_method: Any, options: dict[str, Any]) -> TransactionResult:
        verify = str((options.get("options") or {}).get("verify_card", options.get("verify_card"))) == "true"
        credit_card: dict[str, Any] = {
            "number": payment_method.number,
            "expiration_month": str(payment_method.month),
            "expiration_year": str(payment_method.year),
            "cardholder_name": payment_method.name,
            "options": {"verify_card": verify},
        }
        if payment_method.verification_value:
            credit_card["cvv"] = payment_method.verification_value
        if options.get("billing_address"):
            credit_card["billing_address"] = _billing(options["billing_address"], options)

        params: dict[str, Any] = {
            "first_name": options.get("first_name"),
            "last_name": options.get("last_name"),
            "email": options.get("email"),
            "credit_card": credit_card,
        }
        result = self._gateway.customer.create({k: v for k, v in params.items() if v})
        if not result.is_success:
            return TransactionResult(success=False, message=result.message)

        customer = result.customer
        return TransactionResult(
            success=True,
            message="OK",
            params={
                "customer_vault_id": customer.id,
                "braintree_customer": {
                    "id": customer.id,
                    "email": customer.email,
                    "credit_cards": [
                        {"last_4": cc.last_4, "token": cc.token, "card_type": cc.card_type}
                        for cc in customer.credit_cards
                    ],
                },
            },
        )

    def find_transaction(self, reference: str) -> RemoteTransaction:
        try:
            transaction = self._gateway.transaction.find(reference)
        except NotFoundError as exc:
            raise GatewayError(f"transaction {reference} not found") from exc
        return RemoteTransaction(
            id=transaction.id,
            status=TransactionStatus.parse(transaction.status),
            amount=Decimal(str(transaction.amount)),
        )

    def generate_client_token(self, seed: Optional[dict[str, Any]] = None) -> str:
        return self._gateway.client_token.generate(seed)

    def generate_nonce(self, token: str) -> str:
        result = self._gateway.payment_method_nonce.create(token)
        if not result.is_success:
            raise GatewayError(result.message)
        return result.payment_method_nonce.nonce
