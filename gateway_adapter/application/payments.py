from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from gateway_adapter.application.gateway import BraintreeGateway, CancelStrategy
from gateway_adapter.application.ports.processor_client import TransactionResult
from gateway_adapter.infrastructure.db.models import CreditCard, Payment
from gateway_adapter.shared.correlation import reset_payment_id, set_payment_id
from gateway_adapter.shared.logging import get_logger
from gateway_adapter.shared.metrics import GATEWAY_OPERATIONS_TOTAL
from gateway_adapter.shared.problem import http_problem

log = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CardInput(BaseModel):
    """Raw card fields that only live for the duration of one request."""

    number: Optional[str] = None
    verification_value: Optional[str] = None


class CardDTO(BaseModel):
    id: int
    cc_type: str | None
    last_digits: str | None
    gateway_customer_profile_id: str | None
    gateway_payment_profile_id: str | None


class PaymentDTO(BaseModel):
    id: int
    identifier: str
    order_number: str
    amount: str
    state: str
    response_code: str | None = None
    source: CardDTO | None = None
    updated_at: str


class GatewayResponseDTO(BaseModel):
    success: bool
    message: str
    authorization: str
    payment: PaymentDTO


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def gateway_options_for(payment: Payment) -> dict[str, Any]:
    """Order context sent with authorize and purchase calls."""
    order = payment.order
    options: dict[str, Any] = {
        "order_id": f"{order.number}-{payment.identifier}",
        "email": order.email,
        "currency": order.currency,
    }
    addr = order.bill_address
    if addr is not None:
        options["billing_address"] = {
            "name": f"{addr.firstname} {addr.lastname}",
            "address1": addr.address1,
            "address2": addr.address2,
            "company": addr.company,
            "city": addr.city,
            "state": addr.state.abbr if addr.state is not None else addr.state_name,
            "zip": addr.zipcode,
            "country_code_alpha3": addr.country.iso3 if addr.country is not None else None,
        }
    source = payment.source
    if source is not None and source.number:
        options["credit_card"] = {
            "number": source.number,
            "expiration_month": str(source.month),
            "expiration_year": str(source.year),
            "cardholder_name": source.name,
            "cvv": source.verification_value,
        }
    return options


def _card_dto(card: CreditCard | None) -> CardDTO | None:
    if card is None:
        return None
    return CardDTO(
        id=card.id,
        cc_type=card.cc_type,
        last_digits=card.last_digits,
        gateway_customer_profile_id=card.gateway_customer_profile_id,
        gateway_payment_profile_id=card.gateway_payment_profile_id,
    )


def _to_dto(p: Payment) -> PaymentDTO:
    return PaymentDTO(
        id=p.id,
        identifier=p.identifier,
        order_number=p.order.number,
        amount=str(p.amount),
        state=p.state,
        response_code=p.response_code,
        source=_card_dto(p.source),
        updated_at=p.updated_at.isoformat(),
    )


def _response_dto(result: TransactionResult, p: Payment) -> GatewayResponseDTO:
    return GatewayResponseDTO(
        success=result.success,
        message=result.message,
        authorization=result.authorization,
        payment=_to_dto(p),
    )


def _load_for_update(session: Session, payment_id: int, instance: str) -> Payment:
    p = session.execute(
        select(Payment).where(Payment.id == payment_id).with_for_update()
    ).scalar_one_or_none()
    if not p:
        raise http_problem(404, "Not Found", "payment not found", instance=instance)
    return p


def _require_state(p: Payment, allowed: tuple[str, ...], instance: str) -> None:
    if p.state not in allowed:
        raise http_problem(409, "Conflict", f"cannot process payment in state {p.state}", instance=instance)


def _require_source(p: Payment, instance: str) -> CreditCard:
    if p.source is None:
        raise http_problem(409, "Conflict", "payment has no card", instance=instance)
    return p.source


def _require_response_code(p: Payment, instance: str) -> str:
    if not p.response_code:
        raise http_problem(409, "Conflict", "payment has no processor transaction", instance=instance)
    return p.response_code


def _apply_card_input(card: CreditCard, card_input: CardInput | None) -> None:
    if card_input is None:
        return
    card.number = card_input.number
    card.verification_value = card_input.verification_value


def _record(operation: str, result: TransactionResult) -> None:
    outcome = "success" if result.success else "failure"
    GATEWAY_OPERATIONS_TOTAL.labels(operation, outcome).inc()
    log.info("gateway operation", extra={"operation": operation, "outcome": outcome})


def get_payment(session: Session, payment_id: int) -> PaymentDTO:
    p = session.execute(select(Payment).where(Payment.id == payment_id)).scalar_one_or_none()
    if not p:
        raise http_problem(404, "Not Found", "payment not found", instance=f"/v1/payments/{payment_id}")
    return _to_dto(p)


def _charge(
    session: Session,
    gateway: BraintreeGateway,
    payment_id: int,
    card_input: CardInput | None,
    operation: str,
) -> GatewayResponseDTO:
    instance = f"/v1/payments/{payment_id}/{operation}"
    token = set_payment_id(str(payment_id))
    try:
        with session.begin():
            p = _load_for_update(session, payment_id, instance)
            _require_state(p, ("checkout",), instance)
            card = _require_source(p, instance)
            _apply_card_input(card, card_input)

            call = gateway.purchase if operation == "purchase" else gateway.authorize
            result = call(to_minor_units(p.amount), card, gateway_options_for(p))
            _record(operation, result)

            if result.success:
                p.response_code = result.authorization
                p.state = "completed" if operation == "purchase" else "pending"
            else:
                p.state = "failed"
            p.updated_at = _utcnow()
        return _response_dto(result, p)
    finally:
        reset_payment_id(token)


def authorize_payment(
    session: Session, gateway: BraintreeGateway, payment_id: int, card_input: CardInput | None = None
) -> GatewayResponseDTO:
    return _charge(session, gateway, payment_id, card_input, "authorize")


def purchase_payment(
    session: Session, gateway: BraintreeGateway, payment_id: int, card_input: CardInput | None = None
) -> GatewayResponseDTO:
    return _charge(session, gateway, payment_id, card_input, "purchase")


def capture_payment(session: Session, gateway: BraintreeGateway, payment_id: int) -> GatewayResponseDTO:
    instance = f"/v1/payments/{payment_id}/capture"
    with session.begin():
        p = _load_for_update(session, payment_id, instance)
        _require_state(p, ("pending",), instance)
        result = gateway.capture(to_minor_units(p.amount), _require_response_code(p, instance))
        _record("capture", result)
        if result.success:
            p.state = "completed"
            p.updated_at = _utcnow()
    return _response_dto(result, p)


def void_payment(session: Session, gateway: BraintreeGateway, payment_id: int) -> GatewayResponseDTO:
    instance = f"/v1/payments/{payment_id}/void"
    with session.begin():
        p = _load_for_update(session, payment_id, instance)
        _require_state(p, ("pending", "completed"), instance)
        result = gateway.void(_require_response_code(p, instance))
        _record("void", result)
        if result.success:
            p.state = "void"
            p.updated_at = _utcnow()
    return _response_dto(result, p)


def cancel_payment(session: Session, gateway: BraintreeGateway, payment_id: int) -> GatewayResponseDTO:
    instance = f"/v1/payments/{payment_id}/cancel"
    with session.begin():
        p = _load_for_update(session, payment_id, instance)
        if p.state == "pending":
            raise http_problem(
                409, "Conflict", f"pending payment must be voided: POST /v1/payments/{payment_id}/void", instance=instance
            )
        _require_state(p, ("completed",), instance)
        strategy, result = gateway.cancel_with_strategy(_require_response_code(p, instance))
        _record("cancel", result)
        if result.success:
            p.state = "void" if strategy is CancelStrategy.VOID else "refunded"
            p.updated_at = _utcnow()
    return _response_dto(result, p)


def refund_payment(
    session: Session, gateway: BraintreeGateway, payment_id: int, amount: Decimal
) -> GatewayResponseDTO:
    instance = f"/v1/payments/{payment_id}/refund"
    if amount <= 0:
        raise http_problem(400, "Bad Request", "refund amount must be > 0", instance=instance)
    with session.begin():
        p = _load_for_update(session, payment_id, instance)
        _require_state(p, ("completed",), instance)
        cents = to_minor_units(amount)
        result = gateway.refund_by_reference(cents, _require_response_code(p, instance))
        _record("refund", result)
        if result.success:
            # partial refunds leave the payment completed
            if cents == to_minor_units(p.amount):
                p.state = "refunded"
            p.updated_at = _utcnow()
    return _response_dto(result, p)


def create_payment_profile(
    session: Session, gateway: BraintreeGateway, payment_id: int, card_input: CardInput | None = None
) -> PaymentDTO:
    instance = f"/v1/payments/{payment_id}/profile"
    with session.begin():
        p = _load_for_update(session, payment_id, instance)
        card = _require_source(p, instance)
        _apply_card_input(card, card_input)
        gateway.create_profile(p)
    return _to_dto(p)
