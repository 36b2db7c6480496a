from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from gateway_adapter.api.deps.db import get_db
from gateway_adapter.api.deps.gateway import get_gateway
from gateway_adapter.application.gateway import BraintreeGateway
from gateway_adapter.application.payments import (
    CardInput,
    GatewayResponseDTO,
    PaymentDTO,
    authorize_payment,
    cancel_payment,
    capture_payment,
    create_payment_profile,
    get_payment,
    purchase_payment,
    refund_payment,
    void_payment,
)

router = APIRouter(prefix="/v1", tags=["payments"])


class RefundRequest(BaseModel):
    amount: float = Field(gt=0)


class ClientTokenRequest(BaseModel):
    customer_id: Optional[str] = Field(default=None, max_length=64)


class ClientTokenResponse(BaseModel):
    client_token: str


@router.get("/payments/{payment_id}", response_model=PaymentDTO)
def get_one(payment_id: int, db: Session = Depends(get_db)):
    return get_payment(db, payment_id)


@router.post("/payments/{payment_id}/authorize", response_model=GatewayResponseDTO)
def authorize(
    payment_id: int,
    card: Optional[CardInput] = None,
    db: Session = Depends(get_db),
    gateway: BraintreeGateway = Depends(get_gateway),
):
    return authorize_payment(db, gateway, payment_id, card)


@router.post("/payments/{payment_id}/purchase", response_model=GatewayResponseDTO)
def purchase(
    payment_id: int,
    card: Optional[CardInput] = None,
    db: Session = Depends(get_db),
    gateway: BraintreeGateway = Depends(get_gateway),
):
    return purchase_payment(db, gateway, payment_id, card)


@router.post("/payments/{payment_id}/capture", response_model=GatewayResponseDTO)
def capture(
    payment_id: int,
    db: Session = Depends(get_db),
    gateway: BraintreeGateway = Depends(get_gateway),
):
    return capture_payment(db, gateway, payment_id)


@router.post("/payments/{payment_id}/void", response_model=GatewayResponseDTO)
def void(
    payment_id: int,
    db: Session = Depends(get_db),
    gateway: BraintreeGateway = Depends(get_gateway),
):
    return void_payment(db, gateway, payment_id)


@router.post("/payments/{payment_id}/cancel", response_model=GatewayResponseDTO)
def cancel(
    payment_id: int,
    db: Session = Depends(get_db),
    gateway: BraintreeGateway = Depends(get_gateway),
):
    return cancel_payment(db, gateway, payment_id)


@router.post("/payments/{payment_id}/refund", response_model=GatewayResponseDTO)
def refund(
    payment_id: int,
    req: RefundRequest,
    db: Session = Depends(get_db),
    gateway: BraintreeGateway = Depends(get_gateway),
):
    return refund_payment(db, gateway, payment_id, Decimal(str(req.amount)))


@router.post("/payments/{payment_id}/profile", response_model=PaymentDTO)
def profile(
    payment_id: int,
    card: Optional[CardInput] = None,
    db: Session = Depends(get_db),
    gateway: BraintreeGateway = Depends(get_gateway),
):
    return create_payment_profile(db, gateway, payment_id, card)


@router.post("/client-token", response_model=ClientTokenResponse)
def client_token(
    req: ClientTokenRequest,
    gateway: BraintreeGateway = Depends(get_gateway),
):
    seed: dict[str, Any] | None = {"customer_id": req.customer_id} if req.customer_id else None
    return ClientTokenResponse(client_token=gateway.client_token(seed))
