"""Adapter flows end to end against the in-memory processor."""

from __future__ import annotations

from datetime import timedelta

import pytest

from gateway_adapter.application.gateway import BraintreeGateway
from gateway_adapter.application.ports.processor_client import TransactionStatus
from gateway_adapter.infrastructure.processor.fake import FakeProcessorClient
from gateway_adapter.shared.config import BraintreeConfig
from gateway_adapter.shared.errors import GatewayError, RefundExceedsTransactionError


@pytest.fixture
def fake() -> FakeProcessorClient:
    return FakeProcessorClient()


@pytest.fixture
def fake_gateway(fake: FakeProcessorClient, now) -> BraintreeGateway:
    return BraintreeGateway(BraintreeConfig(merchant_id="m"), fake, clock=lambda: now)


def _call_names(fake: FakeProcessorClient) -> list[str]:
    return [name for name, _ in fake.calls]


class TestLifecycle:
    def test_authorize_capture_then_cancel_voids(self, fake_gateway: BraintreeGateway, fake: FakeProcessorClient, make_card) -> None:
        card = make_card(age=timedelta(seconds=10), gateway_payment_profile_id="nonce-1")
        auth = fake_gateway.authorize(5000, card, {})
        assert auth.success is True
        assert card.gateway_payment_profile_id.startswith("tok_")
        assert card.gateway_customer_profile_id.startswith("cus_")

        cap = fake_gateway.capture(5000, auth.authorization)
        assert cap.success is True

        cancel = fake_gateway.cancel(auth.authorization)

        assert cancel.success is True
        assert fake.transactions[auth.authorization]["status"] is TransactionStatus.VOIDED
        assert "refund" not in _call_names(fake)

    def test_purchase_then_cancel_voids(self, fake_gateway: BraintreeGateway, fake: FakeProcessorClient, make_card) -> None:
        sale = fake_gateway.purchase(5000, make_card(), {})

        cancel = fake_gateway.cancel(sale.authorization)

        assert cancel.success is True
        assert fake.transactions[sale.authorization]["status"] is TransactionStatus.VOIDED

    def test_cancel_of_authorize_only_is_declined(self, fake_gateway: BraintreeGateway, fake: FakeProcessorClient, make_card) -> None:
        auth = fake_gateway.authorize(5000, make_card(), {})

        cancel = fake_gateway.cancel(auth.authorization)

        assert cancel.success is False
        assert "settled" in cancel.message
        assert fake_gateway.void(auth.authorization).success is True

    def test_settled_purchase_cancel_refunds(self, fake_gateway: BraintreeGateway, fake: FakeProcessorClient, make_card) -> None:
        sale = fake_gateway.purchase(5000, make_card(), {})
        fake.settle(sale.authorization)

        cancel = fake_gateway.cancel(sale.authorization)

        assert cancel.success is True
        assert "void" not in _call_names(fake)
        refund_id = cancel.authorization
        assert fake.transactions[refund_id]["refunded_transaction_id"] == sale.authorization
        assert fake.transactions[refund_id]["amount"] == fake.transactions[sale.authorization]["amount"]

    def test_partial_refund(self, fake_gateway: BraintreeGateway, fake: FakeProcessorClient, make_card) -> None:
        sale = fake_gateway.purchase(10000, make_card(), {})
        fake.settle(sale.authorization)

        result = fake_gateway.refund_by_reference(4000, sale.authorization)

        assert result.success is True
        assert fake.calls[-1] == ("refund", (sale.authorization, 4000))

    def test_refund_over_amount_raises(self, fake_gateway: BraintreeGateway, fake: FakeProcessorClient, make_card) -> None:
        sale = fake_gateway.purchase(10000, make_card(), {})
        fake.settle(sale.authorization)

        with pytest.raises(RefundExceedsTransactionError):
            fake_gateway.refund_by_reference(15000, sale.authorization)
        assert "refund" not in _call_names(fake)

    def test_refund_of_unsettled_is_declined(self, fake_gateway: BraintreeGateway, make_card) -> None:
        auth = fake_gateway.authorize(1000, make_card(), {})

        result = fake_gateway.refund_by_reference(1000, auth.authorization)

        assert result.success is False
        assert "settled" in result.message

    def test_create_profile_maps_brand(self, fake_gateway: BraintreeGateway, make_card, make_payment) -> None:
        card = make_card(number="5555555555554444", cc_type=None, last_digits=None)

        fake_gateway.create_profile(make_payment(source=card))

        assert card.cc_type == "master"
        assert card.last_digits == "4444"
        assert card.gateway_customer_profile_id.startswith("cus_")

    def test_declined_authorize(self, now, make_card) -> None:
        gw = BraintreeGateway(BraintreeConfig(), FakeProcessorClient(fail_rate=1.0), clock=lambda: now)
        card = make_card(gateway_payment_profile_id="tok_1")

        result = gw.authorize(1000, card, {})

        assert result.success is False
        assert card.gateway_payment_profile_id == "tok_1"

    def test_declined_store_raises(self, now, make_card, make_payment) -> None:
        gw = BraintreeGateway(BraintreeConfig(), FakeProcessorClient(fail_rate=1.0), clock=lambda: now)

        with pytest.raises(GatewayError):
            gw.create_profile(make_payment(source=make_card(number="4111111111111111")))


class TestFakeProcessorClient:
    def test_find_unknown_raises(self, fake: FakeProcessorClient) -> None:
        with pytest.raises(GatewayError):
            fake.find_transaction("missing")

    def test_capture_unknown(self, fake: FakeProcessorClient) -> None:
        assert fake.capture(100, "missing").success is False

    def test_void_settled_is_declined(self, fake: FakeProcessorClient) -> None:
        auth = fake.authorize(100, {"submit_for_settlement": True})
        fake.settle(auth.authorization)

        assert fake.void(auth.authorization).success is False

    def test_credit_is_disabled(self, fake: FakeProcessorClient, make_card) -> None:
        assert fake.credit(100, make_card()).success is False

    def test_tokens(self, fake: FakeProcessorClient) -> None:
        assert fake.generate_client_token({"customer_id": "cus_1"})
        assert fake.generate_nonce("tok_1") == "fake-nonce-tok_1"
