from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from gateway_adapter.api.deps.db import get_db
from gateway_adapter.api.main import create_app
from gateway_adapter.application.gateway import BraintreeGateway
from gateway_adapter.application.payments import GatewayResponseDTO, PaymentDTO
from gateway_adapter.infrastructure.processor.fake import FakeProcessorClient
from gateway_adapter.shared.config import BraintreeConfig, Settings
from gateway_adapter.shared.errors import GatewayError, RefundExceedsTransactionError


def _payment_dto(state: str = "pending") -> PaymentDTO:
    return PaymentDTO(
        id=7,
        identifier="PAY7ABCD",
        order_number="R123456789",
        amount="100.00",
        state=state,
        response_code="txn_1",
        updated_at="2026-03-01T12:00:00+00:00",
    )


@pytest.fixture
def api() -> TestClient:
    settings = Settings(
        app_env="local",
        app_name="py-braintree-gateway",
        log_level="INFO",
        database_url="sqlite://",
        gateway_provider="fake",
        braintree=BraintreeConfig(merchant_id="m"),
    )
    app = create_app(settings, BraintreeGateway(settings.braintree, FakeProcessorClient()))
    app.dependency_overrides[get_db] = lambda: MagicMock()
    return TestClient(app)


class TestPaymentRoutes:
    def test_authorize(self, api: TestClient) -> None:
        dto = GatewayResponseDTO(success=True, message="OK", authorization="txn_1", payment=_payment_dto())
        with patch("gateway_adapter.api.routers.payments.authorize_payment", return_value=dto) as svc:
            resp = api.post("/v1/payments/7/authorize")

        assert resp.status_code == 200
        assert resp.json()["payment"]["state"] == "pending"
        assert svc.call_args[0][2] == 7

    def test_decline_is_a_200_with_success_false(self, api: TestClient) -> None:
        dto = GatewayResponseDTO(success=False, message="Do Not Honor", authorization="", payment=_payment_dto("failed"))
        with patch("gateway_adapter.api.routers.payments.purchase_payment", return_value=dto):
            resp = api.post("/v1/payments/7/purchase", json={"verification_value": "123"})

        assert resp.status_code == 200
        assert resp.json()["success"] is False

    def test_refund_over_amount_is_422(self, api: TestClient) -> None:
        err = RefundExceedsTransactionError(Decimal(15000), Decimal(10000))
        with patch("gateway_adapter.api.routers.payments.refund_payment", side_effect=err):
            resp = api.post("/v1/payments/7/refund", json={"amount": 150.0})

        assert resp.status_code == 422
        assert resp.json()["title"] == "Unprocessable Entity"

    def test_refund_requires_positive_amount(self, api: TestClient) -> None:
        resp = api.post("/v1/payments/7/refund", json={"amount": 0})

        assert resp.status_code == 422

    def test_gateway_error_is_502(self, api: TestClient) -> None:
        err = GatewayError("Credit card verification failed.")
        with patch("gateway_adapter.api.routers.payments.create_payment_profile", side_effect=err):
            resp = api.post("/v1/payments/7/profile", json={"number": "4000111111111115"})

        assert resp.status_code == 502
        assert resp.json()["detail"] == "Credit card verification failed."

    def test_correlation_id_echoed(self, api: TestClient) -> None:
        with patch("gateway_adapter.api.routers.payments.get_payment", return_value=_payment_dto()):
            resp = api.get("/v1/payments/7", headers={"X-Correlation-Id": "cid-123"})

        assert resp.headers["X-Correlation-Id"] == "cid-123"


class TestClientToken:
    def test_without_customer(self, api: TestClient) -> None:
        resp = api.post("/v1/client-token", json={})

        assert resp.status_code == 200
        assert resp.json()["client_token"]

    def test_with_customer(self, api: TestClient) -> None:
        resp = api.post("/v1/client-token", json={"customer_id": "cus_1"})

        assert resp.status_code == 200


class TestOps:
    def test_healthz(self, api: TestClient) -> None:
        assert api.get("/healthz").json() == {"status": "ok"}

    def test_metrics(self, api: TestClient) -> None:
        resp = api.get("/metrics")

        assert resp.status_code == 200
        assert "gateway_operations_total" in resp.text
