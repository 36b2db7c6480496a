from __future__ import annotations

from fastapi import Request

from gateway_adapter.application.gateway import BraintreeGateway


def get_gateway(request: Request) -> BraintreeGateway:
    return request.app.state.gateway
