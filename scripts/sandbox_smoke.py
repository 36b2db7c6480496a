#!/usr/bin/env python3
"""Purchase then cancel a sandbox transaction (for smoke/integration tests).

Uses the BRAINTREE_* environment variables and one of Braintree's sandbox
test nonces, so no card data is needed.
"""

from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from types import SimpleNamespace

from gateway_adapter.infrastructure.processor.factory import create_gateway
from gateway_adapter.shared.config import load_settings
from gateway_adapter.shared.logging import configure_logging

NONCE = "fake-valid-nonce"


def main() -> int:
    amount = int(sys.argv[1]) if len(sys.argv) > 1 else 1000
    nonce = sys.argv[2] if len(sys.argv) > 2 else NONCE

    settings = load_settings()
    configure_logging(settings.log_level)
    gateway = create_gateway(settings)

    card = SimpleNamespace(
        gateway_payment_profile_id=nonce,
        gateway_customer_profile_id=None,
        created_at=datetime.now(timezone.utc),
        verification_value=None,
        cc_type="visa",
        payments=[],
    )
    sale = gateway.purchase(amount, card, {"email": "smoke@example.com"})
    if not sale.success:
        print(json.dumps({"step": "purchase", "success": False, "message": sale.message}))
        return 1

    cancel = gateway.cancel(sale.authorization)
    print(
        json.dumps(
            {
                "transaction_id": sale.authorization,
                "vault_token": card.gateway_payment_profile_id,
                "customer_id": card.gateway_customer_profile_id,
                "cancelled": cancel.success,
                "message": cancel.message,
            }
        )
    )
    return 0 if cancel.success else 1


if __name__ == "__main__":
    sys.exit(main())
