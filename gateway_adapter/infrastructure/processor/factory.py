from __future__ import annotations

from gateway_adapter.application.gateway import BraintreeGateway
from gateway_adapter.application.ports.processor_client import ProcessorClient
from gateway_adapter.infrastructure.processor.fake import FakeProcessorClient
from gateway_adapter.shared.config import Settings
from gateway_adapter.shared.logging import get_logger

log = get_logger(__name__)


def create_processor_client(settings: Settings) -> ProcessorClient:
    """Factory that returns the processor client selected by settings."""
    if settings.gateway_provider == "braintree":
        if not settings.braintree.has_credentials:
            log.warning("braintree credentials not set, falling back to fake processor")
            return FakeProcessorClient()
        from gateway_adapter.infrastructure.processor.braintree_client import BraintreeProcessorClient

        return BraintreeProcessorClient(settings.braintree)

    log.info("using fake processor client")
    return FakeProcessorClient()


def create_gateway(settings: Settings) -> BraintreeGateway:
    return BraintreeGateway(settings.braintree, create_processor_client(settings))
