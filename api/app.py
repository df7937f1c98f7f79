"""
FastAPI application assembly.

create_app() wires routers, middleware and error handlers around a services
dict. build_services() constructs the production services from Vault
secrets; tests pass their own services instead.
"""

import logging

from fastapi import FastAPI

from api.actions import create_actions_router
from api.data import create_data_router
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from clients.billing_api_client import BillingAPIClient
from clients.card_processor_client import CardProcessorClient
from clients.vault_client import get_billing_api_config, get_card_processor_config
from core.config import GatewayConfig, LedgerConfig, DEFAULT_LEDGER_CONFIG
from core.event_bus import EventBus
from core.services.invoice_service import InvoiceService
from core.services.payment_gateway import PaymentGatewayAdapter

logger = logging.getLogger(__name__)


def build_services(
    ledger_config: LedgerConfig = DEFAULT_LEDGER_CONFIG,
    gateway_config: GatewayConfig | None = None,
    event_bus: EventBus | None = None,
) -> dict:
    """
    Construct services backed by the real backend and card processor.

    Raises:
        ValueError, PermissionError, KeyError: Vault is misconfigured or a
            secret is missing. Fatal at startup.
    """
    gateway_config = gateway_config or GatewayConfig()

    backend_config = get_billing_api_config()
    backend = BillingAPIClient(backend_config["base_url"], backend_config["api_token"])

    processor = CardProcessorClient(
        secret_key=get_card_processor_config()["secret_key"],
        api_base=gateway_config.api_base,
        timeout=gateway_config.timeout_seconds,
    )
    gateway = PaymentGatewayAdapter(processor, currency=ledger_config.currency)

    logger.info(f"Billing services ready (backend {backend.base_url})")
    return {
        "invoice": InvoiceService(backend, gateway, event_bus or EventBus(), ledger_config),
    }


def create_app(services: dict | None = None) -> FastAPI:
    """FastAPI app with request IDs, error handlers, and data/actions routes."""
    services = services if services is not None else build_services()

    app = FastAPI(title="Invoice Ledger")
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_data_router(services), prefix="/api")
    app.include_router(create_actions_router(services), prefix="/api")

    return app
