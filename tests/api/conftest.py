"""API test fixtures - TestClient over a real InvoiceService on an in-memory backend."""

from unittest.mock import Mock

import pytest
from starlette.testclient import TestClient

from api.app import create_app
from clients.card_processor_client import CardProcessorClient
from core.models import InvoiceStatus, PaymentIntent
from core.services.invoice_service import InvoiceService
from core.services.payment_gateway import PaymentGatewayAdapter
from factories import make_invoice, make_payment


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def processor():
    mock = Mock(spec=CardProcessorClient)
    mock.create_payment_intent.return_value = PaymentIntent(
        id="pi_900", status="requires_payment_method", amount_minor=0, currency="usd",
    )
    mock.confirm_payment_intent.return_value = PaymentIntent(
        id="pi_900", status="succeeded", amount_minor=0, currency="usd",
    )
    return mock


@pytest.fixture
def invoice_service(backend, processor, event_bus):
    return InvoiceService(backend, PaymentGatewayAdapter(processor), event_bus)


@pytest.fixture
def services(invoice_service):
    return {"invoice": invoice_service}


@pytest.fixture
def stored(backend):
    """Three invoices across two clients."""
    backend.add(make_invoice(id="inv-1"))
    backend.add(make_invoice(
        id="inv-2", total="300.00", status=InvoiceStatus.PARTIAL, payments=(make_payment("100.00"),),
    ))
    backend.add(make_invoice(id="inv-3", total="500.00", status=InvoiceStatus.OVERDUE, client_id="client-2"))
    return backend


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(services):
    return create_app(services)


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)
