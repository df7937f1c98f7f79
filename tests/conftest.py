"""Shared test fixtures for the billing test suite."""

from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
# override=True ensures .env takes precedence over shell env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

# Reset vault client singleton to pick up env vars
import clients.vault_client as vault_module
vault_module.reset_vault_cache()

from core.event_bus import EventBus
from core.models import Invoice
from factories import FakeBillingBackend, make_invoice


@pytest.fixture
def sent_invoice() -> Invoice:
    """The 1200.00 invoice, sent, nothing paid yet."""
    return make_invoice()


@pytest.fixture
def backend() -> FakeBillingBackend:
    return FakeBillingBackend()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def published(event_bus) -> list:
    """Every event published on event_bus, in order."""
    events = []
    for name in ("PaymentRecorded", "InvoiceStatusChanged", "InvoicePaid"):
        event_bus.subscribe(name, events.append)
    return events
