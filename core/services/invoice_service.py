"""
Invoice service for payments and status changes.

Entry point for anything that changes an invoice's ledger or status. Each
operation re-fetches the invoice from the backend, decides with the pure
ledger and status machine, captures funds through the gateway adapter when
a payment is involved, and only then writes to the backend. Events are
published after the backend has accepted the change.

Order for a payment: validate, capture, record, apply. A failure at any
step before recording leaves both the backend and the returned snapshot
untouched.
"""

import logging

from clients.billing_api_client import BillingAPIClient, BillingAPIError
from core import aggregator, ledger
from core.config import LedgerConfig, DEFAULT_LEDGER_CONFIG
from core.event_bus import EventBus
from core.events import InvoicePaid, InvoiceStatusChanged, PaymentRecorded
from core.models import (
    BillingContext, ClientRollup, Invoice, InvoiceStatus, InvoiceSummary,
    Payment, PaymentCreate, PaymentResult,
)
from core.services.payment_gateway import CardCollector, PaymentGatewayAdapter
from core.status_machine import StatusChange, apply_status_change, validate_status_change

logger = logging.getLogger(__name__)


class InvoiceService:
    """Service for invoice payment and status operations."""

    def __init__(
        self,
        backend: BillingAPIClient,
        gateway: PaymentGatewayAdapter,
        event_bus: EventBus,
        config: LedgerConfig = DEFAULT_LEDGER_CONFIG,
    ):
        self.backend = backend
        self.gateway = gateway
        self.event_bus = event_bus
        self.config = config

    def get_by_id(self, invoice_id: str) -> Invoice | None:
        """
        Get invoice by ID.

        Returns:
            Invoice if the backend has it, None otherwise.
        """
        record = self.backend.get_invoice(invoice_id)
        if record is None:
            return None
        return Invoice.from_record(record)

    def _require(self, invoice_id: str) -> Invoice:
        invoice = self.get_by_id(invoice_id)
        if invoice is None:
            raise ValueError(f"Invoice {invoice_id} not found")
        return invoice

    def list_all(self, status: InvoiceStatus | None = None) -> list[Invoice]:
        """List invoices, optionally only those with the given status label."""
        records = self.backend.list_invoices(status=status.value if status else None)
        return [Invoice.from_record(r) for r in records]

    def list_for_client(self, client_id: str) -> list[Invoice]:
        """List a client's invoices."""
        return [
            invoice
            for invoice in (Invoice.from_record(r) for r in self.backend.list_invoices(client_id=client_id))
            if invoice.client_id == client_id
        ]

    def summary(self) -> InvoiceSummary:
        """Dashboard statistics over every invoice."""
        return aggregator.summarize(self.list_all())

    def client_summary(self, client_id: str) -> InvoiceSummary:
        """Statistics over one client's invoices."""
        return aggregator.summarize_for_client(self.list_for_client(client_id), client_id)

    def client_rollups(self) -> dict[str, ClientRollup]:
        """Per-client revenue, paid and due totals."""
        return aggregator.rollup_by_client(self.list_all())

    def record_payment(
        self,
        invoice_id: str,
        data: PaymentCreate,
        collect_card: CardCollector | None = None,
        billing_context: BillingContext | None = None,
    ) -> Invoice:
        """
        Record a payment on an invoice.

        Args:
            invoice_id: Invoice to pay
            data: Amount, method and reference details
            collect_card: Card widget callback, for card methods
            billing_context: Payer details for card receipts

        Returns:
            Updated invoice; status becomes PARTIAL, or PAID once settled

        Raises:
            ValueError: Invoice not found
            ValidationError, InvalidTransitionError, OverpaymentError: Rejected
                before any capture
            GatewayError, PaymentAbandonedError: Capture failed, nothing recorded
            BillingAPIError: Backend refused the write
        """
        current = self._require(invoice_id)
        ledger.validate_payment(current, data.amount, self.config)
        return self._capture_and_record(current, data, None, collect_card, billing_context)

    def change_status(
        self,
        invoice_id: str,
        change: StatusChange,
        collect_card: CardCollector | None = None,
        billing_context: BillingContext | None = None,
    ) -> Invoice:
        """
        Move an invoice to a new status.

        PARTIAL and PAID carry a payment that is captured and recorded
        before the status changes. If the capture fails or is abandoned the
        invoice keeps its current status.

        Args:
            invoice_id: Invoice to change
            change: Target status and optional payment
            collect_card: Card widget callback, for card payments
            billing_context: Payer details for card receipts

        Returns:
            Updated invoice

        Raises:
            ValueError: Invoice not found
            InvalidTransitionError, ValidationError, OverpaymentError: Rejected
                before any capture
            GatewayError, PaymentAbandonedError: Capture failed, nothing changed
            BillingAPIError: Backend refused the write
        """
        current = self._require(invoice_id)
        target = change.target_status
        amount = change.payment.amount if change.payment else None

        validate_status_change(current, target, amount, self.config)

        if change.payment is not None:
            return self._capture_and_record(current, change.payment, target, collect_card, billing_context)

        if target == current.status:
            return current

        self.backend.update_status(current.id, target.value)
        updated = apply_status_change(current, target, None, self.config)
        self._publish_status(current, updated)
        return updated

    def _capture_and_record(
        self,
        current: Invoice,
        data: PaymentCreate,
        target: InvoiceStatus | None,
        collect_card: CardCollector | None,
        billing_context: BillingContext | None,
    ) -> Invoice:
        result = self.gateway.capture(
            data.amount,
            current.id,
            billing_context or BillingContext(client_id=current.client_id),
            data.payment_method,
            collect_card=collect_card,
            idempotency_key=data.idempotency_key,
        )

        payment = self._store_payment(current, data, result)

        if target is None:
            updated = ledger.record_payment(current, payment, self.config)
        else:
            updated = apply_status_change(current, target, payment, self.config)

        logger.info(
            f"Recorded {payment.amount} by {payment.payment_method.value} on invoice {current.id}; "
            f"balance due {ledger.outstanding(updated)}"
        )

        if updated.status != current.status:
            try:
                self.backend.update_status(current.id, updated.status.value)
            except BillingAPIError:
                logger.error(
                    f"Payment {payment.id} was recorded on invoice {current.id} but its status "
                    f"could not be updated to {updated.status.value}; reconcile manually"
                )
                raise

        self.event_bus.publish(PaymentRecorded.create(invoice=updated, payment=payment))
        self._publish_status(current, updated)
        return updated

    def _store_payment(self, current: Invoice, data: PaymentCreate, result: PaymentResult) -> Payment:
        payload = {
            "amount": str(result.amount),
            "payment_method": result.payment_method.value,
            "reference_number": data.reference_number,
            "notes": data.notes,
            "payment_date": data.payment_date.isoformat(),
            "gateway_reference": result.gateway_reference,
        }
        try:
            record = self.backend.record_payment(current.id, payload)
        except BillingAPIError:
            if result.gateway_reference:
                logger.error(
                    f"Card payment {result.gateway_reference} of {result.amount} was captured "
                    f"but invoice {current.id} could not record it; reconcile manually"
                )
            raise

        # The backend's record wins; fields it leaves out come from what was sent
        return Payment.from_record({**payload, **record})

    def _publish_status(self, previous: Invoice, updated: Invoice) -> None:
        if updated.status == previous.status:
            return
        self.event_bus.publish(
            InvoiceStatusChanged.create(invoice=updated, previous_status=previous.status.value)
        )
        if updated.is_paid:
            self.event_bus.publish(InvoicePaid.create(invoice=updated))
