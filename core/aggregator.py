"""
Dashboard and per-client statistics.

Read-only projections over invoice snapshots. Amounts come from each
invoice's ledger-derived amount_paid and balance_due, never from advisory
backend fields, so the dashboard and the status machine agree.
"""

from collections import Counter
from decimal import Decimal
from typing import Iterable

from core.models import ClientRollup, Invoice, InvoiceStatus, InvoiceSummary

_ZERO = Decimal("0")


def summarize(invoices: Iterable[Invoice]) -> InvoiceSummary:
    """
    Counts and amounts over a set of invoices.

    overdue_count counts the explicit OVERDUE label only; nothing here
    compares due dates.
    """
    invoices = list(invoices)
    return InvoiceSummary(
        total=len(invoices),
        paid_count=sum(1 for i in invoices if i.status == InvoiceStatus.PAID),
        overdue_count=sum(1 for i in invoices if i.status == InvoiceStatus.OVERDUE),
        total_amount=sum((i.total for i in invoices), _ZERO),
        paid_amount=sum((i.amount_paid for i in invoices), _ZERO),
        outstanding_amount=sum((i.balance_due for i in invoices), _ZERO),
    )


def summarize_for_client(invoices: Iterable[Invoice], client_id: str) -> InvoiceSummary:
    """summarize() restricted to one client's invoices."""
    return summarize(i for i in invoices if i.client_id == client_id)


def count_by_status(invoices: Iterable[Invoice]) -> dict[InvoiceStatus, int]:
    """Invoice count per status. Every status is present, zero if unused."""
    counts = Counter(i.status for i in invoices)
    return {status: counts.get(status, 0) for status in InvoiceStatus}


def rollup_by_client(invoices: Iterable[Invoice]) -> dict[str, ClientRollup]:
    """
    Per-client revenue, paid and due totals for the client list.

    Invoices without a client are skipped.
    """
    grouped: dict[str, list[Invoice]] = {}
    for invoice in invoices:
        if invoice.client_id is None:
            continue
        grouped.setdefault(invoice.client_id, []).append(invoice)

    rollups = {}
    for client_id, client_invoices in grouped.items():
        summary = summarize(client_invoices)
        rollups[client_id] = ClientRollup(
            client_id=client_id,
            total_invoices=summary.total,
            total_revenue=summary.total_amount,
            total_paid=summary.paid_amount,
            total_due=summary.outstanding_amount,
        )
    return rollups
