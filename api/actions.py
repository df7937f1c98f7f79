"""POST /api/actions - unified mutation endpoint."""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from api.base import success_response
from core.models import (
    BillingContext, Invoice, InvoiceStatus, LineItem,
    PaymentCreate, parse_payment_method,
)
from core.status_machine import StatusChange, allowed_targets
from core.totals import compute_totals
from utils.money import parse_number


class ActionRequest(BaseModel):
    domain: str
    action: str
    data: dict


def create_actions_router(services: dict) -> APIRouter:
    router = APIRouter()

    handlers = {
        "invoice": InvoiceHandler(services["invoice"]),
        "totals": TotalsHandler(),
    }

    @router.post("/actions")
    async def perform_action(request: Request, body: ActionRequest):
        handler = handlers.get(body.domain)
        if handler is None:
            raise ValueError(
                f"Unknown domain '{body.domain}'. "
                f"Valid domains: {', '.join(sorted(handlers.keys()))}"
            )

        if body.action not in handler.ALLOWED_ACTIONS:
            raise ValueError(
                f"Action '{body.action}' not allowed on '{body.domain}'. "
                f"Allowed: {', '.join(sorted(handler.ALLOWED_ACTIONS))}"
            )

        method = getattr(handler, f"_handle_{body.action}")
        result = method(body.data)
        return success_response(result, getattr(request.state, "request_id", None)).model_dump(mode="json")

    return router


# =============================================================================
# REQUEST PARSING
# =============================================================================


def _require_id(data: dict) -> str:
    invoice_id = data.get("id")
    if not invoice_id:
        raise ValueError("'id' is required")
    return str(invoice_id)


def _payment_create(payment: dict) -> PaymentCreate:
    fields = {k: v for k, v in payment.items() if k not in ("card_token", "payment_method")}
    if payment.get("payment_method"):
        fields["payment_method"] = parse_payment_method(payment["payment_method"])
    return PaymentCreate(**fields)


def _card_collector(payment: dict):
    """
    Card token from the request, as a collector callback.

    Over HTTP the processor's widget has already run in the browser, so
    the tokenized card arrives with the request.
    """
    token = payment.get("card_token")
    if not token:
        return None
    return lambda intent: token


def _billing_context(data: dict) -> BillingContext | None:
    billing = data.get("billing")
    return BillingContext(**billing) if billing else None


# =============================================================================
# HANDLER CLASSES
# =============================================================================


class InvoiceHandler:
    ALLOWED_ACTIONS = {"change_status", "record_payment"}

    def __init__(self, service):
        self.service = service

    def _invoice_data(self, invoice: Invoice) -> dict:
        data = invoice.model_dump(mode="json")
        data["allowed_statuses"] = [s.value for s in allowed_targets(invoice, self.service.config)]
        return data

    def _handle_change_status(self, data: dict):
        status = data.get("status")
        if not status:
            raise ValueError("'status' is required")

        payment = data.get("payment")
        change = StatusChange(
            target_status=InvoiceStatus(status),
            payment=_payment_create(payment) if payment else None,
        )
        invoice = self.service.change_status(
            _require_id(data),
            change,
            collect_card=_card_collector(payment) if payment else None,
            billing_context=_billing_context(data),
        )
        return self._invoice_data(invoice)

    def _handle_record_payment(self, data: dict):
        payment = data.get("payment")
        if not payment:
            raise ValueError("'payment' is required")

        invoice = self.service.record_payment(
            _require_id(data),
            _payment_create(payment),
            collect_card=_card_collector(payment),
            billing_context=_billing_context(data),
        )
        return self._invoice_data(invoice)


class TotalsHandler:
    """Live totals for an invoice or estimate form. Never touches the backend."""

    ALLOWED_ACTIONS = {"compute"}

    def _handle_compute(self, data: dict):
        items = [
            LineItem(
                description=str(item.get("description") or ""),
                quantity=parse_number(item.get("quantity")),
                unit_price=parse_number(item.get("unit_price")),
            )
            for item in data.get("items") or []
        ]
        totals = compute_totals(
            items,
            parse_number(data.get("tax_rate")),
            parse_number(data.get("discount_rate")),
        )
        return totals.rounded().model_dump(mode="json")
