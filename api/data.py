"""GET /api/data - unified read endpoint."""

from fastapi import APIRouter, Query, Request

from api.base import success_response
from core.models import InvoiceStatus
from core.status_machine import allowed_targets


VALID_TYPES = {"invoices", "invoice", "summary", "rollups"}


def create_data_router(services: dict) -> APIRouter:
    router = APIRouter()

    invoice_svc = services["invoice"]

    @router.get("/data")
    async def get_data(
        request: Request,
        type: str | None = Query(None),
        id: str | None = Query(None),
        client_id: str | None = Query(None),
        status: str | None = Query(None),
    ):
        if type is None:
            raise ValueError("'type' query parameter is required")

        if type not in VALID_TYPES:
            raise ValueError(f"Unknown type '{type}'. Valid types: {', '.join(sorted(VALID_TYPES))}")

        if type == "invoice":
            data = _handle_invoice(invoice_svc, id)
        elif type == "invoices":
            data = _handle_invoices(invoice_svc, client_id, status)
        elif type == "summary":
            data = _handle_summary(invoice_svc, client_id)
        else:
            data = _handle_rollups(invoice_svc)

        return success_response(data, getattr(request.state, "request_id", None)).model_dump(mode="json")

    return router


def _handle_invoice(invoice_svc, id):
    if not id:
        raise ValueError("'invoice' type requires 'id' parameter")

    invoice = invoice_svc.get_by_id(id)
    if invoice is None:
        raise ValueError(f"Invoice {id} not found")

    data = invoice.model_dump(mode="json")
    data["allowed_statuses"] = [s.value for s in allowed_targets(invoice, invoice_svc.config)]
    return data


def _handle_invoices(invoice_svc, client_id, status):
    wanted = InvoiceStatus(status) if status else None

    if client_id:
        invoices = invoice_svc.list_for_client(client_id)
        if wanted is not None:
            invoices = [i for i in invoices if i.status == wanted]
    else:
        invoices = invoice_svc.list_all(wanted)

    return [i.model_dump(mode="json") for i in invoices]


def _handle_summary(invoice_svc, client_id):
    summary = invoice_svc.client_summary(client_id) if client_id else invoice_svc.summary()
    return summary.model_dump(mode="json")


def _handle_rollups(invoice_svc):
    return {
        client_id: rollup.model_dump(mode="json")
        for client_id, rollup in invoice_svc.client_rollups().items()
    }
