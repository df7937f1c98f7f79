"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from clients.billing_api_client import BillingAPIError
from core.exceptions import (
    BillingError,
    GatewayError,
    InvalidTransitionError,
    OverpaymentError,
    PaymentAbandonedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first; ValidationError is also a ValueError
_BILLING_ERRORS = [
    (ValidationError, 400, ErrorCodes.VALIDATION_ERROR),
    (OverpaymentError, 422, ErrorCodes.OVERPAYMENT),
    (InvalidTransitionError, 409, ErrorCodes.INVALID_STATUS_TRANSITION),
    (GatewayError, 402, ErrorCodes.PAYMENT_FAILED),
    (PaymentAbandonedError, 400, ErrorCodes.PAYMENT_ABANDONED),
]


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _error_details(exc: BillingError) -> dict | None:
    if isinstance(exc, GatewayError):
        return {
            "processor_code": exc.processor_code,
            "decline_code": exc.decline_code,
        }
    if isinstance(exc, OverpaymentError):
        return {"amount": str(exc.amount), "outstanding": str(exc.outstanding)}
    if isinstance(exc, InvalidTransitionError):
        return {"current_status": exc.current_status, "target_status": exc.target_status}
    return None


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(BillingError)
    async def billing_error_handler(request: Request, exc: BillingError):
        for error_type, status_code, code in _BILLING_ERRORS:
            if isinstance(exc, error_type):
                break
        else:
            status_code, code = 400, exc.code

        logger.info(f"{request.method} {request.url.path} rejected: {code}: {exc}")
        return JSONResponse(
            status_code=status_code,
            content=error_response(
                code, str(exc), _error_details(exc), _request_id(request),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(BillingAPIError)
    async def backend_error_handler(request: Request, exc: BillingAPIError):
        logger.error(f"Billing backend failure on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=502,
            content=error_response(
                ErrorCodes.BACKEND_UNAVAILABLE,
                "The billing backend could not complete the request. Try again shortly.",
                request_id=_request_id(request),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        message = str(exc)
        if "not found" in message.lower():
            return JSONResponse(
                status_code=404,
                content=error_response(
                    ErrorCodes.NOT_FOUND, message, request_id=_request_id(request),
                ).model_dump(mode="json"),
            )
        return JSONResponse(
            status_code=400,
            content=error_response(
                ErrorCodes.INVALID_REQUEST, message, request_id=_request_id(request),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content=error_response(
                ErrorCodes.VALIDATION_ERROR,
                str(exc.errors()),
                request_id=_request_id(request),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return JSONResponse(
            status_code=500,
            content=error_response(
                ErrorCodes.INTERNAL_ERROR,
                "An internal error occurred",
                request_id=_request_id(request),
            ).model_dump(mode="json"),
        )
