"""
REST client for the invoice backend.

The backend owns persistence: invoice records, their items and the
payments recorded against them. This client only reads invoices, records
payments and relabels status. Amounts are sent as decimal strings.
"""

import logging
from typing import Any

import requests

logger = logging.getLogger(__name__)


class BillingAPIError(Exception):
    """Backend request failed or returned something unusable."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class BillingAPIClient:
    """Token-authenticated JSON client for /invoices/ endpoints."""

    def __init__(self, base_url: str, api_token: str, timeout: int = 15):
        """
        Initialize with backend credentials.

        Args:
            base_url: API root, e.g. https://billing.example.com/api
            api_token: Bearer token for the Authorization header
            timeout: Per-request timeout in seconds

        Raises:
            ValueError: If base_url or api_token is empty
        """
        if not base_url:
            raise ValueError("base_url is required")
        if not api_token:
            raise ValueError("api_token is required")

        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        headers = {
            "Authorization": f"Bearer {self.api_token}",
            "Accept": "application/json",
        }
        try:
            return requests.request(
                method,
                f"{self.base_url}{path}",
                headers=headers,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Billing API {method} {path} failed: {e}")
            raise BillingAPIError(f"Could not reach the billing backend: {e}")

    @staticmethod
    def _json(response: requests.Response, path: str) -> Any:
        if response.status_code >= 400:
            detail = response.text[:500]
            logger.error(f"Billing API {path} returned {response.status_code}: {detail}")
            raise BillingAPIError(
                f"Billing backend rejected the request ({response.status_code}): {detail}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError:
            raise BillingAPIError(
                f"Billing backend returned invalid JSON for {path}",
                status_code=response.status_code,
            )

    def get_invoice(self, invoice_id: str) -> dict | None:
        """
        Fetch one invoice record with its items and payments.

        Returns:
            Invoice record, or None if the backend has no such invoice

        Raises:
            BillingAPIError: On any other failure
        """
        path = f"/invoices/{invoice_id}/"
        response = self._request("GET", path)
        if response.status_code == 404:
            return None
        return self._json(response, path)

    def list_invoices(self, client_id: str | None = None, status: str | None = None) -> list[dict]:
        """
        Fetch invoice records, optionally filtered.

        Accepts a paginated ({"results": [...]}), wrapped ({"data": [...]})
        or bare list response.

        Raises:
            BillingAPIError: On failure or an unrecognized response shape
        """
        params = {}
        if client_id:
            params["client"] = client_id
        if status:
            params["status"] = status

        body = self._json(self._request("GET", "/invoices/", params=params), "/invoices/")

        if isinstance(body, list):
            return body
        if isinstance(body, dict):
            for key in ("results", "data"):
                if isinstance(body.get(key), list):
                    return body[key]
        raise BillingAPIError("Unexpected invoice list response from billing backend")

    def record_payment(self, invoice_id: str, payment: dict[str, Any]) -> dict:
        """
        Record a payment against an invoice.

        Args:
            invoice_id: Invoice to credit
            payment: {amount, payment_method, reference_number, notes,
                payment_date, gateway_reference}

        Returns:
            Stored payment record, including its id

        Raises:
            BillingAPIError: On any failure
        """
        path = f"/invoices/{invoice_id}/record_payment/"
        record = self._json(self._request("POST", path, json=payment), path)
        logger.info(f"Backend recorded payment {record.get('id')} on invoice {invoice_id}")
        return record

    def update_status(self, invoice_id: str, status: str) -> dict:
        """
        Relabel an invoice's status.

        Returns:
            Updated invoice record

        Raises:
            BillingAPIError: On any failure, including a missing invoice
        """
        path = f"/invoices/{invoice_id}/"
        return self._json(self._request("PATCH", path, json={"status": status}), path)
