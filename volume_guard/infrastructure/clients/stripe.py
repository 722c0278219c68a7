"""Stripe REST client acting as the remote invoice store"""

from typing import Any, AsyncIterator, Dict, List, Optional
import httpx
from volume_guard.config import settings
from volume_guard.domain.exceptions import InvoiceStoreError
from volume_guard.domain.models import (
    CollectionMethod,
    DayPeriod,
    Invoice,
    InvoiceStatus,
    SettlementDetail,
    SettlementEvent,
)
from volume_guard.infrastructure.observability.metrics import stripe_latency_histogram

PAGE_LIMIT = 100


def parse_invoice(data: Dict[str, Any]) -> Invoice:
    """Map a Stripe invoice object onto the domain Invoice"""
    try:
        return Invoice(
            id=data.get("id"),
            status=InvoiceStatus.parse(data.get("status")),
            collection_method=CollectionMethod(data.get("collection_method") or "charge_automatically"),
            created=int(data["created"]),
            due_date=data.get("due_date"),
            finalizes_at=data.get("automatically_finalizes_at"),
            auto_advance=bool(data.get("auto_advance")),
            amount_due=int(data.get("amount_due") or 0),
            currency=data.get("currency") or "",
            metadata=dict(data.get("metadata") or {}),
        )
    except (KeyError, ValueError, TypeError, AttributeError) as e:
        raise InvoiceStoreError(f"Invalid invoice data from Stripe: {e}") from e


def encode_form(fields: Dict[str, Any], prefix: str = "") -> Dict[str, str]:
    """Flatten nested fields into Stripe's bracketed form encoding"""
    encoded: Dict[str, str] = {}
    for key, value in fields.items():
        name = f"{prefix}[{key}]" if prefix else key
        if isinstance(value, dict):
            encoded.update(encode_form(value, name))
        elif isinstance(value, bool):
            encoded[name] = "true" if value else "false"
        else:
            encoded[name] = str(value)
    return encoded


class StripeClient:
    """Client for the Stripe events, balance transactions and invoices APIs"""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key or settings.stripe_secret_key
        self.base_url = base_url or settings.stripe_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"Authorization": f"Bearer {self.api_key}"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Issue one Stripe API call.

        Raises:
            InvoiceStoreError: On timeout, HTTP errors, or invalid response
        """
        try:
            with stripe_latency_histogram.labels(operation=operation).time():
                response = await self._client.request(method, path, params=params, data=data)
            response.raise_for_status()
            payload = response.json()
            if not isinstance(payload, dict):
                raise InvoiceStoreError(
                    f"Invalid response from Stripe {operation}: expected an object, got {type(payload).__name__}"
                )
            return payload

        except httpx.TimeoutException as e:
            raise InvoiceStoreError(f"Stripe {operation} timeout after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise InvoiceStoreError(f"Stripe {operation} error: {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise InvoiceStoreError(f"Stripe {operation} request failed: {e}") from e
        except ValueError as e:
            raise InvoiceStoreError(f"Invalid JSON from Stripe {operation}: {e}") from e

    async def _paginate(self, path: str, operation: str, params: Dict[str, Any]) -> AsyncIterator[Dict[str, Any]]:
        """Yield objects page by page using starting_after cursors"""
        cursor: Optional[str] = None
        while True:
            page_params = dict(params, limit=PAGE_LIMIT)
            if cursor:
                page_params["starting_after"] = cursor

            page = await self._request("GET", path, operation, params=page_params)
            items = page.get("data") or []
            for item in items:
                yield item

            if not page.get("has_more") or not items:
                return
            cursor = items[-1]["id"]

    async def list_events(self, period: DayPeriod, event_type: str) -> AsyncIterator[SettlementEvent]:
        """Stream charge events created inside the period"""
        params = {
            "type": event_type,
            "created[gte]": period.start,
            "created[lte]": period.end,
        }
        async for event in self._paginate("/v1/events", "list_events", params):
            try:
                charge = event["data"]["object"]
                balance_transaction = charge.get("balance_transaction")
                yield SettlementEvent(
                    event_id=event["id"],
                    charge_id=charge["id"],
                    amount=int(charge["amount"]),
                    currency=charge["currency"],
                    balance_transaction=balance_transaction if isinstance(balance_transaction, str) else None,
                    created=int(event["created"]),
                )
            except (KeyError, ValueError, TypeError) as e:
                raise InvoiceStoreError(f"Invalid event data from Stripe: {e}") from e

    async def get_balance_transaction(self, balance_transaction_id: str) -> SettlementDetail:
        """Settled amount and currency for one balance transaction"""
        data = await self._request(
            "GET", f"/v1/balance_transactions/{balance_transaction_id}", "get_balance_transaction"
        )
        try:
            return SettlementDetail(amount=int(data["amount"]), currency=data["currency"])
        except (KeyError, ValueError, TypeError) as e:
            raise InvoiceStoreError(f"Invalid balance transaction data from Stripe: {e}") from e

    async def list_invoices(self, status: str, **filters: Any) -> List[Invoice]:
        """All invoices with the given status, following pagination"""
        params = dict(filters, status=status)
        return [parse_invoice(item) async for item in self._paginate("/v1/invoices", "list_invoices", params)]

    async def update_invoice(self, invoice_id: str, fields: Dict[str, Any]) -> Invoice:
        """Partial update; nested metadata keys are merged by Stripe"""
        data = await self._request(
            "POST", f"/v1/invoices/{invoice_id}", "update_invoice", data=encode_form(fields)
        )
        return parse_invoice(data)

    async def retrieve_invoice(self, invoice_id: str) -> Invoice:
        data = await self._request("GET", f"/v1/invoices/{invoice_id}", "retrieve_invoice")
        return parse_invoice(data)
