"""
Commerce API client.

Shared HTTP binding to the remote order / tracking service. Attaches the
bearer token, unwraps the `{"success", "message", "data"}` envelope and turns
failures into application exceptions carrying the server's message verbatim.
No call is ever retried.
"""

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from admin_console.app.core.config import settings
from admin_console.app.core.exceptions import (
    ResourceNotFoundError,
    RemoteServiceError,
    RemoteServiceUnavailableError,
)
from admin_console.app.core.reliability import CircuitBreaker, CircuitOpenError
from admin_console.app.models.tracking_enums import TrackingStatus
from admin_console.app.schemas.tracking import OrderSnapshot, TrackingRecord

logger = logging.getLogger("admin_console.commerce_client")

# Fallback messages when the server gives none
ORDER_FETCH_FAILED = "Failed to load order"
TRACKING_FETCH_FAILED = "Failed to load tracking details"
TRACKING_CREATE_FAILED = "Failed to create tracking details"
TRACKING_UPDATE_FAILED = "Failed to update tracking status"
TRACKING_RESET_FAILED = "Failed to reset tracking"


def _is_outage(exc: Exception) -> bool:
    """Only transport errors and 5xx responses count against the circuit."""
    if isinstance(exc, httpx.HTTPError):
        return True
    if isinstance(exc, RemoteServiceError):
        return exc.upstream_status is None or exc.upstream_status >= 500
    return False


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if isinstance(message, str) and message.strip():
            return message
    return fallback


def _unwrap(response: httpx.Response, fallback: str) -> Any:
    try:
        body = response.json()
    except ValueError:
        raise RemoteServiceError(fallback, response.status_code)
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


class CommerceApiClient:
    """Async client for the order and tracking endpoints."""

    def __init__(
        self,
        base_url: str = None,
        token: str = None,
        timeout: float = None,
        transport: httpx.AsyncBaseTransport = None,
        circuit_breaker: CircuitBreaker = None,
    ):
        headers = {"Accept": "application/json"}
        token = settings.commerce_api_token if token is None else token
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._http = httpx.AsyncClient(
            base_url=base_url or settings.commerce_api_base_url,
            headers=headers,
            timeout=timeout or settings.commerce_api_timeout_seconds,
            transport=transport,
        )
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=settings.remote_failure_threshold,
            reset_timeout=settings.remote_reset_timeout_seconds,
            should_trip=_is_outage,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        fallback_message: str,
        json: Optional[dict] = None,
        allow_not_found: bool = False,
    ) -> Any:
        async def send() -> httpx.Response:
            response = await self._http.request(method, path, json=json)
            if response.status_code >= 500:
                raise RemoteServiceError(
                    _error_message(response, fallback_message), response.status_code
                )
            return response

        try:
            response = await self.circuit_breaker.call(send)
        except CircuitOpenError:
            logger.warning("Commerce API circuit open, rejecting %s %s", method, path)
            raise RemoteServiceUnavailableError()
        except httpx.HTTPError as e:
            logger.warning("Commerce API unreachable on %s %s: %s", method, path, e)
            raise RemoteServiceUnavailableError()

        if allow_not_found and response.status_code == 404:
            return None

        if response.is_error:
            message = _error_message(response, fallback_message)
            logger.warning(
                "Commerce API rejected %s %s",
                method,
                path,
                extra={"upstream_status": response.status_code, "upstream_message": message},
            )
            raise RemoteServiceError(message, response.status_code)

        return _unwrap(response, fallback_message)

    @staticmethod
    def _parse(model, payload: Any, fallback_message: str):
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            logger.error("Unexpected %s payload from commerce API: %s", model.__name__, e)
            raise RemoteServiceError(fallback_message)

    # Orders

    async def get_order(self, order_id: str) -> OrderSnapshot:
        """GET /orders/{order_id}. Raises ResourceNotFoundError for unknown orders."""
        payload = await self._request(
            "GET", f"/orders/{quote(order_id, safe='')}", ORDER_FETCH_FAILED, allow_not_found=True
        )
        if payload is None:
            raise ResourceNotFoundError("Order", order_id)
        return self._parse(OrderSnapshot, payload, ORDER_FETCH_FAILED)

    # Tracking

    async def get_tracking(self, order_id: str) -> Optional[TrackingRecord]:
        """GET /tracking/order/{order_id}. None means no tracking attached yet."""
        payload = await self._request(
            "GET",
            f"/tracking/order/{quote(order_id, safe='')}",
            TRACKING_FETCH_FAILED,
            allow_not_found=True,
        )
        if not payload:
            return None
        return self._parse(TrackingRecord, payload, TRACKING_FETCH_FAILED)

    async def create_tracking(
        self,
        order_id: str,
        carrier: str,
        tracking_number: str,
        tracking_url: Optional[str] = None,
    ) -> TrackingRecord:
        """POST /tracking-details."""
        body = {"orderId": order_id, "carrier": carrier, "trackingNumber": tracking_number}
        if tracking_url:
            body["trackingUrl"] = tracking_url
        payload = await self._request("POST", "/tracking-details", TRACKING_CREATE_FAILED, json=body)
        return self._parse(TrackingRecord, payload, TRACKING_CREATE_FAILED)

    async def update_tracking_status(
        self, order_id: str, status: TrackingStatus, notes: str
    ) -> TrackingRecord:
        """PATCH /tracking/order/{order_id}/status. The server appends the history entry."""
        payload = await self._request(
            "PATCH",
            f"/tracking/order/{quote(order_id, safe='')}/status",
            TRACKING_UPDATE_FAILED,
            json={"status": status.value, "notes": notes},
        )
        return self._parse(TrackingRecord, payload, TRACKING_UPDATE_FAILED)

    async def reset_tracking(self, order_id: str) -> TrackingRecord:
        """POST /tracking/order/{order_id}/reset. The server defines the initial state."""
        payload = await self._request(
            "POST",
            f"/tracking/order/{quote(order_id, safe='')}/reset",
            TRACKING_RESET_FAILED,
        )
        return self._parse(TrackingRecord, payload, TRACKING_RESET_FAILED)


_client: Optional[CommerceApiClient] = None


async def get_commerce_client() -> CommerceApiClient:
    """FastAPI dependency returning the shared commerce API client."""
    global _client
    if _client is None:
        _client = CommerceApiClient()
    return _client


async def close_commerce_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
