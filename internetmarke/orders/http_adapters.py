"""HTTP adapter client for the voucher service port.

This module implements ``VoucherServicePort`` over a JSON gateway to the
voucher service using ``httpx``. Every remote operation is a POST to
``{base_url}/{operation}``. It adds:

- Request correlation: propagates ``X-Request-ID`` from the ContextVar
  bound by ``correlation_scope``.
- Partner identification headers when a ``Partner`` is configured.
- Operation selection per output format from ``FORMAT_OPERATIONS``.

There is no retry and no circuit breaker: transport errors and non-2xx
responses are raised as ``RemoteServiceError`` and left to the caller.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from internetmarke.gateway.context import current_correlation_id

from .domain import Credentials, OutputFormat, VoucherLayout, VoucherServicePort, operations_for
from .exceptions import RemoteServiceError
from .partner import Partner

logger = logging.getLogger(__name__)

# login rejections are a business outcome, not a transport failure
AUTH_REJECTED_STATUSES = (401, 403)


def _request_headers(partner: Optional[Partner] = None) -> Dict[str, str]:
    """Build headers with the correlation id and partner identification."""
    headers: Dict[str, str] = {}
    rid = current_correlation_id()
    if rid and rid != "-":
        headers["X-Request-ID"] = rid
    if partner is not None:
        headers.update(partner.headers())
    return headers


class HttpVoucherServiceClient(VoucherServicePort):
    """HTTP client for the voucher service gateway.

    Args:
        base_url: Root URL of the gateway.
        timeout: Timeout in seconds for each request.
        partner: Partner whose headers accompany every request.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, partner: Optional[Partner] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.partner = partner

    async def _call(
        self, operation: str, payload: Dict[str, Any], accept_statuses=(), required=()
    ) -> Optional[Dict[str, Any]]:
        """POST ``payload`` to ``operation`` and decode the JSON body.

        Args:
            required: Fields the decoded object must carry.

        Returns:
            The decoded body, or None when the status is one of
            ``accept_statuses``.

        Raises:
            RemoteServiceError: For transport errors, other non-2xx
                statuses, bodies that are not JSON (``INVALID_JSON``) and
                bodies that are not an object with the required fields
                (``INVALID_BODY``).
        """
        url = f"{self.base_url}/{operation}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, json=payload, headers=_request_headers(self.partner))
        except httpx.RequestError as e:
            logger.error("voucher service unreachable operation=%s error=%s", operation, e)
            raise RemoteServiceError(operation, message=str(e)) from e

        if resp.status_code in accept_statuses:
            return None
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("voucher service error operation=%s status=%d", operation, resp.status_code)
            raise RemoteServiceError(operation, status_code=resp.status_code) from e
        try:
            body = resp.json()
        except ValueError as e:
            raise RemoteServiceError(operation, status_code=resp.status_code, message="INVALID_JSON") from e
        if not isinstance(body, dict) or any(field not in body for field in required):
            logger.error("voucher service malformed body operation=%s status=%d", operation, resp.status_code)
            raise RemoteServiceError(operation, status_code=resp.status_code, message="INVALID_BODY")
        return body

    async def retrieve_page_formats(self) -> List[Dict[str, Any]]:
        data = await self._call("retrievePageFormats", {})
        return list(data.get("pageFormat") or [])

    async def authenticate_user(self, credentials: Credentials) -> Optional[Dict[str, Any]]:
        """Log in; a 401/403 answer means rejected credentials and yields None."""
        return await self._call(
            "authenticateUser",
            {"username": credentials.username, "password": credentials.password},
            accept_statuses=AUTH_REJECTED_STATUSES,
        )

    async def retrieve_preview_voucher(
        self, output_format: OutputFormat, product_code: int, voucher_layout: VoucherLayout
    ) -> Dict[str, Any]:
        operation = operations_for(output_format).preview
        return await self._call(operation, {"productCode": product_code, "voucherLayout": voucher_layout.value})

    async def checkout_shopping_cart(self, output_format: OutputFormat, payload: Dict[str, Any]) -> Dict[str, Any]:
        operation = operations_for(output_format).checkout
        return await self._call(operation, payload)

    async def retrieve_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._call("retrieveOrder", payload)

    async def create_shop_order_id(self, token: str) -> Any:
        data = await self._call("createShopOrderId", {"userToken": token}, required=("shopOrderId",))
        return data["shopOrderId"]
