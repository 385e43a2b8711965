"""Domain service orchestrating one user's voucher order workflow.

``OrderOrchestrator`` authenticates a session, resolves the default page
format from the reference-data cache, hands out shop order ids, checks
out carts and re-fetches earlier orders. It talks to the service only
through ``VoucherServicePort`` and does no I/O of its own.

State machine::

    UNAUTHENTICATED -> AUTHENTICATING -> AUTHENTICATED <-> ORDER_IN_FLIGHT
                                    \\-> AUTH_FAILED (terminal)

Every transition out of AUTHENTICATING and ORDER_IN_FLIGHT happens in a
``finally`` block, so an error or a cancelled await leaves the instance
in a usable state.
"""

import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from internetmarke.gateway.context import correlation_scope
from internetmarke.settings import DEFAULT_PAGE_FORMAT_NAME

from .cache import ReferenceDataCache
from .domain import (
    FORMAT_OPERATIONS,
    OrchestratorState,
    OutputFormat,
    PageFormat,
    Product,
    ShoppingCartResult,
    VoucherLayout,
    VoucherServicePort,
    resolve_output_format,
)
from .exceptions import DefaultFormatNotFoundError, InvalidStateError
from .normalizer import extract_balance, normalize_shopping_cart
from .session import SessionContext

logger = logging.getLogger(__name__)

SESSION_STATES = (OrchestratorState.AUTHENTICATED, OrchestratorState.ORDER_IN_FLIGHT)


class OrderOrchestrator:
    """Workflow engine for a single session against the voucher service.

    Args:
        service: Port to the remote voucher service.
        session: Session state owned exclusively by this orchestrator.
        cache: Reference-data cache; may be shared with other
            orchestrators using the same service. A private one is created
            when omitted.
        default_page_format_name: Exact name of the page format injected
            into PDF checkouts that do not name one.
    """

    def __init__(
        self,
        service: VoucherServicePort,
        session: SessionContext,
        cache: Optional[ReferenceDataCache] = None,
        default_page_format_name: str = DEFAULT_PAGE_FORMAT_NAME,
    ):
        self.service = service
        self._session = session
        self._cache = cache if cache is not None else ReferenceDataCache()
        self._default_page_format_name = default_page_format_name
        self._default_page_format_id: Any = None
        self._state = OrchestratorState.UNAUTHENTICATED

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def session(self) -> SessionContext:
        return self._session

    @property
    def cache(self) -> ReferenceDataCache:
        return self._cache

    @property
    def default_page_format_id(self) -> Any:
        """Id of the default page format, None until authenticated."""
        return self._default_page_format_id

    # ---- Authentication ----
    async def authenticate(self) -> bool:
        """Log the session in and resolve the default page format.

        Loads the page formats (through the cache), picks the one whose name
        equals the configured default, then submits the credentials.

        Returns:
            True when the service accepted the credentials, False when it
            rejected them. A rejection moves the orchestrator to
            AUTH_FAILED for good.

        Raises:
            InvalidStateError: If called in any state but UNAUTHENTICATED,
                or when the session has no credentials.
            DefaultFormatNotFoundError: If no page format carries the
                default name. The orchestrator stays UNAUTHENTICATED.
            RemoteServiceError: Propagated from the transport.
        """
        with correlation_scope():
            if self._state is not OrchestratorState.UNAUTHENTICATED:
                raise InvalidStateError(details={"operation": "authenticate", "state": self._state.value})
            credentials = self._session.credentials
            if credentials is None:
                raise InvalidStateError("NO_CREDENTIALS")

            self._state = OrchestratorState.AUTHENTICATING
            try:
                page_formats = await self._cache.load_page_formats(self.service.retrieve_page_formats)
                default_id = self._find_default_page_format(page_formats.values())

                response = await self.service.authenticate_user(credentials)
                if not response or not response.get("userToken"):
                    self._state = OrchestratorState.AUTH_FAILED
                    logger.warning("authentication rejected user=%s", credentials.username)
                    return False

                self._session.set_auth_result(
                    token=response["userToken"],
                    balance=extract_balance(response) or 0,
                    terms_accepted=response.get("showTermAndCondition", False),
                    info_message=response.get("infoMessage"),
                )
                self._default_page_format_id = default_id
                self._state = OrchestratorState.AUTHENTICATED
                return True
            finally:
                if self._state is OrchestratorState.AUTHENTICATING:
                    self._state = OrchestratorState.UNAUTHENTICATED

    def _find_default_page_format(self, page_formats: Iterable[PageFormat]) -> Any:
        for page_format in page_formats:
            if page_format.name == self._default_page_format_name:
                return page_format.id
        raise DefaultFormatNotFoundError(self._default_page_format_name)

    # ---- Authenticated operations ----
    def _require_session(self, operation: str, allowed=SESSION_STATES) -> str:
        token = self._session.require_token()
        if self._state not in allowed:
            raise InvalidStateError(details={"operation": operation, "state": self._state.value})
        return token

    async def preview_voucher(
        self,
        *,
        voucher_layout: Union[VoucherLayout, str],
        output_format: Union[OutputFormat, str],
        product: Optional[Product] = None,
        product_code: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Render a preview of a voucher.

        A given ``product`` takes precedence over ``product_code``.

        Returns:
            dict: ``{"link": <preview url>}``.

        Raises:
            UnauthenticatedError: Before a successful ``authenticate``.
            UnsupportedFormatError: For a format outside ``OutputFormat``.
            ValueError: ``PRODUCT_CODE_REQUIRED`` when neither product nor
                code is given.
        """
        with correlation_scope():
            self._require_session("preview_voucher")
            fmt = resolve_output_format(output_format)
            layout = VoucherLayout(voucher_layout)
            if product is not None:
                product_code = product.id
            if product_code is None:
                raise ValueError("PRODUCT_CODE_REQUIRED")

            response = await self.service.retrieve_preview_voucher(fmt, product_code, layout)
            logger.info("preview rendered format=%s product_code=%s", fmt.value, product_code)
            return {"link": response.get("link")}

    async def generate_order_id(self) -> Any:
        """Obtain a new shop order id and record it in the session history."""
        with correlation_scope():
            token = self._require_session("generate_order_id")
            order_id = await self.service.create_shop_order_id(token)
            self._session.record_order_id(order_id)
            logger.info("shop order id issued order_id=%s", order_id)
            return order_id

    async def checkout(
        self,
        *,
        order: Mapping[str, Any],
        output_format: Union[OutputFormat, str],
    ) -> ShoppingCartResult:
        """Check out a shopping cart and collect the vouchers.

        The payload sent is a copy of ``order`` carrying the session token
        (which replaces any ``userToken`` in ``order``). PDF checkouts get
        the default page format id unless ``order`` names one.

        Returns:
            ShoppingCartResult: Order id, download link and vouchers.

        Raises:
            UnauthenticatedError: Before a successful ``authenticate``.
            InvalidStateError: While another checkout is in flight.
            UnsupportedFormatError: For a format outside ``OutputFormat``.
            RemoteServiceError: Propagated from the transport.
        """
        with correlation_scope():
            token = self._require_session("checkout", allowed=(OrchestratorState.AUTHENTICATED,))
            fmt = resolve_output_format(output_format)

            payload = dict(order)
            payload["userToken"] = token
            if FORMAT_OPERATIONS[fmt].requires_page_format and payload.get("pageFormatId") is None:
                payload["pageFormatId"] = self._default_page_format_id

            self._state = OrchestratorState.ORDER_IN_FLIGHT
            try:
                response = await self.service.checkout_shopping_cart(fmt, payload)
            finally:
                self._state = OrchestratorState.AUTHENTICATED

            balance = extract_balance(response)
            if balance is not None:
                self._session.update_balance(balance)
            result = normalize_shopping_cart(response)
            logger.info(
                "checkout complete order_id=%s format=%s vouchers=%d balance=%d",
                result.order_id, fmt.value, len(result.vouchers), self._session.balance,
            )
            return result

    async def retrieve_order(self, *, order: Mapping[str, Any]) -> ShoppingCartResult:
        """Fetch the vouchers of an earlier order; the balance is untouched."""
        with correlation_scope():
            token = self._require_session("retrieve_order")
            payload = dict(order)
            payload["userToken"] = token
            response = await self.service.retrieve_order(payload)
            result = normalize_shopping_cart(response)
            logger.info("order retrieved order_id=%s vouchers=%d", result.order_id, len(result.vouchers))
            return result
