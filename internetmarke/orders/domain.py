"""Domain models, ports and the output-format table for voucher orders.

This module contains the enumerations and dataclasses used as DTOs by the
order workflow, the protocol definition (port) for the remote voucher
service, and the explicit mapping from each output format to the remote
operations that serve it.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Protocol, Union

from .exceptions import UnsupportedFormatError


# ---- Enums ----
class OutputFormat(str, Enum):
    """Media the voucher service can produce for a cart."""

    PDF = "PDF"
    PNG = "PNG"


class VoucherLayout(str, Enum):
    """Layout style printed on a voucher."""

    ADDRESS_ZONE = "AddressZone"
    FRANKING_ZONE = "FrankingZone"


class OrchestratorState(str, Enum):
    """Lifecycle of one orchestrator (one user session).

    AUTH_FAILED is terminal: the service rejected the credentials and the
    instance cannot be authenticated again.
    """

    UNAUTHENTICATED = "UNAUTHENTICATED"
    AUTHENTICATING = "AUTHENTICATING"
    AUTHENTICATED = "AUTHENTICATED"
    ORDER_IN_FLIGHT = "ORDER_IN_FLIGHT"
    AUTH_FAILED = "AUTH_FAILED"


# ---- Output format dispatch ----
@dataclass(frozen=True)
class FormatOperations:
    """Remote operations serving one output format.

    Attributes:
        preview: Remote operation that renders a preview voucher.
        checkout: Remote operation that checks out a shopping cart.
        requires_page_format: Whether the checkout needs a page format id.
    """

    preview: str
    checkout: str
    requires_page_format: bool = False


FORMAT_OPERATIONS: Mapping[OutputFormat, FormatOperations] = MappingProxyType({
    OutputFormat.PDF: FormatOperations(
        preview="retrievePreviewVoucherPDF",
        checkout="checkoutShoppingCartPDF",
        requires_page_format=True,
    ),
    OutputFormat.PNG: FormatOperations(
        preview="retrievePreviewVoucherPNG",
        checkout="checkoutShoppingCartPNG",
    ),
})


def resolve_output_format(value: Union[OutputFormat, str]) -> OutputFormat:
    """Coerce ``value`` to an ``OutputFormat`` that has remote operations.

    Raises:
        UnsupportedFormatError: If the value is not a member of the closed
            enumeration.
    """
    try:
        fmt = OutputFormat(value)
    except ValueError:
        raise UnsupportedFormatError(value) from None
    if fmt not in FORMAT_OPERATIONS:
        raise UnsupportedFormatError(value)
    return fmt


def operations_for(value: Union[OutputFormat, str]) -> FormatOperations:
    """Return the remote operations for an output format."""
    return FORMAT_OPERATIONS[resolve_output_format(value)]


# ---- Entities / DTOs ----
@dataclass(frozen=True)
class Credentials:
    """Login of the portal user. ``repr`` hides the password."""

    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class Product:
    """A postage product; ``id`` is the product code used by the service."""

    id: int
    name: str = ""


@dataclass(frozen=True)
class PageFormat:
    """A paper/layout option required for PDF vouchers.

    Attributes:
        id: Identifier used by the voucher service.
        name: Display name, e.g. "DIN A4 Normalpapier".
        attributes: Remaining descriptive fields (paper size, layout). The
            ``id`` is not repeated here.
    """

    id: int
    name: str
    attributes: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, data: Mapping[str, Any]) -> "PageFormat":
        """Build a page format from a service record without mutating it."""
        attributes = {k: v for k, v in data.items() if k not in ("id", "name")}
        return cls(id=data["id"], name=data.get("name", ""), attributes=MappingProxyType(attributes))


@dataclass(frozen=True)
class Voucher:
    """A purchased postage unit."""

    id: str
    tracking_code: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        """Client-facing shape; ``trackingCode`` only when present."""
        data = {"id": self.id}
        if self.tracking_code:
            data["trackingCode"] = self.tracking_code
        return data


@dataclass(frozen=True)
class ShoppingCartResult:
    """Outcome of a checkout or of a retrieved order.

    Attributes:
        order_id: Shop order id of the cart.
        link: Download URL of the produced voucher artifact.
        vouchers: Vouchers in the order returned by the service.
    """

    order_id: Any
    link: Optional[str]
    vouchers: List[Voucher] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "orderId": self.order_id,
            "link": self.link,
            "vouchers": [v.to_dict() for v in self.vouchers],
        }


# ---- Ports (DIP) ----
class VoucherServicePort(Protocol):
    """Port describing the remote voucher service used by the workflow.

    Responses are raw mappings using the service's own field names. Any
    transport failure is raised as ``RemoteServiceError``.
    """

    async def retrieve_page_formats(self) -> List[Dict[str, Any]]:
        """Return every page format as ``{id, name, ...attributes}``."""
        raise NotImplementedError()

    async def authenticate_user(self, credentials: Credentials) -> Optional[Dict[str, Any]]:
        """Log the user in.

        Returns:
            ``{userToken, walletBalance, showTermAndCondition, infoMessage}``
            on success, ``None`` or an empty mapping when the service
            rejects the credentials.
        """
        raise NotImplementedError()

    async def retrieve_preview_voucher(
        self, output_format: OutputFormat, product_code: int, voucher_layout: VoucherLayout
    ) -> Dict[str, Any]:
        """Render a preview voucher; returns ``{link}``."""
        raise NotImplementedError()

    async def checkout_shopping_cart(self, output_format: OutputFormat, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Check out a cart; returns ``{link, walletBalance, shoppingCart}``."""
        raise NotImplementedError()

    async def retrieve_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Fetch a previously placed order; returns ``{link, shoppingCart}``."""
        raise NotImplementedError()

    async def create_shop_order_id(self, token: str) -> Any:
        """Return a new globally unique shop order id."""
        raise NotImplementedError()
