"""Conversion of raw cart-bearing service responses into domain results.

Functions here are pure: they read the raw response and build new
objects, never mutating their input.
"""

from typing import Any, Iterable, List, Mapping, Optional

from .domain import ShoppingCartResult, Voucher

BALANCE_FIELDS = ("walletBalance", "walletBallance")


def _voucher_records(voucher_list: Any) -> Iterable[Mapping[str, Any]]:
    # the service wraps the array as {"voucher": [...]}; plain lists are accepted too
    if not voucher_list:
        return []
    if isinstance(voucher_list, Mapping):
        records = voucher_list.get("voucher") or []
        return [records] if isinstance(records, Mapping) else records
    return voucher_list


def normalize_voucher(record: Mapping[str, Any]) -> Voucher:
    """Map ``{voucherId, trackId?}`` to a ``Voucher``."""
    return Voucher(id=record["voucherId"], tracking_code=record.get("trackId") or None)


def normalize_shopping_cart(response: Mapping[str, Any]) -> ShoppingCartResult:
    """Build the client-facing result of a checkout or retrieved order.

    Args:
        response: Raw response carrying a ``shoppingCart`` with
            ``shopOrderId`` and ``voucherList``, and a download ``link``
            (top level, or inside the cart).

    Returns:
        ShoppingCartResult: Order id, link and vouchers in service order.
    """
    cart = response.get("shoppingCart") or {}
    vouchers: List[Voucher] = [normalize_voucher(r) for r in _voucher_records(cart.get("voucherList"))]
    return ShoppingCartResult(
        order_id=cart.get("shopOrderId"),
        link=response.get("link") or cart.get("link"),
        vouchers=vouchers,
    )


def extract_balance(response: Mapping[str, Any]) -> Optional[int]:
    """Return the wallet balance under either known spelling, or None."""
    for name in BALANCE_FIELDS:
        value = response.get(name)
        if value is not None:
            return int(value)
    return None
