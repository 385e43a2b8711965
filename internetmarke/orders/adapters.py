"""In-process stub adapter for the voucher service port.

``VoucherServiceStub`` implements ``VoucherServicePort`` without any
network calls. It is intended for unit tests and local development where
deterministic behavior is useful and the real service is not reachable.
"""

import itertools
from typing import Any, Dict, List, Optional

from .domain import FORMAT_OPERATIONS, Credentials, OutputFormat, VoucherLayout, VoucherServicePort
from .exceptions import RemoteServiceError

STUB_PAGE_FORMATS: List[Dict[str, Any]] = [
    {"id": 1, "name": "DIN A4 Normalpapier", "pageType": "REGULARPAGE", "isAddressPossible": True},
    {"id": 2, "name": "DIN A4 Etiketten 3x8", "pageType": "LABELPAGE", "isAddressPossible": True},
    {"id": 26, "name": "Brief DIN lang", "pageType": "ENVELOPE", "isAddressPossible": False},
]

# products whose vouchers carry a tracking code (registered mail)
TRACKED_PRODUCT_CODES = frozenset({1002, 1007})


class VoucherServiceStub(VoucherServicePort):
    """Deterministic stand-in for the voucher service.

    Rules:
        - Logins are accepted when the username contains "@" and the
          password is not empty.
        - Shop order ids count up from ``first_order_id``.
        - A checkout creates one voucher per position and debits
          ``total`` (cents) from the wallet.
    """

    def __init__(self, balance: int = 10000, first_order_id: int = 1000, page_formats=None):
        self.balance = balance
        self.page_formats = [dict(p) for p in (page_formats or STUB_PAGE_FORMATS)]
        self._order_ids = itertools.count(first_order_id)
        self._voucher_ids = itertools.count(1)
        self._orders: Dict[Any, Dict[str, Any]] = {}
        self._tokens: set = set()

    async def retrieve_page_formats(self) -> List[Dict[str, Any]]:
        return [dict(p) for p in self.page_formats]

    async def authenticate_user(self, credentials: Credentials) -> Optional[Dict[str, Any]]:
        if "@" not in credentials.username or not credentials.password:
            return None
        token = f"stub-token-{credentials.username}"
        self._tokens.add(token)
        return {
            "userToken": token,
            "walletBalance": self.balance,
            "showTermAndCondition": False,
            "infoMessage": None,
        }

    async def retrieve_preview_voucher(
        self, output_format: OutputFormat, product_code: int, voucher_layout: VoucherLayout
    ) -> Dict[str, Any]:
        return {
            "link": f"https://stub.invalid/preview/{product_code}-{voucher_layout.value}.{output_format.value.lower()}"
        }

    async def create_shop_order_id(self, token: str) -> Any:
        self._check_token("createShopOrderId", token)
        return next(self._order_ids)

    async def checkout_shopping_cart(self, output_format: OutputFormat, payload: Dict[str, Any]) -> Dict[str, Any]:
        operation = FORMAT_OPERATIONS[output_format].checkout
        self._check_token(operation, payload.get("userToken"))
        total = int(payload.get("total", 0))
        if total > self.balance:
            raise RemoteServiceError(operation, message="INSUFFICIENT_BALANCE")

        order_id = payload.get("shopOrderId") or next(self._order_ids)
        vouchers = []
        for position in payload.get("positions", []):
            voucher = {"voucherId": f"A{next(self._voucher_ids):09d}"}
            if position.get("productCode") in TRACKED_PRODUCT_CODES:
                voucher["trackId"] = f"RR{order_id}{voucher['voucherId'][-4:]}DE"
            vouchers.append(voucher)

        self.balance -= total
        cart = {"shopOrderId": order_id, "voucherList": {"voucher": vouchers}}
        link = f"https://stub.invalid/vouchers/{order_id}.{output_format.value.lower()}"
        self._orders[order_id] = {"link": link, "shoppingCart": cart}
        # the service spells this field "walletBallance" on checkout
        return {"link": link, "walletBallance": self.balance, "shoppingCart": cart}

    async def retrieve_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self._check_token("retrieveOrder", payload.get("userToken"))
        try:
            return self._orders[payload.get("shopOrderId")]
        except KeyError:
            raise RemoteServiceError("retrieveOrder", status_code=404, message="UNKNOWN_ORDER") from None

    def _check_token(self, operation: str, token: Optional[str]) -> None:
        if token not in self._tokens:
            raise RemoteServiceError(operation, status_code=401, message="INVALID_TOKEN")
