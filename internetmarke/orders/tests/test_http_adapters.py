"""Unit tests for the HTTP adapter to the voucher service.

These tests verify operation selection, header propagation and error
mapping by monkeypatching ``httpx.AsyncClient.post``.
"""
from datetime import datetime

import httpx
import pytest

from internetmarke.gateway.context import correlation_scope
from internetmarke.orders.domain import Credentials, OutputFormat, VoucherLayout
from internetmarke.orders.exceptions import RemoteServiceError
from internetmarke.orders.http_adapters import HttpVoucherServiceClient
from internetmarke.orders.partner import Partner


class DummyResp:
    """Minimal httpx-like response stub for adapter tests.

    Args:
        status_code (int): HTTP status code to simulate.
        json_data (dict | None): JSON body to return from ``json()``.
    """
    def __init__(self, status_code=200, json_data=None):
        self.status_code = status_code
        self._json = json_data or {}
    def raise_for_status(self):
        if self.status_code >= 400:
            raise httpx.HTTPStatusError("err", request=None, response=None)
    def json(self): return self._json


def fake_post_returning(resp, calls):
    async def fake_post(self, url, json=None, headers=None, **kw):
        calls.append({"url": url, "json": json, "headers": headers or {}})
        return resp
    return fake_post


@pytest.mark.asyncio
async def test_checkout_pdf_posts_to_pdf_operation(monkeypatch):
    """PDF checkout is routed to checkoutShoppingCartPDF with the payload."""
    calls = []
    body = {"link": "L", "walletBalance": 10, "shoppingCart": {"shopOrderId": 1}}
    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post_returning(DummyResp(200, body), calls), raising=True)
    client = HttpVoucherServiceClient(base_url="http://voucher:9100/")
    out = await client.checkout_shopping_cart(OutputFormat.PDF, {"userToken": "t", "pageFormatId": 1})
    assert out == body
    assert calls[0]["url"] == "http://voucher:9100/checkoutShoppingCartPDF"
    assert calls[0]["json"] == {"userToken": "t", "pageFormatId": 1}


@pytest.mark.asyncio
async def test_preview_png_posts_to_png_operation(monkeypatch):
    calls = []
    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post_returning(DummyResp(200, {"link": "P"}), calls), raising=True)
    client = HttpVoucherServiceClient(base_url="http://voucher:9100")
    out = await client.retrieve_preview_voucher(OutputFormat.PNG, 1, VoucherLayout.FRANKING_ZONE)
    assert out == {"link": "P"}
    assert calls[0]["url"].endswith("/retrievePreviewVoucherPNG")
    assert calls[0]["json"] == {"productCode": 1, "voucherLayout": "FrankingZone"}


@pytest.mark.asyncio
async def test_page_formats_unwrapped(monkeypatch):
    calls = []
    body = {"pageFormat": [{"id": 1, "name": "DIN A4 Normalpapier"}]}
    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post_returning(DummyResp(200, body), calls), raising=True)
    client = HttpVoucherServiceClient(base_url="http://voucher:9100")
    assert await client.retrieve_page_formats() == [{"id": 1, "name": "DIN A4 Normalpapier"}]


@pytest.mark.asyncio
async def test_create_shop_order_id(monkeypatch):
    calls = []
    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post_returning(DummyResp(200, {"shopOrderId": 55}), calls), raising=True)
    client = HttpVoucherServiceClient(base_url="http://voucher:9100")
    assert await client.create_shop_order_id("tok") == 55
    assert calls[0]["json"] == {"userToken": "tok"}


@pytest.mark.asyncio
async def test_authenticate_rejected_returns_none(monkeypatch):
    """A 401 on login is a rejected login, not a transport error."""
    calls = []
    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post_returning(DummyResp(401), calls), raising=True)
    client = HttpVoucherServiceClient(base_url="http://voucher:9100")
    assert await client.authenticate_user(Credentials("ada@example.com", "bad")) is None


@pytest.mark.asyncio
async def test_server_error_raises_remote_service_error(monkeypatch):
    calls = []
    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post_returning(DummyResp(500), calls), raising=True)
    client = HttpVoucherServiceClient(base_url="http://voucher:9100")
    with pytest.raises(RemoteServiceError) as e:
        await client.retrieve_order({"userToken": "t", "shopOrderId": 1})
    assert e.value.operation == "retrieveOrder"
    assert e.value.status_code == 500
    assert len(calls) == 1  # no retry


@pytest.mark.asyncio
async def test_network_error_raises_remote_service_error(monkeypatch):
    """Transport errors from httpx surface as RemoteServiceError."""
    async def fake_post(self, url, json=None, headers=None, **kw):
        raise httpx.ConnectError("boom")
    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post, raising=True)
    client = HttpVoucherServiceClient(base_url="http://voucher:9100")
    with pytest.raises(RemoteServiceError) as e:
        await client.create_shop_order_id("tok")
    assert isinstance(e.value.__cause__, httpx.ConnectError)
    assert e.value.status_code is None


@pytest.mark.asyncio
async def test_headers_carry_request_id_and_partner(monkeypatch):
    calls = []
    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post_returning(DummyResp(200, {"shopOrderId": 1}), calls), raising=True)
    partner = Partner("APP1", "s3cret", key_phase=2, now=lambda: datetime(2024, 3, 1, 9, 5, 7))
    client = HttpVoucherServiceClient(base_url="http://voucher:9100", partner=partner)
    with correlation_scope("req-123"):
        await client.create_shop_order_id("tok")
    headers = calls[0]["headers"]
    assert headers["X-Request-ID"] == "req-123"
    assert headers["PARTNER_ID"] == "APP1"
    assert headers["REQUEST_TIMESTAMP"] == "01032024-090507"
    assert headers["KEY_PHASE"] == "2"
    assert headers["PARTNER_SIGNATURE"] == partner.signature("01032024-090507")


@pytest.mark.asyncio
async def test_no_request_id_outside_scope(monkeypatch):
    calls = []
    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post_returning(DummyResp(200, {"shopOrderId": 1}), calls), raising=True)
    await HttpVoucherServiceClient(base_url="http://voucher:9100").create_shop_order_id("tok")
    assert "X-Request-ID" not in calls[0]["headers"]


@pytest.mark.asyncio
async def test_page_formats_non_object_body_is_invalid_body(monkeypatch):
    """A 2xx body that is not a JSON object is a remote error, not an AttributeError."""
    calls = []
    body = [{"id": 1, "name": "DIN A4 Normalpapier"}]
    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post_returning(DummyResp(200, body), calls), raising=True)
    client = HttpVoucherServiceClient(base_url="http://voucher:9100")
    with pytest.raises(RemoteServiceError) as e:
        await client.retrieve_page_formats()
    assert e.value.operation == "retrievePageFormats"
    assert e.value.status_code == 200
    assert e.value.message == "INVALID_BODY"


@pytest.mark.asyncio
async def test_create_shop_order_id_missing_field_is_invalid_body(monkeypatch):
    calls = []
    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post_returning(DummyResp(200, {}), calls), raising=True)
    client = HttpVoucherServiceClient(base_url="http://voucher:9100")
    with pytest.raises(RemoteServiceError) as e:
        await client.create_shop_order_id("tok")
    assert e.value.operation == "createShopOrderId"
    assert e.value.status_code == 200
    assert e.value.message == "INVALID_BODY"
