"""Tests for the orchestrator factory and the in-process stub transport.

The stub-backed tests run the whole workflow end to end: authenticate,
order id, PDF checkout, retrieve.
"""

import pytest
from pydantic import ValidationError

from internetmarke.orders.adapters import VoucherServiceStub
from internetmarke.orders.cache import ReferenceDataCache
from internetmarke.orders.domain import OutputFormat, VoucherLayout
from internetmarke.orders.exceptions import RemoteServiceError
from internetmarke.orders.http_adapters import HttpVoucherServiceClient
from internetmarke.orders.providers import get_order_orchestrator, get_voucher_service
from internetmarke.settings import Settings


def test_env_selects_stub_transport():
    orch = get_order_orchestrator("ada@example.com", "secret")
    assert isinstance(orch.service, VoucherServiceStub)


def test_http_transport_from_settings():
    settings = Settings(base_url="http://voucher:9100", partner_id="APP1", partner_secret="x")
    service = get_voucher_service(settings)
    assert isinstance(service, HttpVoucherServiceClient)
    assert service.partner.partner_id == "APP1"


def test_http_transport_without_partner():
    service = get_voucher_service(Settings(partner_id=""))
    assert service.partner is None


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("INTERNETMARKE_BASE_URL", "http://gw:1/")
    monkeypatch.setenv("INTERNETMARKE_REFERENCE_TTL_SECS", "60")
    monkeypatch.setenv("INTERNETMARKE_DEFAULT_PAGE_FORMAT", "Brief DIN lang")
    settings = Settings.from_env()
    assert settings.base_url == "http://gw:1"
    assert settings.reference_data_ttl_secs == 60
    assert settings.default_page_format_name == "Brief DIN lang"
    assert settings.use_http_adapters is False


def test_blank_credentials_rejected():
    with pytest.raises(ValidationError):
        get_order_orchestrator("   ", "secret")


def test_username_is_stripped():
    orch = get_order_orchestrator("  ada@example.com ", "secret")
    assert orch.session.credentials.username == "ada@example.com"
    assert "secret" not in repr(orch.session.credentials)


@pytest.mark.asyncio
async def test_custom_default_page_format_name():
    settings = Settings(use_http_adapters=False, default_page_format_name="Brief DIN lang")
    orch = get_order_orchestrator("ada@example.com", "secret", settings=settings)
    assert await orch.authenticate() is True
    assert orch.default_page_format_id == 26


@pytest.mark.asyncio
async def test_stub_workflow_end_to_end():
    service = VoucherServiceStub(balance=1000)
    cache = ReferenceDataCache()
    orch = get_order_orchestrator("ada@example.com", "secret", cache=cache, service=service)
    assert await orch.authenticate() is True
    assert orch.session.balance == 1000

    preview = await orch.preview_voucher(product_code=1, voucher_layout=VoucherLayout.ADDRESS_ZONE, output_format="PDF")
    assert preview["link"].endswith(".pdf")

    order_id = await orch.generate_order_id()
    order = {"shopOrderId": order_id, "total": 340, "positions": [{"productCode": 1}, {"productCode": 1002}]}
    result = await orch.checkout(order=order, output_format=OutputFormat.PDF)

    assert orch.session.balance == 660
    assert result.order_id == order_id
    assert [("trackingCode" in v) for v in result.to_dict()["vouchers"]] == [False, True]

    again = await orch.retrieve_order(order={"shopOrderId": order_id})
    assert again == result
    assert orch.session.balance == 660
    assert orch.session.order_ids == [order_id]


@pytest.mark.asyncio
async def test_stub_rejects_login_without_at_sign():
    orch = get_order_orchestrator("ada", "secret")
    assert await orch.authenticate() is False


@pytest.mark.asyncio
async def test_stub_insufficient_balance_propagates():
    orch = get_order_orchestrator("ada@example.com", "secret", service=VoucherServiceStub(balance=50))
    await orch.authenticate()
    with pytest.raises(RemoteServiceError) as e:
        await orch.checkout(order={"total": 80, "positions": [{"productCode": 1}]}, output_format="PNG")
    assert e.value.details["message"] == "INSUFFICIENT_BALANCE"
    assert e.value.operation == "checkoutShoppingCartPNG"
    assert orch.session.balance == 50


@pytest.mark.asyncio
async def test_stub_checkout_error_names_pdf_operation():
    orch = get_order_orchestrator("ada@example.com", "secret", service=VoucherServiceStub(balance=0))
    await orch.authenticate()
    with pytest.raises(RemoteServiceError) as e:
        await orch.checkout(order={"total": 1}, output_format=OutputFormat.PDF)
    assert e.value.operation == "checkoutShoppingCartPDF"
