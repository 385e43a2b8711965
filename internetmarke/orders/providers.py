"""Service provider helpers for wiring OrderOrchestrator with its port.

``get_order_orchestrator`` returns an orchestrator for one user session.
When ``settings.use_http_adapters`` is set it talks to the voucher service
through ``HttpVoucherServiceClient``; otherwise it uses the in-process
``VoucherServiceStub``, which suits tests and local development.
"""

from typing import Optional

from internetmarke.settings import Settings

from .adapters import VoucherServiceStub
from .cache import ReferenceDataCache
from .domain import VoucherServicePort
from .http_adapters import HttpVoucherServiceClient
from .partner import Partner
from .schemas import CredentialsIn
from .service import OrderOrchestrator
from .session import SessionContext


def get_voucher_service(settings: Settings) -> VoucherServicePort:
    """Return the transport selected by ``settings``."""
    if not settings.use_http_adapters:
        return VoucherServiceStub()
    partner = None
    if settings.partner_id:
        partner = Partner(settings.partner_id, settings.partner_secret, settings.key_phase)
    return HttpVoucherServiceClient(
        base_url=settings.base_url,
        timeout=settings.http_timeout_secs,
        partner=partner,
    )


def get_order_orchestrator(
    username: str,
    password: str,
    settings: Optional[Settings] = None,
    cache: Optional[ReferenceDataCache] = None,
    service: Optional[VoucherServicePort] = None,
) -> OrderOrchestrator:
    """Return an orchestrator for a new, unauthenticated session.

    Args:
        username: Portal user name.
        password: Portal password.
        settings: Settings to use; read from the environment when omitted.
        cache: Reference-data cache to share across sessions. A new one
            with the configured TTL is created when omitted.
        service: Transport to use instead of the one ``settings`` selects.

    Raises:
        pydantic.ValidationError: If the credentials are blank.
    """
    settings = settings or Settings.from_env()
    credentials = CredentialsIn(username=username, password=password).to_domain()
    if cache is None:
        cache = ReferenceDataCache(ttl_seconds=settings.reference_data_ttl_secs)
    return OrderOrchestrator(
        service=service or get_voucher_service(settings),
        session=SessionContext(credentials),
        cache=cache,
        default_page_format_name=settings.default_page_format_name,
    )
