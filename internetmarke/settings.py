"""Runtime settings for the voucher order client.

Values are read from ``INTERNETMARKE_*`` environment variables. Callers
that need different values per orchestrator build a ``Settings`` instance
directly and pass it to ``providers.get_order_orchestrator``.
"""

import os
from dataclasses import dataclass

REFERENCE_DATA_TTL_SECS = 86400  # 24 hours
DEFAULT_PAGE_FORMAT_NAME = "DIN A4 Normalpapier"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Configuration surface of the order client.

    Attributes:
        base_url: Root URL of the voucher service gateway.
        http_timeout_secs: Timeout applied to every HTTP call.
        reference_data_ttl_secs: Lifetime of cached page formats.
        default_page_format_name: Exact name of the page format used for
            PDF checkouts when the order does not carry one.
        use_http_adapters: Wire the HTTP transport when True, the
            in-process stub otherwise.
        partner_id: Partner identifier sent with every request.
        partner_secret: Secret used to sign the partner headers.
        key_phase: Key phase of the partner secret.
    """

    base_url: str = "http://localhost:9100"
    http_timeout_secs: float = 10.0
    reference_data_ttl_secs: int = REFERENCE_DATA_TTL_SECS
    default_page_format_name: str = DEFAULT_PAGE_FORMAT_NAME
    use_http_adapters: bool = True
    partner_id: str = ""
    partner_secret: str = ""
    key_phase: int = 1

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        return cls(
            base_url=os.getenv("INTERNETMARKE_BASE_URL", cls.base_url).rstrip("/"),
            http_timeout_secs=float(os.getenv("INTERNETMARKE_HTTP_TIMEOUT_SECS", str(cls.http_timeout_secs))),
            reference_data_ttl_secs=int(
                os.getenv("INTERNETMARKE_REFERENCE_TTL_SECS", str(REFERENCE_DATA_TTL_SECS))
            ),
            default_page_format_name=os.getenv("INTERNETMARKE_DEFAULT_PAGE_FORMAT", DEFAULT_PAGE_FORMAT_NAME),
            use_http_adapters=_env_flag("INTERNETMARKE_USE_HTTP_ADAPTERS", "1"),
            partner_id=os.getenv("INTERNETMARKE_PARTNER_ID", ""),
            partner_secret=os.getenv("INTERNETMARKE_PARTNER_SECRET", ""),
            key_phase=int(os.getenv("INTERNETMARKE_KEY_PHASE", "1")),
        )
