"""Partner identification headers sent with every voucher service request.

The service identifies the integrating application by a partner id and a
short signature: the first 8 hex characters of the MD5 digest of
``partner_id::timestamp::key_phase::secret``. The timestamp is local time
in Berlin, formatted ``ddmmYYYY-HHMMSS``.
"""

import hashlib
from datetime import datetime
from typing import Callable, Dict, Optional
from zoneinfo import ZoneInfo

SERVICE_TZ = "Europe/Berlin"
TIMESTAMP_FORMAT = "%d%m%Y-%H%M%S"


def _service_now() -> datetime:
    return datetime.now(ZoneInfo(SERVICE_TZ))


class Partner:
    """Credentials of the integrating application (not of the user)."""

    def __init__(
        self,
        partner_id: str,
        secret: str,
        key_phase: int = 1,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.partner_id = partner_id
        self._secret = secret
        self.key_phase = key_phase
        self._now = now or _service_now

    def signature(self, timestamp: str) -> str:
        """Compute the request signature for ``timestamp``."""
        body = "::".join((self.partner_id, timestamp, str(self.key_phase), self._secret))
        return hashlib.md5(body.encode("utf-8")).hexdigest()[:8]

    def headers(self) -> Dict[str, str]:
        """Build a fresh set of partner headers for one request."""
        timestamp = self._now().strftime(TIMESTAMP_FORMAT)
        return {
            "PARTNER_ID": self.partner_id,
            "REQUEST_TIMESTAMP": timestamp,
            "KEY_PHASE": str(self.key_phase),
            "PARTNER_SIGNATURE": self.signature(timestamp),
        }
