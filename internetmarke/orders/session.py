"""Per-user session state held by one orchestrator."""

import logging
from typing import Any, List, Optional

from .domain import Credentials
from .exceptions import InvalidStateError, UnauthenticatedError

logger = logging.getLogger(__name__)


class SessionContext:
    """Authentication and wallet state of a single user session.

    The credentials are fixed at construction. The token is set once, by
    ``set_auth_result`` after a successful login, and every call that
    talks to the service obtains it through ``require_token``.

    Attributes:
        credentials: Login used to authenticate, or None.
        token: Session token, None before authentication.
        balance: Wallet balance in the smallest currency unit (cents).
        terms_accepted: Terms-and-conditions flag reported by the service.
        info_message: Optional message the service attached to the login.
    """

    def __init__(self, credentials: Optional[Credentials] = None):
        self._credentials = credentials
        self.token: Optional[str] = None
        self.balance: int = 0
        self.terms_accepted: bool = False
        self.info_message: Optional[str] = None
        self._order_ids: List[Any] = []

    @property
    def credentials(self) -> Optional[Credentials]:
        return self._credentials

    @property
    def order_ids(self) -> List[Any]:
        """Order ids generated in this session, oldest first (a copy)."""
        return list(self._order_ids)

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def set_auth_result(
        self,
        token: str,
        balance: int,
        terms_accepted: bool,
        info_message: Optional[str] = None,
    ) -> None:
        """Store the outcome of a successful login.

        Raises:
            InvalidStateError: If the session has no credentials, or a
                token was already set.
        """
        if self._credentials is None:
            raise InvalidStateError("NO_CREDENTIALS")
        if self.token is not None:
            raise InvalidStateError("ALREADY_AUTHENTICATED")
        self.token = token
        self.balance = int(balance or 0)
        self.terms_accepted = bool(terms_accepted)
        self.info_message = info_message or None
        logger.info("session authenticated user=%s balance=%d", self._credentials.username, self.balance)

    def update_balance(self, amount: int) -> None:
        """Overwrite the balance with the value reported by the service."""
        self.balance = int(amount)

    def record_order_id(self, order_id: Any) -> None:
        # no dedup: the history mirrors every id the service handed out
        self._order_ids.append(order_id)

    def require_token(self) -> str:
        """Return the session token.

        Raises:
            UnauthenticatedError: If the session was never authenticated.
        """
        if self.token is None:
            raise UnauthenticatedError()
        return self.token
