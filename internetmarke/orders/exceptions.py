"""Errors raised by the voucher order workflow.

Hierarchy:
    VoucherOrderError
    ├── InvalidStateError            operation not allowed in the current state
    │   └── UnauthenticatedError     no session token yet
    ├── DefaultFormatNotFoundError   default page format missing from reference data
    ├── UnsupportedFormatError       output format outside the closed enumeration
    ├── NotFoundError                cache miss
    └── RemoteServiceError           raised by the transport, propagated unchanged

Each error carries a short upper-case ``code`` in the style used for
domain errors elsewhere (``"INSUFFICIENT_STOCK"``-like codes), plus an
optional ``details`` dict for debugging.
"""

from typing import Any, Dict, Optional


class VoucherOrderError(Exception):
    """Base class for all workflow errors."""

    code = "VOUCHER_ORDER_ERROR"

    def __init__(self, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.code = code or self.code
        self.details = details or {}
        super().__init__(self.code)

    def __str__(self) -> str:
        if self.details:
            return f"{self.code} | {self.details}"
        return self.code


class InvalidStateError(VoucherOrderError):
    code = "INVALID_STATE"


class UnauthenticatedError(InvalidStateError):
    code = "UNAUTHENTICATED"


class DefaultFormatNotFoundError(VoucherOrderError):
    """The reference data has no page format with the configured default name."""

    code = "DEFAULT_FORMAT_NOT_FOUND"

    def __init__(self, name: str):
        super().__init__(details={"name": name})
        self.name = name


class UnsupportedFormatError(VoucherOrderError):
    code = "UNSUPPORTED_FORMAT"

    def __init__(self, output_format: Any):
        super().__init__(details={"output_format": output_format})
        self.output_format = output_format


class NotFoundError(VoucherOrderError):
    code = "NOT_FOUND"

    def __init__(self, key: str):
        super().__init__(details={"key": key})
        self.key = key


class RemoteServiceError(VoucherOrderError):
    """Failure talking to the voucher service.

    Attributes:
        operation: Remote operation that failed.
        status_code: HTTP status when the service answered, else None.
        message: Short reason such as ``INVALID_BODY``, or empty.
    """

    code = "REMOTE_SERVICE_ERROR"

    def __init__(self, operation: str, status_code: Optional[int] = None, message: str = ""):
        details: Dict[str, Any] = {"operation": operation}
        if status_code is not None:
            details["status_code"] = status_code
        if message:
            details["message"] = message
        super().__init__(details=details)
        self.operation = operation
        self.status_code = status_code
        self.message = message
