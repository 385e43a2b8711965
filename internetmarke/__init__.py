"""Client-side order workflow for the postage voucher service."""

__version__ = "0.1.0"
