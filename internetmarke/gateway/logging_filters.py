"""Logging filters for enriching log records with the correlation id.

Adding ``CorrelationIdFilter`` to a handler makes ``%(correlation_id)s``
available to formatters, so every line emitted during one orchestrator
operation can be grouped without changing individual log statements.
"""

from logging import Filter, LogRecord

from .context import CORRELATION_ID_CTX


class CorrelationIdFilter(Filter):
    """Attach a ``correlation_id`` attribute to log records.

    The value comes from ``CORRELATION_ID_CTX``. Outside of any
    ``correlation_scope`` the placeholder "-" is used.
    """

    def filter(self, record: LogRecord) -> bool:
        """Populate ``record.correlation_id`` and let the record through.

        Args:
            record: The log record to enrich.

        Returns:
            bool: Always True.
        """
        record.correlation_id = CORRELATION_ID_CTX.get()
        return True
