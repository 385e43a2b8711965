"""In-memory, TTL-bounded caches for slowly changing reference data.

Namespace conventions:
  PAGE_FORMAT_{id}   -> PageFormat     TTL 24h (86400s)

Design:
  - ``TTLStore`` is a generic keyed store; every entity that needs caching
    composes one with its own prefix and TTL.
  - Expiry is lazy: an expired entry is treated as absent on the next
    access. ``purge_expired()`` drops them eagerly for capacity hygiene.
  - The clock is injectable so expiry can be driven by tests.
  - ``ReferenceDataCache.load_page_formats`` checks then fetches without a
    lock. Two callers racing on a cold cache may both fetch; the second
    write overwrites the first with equivalent data.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, Iterable, Iterator, List, Mapping, Optional, Tuple, TypeVar

from internetmarke.settings import REFERENCE_DATA_TTL_SECS

from .domain import PageFormat
from .exceptions import NotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")

PAGE_FORMAT_PREFIX = "PAGE_FORMAT"

Clock = Callable[[], float]
PageFormatFetcher = Callable[[], Awaitable[Iterable[Mapping[str, Any]]]]


def make_key(prefix: str, entry_id: Any) -> str:
    """Build a namespaced key: {prefix}_{id}"""
    return f"{prefix}_{entry_id}"


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A cached payload and the monotonic time after which it is stale."""

    key: str
    value: T
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class TTLStore(Generic[T]):
    """Keyed store whose entries expire a fixed time after insertion.

    Args:
        prefix: Namespace prepended to every id.
        ttl_seconds: Lifetime of each entry.
        clock: Monotonic time source in seconds.
    """

    def __init__(self, prefix: str, ttl_seconds: float, clock: Clock = time.monotonic):
        if ttl_seconds <= 0:
            raise ValueError("TTL_MUST_BE_POSITIVE")
        self.prefix = prefix
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry[T]] = {}
        self._ids: Dict[str, Any] = {}

    def set(self, entry_id: Any, value: T) -> str:
        """Store ``value`` under ``entry_id`` and return the namespaced key."""
        return self.set_many([(entry_id, value)])[0]

    def set_many(self, items: Iterable[Tuple[Any, T]]) -> List[str]:
        """Store a batch of ``(id, value)`` pairs sharing one expiry time.

        Returns:
            list: The namespaced keys, in input order.
        """
        expires_at = self._clock() + self.ttl_seconds
        keys = []
        for entry_id, value in items:
            key = make_key(self.prefix, entry_id)
            self._entries[key] = CacheEntry(key=key, value=value, expires_at=expires_at)
            self._ids[key] = entry_id
            keys.append(key)
        return keys

    def get(self, entry_id: Any) -> Optional[T]:
        """Return the live value for ``entry_id``, or None."""
        key = make_key(self.prefix, entry_id)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self._drop(key)
            return None
        return entry.value

    def items(self) -> Iterator[Tuple[Any, T]]:
        """Yield ``(id, value)`` for every unexpired entry, in insertion order."""
        now = self._clock()
        for key, entry in list(self._entries.items()):
            if not entry.is_expired(now):
                yield self._ids[key], entry.value

    def purge_expired(self) -> int:
        """Drop expired entries; returns how many were removed."""
        now = self._clock()
        stale = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in stale:
            self._drop(key)
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
        self._ids.clear()

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for entry in self._entries.values() if not entry.is_expired(now))

    def _drop(self, key: str) -> None:
        self._entries.pop(key, None)
        self._ids.pop(key, None)


class ReferenceDataCache:
    """Cache of the page formats offered by the voucher service.

    One instance can be shared by every orchestrator talking to the same
    service; it is created by the caller and passed in explicitly.
    """

    def __init__(self, ttl_seconds: float = REFERENCE_DATA_TTL_SECS, clock: Clock = time.monotonic):
        self._page_formats: TTLStore[PageFormat] = TTLStore(PAGE_FORMAT_PREFIX, ttl_seconds, clock)

    async def load_page_formats(self, fetcher: PageFormatFetcher) -> Dict[Any, PageFormat]:
        """Return every page format, fetching the list when none is cached.

        The fetcher is awaited only when the page-format namespace holds no
        live entry, so within one TTL window it runs at most once per
        cold start.

        Args:
            fetcher: Coroutine function returning the raw page-format list.

        Returns:
            dict: Mapping of page format id to ``PageFormat``.
        """
        snapshot = self.page_formats()
        if snapshot:
            return snapshot

        records: List[Mapping[str, Any]] = list(await fetcher())
        page_formats = [PageFormat.from_raw(data) for data in records]
        self._page_formats.set_many((pf.id, pf) for pf in page_formats)
        logger.info("page formats loaded count=%d", len(page_formats))
        return {pf.id: pf for pf in page_formats}

    def get(self, page_format_id: Any) -> PageFormat:
        """Return a cached page format.

        Raises:
            NotFoundError: If the id is absent or its entry expired.
        """
        page_format = self._page_formats.get(page_format_id)
        if page_format is None:
            raise NotFoundError(make_key(PAGE_FORMAT_PREFIX, page_format_id))
        return page_format

    def page_formats(self) -> Dict[Any, PageFormat]:
        """Current unexpired page formats keyed by id."""
        return dict(self._page_formats.items())

    def purge_expired(self) -> int:
        return self._page_formats.purge_expired()

    def clear(self) -> None:
        self._page_formats.clear()
