"""Lazy, forward-only pagination over ``ListObjectsV2``.

The paginator owns a single mutable cursor and is not safe to consume
from several callers at once.
"""

from __future__ import annotations

from collections import deque
from enum import Enum
from typing import TYPE_CHECKING

from loguru import logger

from s3rest._client.decoders import decode_list_objects_v2
from s3rest._client.dtos import PaginationCursor

if TYPE_CHECKING:
    from collections.abc import Iterator

    from s3rest._client.dtos import QueryParams
    from s3rest._client.transport import Transport
    from s3rest.models import ListObjectsV2Page, S3Object


class ListingStrategy(str, Enum):
    """How successive pages are requested.

    Only the continuation-token protocol (``list-type=2``) is implemented.
    """

    CONTINUATION_TOKEN = "continuation-token"


class _State(Enum):
    READY = "ready"
    FETCHING = "fetching"
    HAS_PAGE = "has_page"
    EXHAUSTED = "exhausted"


class ListObjectsV2Paginator:
    """Iterator over the objects of a bucket, one page fetched at a time.

    Iterating yields ``S3Object`` items; :meth:`pages` yields whole pages
    from the same cursor.  A page is fetched only when the previous one
    has been consumed and more items are requested, so stopping early
    never triggers further calls.  Once a page reports it is not
    truncated the paginator is exhausted and never fetches again.
    """

    def __init__(
        self,
        transport: Transport,
        bucket: str,
        *,
        prefix: str | None = None,
        max_keys: int | None = None,
        strategy: ListingStrategy = ListingStrategy.CONTINUATION_TOKEN,
    ) -> None:
        """Hold the initial parameters; nothing is fetched until iteration."""
        self._transport = transport
        self._bucket = bucket
        self._strategy = strategy
        self._cursor = PaginationCursor(max_keys=max_keys, prefix=prefix)
        self._state = _State.READY
        self._buffer: deque[S3Object] = deque()
        self._pages_fetched = 0

    @property
    def strategy(self) -> ListingStrategy:
        """Listing protocol used for every page."""
        return self._strategy

    @property
    def cursor(self) -> PaginationCursor:
        """Current cursor (read-only view for diagnostics)."""
        return self._cursor

    @property
    def exhausted(self) -> bool:
        """True once the last page has been fetched."""
        return self._state is _State.EXHAUSTED

    @property
    def pages_fetched(self) -> int:
        """Number of list calls issued so far."""
        return self._pages_fetched

    def __iter__(self) -> ListObjectsV2Paginator:
        """Return self: the sequence is not restartable."""
        return self

    def __next__(self) -> S3Object:
        """Return the next object, fetching the next page when needed."""
        while not self._buffer:
            page = self.next_page()
            if page is None:
                raise StopIteration
            self._buffer.extend(page.contents)
        return self._buffer.popleft()

    def pages(self) -> Iterator[ListObjectsV2Page]:
        """Yield remaining pages lazily, sharing this paginator's cursor."""
        while (page := self.next_page()) is not None:
            yield page

    def next_page(self) -> ListObjectsV2Page | None:
        """Fetch and return the next page, or ``None`` when exhausted."""
        if self._state is _State.EXHAUSTED:
            return None
        self._state = _State.FETCHING
        try:
            response = self._transport.get(f"/{self._bucket}", query=self._query())
            page = decode_list_objects_v2(response)
        except Exception:
            self._state = _State.READY if self._pages_fetched == 0 else _State.HAS_PAGE
            raise
        self._pages_fetched += 1
        logger.debug(
            f"Listed page {self._pages_fetched} of bucket {self._bucket!r}: "
            f"{len(page.contents)} object(s), truncated={page.is_truncated}"
        )
        self._cursor.is_truncated = page.is_truncated
        self._cursor.continuation_token = page.next_continuation_token
        self._state = _State.HAS_PAGE if page.is_truncated else _State.EXHAUSTED
        return page

    def _query(self) -> QueryParams:
        query: QueryParams = [("list-type", "2")]
        if self._cursor.max_keys is not None:
            query.append(("max-keys", str(self._cursor.max_keys)))
        if self._cursor.prefix:
            query.append(("prefix", self._cursor.prefix))
        if self._cursor.continuation_token is not None:
            query.append(("continuation-token", self._cursor.continuation_token))
        return query
