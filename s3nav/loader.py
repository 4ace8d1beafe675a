from __future__ import annotations

from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, Optional, Sequence, TypeVar

from loguru import logger

from .config import DEFAULT_PAGE_SIZE
from .errors import FetchError
from .lists import ScrollableList

T = TypeVar("T")

FetchPage = Callable[
    [Optional[str], Optional[str], int],
    Awaitable[tuple[Sequence[T], Optional[str]]],
]


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T] = field(default_factory=list)
    next_token: Optional[str] = None


class PaginatedLoader(Generic[T]):
    """Grows a ScrollableList one page at a time.

    Pagination state is scoped to one (context, filter) pair: ``reset`` starts
    over with a fresh token, and any fetch still in flight from before the
    reset is ignored when it completes.
    """

    def __init__(
        self,
        fetch: FetchPage,
        page_size: int = DEFAULT_PAGE_SIZE,
        query_filter: Optional[str] = None,
        label: str = "",
    ) -> None:
        self._fetch = fetch
        self.page_size = max(1, int(page_size))
        self.query_filter = query_filter
        self.token: Optional[str] = None
        self.label = label
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def can_load_more(self) -> bool:
        return self.token is not None

    def reset(self, query_filter: Optional[str] = None) -> None:
        self.token = None
        self.query_filter = query_filter
        self._generation += 1

    def invalidate(self) -> None:
        self._generation += 1

    async def fetch_page(self) -> Page[T]:
        items, next_token = await self._fetch(
            self.token, self.query_filter, self.page_size
        )
        return Page(items=list(items), next_token=next_token)

    async def load(self, target: ScrollableList[T]) -> bool:
        if target.loading:
            logger.debug("Skipping load for {!r}: fetch already in flight", self.label)
            return False
        generation = self._generation
        target.set_loading(True)
        try:
            page = await self.fetch_page()
        except FetchError as exc:
            if generation != self._generation:
                logger.debug("Dropping stale error for {!r}: {}", self.label, exc)
                return False
            target.mark_error()
            logger.warning("Load failed for {!r}: {}", self.label, exc)
            raise
        except Exception:
            # Never leave the list stuck in LOADING.
            if generation == self._generation:
                target.mark_error()
            logger.exception("Unexpected failure loading {!r}", self.label)
            raise
        if generation != self._generation:
            logger.debug(
                "Discarding stale page of {} items for {!r}", len(page.items), self.label
            )
            return False
        target.set_has_more(page.next_token is not None)
        self.token = page.next_token
        target.append(page.items)
        logger.debug(
            "Loaded {} items for {!r} (more: {})",
            len(page.items),
            self.label,
            target.has_more,
        )
        return True
