from __future__ import annotations

from enum import Enum
from typing import Callable, Generic, Iterable, Optional, TypeVar

from .search import SearchBar

T = TypeVar("T")


class LoadState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class ScrollableList(Generic[T]):
    """Fetched items plus the filtered view and the selection cursor.

    ``selected`` indexes ``items``, never ``filtered_indices``. Whenever it is
    set it points at a visible entry. It is ``None`` when nothing is visible,
    and may also be ``None`` over a non-empty view after ``unselect()`` or
    ``select(None)``; ``next``/``previous`` then start from the first entry.
    """

    def __init__(self, title: str, items: Optional[Iterable[T]] = None) -> None:
        self._title = title
        self.items: list[T] = list(items or [])
        self.filtered_indices: list[int] = []
        self.selected: Optional[int] = None
        self.has_more = True
        self.state = LoadState.IDLE

    @property
    def title(self) -> str:
        return self._title

    @property
    def loading(self) -> bool:
        return self.state is LoadState.LOADING

    def __len__(self) -> int:
        return len(self.items)

    def is_empty(self) -> bool:
        return not self.items

    def append(self, new_items: Iterable[T]) -> None:
        self.items.extend(new_items)
        if self.state is LoadState.LOADING:
            self.state = LoadState.LOADED

    def set_has_more(self, has_more: bool) -> None:
        self.has_more = has_more

    def set_loading(self, loading: bool) -> None:
        if loading:
            self.state = LoadState.LOADING
        elif self.state is LoadState.LOADING:
            self.state = LoadState.LOADED

    def mark_error(self) -> None:
        self.state = LoadState.ERROR

    def apply_search(self, search_bar: SearchBar, key_fn: Callable[[T], str]) -> None:
        self.filtered_indices = [
            index
            for index, item in enumerate(self.items)
            if search_bar.matches(key_fn(item))
        ]
        self._reconcile_selection()

    def show_all(self) -> None:
        self.filtered_indices = list(range(len(self.items)))
        self._reconcile_selection()

    def _reconcile_selection(self) -> None:
        if self.selected in self.filtered_indices:
            return
        self.selected = self.filtered_indices[0] if self.filtered_indices else None

    def _position(self) -> Optional[int]:
        if self.selected is None:
            return None
        try:
            return self.filtered_indices.index(self.selected)
        except ValueError:
            return None

    def next(self) -> None:
        if not self.filtered_indices:
            return
        pos = self._position()
        if pos is None or pos >= len(self.filtered_indices) - 1:
            self.selected = self.filtered_indices[0]
        else:
            self.selected = self.filtered_indices[pos + 1]

    def previous(self) -> None:
        if not self.filtered_indices:
            return
        pos = self._position()
        if pos is None:
            self.selected = self.filtered_indices[0]
        elif pos == 0:
            self.selected = self.filtered_indices[-1]
        else:
            self.selected = self.filtered_indices[pos - 1]

    def first(self) -> None:
        if self.filtered_indices:
            self.selected = self.filtered_indices[0]

    def last(self) -> None:
        if self.filtered_indices:
            self.selected = self.filtered_indices[-1]

    def select(self, index: Optional[int]) -> None:
        if index is None or index in self.filtered_indices:
            self.selected = index

    def unselect(self) -> None:
        self.selected = None

    def selected_item(self) -> Optional[T]:
        if self.selected is None or self.selected >= len(self.items):
            return None
        return self.items[self.selected]

    def selected_position(self) -> Optional[int]:
        return self._position()

    def visible_items(self) -> list[T]:
        return [self.items[index] for index in self.filtered_indices]
