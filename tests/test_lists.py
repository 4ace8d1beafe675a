import unittest

from s3nav.lists import LoadState, ScrollableList
from s3nav.search import SearchBar


def _searching(query: str) -> SearchBar:
    bar = SearchBar()
    bar.toggle()
    for char in query:
        bar.input(char)
    return bar


class TestScrollableList(unittest.TestCase):
    def _loaded(self, *names: str) -> ScrollableList[str]:
        items: ScrollableList[str] = ScrollableList("Things")
        items.append(names)
        items.show_all()
        return items

    def test_new_list_is_idle_with_more_expected(self) -> None:
        items: ScrollableList[str] = ScrollableList("Things")
        self.assertEqual(items.title, "Things")
        self.assertTrue(items.is_empty())
        self.assertTrue(items.has_more)
        self.assertIs(items.state, LoadState.IDLE)
        self.assertIsNone(items.selected)

    def test_loading_transitions(self) -> None:
        items: ScrollableList[str] = ScrollableList("Things")
        items.set_loading(True)
        self.assertTrue(items.loading)
        items.append(["a"])
        self.assertIs(items.state, LoadState.LOADED)
        items.mark_error()
        self.assertIs(items.state, LoadState.ERROR)
        self.assertFalse(items.loading)

    def test_show_all_selects_first_entry(self) -> None:
        items = self._loaded("a", "b", "c")
        self.assertEqual(items.filtered_indices, [0, 1, 2])
        self.assertEqual(items.selected, 0)
        self.assertEqual(items.selected_item(), "a")

    def test_next_and_previous_wrap(self) -> None:
        items = self._loaded("a", "b", "c")
        items.previous()
        self.assertEqual(items.selected, 2)
        items.next()
        self.assertEqual(items.selected, 0)
        items.next()
        self.assertEqual(items.selected, 1)

    def test_navigation_on_empty_list_is_noop(self) -> None:
        items: ScrollableList[str] = ScrollableList("Things")
        items.show_all()
        items.next()
        items.previous()
        items.first()
        items.last()
        self.assertIsNone(items.selected)
        self.assertIsNone(items.selected_item())

    def test_next_from_no_selection_picks_first(self) -> None:
        items = self._loaded("a", "b")
        items.unselect()
        items.next()
        self.assertEqual(items.selected, 0)
        items.unselect()
        items.previous()
        self.assertEqual(items.selected, 0)

    def test_first_and_last(self) -> None:
        items = self._loaded("a", "b", "c")
        items.last()
        self.assertEqual(items.selected_item(), "c")
        items.first()
        self.assertEqual(items.selected_item(), "a")

    def test_apply_search_filters_and_keeps_order(self) -> None:
        items = self._loaded("prod-logs", "dev", "prod-data", "staging")
        items.apply_search(_searching("prod"), str)
        self.assertEqual(items.filtered_indices, [0, 2])
        self.assertEqual(items.visible_items(), ["prod-logs", "prod-data"])

    def test_apply_search_keeps_visible_selection(self) -> None:
        items = self._loaded("prod-logs", "dev", "prod-data")
        items.select(2)
        items.apply_search(_searching("prod"), str)
        self.assertEqual(items.selected, 2)
        self.assertEqual(items.selected_position(), 1)

    def test_apply_search_moves_hidden_selection(self) -> None:
        items = self._loaded("prod-logs", "dev", "prod-data")
        items.select(1)
        items.apply_search(_searching("prod"), str)
        self.assertEqual(items.selected, 0)

    def test_apply_search_without_matches_clears_selection(self) -> None:
        items = self._loaded("a", "b")
        items.apply_search(_searching("zzz"), str)
        self.assertEqual(items.filtered_indices, [])
        self.assertIsNone(items.selected)

    def test_navigation_stays_within_filter(self) -> None:
        items = self._loaded("prod-logs", "dev", "prod-data", "qa")
        items.apply_search(_searching("prod"), str)
        items.next()
        self.assertEqual(items.selected, 2)
        items.next()
        self.assertEqual(items.selected, 0)

    def test_select_rejects_hidden_index(self) -> None:
        items = self._loaded("prod-logs", "dev")
        items.apply_search(_searching("prod"), str)
        items.select(1)
        self.assertEqual(items.selected, 0)
        items.select(None)
        self.assertIsNone(items.selected)

    def test_append_keeps_selection(self) -> None:
        items = self._loaded("a", "b")
        items.next()
        items.append(["c"])
        items.show_all()
        self.assertEqual(items.selected, 1)
        self.assertEqual(len(items), 3)

    def test_next_full_cycle_returns_to_start(self) -> None:
        items = self._loaded("prod-a", "dev", "prod-b", "prod-c")
        items.apply_search(_searching("prod"), str)
        items.select(2)
        for _ in range(len(items.filtered_indices)):
            items.next()
        self.assertEqual(items.selected, 2)
        for _ in range(len(items.filtered_indices)):
            items.previous()
        self.assertEqual(items.selected, 2)

    def test_appended_items_hidden_until_refiltered(self) -> None:
        items = self._loaded("a", "b")
        items.append(["c", "d"])
        self.assertEqual(items.filtered_indices, [0, 1])
        self.assertEqual(items.visible_items(), ["a", "b"])
        items.apply_search(SearchBar(), str)
        self.assertEqual(items.filtered_indices, [0, 1, 2, 3])

    def test_filter_and_selection_stay_consistent(self) -> None:
        items: ScrollableList[str] = ScrollableList("Things")
        bar = _searching("log")
        steps = [
            ("append", ["app-logs", "dev", "logger"]),
            ("filter", None),
            ("next", None),
            ("append", ["blog", "misc", "catalog"]),
            ("previous", None),
            ("filter", None),
            ("next", None),
            ("next", None),
            ("append", ["zzz"]),
            ("filter", None),
            ("previous", None),
        ]
        for step, payload in steps:
            if step == "append":
                items.append(payload)
            elif step == "filter":
                items.apply_search(bar, str)
            elif step == "next":
                items.next()
            else:
                items.previous()
            indices = items.filtered_indices
            self.assertEqual(indices, sorted(set(indices)))
            if items.selected is not None:
                self.assertIn(items.selected, indices)
        self.assertEqual(items.visible_items(), ["app-logs", "logger", "blog", "catalog"])
