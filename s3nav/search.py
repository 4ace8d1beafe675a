from __future__ import annotations

from typing import Optional

BOUNDARY_CHARS = "/_-. "


def fuzzy_score(query: str, candidate: str) -> Optional[int]:
    if not query:
        return 0
    score = 0
    prev_idx = -1
    run = 0
    for needle in query:
        idx = candidate.find(needle, prev_idx + 1)
        if idx < 0:
            return None
        if idx == prev_idx + 1:
            run += 1
            score += 20 + min(16, run * 4)
        else:
            gap = idx - prev_idx - 1
            run = 0
            score -= min(40, gap * 2)
        if idx == 0 or candidate[idx - 1] in BOUNDARY_CHARS:
            score += 35
        prev_idx = idx
    if query in candidate:
        score += 100
    score -= len(candidate) // 5
    return score


class SearchBar:
    def __init__(self) -> None:
        self.query = ""
        self.active = False
        self.cursor_position = 0

    def toggle(self) -> None:
        self.active = not self.active
        if not self.active:
            self.clear()

    def input(self, char: str) -> None:
        if not self.active:
            return
        pos = self.cursor_position
        self.query = f"{self.query[:pos]}{char}{self.query[pos:]}"
        self.cursor_position = pos + len(char)

    def delete(self) -> None:
        if not self.active or self.cursor_position <= 0:
            return
        pos = self.cursor_position - 1
        self.query = f"{self.query[:pos]}{self.query[pos + 1:]}"
        self.cursor_position = pos

    def clear(self) -> None:
        self.query = ""
        self.cursor_position = 0

    def matches(self, candidate: str) -> bool:
        if not self.query:
            return True
        return fuzzy_score(self.query, candidate) is not None

    def score(self, candidate: str) -> Optional[int]:
        return fuzzy_score(self.query, candidate)
