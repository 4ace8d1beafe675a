from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Mode(Enum):
    BUCKETS = "buckets"
    OBJECTS = "objects"
    PREVIEW = "preview"


class ActionKind(Enum):
    MOVE_UP = "move_up"
    MOVE_DOWN = "move_down"
    MOVE_TOP = "move_top"
    MOVE_BOTTOM = "move_bottom"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    HALF_PAGE_UP = "half_page_up"
    HALF_PAGE_DOWN = "half_page_down"
    START_SEARCH = "start_search"
    SEARCH_INPUT = "search_input"
    SEARCH_DELETE = "search_delete"
    ENTER = "enter"
    GO_BACK = "go_back"
    LOAD_MORE = "load_more"
    DOWNLOAD = "download"
    REFRESH = "refresh"
    CLEAR_SEARCH = "clear_search"
    EXIT = "exit"


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    char: Optional[str] = None

    @classmethod
    def search_input(cls, char: str) -> "Action":
        return cls(ActionKind.SEARCH_INPUT, char)


MOVEMENT_KEYS = {
    "up": ActionKind.MOVE_UP,
    "down": ActionKind.MOVE_DOWN,
    "home": ActionKind.MOVE_TOP,
    "end": ActionKind.MOVE_BOTTOM,
    "pageup": ActionKind.PAGE_UP,
    "pagedown": ActionKind.PAGE_DOWN,
    "ctrl+u": ActionKind.HALF_PAGE_UP,
    "ctrl+d": ActionKind.HALF_PAGE_DOWN,
}

COMMAND_KEYS = {
    "k": ActionKind.MOVE_UP,
    "j": ActionKind.MOVE_DOWN,
    "g": ActionKind.MOVE_TOP,
    "G": ActionKind.MOVE_BOTTOM,
    "slash": ActionKind.START_SEARCH,
    "enter": ActionKind.ENTER,
    "escape": ActionKind.GO_BACK,
    "backspace": ActionKind.GO_BACK,
    "space": ActionKind.LOAD_MORE,
    "d": ActionKind.DOWNLOAD,
    "r": ActionKind.REFRESH,
    "x": ActionKind.CLEAR_SEARCH,
    "q": ActionKind.EXIT,
    "ctrl+c": ActionKind.EXIT,
}

# Fallback for terminals that report printable keys by character only.
COMMAND_CHARACTERS = {
    "/": ActionKind.START_SEARCH,
    " ": ActionKind.LOAD_MORE,
    "G": ActionKind.MOVE_BOTTOM,
}


def action_for_key(
    key: str, character: Optional[str] = None, search_active: bool = False
) -> Optional[Action]:
    if key == "ctrl+c":
        return Action(ActionKind.EXIT)
    if key in MOVEMENT_KEYS:
        return Action(MOVEMENT_KEYS[key])
    if search_active:
        if key == "enter":
            return Action(ActionKind.ENTER)
        if key == "escape":
            return Action(ActionKind.GO_BACK)
        if key in ("backspace", "ctrl+h"):
            return Action(ActionKind.SEARCH_DELETE)
        if character and len(character) == 1 and character.isprintable():
            return Action.search_input(character)
        return None
    if key in COMMAND_KEYS:
        return Action(COMMAND_KEYS[key])
    if character and character in COMMAND_CHARACTERS:
        return Action(COMMAND_CHARACTERS[character])
    return None
