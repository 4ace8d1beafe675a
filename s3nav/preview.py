from __future__ import annotations

import json
import textwrap
from typing import Optional

from loguru import logger

from .errors import DecodeError, FormatError

BINARY_SENTINEL = "[Binary content - not valid UTF-8]"
JSON_PARSE_BANNER = "[Content-Type: application/json, but failed to parse as JSON]"
JSON_INDENT = 2


def _decode_text(data: bytes, truncated: bool = False) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        # A byte-range read may end in the middle of a multi-byte sequence.
        if truncated and exc.reason == "unexpected end of data":
            try:
                return data[: exc.start].decode("utf-8")
            except UnicodeDecodeError as inner:
                raise DecodeError(str(inner)) from inner
        raise DecodeError(str(exc)) from exc


def decode_payload(data: bytes, truncated: bool = False) -> str:
    try:
        return _decode_text(data, truncated=truncated)
    except DecodeError as exc:
        logger.debug("Payload is not UTF-8 text: {}", exc)
        return BINARY_SENTINEL


def _pretty_json(raw: str) -> str:
    try:
        value = json.loads(raw)
    except ValueError as exc:
        raise FormatError(f"invalid JSON: {exc}") from exc
    return json.dumps(value, indent=JSON_INDENT, ensure_ascii=False)


def format_preview_text(content: str, content_type: Optional[str]) -> str:
    if not content_type:
        return content
    if content_type.startswith("application/json") and content != BINARY_SENTINEL:
        try:
            return _pretty_json(content)
        except FormatError as exc:
            logger.debug("JSON preview fell back to raw text: {}", exc)
            return f"{JSON_PARSE_BANNER}\n\n{content}"
    if content_type.startswith("image/"):
        return f"[Image: {content_type}]"
    if content_type.startswith("application/octet-stream") or content == BINARY_SENTINEL:
        if content == BINARY_SENTINEL:
            return content
        return f"[Binary Data: {content_type}]"
    if not content_type.startswith("text/"):
        return f"[Preview for Content-Type: {content_type}]\n\n{content}"
    return content


def wrap_text(text: str, width: int) -> list[str]:
    if width <= 0:
        return [text]
    wrapper = textwrap.TextWrapper(
        width=width,
        break_long_words=True,
        break_on_hyphens=False,
        drop_whitespace=True,
    )
    lines: list[str] = []
    for source_line in text.split("\n"):
        wrapped = wrapper.wrap(source_line.rstrip("\r"))
        if wrapped:
            lines.extend(wrapped)
        else:
            lines.append("")
    return lines


def format_preview(content: str, content_type: Optional[str], width: int) -> list[str]:
    return wrap_text(format_preview_text(content, content_type), width)


class PreviewState:
    def __init__(self) -> None:
        self.key: Optional[str] = None
        self.raw_content: Optional[str] = None
        self.content_type: Optional[str] = None
        self.scroll_offset = 0
        self._cache_key: Optional[tuple[str, Optional[str], int]] = None
        self._lines: list[str] = []

    @property
    def has_content(self) -> bool:
        return self.raw_content is not None

    def set_content(
        self,
        key: Optional[str],
        content: str,
        content_type: Optional[str],
    ) -> None:
        self.key = key
        self.raw_content = content
        self.content_type = content_type
        self.scroll_offset = 0
        self._invalidate()

    def clear(self) -> None:
        self.key = None
        self.raw_content = None
        self.content_type = None
        self.scroll_offset = 0
        self._invalidate()

    def _invalidate(self) -> None:
        self._cache_key = None
        self._lines = []

    def lines(self, width: int) -> list[str]:
        if self.raw_content is None:
            return []
        width = max(0, int(width))
        cache_key = (self.raw_content, self.content_type, width)
        if cache_key != self._cache_key:
            self._lines = format_preview(self.raw_content, self.content_type, width)
            self._cache_key = cache_key
            self._clamp(len(self._lines))
        return self._lines

    def _clamp(self, count: int) -> None:
        if count <= 0:
            self.scroll_offset = 0
            return
        self.scroll_offset = max(0, min(self.scroll_offset, count - 1))

    def scroll_by(self, delta: int, width: int) -> None:
        self.scroll_offset += delta
        self._clamp(len(self.lines(width)))

    def scroll_to_top(self) -> None:
        self.scroll_offset = 0

    def scroll_to_bottom(self, width: int) -> None:
        self.scroll_offset = len(self.lines(width)) - 1
        self._clamp(len(self.lines(width)))

    def visible_lines(self, width: int, height: int) -> list[str]:
        lines = self.lines(width)
        if height <= 0:
            return lines[self.scroll_offset :]
        return lines[self.scroll_offset : self.scroll_offset + height]
