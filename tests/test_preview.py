import unittest

from s3nav.errors import DecodeError
from s3nav.preview import (
    BINARY_SENTINEL,
    JSON_PARSE_BANNER,
    PreviewState,
    _decode_text,
    decode_payload,
    format_preview,
    format_preview_text,
    wrap_text,
)


class TestDecodePayload(unittest.TestCase):
    def test_utf8_text(self) -> None:
        self.assertEqual(decode_payload("héllo".encode("utf-8")), "héllo")

    def test_invalid_utf8_becomes_sentinel(self) -> None:
        self.assertEqual(decode_payload(b"\xff\xfe\x00\x81"), BINARY_SENTINEL)

    def test_truncated_multibyte_tail_is_dropped(self) -> None:
        data = "ab€".encode("utf-8")[:-1]
        self.assertEqual(decode_payload(data, truncated=True), "ab")
        self.assertEqual(decode_payload(data), BINARY_SENTINEL)

    def test_decode_text_raises(self) -> None:
        with self.assertRaises(DecodeError):
            _decode_text(b"\xff")


class TestFormatPreviewText(unittest.TestCase):
    def test_no_content_type_passes_through(self) -> None:
        self.assertEqual(format_preview_text("raw", None), "raw")

    def test_json_is_pretty_printed(self) -> None:
        text = format_preview_text('{"b":1,"a":[1,2]}', "application/json")
        self.assertEqual(
            text, '{\n  "b": 1,\n  "a": [\n    1,\n    2\n  ]\n}'
        )

    def test_json_with_charset(self) -> None:
        text = format_preview_text("[1]", "application/json; charset=utf-8")
        self.assertEqual(text, "[\n  1\n]")

    def test_invalid_json_gets_banner(self) -> None:
        text = format_preview_text("{not json", "application/json")
        self.assertEqual(text, f"{JSON_PARSE_BANNER}\n\n{{not json")

    def test_image_placeholder(self) -> None:
        self.assertEqual(format_preview_text("...", "image/png"), "[Image: image/png]")

    def test_octet_stream_placeholder(self) -> None:
        self.assertEqual(
            format_preview_text("abc", "application/octet-stream"),
            "[Binary Data: application/octet-stream]",
        )

    def test_binary_sentinel_passes_through(self) -> None:
        self.assertEqual(
            format_preview_text(BINARY_SENTINEL, "application/octet-stream"),
            BINARY_SENTINEL,
        )
        self.assertEqual(
            format_preview_text(BINARY_SENTINEL, "application/json"), BINARY_SENTINEL
        )

    def test_text_types_pass_through(self) -> None:
        self.assertEqual(format_preview_text("a,b", "text/csv"), "a,b")

    def test_other_types_get_header(self) -> None:
        self.assertEqual(
            format_preview_text("<x/>", "application/xml"),
            "[Preview for Content-Type: application/xml]\n\n<x/>",
        )


class TestWrapText(unittest.TestCase):
    def test_zero_width_returns_single_element(self) -> None:
        self.assertEqual(wrap_text("a\nb", 0), ["a\nb"])

    def test_wraps_on_words(self) -> None:
        self.assertEqual(wrap_text("alpha beta gamma", 11), ["alpha beta", "gamma"])

    def test_breaks_long_words(self) -> None:
        self.assertEqual(wrap_text("abcdefgh", 3), ["abc", "def", "gh"])

    def test_keeps_blank_lines(self) -> None:
        self.assertEqual(wrap_text("a\n\nb", 10), ["a", "", "b"])

    def test_lines_fit_width(self) -> None:
        lines = format_preview("word " * 50, "text/plain", 12)
        self.assertTrue(all(len(line) <= 12 for line in lines))


class TestPreviewState(unittest.TestCase):
    def test_empty_state(self) -> None:
        state = PreviewState()
        self.assertFalse(state.has_content)
        self.assertEqual(state.lines(40), [])

    def test_scroll_is_clamped(self) -> None:
        state = PreviewState()
        state.set_content("notes.txt", "\n".join(str(i) for i in range(5)), "text/plain")
        state.scroll_by(-3, 40)
        self.assertEqual(state.scroll_offset, 0)
        state.scroll_by(100, 40)
        self.assertEqual(state.scroll_offset, 4)
        state.scroll_to_top()
        self.assertEqual(state.scroll_offset, 0)
        state.scroll_to_bottom(40)
        self.assertEqual(state.scroll_offset, 4)

    def test_visible_lines_follow_offset(self) -> None:
        state = PreviewState()
        state.set_content("notes.txt", "a\nb\nc\nd", "text/plain")
        state.scroll_by(1, 40)
        self.assertEqual(state.visible_lines(40, 2), ["b", "c"])

    def test_set_content_resets_scroll(self) -> None:
        state = PreviewState()
        state.set_content("a.txt", "1\n2\n3", "text/plain")
        state.scroll_by(2, 40)
        state.set_content("b.txt", "x", "text/plain")
        self.assertEqual(state.scroll_offset, 0)
        self.assertEqual(state.lines(40), ["x"])
        state.clear()
        self.assertIsNone(state.key)
        self.assertFalse(state.has_content)

    def test_width_change_rewraps(self) -> None:
        state = PreviewState()
        state.set_content("a.txt", "abcdef", "text/plain")
        self.assertEqual(state.lines(10), ["abcdef"])
        self.assertEqual(state.lines(3), ["abc", "def"])
