from __future__ import annotations

import argparse
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Sequence

from loguru import logger
from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.widgets import Header, Static

from .actions import Action, Mode, action_for_key
from .config import LOG_LEVELS, BrowserConfig, load_config, merge_cli_args
from .downloads import resolve_download_dir
from .lists import ScrollableList
from .navigation import NavigationController, ObjectView
from .s3 import BucketInfo, ObjectInfo, S3Service

STATUS_REFRESH_SECONDS = 0.5

HELP_TEXT = {
    Mode.BUCKETS: (
        "↑/↓: Navigate  Enter: Select  Space: Load More  /: Search  "
        "g/G: Top/Bottom  r: Refresh  q: Quit"
    ),
    Mode.OBJECTS: (
        "↑/↓: Navigate  Space: Load More  /: Filter by Prefix  Enter: Preview  "
        "d: Download  Esc: Back  q: Quit"
    ),
    Mode.PREVIEW: (
        "↑/↓: Scroll  PgUp/PgDn: Scroll Fast  d: Download  r: Reload  Esc: Back  q: Quit"
    ),
}


def format_size(size: int) -> str:
    units = ["B", "KB", "MB", "GB", "TB", "PB"]
    value = float(size)
    for unit in units:
        if value < 1024 or unit == units[-1]:
            if unit == "B":
                return f"{int(value)} {unit}"
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} PB"


def format_time(value: Optional[datetime]) -> str:
    if not value:
        return ""
    return value.strftime("%Y-%m-%d %H:%M")


def bucket_row(bucket: BucketInfo) -> str:
    created = format_time(bucket.creation_date)
    if not created:
        return bucket.name
    return f"{bucket.name}  {created}"


def object_row(obj: ObjectInfo) -> str:
    parts = [obj.key, format_size(obj.size)]
    modified = format_time(obj.last_modified)
    if modified:
        parts.append(modified)
    return "  ".join(parts)


def window_start(position: Optional[int], total: int, height: int) -> int:
    if height <= 0 or total <= height or position is None:
        return 0
    start = position - height // 2
    return max(0, min(start, total - height))


def render_list(
    items: ScrollableList, label: Callable[[object], str], height: int
) -> Text:
    text = Text(no_wrap=True, overflow="ellipsis")
    visible = items.filtered_indices
    if not visible:
        if items.loading:
            text.append("Loading...", style="italic")
        elif items.items:
            text.append("No matches", style="dim")
        else:
            text.append("No items", style="dim")
        return text
    rows = max(1, height - 1) if height > 0 else len(visible)
    start = window_start(items.selected_position(), len(visible), rows)
    for index in visible[start : start + rows]:
        style = "bold reverse" if index == items.selected else ""
        text.append(f"{label(items.items[index])}\n", style=style)
    if items.loading:
        text.append("Loading more...", style="italic")
    elif items.has_more:
        text.append("-- more available (Space) --", style="dim")
    return text


def search_bar_text(controller: NavigationController) -> str:
    view = controller.active_view
    if view is None or controller.mode is Mode.PREVIEW:
        return ""
    cursor = "_" if view.search.active else ""
    if isinstance(view, ObjectView):
        if view.search.active:
            return f"Filter by prefix: {view.search.query}{cursor}"
        if view.prefix_filter:
            return f"Prefix: {view.prefix_filter}"
        return ""
    if view.search.active or view.search.query:
        return f"Search buckets: {view.search.query}{cursor}"
    return ""


class S3Navigator(App):
    CSS = """
    #search-bar {
        height: 1;
        padding: 0 1;
        background: $panel;
        color: $text;
    }

    #body {
        height: 1fr;
    }

    #list-pane {
        width: 1fr;
        height: 1fr;
        border: round $panel;
        padding: 0 1;
    }

    #preview-pane {
        width: 1fr;
        height: 1fr;
        border: round $panel;
        background: #202427;
        padding: 0 1;
    }

    #preview-pane.hidden {
        display: none;
    }

    #status-bar {
        height: 1;
        padding: 0 1;
        background: $surface;
        color: $text-muted;
        content-align: center middle;
    }
    """

    TITLE = "AWS S3 Browser"

    def __init__(
        self,
        config: Optional[BrowserConfig] = None,
        service: Optional[object] = None,
    ) -> None:
        super().__init__()
        self.config = config or BrowserConfig()
        self.service = service or S3Service(
            profile=self.config.profile,
            region=self.config.region,
            endpoint_url=self.config.endpoint_url,
        )
        self.controller = NavigationController(
            self.service,
            page_size=self.config.page_size,
            preview_bytes=self.config.preview_bytes,
            download_dir=resolve_download_dir(self.config.download_dir),
            status_timeout=self.config.status_timeout,
        )

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("", id="search-bar")
        with Horizontal(id="body"):
            yield Static("", id="list-pane")
            yield Static("", id="preview-pane")
        yield Static("", id="status-bar")

    async def on_mount(self) -> None:
        self.search_bar = self.query_one("#search-bar", Static)
        self.list_pane = self.query_one("#list-pane", Static)
        self.preview_pane = self.query_one("#preview-pane", Static)
        self.status_bar = self.query_one("#status-bar", Static)
        self.set_interval(STATUS_REFRESH_SECONDS, self.redraw)
        self.redraw()
        self.run_worker(self._start(), group="actions")

    async def _start(self) -> None:
        await self.controller.start()
        self.redraw()

    def on_key(self, event: events.Key) -> None:
        action = action_for_key(
            event.key, event.character, search_active=self.controller.search_active
        )
        if action is None:
            return
        event.stop()
        event.prevent_default()
        self.run_worker(self._dispatch(action), group="actions")

    async def _dispatch(self, action: Action) -> None:
        await self.controller.dispatch(action)
        if self.controller.exit_requested:
            self.exit()
            return
        self.redraw()

    def on_resize(self, event: events.Resize) -> None:
        self.redraw()

    def redraw(self) -> None:
        if not hasattr(self, "list_pane"):
            return
        controller = self.controller
        view = controller.active_view
        self.sub_title = view.list.title if view is not None else ""
        self.search_bar.update(search_bar_text(controller))
        height = self.list_pane.content_size.height
        if controller.mode is Mode.BUCKETS:
            self.list_pane.update(render_list(controller.buckets.list, bucket_row, height))
            self.preview_pane.add_class("hidden")
        elif controller.objects is not None:
            self.list_pane.update(render_list(controller.objects.list, object_row, height))
            self.preview_pane.remove_class("hidden")
            self._render_preview()
        self.status_bar.update(controller.status_text() or HELP_TEXT[controller.mode])

    def _render_preview(self) -> None:
        controller = self.controller
        preview = controller.preview
        width = self.preview_pane.content_size.width
        height = self.preview_pane.content_size.height
        controller.preview_width = width
        if controller.preview_loading:
            self.preview_pane.update(Text("Loading preview...", style="italic"))
            return
        if not preview.has_content:
            self.preview_pane.update(
                Text("Press Enter on an object to preview it", style="dim")
            )
            return
        text = Text(no_wrap=True)
        text.append(f"{preview.key}\n", style="bold")
        body_height = max(1, height - 1) if height > 0 else 0
        text.append("\n".join(preview.visible_lines(width, body_height)))
        self.preview_pane.update(text)


def configure_logging(log_file: Optional[str], level: str = "INFO") -> None:
    # The default stderr sink would draw over the terminal UI.
    logger.remove()
    if log_file:
        logger.add(Path(log_file).expanduser(), level=level, rotation="5 MB")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Textual S3 browser")
    parser.add_argument("-p", "--profile", help="AWS profile to use")
    parser.add_argument("--region", help="AWS region override for S3 client")
    parser.add_argument(
        "--endpoint-url",
        help="Custom S3 endpoint URL (for S3-compatible services)",
    )
    parser.add_argument(
        "--page-size",
        type=int,
        help="Number of buckets or objects fetched per page",
    )
    parser.add_argument(
        "--preview-bytes",
        type=int,
        help="Maximum number of bytes fetched for a preview",
    )
    parser.add_argument("--download-dir", help="Directory downloads are saved to")
    parser.add_argument("--config", help="Path to a JSON configuration file")
    parser.add_argument("--log-file", help="Write logs to this file")
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        type=str.upper,
        help="Log level for --log-file (default: INFO)",
    )
    return parser


def _run_browser(config: BrowserConfig) -> int:
    app = S3Navigator(config=config)
    app.run()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    config = load_config(Path(args.config).expanduser() if args.config else None)
    config = merge_cli_args(
        config,
        profile=args.profile,
        region=args.region,
        endpoint_url=args.endpoint_url,
        page_size=args.page_size,
        preview_bytes=args.preview_bytes,
        download_dir=args.download_dir,
        log_file=args.log_file,
        log_level=args.log_level,
    )
    configure_logging(config.log_file, config.log_level)
    logger.info("Starting s3nav (profile: {})", config.profile or "default")
    return _run_browser(config)


if __name__ == "__main__":
    raise SystemExit(main())
