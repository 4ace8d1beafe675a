from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from time import monotonic
from typing import Callable, Optional, Union

from loguru import logger

from .actions import Action, ActionKind, Mode
from .config import DEFAULT_PAGE_SIZE, DEFAULT_PREVIEW_BYTES, DEFAULT_STATUS_TIMEOUT
from .downloads import default_download_dir, download_name, save_download
from .errors import DownloadError, FetchError
from .lists import LoadState, ScrollableList
from .loader import PaginatedLoader
from .preview import PreviewState
from .s3 import BucketInfo, ObjectInfo
from .search import SearchBar

PAGE_STEP = 10
HALF_PAGE_STEP = 5
BUCKET_LIST_TITLE = "S3 Buckets"

MOVE_STEPS = {
    ActionKind.MOVE_DOWN: 1,
    ActionKind.MOVE_UP: -1,
    ActionKind.PAGE_DOWN: PAGE_STEP,
    ActionKind.PAGE_UP: -PAGE_STEP,
    ActionKind.HALF_PAGE_DOWN: HALF_PAGE_STEP,
    ActionKind.HALF_PAGE_UP: -HALF_PAGE_STEP,
}


def bucket_label(bucket: BucketInfo) -> str:
    return bucket.name


def object_label(obj: ObjectInfo) -> str:
    return obj.key


@dataclass(frozen=True)
class StatusMessage:
    text: str
    severity: str
    expires_at: float


class BucketView:
    filters_locally = True

    def __init__(self, service, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self.list: ScrollableList[BucketInfo] = ScrollableList(BUCKET_LIST_TITLE)
        self.search = SearchBar()
        self.loader: PaginatedLoader[BucketInfo] = PaginatedLoader(
            service.list_buckets_page, page_size=page_size, label="buckets"
        )

    def apply_search(self) -> None:
        self.list.apply_search(self.search, bucket_label)

    def rebuild(self) -> None:
        self.list = ScrollableList(self.list.title)
        self.loader.reset()


class ObjectView:
    """Objects of one bucket, filtered on the server by key prefix."""

    filters_locally = False

    def __init__(self, service, bucket: str, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self._service = service
        self.bucket = bucket
        self.prefix_filter: Optional[str] = None
        self.list: ScrollableList[ObjectInfo] = ScrollableList(f"Contents of {bucket}")
        self.search = SearchBar()
        self.loader: PaginatedLoader[ObjectInfo] = PaginatedLoader(
            self._fetch, page_size=page_size, label=f"s3://{bucket}"
        )

    async def _fetch(
        self, token: Optional[str], query_filter: Optional[str], page_size: int
    ) -> tuple[list[ObjectInfo], Optional[str]]:
        return await self._service.list_objects_page(
            self.bucket, token, query_filter, page_size
        )

    def apply_search(self) -> None:
        self.list.show_all()

    def rebuild(self, prefix_filter: Optional[str] = None) -> None:
        self.prefix_filter = prefix_filter
        self.list = ScrollableList(self.list.title)
        self.loader.reset(prefix_filter)


View = Union[BucketView, ObjectView]


class NavigationController:
    def __init__(
        self,
        service,
        page_size: int = DEFAULT_PAGE_SIZE,
        preview_bytes: Optional[int] = DEFAULT_PREVIEW_BYTES,
        download_dir: Optional[Path] = None,
        status_timeout: float = DEFAULT_STATUS_TIMEOUT,
        clock: Callable[[], float] = monotonic,
    ) -> None:
        self.service = service
        self.page_size = max(1, int(page_size))
        self.preview_bytes = preview_bytes
        self.download_dir = Path(download_dir) if download_dir else default_download_dir()
        self.status_timeout = status_timeout
        self._clock = clock
        self.mode = Mode.BUCKETS
        self.buckets = BucketView(service, self.page_size)
        self.objects: Optional[ObjectView] = None
        self.preview = PreviewState()
        self.preview_width = 80
        self.preview_loading = False
        self.status: Optional[StatusMessage] = None
        self.exit_requested = False
        self._preview_token = 0
        self._preview_key: Optional[str] = None

    @property
    def active_view(self) -> Optional[View]:
        if self.mode is Mode.BUCKETS:
            return self.buckets
        return self.objects

    @property
    def search_active(self) -> bool:
        view = self.active_view
        if view is None or self.mode is Mode.PREVIEW:
            return False
        return view.search.active

    def notify(self, text: str, severity: str = "information") -> None:
        self.status = StatusMessage(
            text=text,
            severity=severity,
            expires_at=self._clock() + self.status_timeout,
        )
        if severity == "error":
            logger.error(text)
        else:
            logger.info(text)

    def status_text(self) -> Optional[str]:
        if self.status is None:
            return None
        if self._clock() >= self.status.expires_at:
            self.status = None
            return None
        return self.status.text

    async def start(self) -> None:
        await self._load(self.buckets)

    async def _load(self, view: View) -> bool:
        try:
            applied = await view.loader.load(view.list)
        except FetchError as exc:
            self.notify(f"{exc}", severity="error")
            return False
        if applied:
            view.apply_search()
        return applied

    async def dispatch(self, action: Action) -> None:
        if action.kind is ActionKind.EXIT:
            self.exit_requested = True
            return
        if self.mode is Mode.PREVIEW:
            await self._handle_preview_action(action)
            return
        view = self.active_view
        if view is None:
            return
        if view.search.active and await self._handle_search_action(view, action):
            return
        await self._handle_list_action(view, action)

    async def _handle_search_action(self, view: View, action: Action) -> bool:
        kind = action.kind
        if kind is ActionKind.SEARCH_INPUT:
            if action.char:
                view.search.input(action.char)
            if view.filters_locally:
                view.apply_search()
            return True
        if kind is ActionKind.SEARCH_DELETE:
            view.search.delete()
            if view.filters_locally:
                view.apply_search()
            return True
        if kind is ActionKind.ENTER:
            if view.filters_locally:
                view.apply_search()
                view.search.toggle()
                return True
            query = view.search.query
            view.search.toggle()
            await self._submit_prefix(view, query or None)
            return True
        if kind is ActionKind.GO_BACK:
            view.search.toggle()
            if view.filters_locally:
                view.apply_search()
            return True
        return False

    async def _handle_list_action(self, view: View, action: Action) -> None:
        kind = action.kind
        if kind in MOVE_STEPS or kind in (ActionKind.MOVE_TOP, ActionKind.MOVE_BOTTOM):
            self._move(view.list, kind)
        elif kind is ActionKind.START_SEARCH:
            view.search.toggle()
        elif kind is ActionKind.ENTER:
            if view is self.buckets:
                await self._open_bucket()
            else:
                await self._open_object()
        elif kind is ActionKind.GO_BACK:
            if view is self.objects:
                self._close_objects()
        elif kind is ActionKind.LOAD_MORE:
            await self._load_more(view)
        elif kind is ActionKind.REFRESH:
            await self._refresh(view)
        elif kind is ActionKind.CLEAR_SEARCH:
            await self._clear_search(view)
        elif kind is ActionKind.DOWNLOAD:
            if isinstance(view, ObjectView):
                obj = view.list.selected_item()
                if obj is None:
                    self.notify("Select an object to download.", severity="warning")
                    return
                await self.download(view.bucket, obj.key)

    def _move(self, items: ScrollableList, kind: ActionKind) -> None:
        if kind is ActionKind.MOVE_TOP:
            items.first()
            return
        if kind is ActionKind.MOVE_BOTTOM:
            items.last()
            return
        steps = MOVE_STEPS[kind]
        step = items.next if steps > 0 else items.previous
        for _ in range(abs(steps)):
            step()

    async def _open_bucket(self) -> None:
        bucket = self.buckets.list.selected_item()
        if bucket is None:
            return
        if self.objects is not None:
            self.objects.loader.invalidate()
        self._reset_preview()
        self.objects = ObjectView(self.service, bucket.name, self.page_size)
        self.mode = Mode.OBJECTS
        logger.info("Opening bucket {}", bucket.name)
        await self._load(self.objects)

    def _close_objects(self) -> None:
        if self.objects is not None:
            self.objects.loader.invalidate()
        self._reset_preview()
        self.objects = None
        self.mode = Mode.BUCKETS

    async def _open_object(self) -> None:
        view = self.objects
        if view is None:
            return
        obj = view.list.selected_item()
        if obj is None:
            return
        await self._load_preview(view.bucket, obj.key, open_preview=True)

    async def _load_more(self, view: View) -> None:
        retry = view.list.state in (LoadState.IDLE, LoadState.ERROR)
        if not view.loader.can_load_more and not retry:
            self.notify("No more items to load.")
            return
        await self._load(view)

    async def _refresh(self, view: View) -> None:
        if isinstance(view, ObjectView):
            view.rebuild(view.prefix_filter)
        else:
            view.rebuild()
        await self._load(view)

    async def _clear_search(self, view: View) -> None:
        view.search.clear()
        if isinstance(view, ObjectView) and view.prefix_filter:
            view.rebuild(None)
            await self._load(view)
            return
        view.apply_search()

    async def _submit_prefix(self, view: ObjectView, prefix: Optional[str]) -> None:
        logger.info("Filtering s3://{} by prefix {!r}", view.bucket, prefix or "")
        view.rebuild(prefix)
        await self._load(view)

    def _reset_preview(self) -> None:
        self._preview_token += 1
        self.preview_loading = False
        self._preview_key = None
        self.preview.clear()

    async def _load_preview(self, bucket: str, key: str, open_preview: bool) -> None:
        self._preview_token += 1
        token = self._preview_token
        self._preview_key = key
        self.preview_loading = True
        self.preview.clear()
        try:
            content, content_type = await self.service.get_object_content(
                bucket, key, max_bytes=self.preview_bytes
            )
        except FetchError as exc:
            if token != self._preview_token:
                return
            self.preview_loading = False
            self.notify(f"{exc}", severity="error")
            return
        if token != self._preview_token:
            logger.debug("Discarding stale preview of s3://{}/{}", bucket, key)
            return
        self.preview_loading = False
        self.preview.set_content(key, content, content_type)
        if open_preview:
            self.mode = Mode.PREVIEW

    async def _handle_preview_action(self, action: Action) -> None:
        kind = action.kind
        width = self.preview_width
        if kind is ActionKind.GO_BACK:
            self._preview_token += 1
            self.preview_loading = False
            self.mode = Mode.OBJECTS
        elif kind in MOVE_STEPS:
            self.preview.scroll_by(MOVE_STEPS[kind], width)
        elif kind is ActionKind.MOVE_TOP:
            self.preview.scroll_to_top()
        elif kind is ActionKind.MOVE_BOTTOM:
            self.preview.scroll_to_bottom(width)
        elif kind is ActionKind.DOWNLOAD:
            if self.objects is not None and self._preview_key:
                await self.download(self.objects.bucket, self._preview_key)
        elif kind is ActionKind.REFRESH:
            if self.objects is not None and self._preview_key:
                await self._load_preview(
                    self.objects.bucket, self._preview_key, open_preview=False
                )

    async def download(self, bucket: str, key: str) -> Optional[Path]:
        filename = download_name(key)
        self.notify(f"Downloading {filename}...")
        try:
            data = await self.service.download_object_bytes(bucket, key)
            destination = await asyncio.to_thread(
                save_download, self.download_dir, filename, data
            )
        except (FetchError, DownloadError) as exc:
            self.notify(f"Download failed: {exc}", severity="error")
            return None
        self.notify(f"Downloaded to {destination}")
        return destination
