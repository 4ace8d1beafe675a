from __future__ import annotations


class S3NavError(Exception):
    pass


class FetchError(S3NavError):
    """A remote listing or object fetch failed."""


class DecodeError(S3NavError):
    pass


class FormatError(S3NavError):
    pass


class DownloadError(S3NavError):
    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path
