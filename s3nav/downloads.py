from __future__ import annotations

import os
from pathlib import Path, PurePosixPath
from typing import Optional

from loguru import logger

from .errors import DownloadError


def default_download_dir() -> Path:
    return Path.home() / "Downloads"


def download_name(key: str) -> str:
    name = PurePosixPath(key.rstrip("/")).name
    return name or "download"


def create_unique_filepath(directory: Path, filename: str) -> Path:
    path = Path(directory) / filename
    if not path.exists():
        return path
    stem = path.stem
    suffix = path.suffix
    counter = 1
    while True:
        candidate = path.with_name(f"{stem} ({counter}){suffix}")
        if not candidate.exists():
            return candidate
        counter += 1


def resolve_download_dir(target: Optional[str]) -> Path:
    if not target:
        return default_download_dir()
    return Path(target).expanduser()


def save_download(directory: Path, filename: str, data: bytes) -> Path:
    directory = Path(directory)
    try:
        os.makedirs(directory, exist_ok=True)
    except OSError as exc:
        raise DownloadError(
            f"Error creating download dir {directory}: {exc}", path=str(directory)
        ) from exc
    destination = create_unique_filepath(directory, filename)
    try:
        destination.write_bytes(data)
    except OSError as exc:
        raise DownloadError(
            f"Failed to write the file to {destination}: {exc}", path=str(destination)
        ) from exc
    logger.info("Saved {} bytes to {}", len(data), destination)
    return destination
