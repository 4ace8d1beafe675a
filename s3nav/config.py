from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional

from loguru import logger

DEFAULT_PAGE_SIZE = 20
DEFAULT_PREVIEW_BYTES = 1024 * 1024
DEFAULT_STATUS_TIMEOUT = 3.0
LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class BrowserConfig:
    profile: Optional[str] = None
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    page_size: int = DEFAULT_PAGE_SIZE
    preview_bytes: int = DEFAULT_PREVIEW_BYTES
    download_dir: Optional[str] = None
    status_timeout: float = DEFAULT_STATUS_TIMEOUT
    log_file: Optional[str] = None
    log_level: str = "INFO"


def config_base_dir() -> Path:
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        base = Path(config_home).expanduser()
    else:
        base = Path.home() / ".config"
    return base / "s3nav"


def default_config_path() -> Path:
    return config_base_dir() / "config.json"


def _read_config_file(path: Path) -> dict[str, object]:
    try:
        payload = json.loads(path.read_text())
    except FileNotFoundError:
        return {}
    except Exception as exc:
        logger.warning("Ignoring unreadable config {}: {}", path, exc)
        return {}
    if not isinstance(payload, dict):
        return {}
    return payload


def _decode_optional_str(value: object) -> Optional[str]:
    if not isinstance(value, str):
        return None
    normalized = value.strip()
    return normalized or None


def _decode_int(value: object, default: int, minimum: int = 1) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return max(minimum, int(value))


def _decode_float(value: object, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return max(0.0, float(value))


def _decode_log_level(value: object) -> str:
    if isinstance(value, str) and value.strip().upper() in LOG_LEVELS:
        return value.strip().upper()
    return "INFO"


def load_config(path: Optional[Path] = None) -> BrowserConfig:
    payload = _read_config_file(path or default_config_path())
    return BrowserConfig(
        profile=_decode_optional_str(payload.get("profile")),
        region=_decode_optional_str(payload.get("region")),
        endpoint_url=_decode_optional_str(payload.get("endpoint_url")),
        page_size=_decode_int(payload.get("page_size"), DEFAULT_PAGE_SIZE),
        preview_bytes=_decode_int(payload.get("preview_bytes"), DEFAULT_PREVIEW_BYTES),
        download_dir=_decode_optional_str(payload.get("download_dir")),
        status_timeout=_decode_float(
            payload.get("status_timeout"), DEFAULT_STATUS_TIMEOUT
        ),
        log_file=_decode_optional_str(payload.get("log_file")),
        log_level=_decode_log_level(payload.get("log_level")),
    )


def merge_cli_args(config: BrowserConfig, **cli_args: object) -> BrowserConfig:
    known = {field.name for field in fields(BrowserConfig)}
    overrides = {
        key: value
        for key, value in cli_args.items()
        if key in known and value is not None
    }
    if "page_size" in overrides:
        overrides["page_size"] = max(1, int(overrides["page_size"]))
    if "preview_bytes" in overrides:
        overrides["preview_bytes"] = max(1, int(overrides["preview_bytes"]))
    if "log_level" in overrides:
        overrides["log_level"] = _decode_log_level(overrides["log_level"])
    return replace(config, **overrides)
