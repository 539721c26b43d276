"""Reading inventory photos from disk for the CLI."""

from __future__ import annotations

import mimetypes
import os
import time
from typing import Optional

from .logging import get_logger

LOG = get_logger("images")

_EXTENSION_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".jpe": "image/jpeg",
    ".jfif": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


def expand_abs(path: str) -> str:
    """Expand env vars and ~ then return absolute path."""
    return os.path.abspath(os.path.expanduser(os.path.expandvars(path or "")))


def guess_image_mime(path: str, default: str = "image/jpeg") -> str:
    ext = os.path.splitext(path)[1].lower()
    if ext in _EXTENSION_TYPES:
        return _EXTENSION_TYPES[ext]
    mime, _ = mimetypes.guess_type(path)
    return mime or default


def read_image_bytes(path: str, *, attempts: int = 3, sleep_seconds: float = 0.5) -> bytes:
    """Read an image, retrying transient OSErrors (e.g. a file still being synced)."""
    p = expand_abs(path)
    last_exc: Optional[OSError] = None
    for i in range(attempts):
        try:
            with open(p, "rb") as f:
                return f.read()
        except FileNotFoundError:
            raise
        except OSError as exc:
            last_exc = exc
            LOG.warning(f"Read attempt {i+1}/{attempts} failed for {p}: {exc}")
            time.sleep(sleep_seconds)
    LOG.error(f"Failed to read file after {attempts} attempts: {p} ({last_exc})")
    raise OSError(f"Unable to read image: {p}") from last_exc
