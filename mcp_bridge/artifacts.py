"""
Local artifact persistence.

Binary payloads (base64 screenshots) are decoded and written here, inside
the broker. Only ArtifactMetadata travels back to the caller.
"""

from __future__ import annotations

import base64
import binascii
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from mcp_bridge.errors import PersistenceError

logger = logging.getLogger(__name__)

ImageFormat = Literal["png", "jpeg"]
IMAGE_FORMATS = ("png", "jpeg")

# base64 carries 3 bytes of payload per 4 characters.
BASE64_RATIO = 0.75


@dataclass(frozen=True)
class ArtifactMetadata:
    """The only representation of a binary artifact that leaves the broker."""
    path: str | None
    width: int
    height: int
    size_kb: int
    format: ImageFormat = "png"

    def __post_init__(self):
        if self.format not in IMAGE_FORMATS:
            raise ValueError(f"Unsupported image format: {self.format!r} (use one of {IMAGE_FORMATS})")


@dataclass(frozen=True)
class PersistResult:
    saved: bool
    path: str | None
    size_kb: int


def estimate_size_kb(data: str | None) -> int:
    """Approximate decoded size from the base64 length (not the written file)."""
    if not data:
        return 0
    # halves round up
    return math.floor(len(data) * BASE64_RATIO / 1024 + 0.5)


def persist(data: str | None, path: str | Path | None, *, strict: bool = False) -> PersistResult:
    """
    Decode ``data`` and write it to ``path``.

    Missing data or path skips the write and reports ``saved=False``. A
    failed decode or write degrades to ``saved=False`` with a warning,
    unless ``strict`` is set, in which case PersistenceError is raised.
    Parent directories are not created and existing files are overwritten.
    """
    size_kb = estimate_size_kb(data)
    path_str = str(path) if path else None

    if not data or not path:
        return PersistResult(saved=False, path=path_str, size_kb=size_kb)

    try:
        Path(path).write_bytes(base64.b64decode("".join(data.split()), validate=True))
    except (OSError, binascii.Error) as e:
        if strict:
            raise PersistenceError(path_str, e) from e
        logger.warning(f"Could not save artifact to {path_str}: {e}")
        return PersistResult(saved=False, path=path_str, size_kb=size_kb)

    logger.debug(f"Saved {size_kb}KB artifact to {path_str}")
    return PersistResult(saved=True, path=path_str, size_kb=size_kb)
