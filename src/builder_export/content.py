from __future__ import annotations

from enum import Enum
from typing import Final
from urllib.parse import urlparse


class AssetKind(str, Enum):
    IMAGE = "image"
    STYLE = "style"
    SCRIPT = "script"
    FONT = "font"
    OTHER = "other"


_EXT_KINDS: Final[dict[str, AssetKind]] = {
    ".png": AssetKind.IMAGE,
    ".jpg": AssetKind.IMAGE,
    ".jpeg": AssetKind.IMAGE,
    ".gif": AssetKind.IMAGE,
    ".webp": AssetKind.IMAGE,
    ".svg": AssetKind.IMAGE,
    ".ico": AssetKind.IMAGE,
    ".css": AssetKind.STYLE,
    ".js": AssetKind.SCRIPT,
    ".mjs": AssetKind.SCRIPT,
    ".woff": AssetKind.FONT,
    ".woff2": AssetKind.FONT,
    ".ttf": AssetKind.FONT,
    ".otf": AssetKind.FONT,
    ".eot": AssetKind.FONT,
}

_IMAGE_MIME_BY_EXT: Final[dict[str, str]] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
    ".ico": "image/x-icon",
}

DEFAULT_IMAGE_MIME = "image/png"


def _extension(path: str) -> str:
    name = urlparse(path).path.rsplit("/", 1)[-1].lower()
    if "." not in name:
        return ""
    return "." + name.rsplit(".", 1)[-1]


def asset_kind(path: str) -> AssetKind:
    return _EXT_KINDS.get(_extension(path), AssetKind.OTHER)


def image_mime_type(path: str, data: bytes = b"") -> str:
    """Pick an image MIME type from magic bytes, then the file extension."""

    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    head = data[:512].lstrip().lower()
    if head.startswith(b"<svg") or (head.startswith(b"<?xml") and b"<svg" in head):
        return "image/svg+xml"
    return _IMAGE_MIME_BY_EXT.get(_extension(path), DEFAULT_IMAGE_MIME)


def byte_size(text: str | bytes) -> int:
    if isinstance(text, bytes):
        return len(text)
    return len(text.encode("utf-8"))


def asset_filename(path: str) -> str:
    return urlparse(path).path.rsplit("/", 1)[-1] or "asset"
