"""Decide, per referenced asset, whether to inline, upload or leave it."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Mapping, Sequence
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from .content import AssetKind, asset_filename, asset_kind, byte_size, image_mime_type
from .convert.blocks import Block
from .convert.sources import ElementData

logger = logging.getLogger(__name__)

DEFAULT_INLINE_THRESHOLD = 5 * 1024
DEFAULT_IMAGE_THRESHOLD = 50 * 1024
UPLOAD_FACTOR = 5
UPLOAD_PREFIX = "/wp-content/uploads/cloned/"


class Decision(str, Enum):
    INLINE = "inline"
    WORDPRESS = "wordpress"
    EXTERNAL = "external"


@dataclass(frozen=True)
class AssetDecision:
    path: str
    size_bytes: int
    decision: Decision
    reason: str
    kind: AssetKind = AssetKind.OTHER
    method: str | None = None
    replacement: str | None = None


@dataclass
class EmbeddingOptions:
    inline_threshold: int = DEFAULT_INLINE_THRESHOLD
    image_threshold: int = DEFAULT_IMAGE_THRESHOLD
    enable_base64: bool = True
    inline_css: bool = True
    inline_js: bool = True


@dataclass(frozen=True)
class EmbeddingResult:
    html: str
    decisions: tuple[AssetDecision, ...]
    original_size: int
    processed_size: int
    options: EmbeddingOptions = field(default_factory=EmbeddingOptions)

    def count(self, decision: Decision) -> int:
        return sum(1 for d in self.decisions if d.decision is decision)

    @property
    def size_increase_percent(self) -> float:
        if self.original_size <= 0:
            return 0.0
        return (self.processed_size - self.original_size) / self.original_size * 100

    def assessment(self) -> tuple[str, str]:
        pct = self.size_increase_percent
        if pct > 50:
            return "warning", (
                f"Output grew {pct:.1f}%; consider raising asset sizes to upload "
                "instead of inlining"
            )
        if pct > 20:
            return "notice", f"Output grew {pct:.1f}%; moderate increase"
        return "ok", f"Output size change {pct:.1f}% is acceptable"

    def uploads(self) -> list[str]:
        return [d.path for d in self.decisions if d.decision is Decision.WORDPRESS]


def decide(size_bytes: int, threshold: int) -> Decision:
    """Inclusive at ``threshold`` and at ``threshold * 5``."""

    if size_bytes <= threshold:
        return Decision.INLINE
    if size_bytes <= threshold * UPLOAD_FACTOR:
        return Decision.WORDPRESS
    return Decision.EXTERNAL


def _ref_path(ref: str) -> str:
    return urlparse(ref).path.lstrip("./")


def lookup_asset(assets: Mapping[str, bytes], ref: str) -> bytes | None:
    """Find asset bytes for a reference.

    An exact key wins. Otherwise the reference path and an asset key must end
    the same way on a ``/`` boundary (``https://cdn/x/img/a.png`` matches
    ``img/a.png``), and exactly one asset may qualify. Anything else is
    treated as missing.
    """

    if ref in assets:
        return assets[ref]
    wanted = _ref_path(ref)
    if not wanted:
        return None
    matches: list[bytes] = []
    for key, data in assets.items():
        have = _ref_path(key)
        if not have:
            continue
        if have == wanted or wanted.endswith("/" + have) or have.endswith("/" + wanted):
            matches.append(data)
    return matches[0] if len(matches) == 1 else None


def upload_path(ref: str) -> str:
    return UPLOAD_PREFIX + asset_filename(ref)


class _Embedder:
    def __init__(self, assets: Mapping[str, bytes], options: EmbeddingOptions) -> None:
        self.assets = assets
        self.options = options
        self.decisions: list[AssetDecision] = []
        self.changed = False
        self._images: dict[str, AssetDecision] = {}

    def _missing(self, ref: str, kind: AssetKind) -> AssetDecision:
        decision = AssetDecision(
            path=ref,
            size_bytes=0,
            decision=Decision.EXTERNAL,
            reason="asset bytes unavailable; reference left untouched",
            kind=kind,
        )
        self.decisions.append(decision)
        return decision

    def image_ref(self, ref: str) -> AssetDecision | None:
        """Decide once per image reference; repeats reuse the first decision."""

        if not ref or ref.startswith("data:"):
            return None
        if ref in self._images:
            return self._images[ref]
        data = lookup_asset(self.assets, ref)
        if data is None:
            found = self._missing(ref, AssetKind.IMAGE)
            self._images[ref] = found
            return found

        threshold = self.options.image_threshold
        decision = decide(len(data), threshold)
        if decision is Decision.INLINE and not self.options.enable_base64:
            decision = Decision.EXTERNAL

        method = None
        replacement = None
        if decision is Decision.INLINE:
            encoded = base64.b64encode(data).decode("ascii")
            replacement = f"data:{image_mime_type(ref, data)};base64,{encoded}"
            method = "base64"
            reason = f"size <= {threshold} bytes; embedded as data URI"
        elif decision is Decision.WORDPRESS:
            replacement = upload_path(ref)
            reason = f"size <= {threshold * UPLOAD_FACTOR} bytes; upload to media library"
        elif len(data) <= threshold:
            reason = "base64 inlining disabled; kept as external reference"
        else:
            reason = f"size > {threshold * UPLOAD_FACTOR} bytes; kept as external reference"

        found = AssetDecision(
            path=ref,
            size_bytes=len(data),
            decision=decision,
            reason=reason,
            kind=AssetKind.IMAGE,
            method=method,
            replacement=replacement,
        )
        self.decisions.append(found)
        self._images[ref] = found
        return found

    def image(self, tag) -> None:
        found = self.image_ref(str(tag.get("src") or ""))
        if found is None or found.replacement is None:
            return
        tag["src"] = found.replacement
        if tag.has_attr("srcset"):
            del tag["srcset"]
        self.changed = True

    def text_asset(self, soup: BeautifulSoup, tag, attr: str, kind: AssetKind) -> None:
        ref = str(tag.get(attr) or "")
        if not ref:
            return
        data = lookup_asset(self.assets, ref)
        if data is None:
            self._missing(ref, kind)
            return

        threshold = self.options.inline_threshold
        decision = decide(len(data), threshold)
        enabled = self.options.inline_css if kind is AssetKind.STYLE else self.options.inline_js
        if decision is Decision.INLINE and not enabled:
            decision = Decision.EXTERNAL

        method = None
        if decision is Decision.INLINE:
            text = data.decode("utf-8", errors="replace")
            if kind is AssetKind.STYLE:
                style = soup.new_tag("style")
                style.string = text
                tag.replace_with(style)
            else:
                del tag[attr]
                tag.string = text
            method = "raw"
            reason = f"size <= {threshold} bytes; inlined"
        elif decision is Decision.WORDPRESS:
            tag[attr] = upload_path(ref)
            reason = f"size <= {threshold * UPLOAD_FACTOR} bytes; upload to media library"
        elif len(data) <= threshold:
            reason = "inlining disabled; kept as external reference"
        else:
            reason = f"size > {threshold * UPLOAD_FACTOR} bytes; kept as external reference"

        if decision is not Decision.EXTERNAL:
            self.changed = True
        self.decisions.append(
            AssetDecision(
                path=ref,
                size_bytes=len(data),
                decision=decision,
                reason=reason,
                kind=kind,
                method=method,
            )
        )

    def markup(self, html: str) -> str:
        soup = BeautifulSoup(html, "html.parser")
        before = self.changed
        self.changed = False
        for img in soup.find_all("img"):
            self.image(img)
        for link in soup.find_all("link"):
            rel = [r.lower() for r in (link.get("rel") or [])]
            if "stylesheet" in rel:
                self.text_asset(soup, link, "href", AssetKind.STYLE)
        for script in soup.find_all("script"):
            if script.get("src"):
                self.text_asset(soup, script, "src", AssetKind.SCRIPT)
        out = str(soup) if self.changed else html
        self.changed = before or self.changed
        return out

    def unreferenced_images(self, image_paths: Iterable[str]) -> None:
        seen = {d.path for d in self.decisions}
        for path in image_paths:
            if path in seen:
                continue
            seen.add(path)
            data = lookup_asset(self.assets, path)
            if data is None:
                self._missing(path, AssetKind.IMAGE)
                continue
            decision = decide(len(data), self.options.image_threshold)
            if decision is Decision.INLINE:
                # Not referenced from markup, nothing to inline into.
                decision = Decision.WORDPRESS
            self.decisions.append(
                AssetDecision(
                    path=path,
                    size_bytes=len(data),
                    decision=decision,
                    reason="captured image not referenced from markup",
                    kind=AssetKind.IMAGE,
                )
            )

    def result(self, original: str, processed: str, original_size: int, processed_size: int) -> EmbeddingResult:
        result = EmbeddingResult(
            html=processed if self.changed else original,
            decisions=tuple(self.decisions),
            original_size=original_size,
            processed_size=processed_size,
            options=self.options,
        )
        logger.info(
            "asset embedding: inline=%d wordpress=%d external=%d growth=%.1f%%",
            result.count(Decision.INLINE),
            result.count(Decision.WORDPRESS),
            result.count(Decision.EXTERNAL),
            result.size_increase_percent,
        )
        return result


def embed_assets(
    html: str,
    assets: Mapping[str, bytes],
    options: EmbeddingOptions | None = None,
    *,
    image_paths: Iterable[str] = (),
) -> EmbeddingResult:
    """Apply the inline/upload/external decision to every referenced asset.

    Only images referenced by an ``<img>`` in ``html`` can be inlined; that
    is where the data URI goes. ``image_paths`` lists captured images that
    may not be referenced at all: they still get a decision so packaging
    knows what to upload, but at most WORDPRESS, never INLINE, whatever
    their size. Small images with base64 disabled stay EXTERNAL.
    """

    _, result, _ = embed_sources(html, assets, options, image_paths=image_paths)
    return result


def _block_size(block: Block) -> int:
    return byte_size(block.inner_html) + sum(_block_size(b) for b in block.inner_blocks)


def _embed_block(embedder: _Embedder, block: Block) -> Block:
    changes: dict[str, Any] = {}
    if block.inner_html:
        html = embedder.markup(block.inner_html)
        if html != block.inner_html:
            changes["inner_html"] = html

    url = block.attributes.get("url")
    if isinstance(url, str) and asset_kind(url) is AssetKind.IMAGE:
        found = embedder.image_ref(url)
        if found is not None and found.replacement is not None:
            changes["attributes"] = {**block.attributes, "url": found.replacement}
            embedder.changed = True

    children = tuple(_embed_block(embedder, b) for b in block.inner_blocks)
    if any(new is not old for new, old in zip(children, block.inner_blocks)):
        changes["inner_blocks"] = children
    return replace(block, **changes) if changes else block


def _embed_elements(
    embedder: _Embedder, elements: Sequence[ElementData]
) -> tuple[list[ElementData], int, int]:
    embedded: list[ElementData] = []
    original_size = processed_size = 0
    for el in elements:
        src = el.attributes.get("src", "")
        original_size += byte_size(src)
        found = embedder.image_ref(src) if el.tag == "img" else None
        if found is not None and found.replacement is not None:
            el = replace(el, attributes={**el.attributes, "src": found.replacement})
            embedder.changed = True
        processed_size += byte_size(el.attributes.get("src", ""))
        embedded.append(el)
    return embedded, original_size, processed_size


def embed_blocks(
    blocks: Sequence[Block],
    assets: Mapping[str, bytes],
    options: EmbeddingOptions | None = None,
) -> tuple[list[Block], EmbeddingResult]:
    """``embed_assets`` over native blocks: each block's HTML and its ``url``."""

    embedded, result, _ = embed_sources("", assets, options, blocks=blocks)
    return embedded or [], result


def embed_elements(
    elements: Sequence[ElementData],
    assets: Mapping[str, bytes],
    options: EmbeddingOptions | None = None,
) -> tuple[list[ElementData], EmbeddingResult]:
    """Rewrite the ``src`` of extracted ``img`` elements."""

    _, result, embedded = embed_sources("", assets, options, elements=elements)
    return embedded or [], result


def embed_sources(
    html: str,
    assets: Mapping[str, bytes],
    options: EmbeddingOptions | None = None,
    *,
    blocks: Sequence[Block] | None = None,
    elements: Sequence[ElementData] | None = None,
    image_paths: Iterable[str] = (),
) -> tuple[list[Block] | None, EmbeddingResult, list[ElementData] | None]:
    """Embed page markup, native blocks and extracted elements in one pass.

    An image referenced from several of them gets a single decision, and
    ``image_paths`` only counts as unreferenced when none of them uses it.
    """

    embedder = _Embedder(assets, options or EmbeddingOptions())
    processed = embedder.markup(html) if html else html
    original_size, processed_size = byte_size(html), byte_size(processed)

    embedded_blocks = None
    if blocks is not None:
        embedded_blocks = [_embed_block(embedder, b) for b in blocks]
        original_size += sum(_block_size(b) for b in blocks)
        processed_size += sum(_block_size(b) for b in embedded_blocks)

    embedded_elements = None
    if elements is not None:
        embedded_elements, before, after = _embed_elements(embedder, elements)
        original_size += before
        processed_size += after

    embedder.unreferenced_images(image_paths)
    result = embedder.result(html, processed, original_size, processed_size)
    return embedded_blocks, result, embedded_elements
