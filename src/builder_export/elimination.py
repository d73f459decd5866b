"""Strip foreign page-builder and plugin traces from captured content.

Markup goes through three passes in order: shortcode tokens, signature
classes (and signature ``data-*`` attributes), then script/style/link nodes.
Style sheets are filtered line by line; scripts are only scanned, since
dropping lines of code would break them.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Any, Final, Sequence

from bs4 import BeautifulSoup, Comment, NavigableString

from .content import byte_size
from .convert.blocks import Block
from .convert.sources import ElementData
from .signatures import match_family

logger = logging.getLogger(__name__)

SHORTCODE_RE: Final[re.Pattern[str]] = re.compile(r"\[/?[A-Za-z][\w-]*(?:\s[^\[\]]*)?/?\]")

# Text inside these is code, not content.
_LITERAL_PARENTS: Final[frozenset[str]] = frozenset(
    {"script", "style", "code", "pre", "textarea"}
)
_LONG_LINE = 500


@dataclass(frozen=True)
class EliminationResult:
    removed_items: tuple[str, ...]
    warnings: tuple[str, ...]
    original_size: int
    new_size: int
    cleaned_content: str
    content_type: str = "html"

    @property
    def bytes_saved(self) -> int:
        return self.original_size - self.new_size


def _label(text: str) -> str:
    fam = match_family(text)
    return fam.label if fam else "unknown platform"


def _strip_shortcode_text(value: str, removed: list[str]) -> str:
    # Nested tokens surface one layer per pass.
    while SHORTCODE_RE.search(value):
        for token in SHORTCODE_RE.findall(value):
            removed.append(f"Shortcode: {token} ({_label(token)})")
        value = SHORTCODE_RE.sub("", value)
    return value


def _strip_shortcodes(soup: BeautifulSoup, removed: list[str]) -> bool:
    changed = False
    for text in soup.find_all(string=SHORTCODE_RE):
        if isinstance(text, Comment) or not isinstance(text, NavigableString):
            continue
        if text.parent is not None and text.parent.name in _LITERAL_PARENTS:
            continue
        text.replace_with(_strip_shortcode_text(str(text), removed))
        changed = True
    return changed


def _strip_class_list(classes: Sequence[str], removed: list[str]) -> list[str]:
    kept: list[str] = []
    for cls in classes:
        fam = match_family(cls)
        if fam:
            removed.append(f"Class: {cls} ({fam.label})")
        else:
            kept.append(cls)
    return kept


def _strip_classes(soup: BeautifulSoup, removed: list[str]) -> bool:
    changed = False
    for tag in soup.find_all(True):
        classes = tag.get("class")
        if classes:
            kept = _strip_class_list(classes, removed)
            if len(kept) != len(classes):
                changed = True
                if kept:
                    tag["class"] = kept
                else:
                    del tag["class"]

        for attr in [a for a in tag.attrs if a.startswith("data-")]:
            fam = match_family(attr)
            if fam:
                removed.append(f"Attribute: {attr} ({fam.label})")
                del tag[attr]
                changed = True
    return changed


def _strip_nodes(soup: BeautifulSoup, removed: list[str]) -> bool:
    changed = False
    for tag in soup.find_all(["script", "link", "style"]):
        if tag.name == "script" and tag.get("src"):
            ref = str(tag["src"])
            fam = match_family(ref) or match_family(str(tag.get("id") or ""))
            line = f"Script: {ref}"
        elif tag.name == "link":
            ref = str(tag.get("href") or "")
            fam = match_family(ref) or match_family(str(tag.get("id") or ""))
            line = f"Stylesheet: {ref}"
        else:
            fam = match_family(tag.get_text())
            line = "Inline script" if tag.name == "script" else "Inline style"
        if fam is None:
            continue
        removed.append(f"{line} ({fam.label})")
        tag.decompose()
        changed = True
    return changed


def eliminate_html(html: str) -> EliminationResult:
    soup = BeautifulSoup(html, "html.parser")
    removed: list[str] = []

    changed = _strip_shortcodes(soup, removed)
    changed = _strip_classes(soup, removed) or changed
    changed = _strip_nodes(soup, removed) or changed

    cleaned = str(soup) if changed else html
    logger.info("html elimination: removed=%d", len(removed))
    return EliminationResult(
        removed_items=tuple(removed),
        warnings=(),
        original_size=byte_size(html),
        new_size=byte_size(cleaned),
        cleaned_content=cleaned,
        content_type="html",
    )


def _css_lines(css: str) -> list[str]:
    lines: list[str] = []
    for line in css.splitlines(keepends=True):
        # Minified sheets: one rule per line.
        if len(line) > _LONG_LINE and line.count("}") > 1:
            parts = re.sub(r"\}\s*", "}\n", line.rstrip("\n")).splitlines(keepends=True)
            if parts and not parts[-1].endswith("\n"):
                parts[-1] += "\n"
            lines.extend(parts)
        else:
            lines.append(line)
    return lines


def eliminate_css(css: str) -> EliminationResult:
    removed: list[str] = []
    kept: list[str] = []
    skip_depth = 0

    for lineno, line in enumerate(_css_lines(css), start=1):
        if skip_depth > 0:
            skip_depth = max(0, skip_depth + line.count("{") - line.count("}"))
            continue
        fam = match_family(line)
        if fam is None:
            kept.append(line)
            continue
        removed.append(f"CSS line {lineno}: {line.strip()[:80]} ({fam.label})")
        # A matching selector drops its whole rule block.
        skip_depth = max(0, line.count("{") - line.count("}"))

    cleaned = "".join(kept) if removed else css
    logger.info("css elimination: removed=%d", len(removed))
    return EliminationResult(
        removed_items=tuple(removed),
        warnings=(),
        original_size=byte_size(css),
        new_size=byte_size(cleaned),
        cleaned_content=cleaned,
        content_type="css",
    )


def eliminate_js(js: str) -> EliminationResult:
    warnings: list[str] = []
    for lineno, line in enumerate(js.splitlines(), start=1):
        fam = match_family(line)
        if fam:
            warnings.append(
                f"Script line {lineno} references {fam.label}; review manually"
            )
    logger.info("js elimination: warnings=%d", len(warnings))
    return EliminationResult(
        removed_items=(),
        warnings=tuple(warnings),
        original_size=byte_size(js),
        new_size=byte_size(js),
        cleaned_content=js,
        content_type="js",
    )


def _block_size(block: Block) -> int:
    size = byte_size(block.inner_html) + byte_size(str(block.attributes.get("className") or ""))
    return size + sum(_block_size(b) for b in block.inner_blocks)


def _clean_block(block: Block, removed: list[str]) -> Block:
    changes: dict[str, Any] = {}
    if block.inner_html:
        result = eliminate_html(block.inner_html)
        if result.removed_items:
            removed.extend(result.removed_items)
            changes["inner_html"] = result.cleaned_content

    class_name = block.attributes.get("className")
    if isinstance(class_name, str) and class_name.strip():
        classes = class_name.split()
        kept = _strip_class_list(classes, removed)
        if len(kept) != len(classes):
            attributes = dict(block.attributes)
            if kept:
                attributes["className"] = " ".join(kept)
            else:
                del attributes["className"]
            changes["attributes"] = attributes

    children = tuple(_clean_block(b, removed) for b in block.inner_blocks)
    if any(new is not old for new, old in zip(children, block.inner_blocks)):
        changes["inner_blocks"] = children
    return replace(block, **changes) if changes else block


def eliminate_blocks(blocks: Sequence[Block]) -> tuple[list[Block], EliminationResult]:
    """Clean native blocks: each block's HTML plus its ``className`` attribute.

    Blocks that needed no change are returned as the same objects.
    """

    removed: list[str] = []
    cleaned = [_clean_block(b, removed) for b in blocks]
    logger.info("block elimination: removed=%d", len(removed))
    return cleaned, EliminationResult(
        removed_items=tuple(removed),
        warnings=(),
        original_size=sum(_block_size(b) for b in blocks),
        new_size=sum(_block_size(b) for b in cleaned),
        cleaned_content="",
        content_type="blocks",
    )


def _element_size(el: ElementData) -> int:
    return byte_size(" ".join(el.classes)) + byte_size(el.text) + sum(
        byte_size(k) + byte_size(v) for k, v in el.attributes.items()
    )


def eliminate_elements(
    elements: Sequence[ElementData],
) -> tuple[list[ElementData], EliminationResult]:
    """Drop signature classes, signature ``data-*`` attributes and shortcode text."""

    removed: list[str] = []
    cleaned: list[ElementData] = []
    for el in elements:
        changes: dict[str, Any] = {}
        kept = _strip_class_list(el.classes, removed)
        if len(kept) != len(el.classes):
            changes["classes"] = tuple(kept)

        attributes = dict(el.attributes)
        for attr in [a for a in attributes if a.startswith("data-")]:
            fam = match_family(attr)
            if fam:
                removed.append(f"Attribute: {attr} ({fam.label})")
                del attributes[attr]
        if len(attributes) != len(el.attributes):
            changes["attributes"] = attributes

        text = _strip_shortcode_text(el.text, removed)
        if text != el.text:
            changes["text"] = text

        cleaned.append(replace(el, **changes) if changes else el)

    logger.info("element elimination: removed=%d", len(removed))
    return cleaned, EliminationResult(
        removed_items=tuple(removed),
        warnings=(),
        original_size=sum(_element_size(e) for e in elements),
        new_size=sum(_element_size(e) for e in cleaned),
        cleaned_content="",
        content_type="elements",
    )
