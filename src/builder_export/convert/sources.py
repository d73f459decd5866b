"""Build the document model from one of three page representations.

Every source adapts its records into ``Candidate`` values; classification and
property extraction then happen once, in ``classify`` and ``build_widget``,
whatever the source was.
"""

from __future__ import annotations

import html as html_lib
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Final, Iterable, Iterator, Mapping, Protocol, Sequence

from bs4 import BeautifulSoup, Tag

from ..colors import extract_background_image, normalize_color, parse_box, parse_px
from ..ir import (
    Column,
    Document,
    Section,
    SectionSettings,
    Widget,
    WidgetKind,
    column_size,
    make_widget,
)
from .blocks import Block
from .html_to_md import _clean_soup_inplace, extract_title

logger = logging.getLogger(__name__)

HEADING_TAGS: Final[frozenset[str]] = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})
CONTAINER_TAGS: Final[frozenset[str]] = frozenset(
    {"div", "section", "header", "footer", "main", "article", "aside", "nav"}
)
SECTION_TAGS: Final[frozenset[str]] = frozenset(
    {"section", "header", "footer", "main", "article", "nav", "aside"}
)
SKIP_TAGS: Final[frozenset[str]] = frozenset(
    {"script", "style", "noscript", "template", "link", "meta", "title", "head"}
)

# Searched in order; the first selector giving 2-6 columns wins.
COLUMN_SELECTORS: Final[tuple[str, ...]] = (
    ".col",
    '[class*="col-"]',
    ".column",
    '[class*="column"]',
    ".grid > *",
    ".flex > *",
)
MIN_COLUMNS = 2
MAX_COLUMNS = 6
ROW_TOLERANCE_PX = 50

COUNT_ATTRS: Final[tuple[str, ...]] = ("data-count", "data-counter", "data-to", "data-target")
_VIDEO_SRC_RE = re.compile(r"youtube|youtu\.be|vimeo|video", re.I)
_ALIGN_CLASS_RE = re.compile(r"(?:has-text-align-|text-|align)(left|center|right|justify)\b")
_VALID_ALIGN = {"left", "center", "right", "justify"}
_NUMBER_RE = re.compile(r"(\d[\d,]*(?:\.\d+)?)\s*([+%kKmM]*)")
_ICON_CLASS_RE = re.compile(r"\b(?:fa[srbl]?|fa-\S+|dashicons\S*|icon\S*|bi-\S+)\b")


@dataclass(frozen=True)
class Candidate:
    """Source-neutral view of one element about to become a widget."""

    tag: str
    classes: tuple[str, ...] = ()
    attrs: Mapping[str, str] = field(default_factory=dict)
    text: str = ""
    inner_html: str = ""
    styles: Mapping[str, str] = field(default_factory=dict)
    node: Tag | None = None

    @property
    def class_string(self) -> str:
        return " ".join(self.classes).lower()

    def style(self, *keys: str) -> str:
        for key in keys:
            value = self.styles.get(key)
            if value:
                return str(value)
        return ""


@dataclass(frozen=True)
class SectionSpec:
    columns: list[list[Candidate]]
    styles: Mapping[str, str] = field(default_factory=dict)
    classes: tuple[str, ...] = ()


class DataSource(Protocol):
    method: str

    def title(self) -> str: ...

    def sections(self) -> Iterator[SectionSpec]: ...


def classify(c: Candidate) -> WidgetKind:
    tag = c.tag.lower()
    cls = c.class_string

    if tag in HEADING_TAGS:
        return WidgetKind.HEADING
    if tag == "p":
        return WidgetKind.TEXT
    if tag == "img":
        return WidgetKind.IMAGE
    if tag == "button" or (tag == "a" and ("btn" in cls or "button" in cls)):
        return WidgetKind.BUTTON
    if "icon-box" in cls or "feature" in cls or "service" in cls:
        return WidgetKind.ICON_BOX
    if "testimonial" in cls or "review" in cls:
        return WidgetKind.TESTIMONIAL
    if "counter" in cls or any(a in c.attrs for a in COUNT_ATTRS):
        return WidgetKind.COUNTER
    if tag == "video" or (tag == "iframe" and _VIDEO_SRC_RE.search(c.attrs.get("src", ""))):
        return WidgetKind.VIDEO
    if tag in ("ul", "ol"):
        return WidgetKind.LIST
    if tag == "blockquote":
        return WidgetKind.QUOTE
    if tag == "hr":
        return WidgetKind.DIVIDER
    if "spacer" in cls or "spacing" in cls:
        return WidgetKind.SPACER
    return WidgetKind.HTML


def _scope(c: Candidate) -> Tag:
    if c.node is not None:
        return c.node
    return BeautifulSoup(c.inner_html or "", "html.parser")


def _first(node: Tag, *names: str) -> Tag | None:
    if node.name in names:
        return node
    found = node.find(list(names))
    return found if isinstance(found, Tag) else None


def _attr(node: Tag | None, name: str) -> str:
    if node is None:
        return ""
    value = node.get(name)
    if isinstance(value, list):
        return " ".join(value)
    return str(value or "")


def _text_of(node: Tag | None) -> str:
    return node.get_text(" ", strip=True) if node is not None else ""


def _find_by_class(node: Tag, pattern: str) -> Tag | None:
    found = node.find(class_=re.compile(pattern, re.I))
    return found if isinstance(found, Tag) else None


def alignment_of(c: Candidate) -> str:
    value = (c.attrs.get("align") or c.style("textAlign", "text-align")).lower()
    if value in _VALID_ALIGN:
        return value
    m = _ALIGN_CLASS_RE.search(c.class_string)
    return m.group(1) if m else "left"


def _parse_count(text: str) -> tuple[int, str]:
    m = _NUMBER_RE.search(text or "")
    if not m:
        return 0, ""
    try:
        number = int(float(m.group(1).replace(",", "")))
    except ValueError:
        return 0, ""
    return number, m.group(2)


def video_provider(url: str) -> str:
    lowered = url.lower()
    if "youtube" in lowered or "youtu.be" in lowered:
        return "youtube"
    if "vimeo" in lowered:
        return "vimeo"
    return "hosted"


def build_widget(c: Candidate) -> Widget:
    """Classify a candidate and fill the kind's property schema."""

    kind = classify(c)
    scope = _scope(c)

    if kind is WidgetKind.HEADING:
        tag = c.tag.lower()
        level = int(tag[1]) if tag in HEADING_TAGS else parse_px(c.attrs.get("level"), 2)
        return make_widget(
            kind,
            level=level,
            text=c.text,
            html=c.inner_html.strip() or html_lib.escape(c.text),
            align=alignment_of(c),
            color=normalize_color(c.style("color")),
        )

    if kind is WidgetKind.TEXT:
        return make_widget(
            kind,
            html=c.inner_html.strip() or html_lib.escape(c.text),
            text=c.text,
            align=alignment_of(c),
            color=normalize_color(c.style("color")),
        )

    if kind is WidgetKind.IMAGE:
        img = _first(scope, "img")
        link = c.attrs.get("href", "")
        if not link and img is not None:
            parent = img.parent
            if isinstance(parent, Tag) and parent.name == "a":
                link = _attr(parent, "href")
        return make_widget(
            kind,
            src=c.attrs.get("src") or _attr(img, "src") or _attr(img, "data-src"),
            alt=c.attrs.get("alt") or _attr(img, "alt"),
            width=parse_px(c.attrs.get("width") or _attr(img, "width")),
            height=parse_px(c.attrs.get("height") or _attr(img, "height")),
            link=link,
            align=alignment_of(c),
        )

    if kind is WidgetKind.BUTTON:
        anchor = _first(scope, "a")
        cls = c.class_string
        size = "lg" if "lg" in cls or "large" in cls else "sm" if "sm" in cls or "small" in cls else "md"
        return make_widget(
            kind,
            text=c.text or _text_of(anchor),
            url=c.attrs.get("href") or _attr(anchor, "href") or "#",
            align=alignment_of(c),
            size=size,
            background_color=normalize_color(c.style("backgroundColor", "background-color", "background")),
            text_color=normalize_color(c.style("color")),
        )

    if kind is WidgetKind.ICON_BOX:
        icon_node = scope.find(["i", "span"], class_=_ICON_CLASS_RE)
        icon = " ".join(icon_node.get("class") or []) if isinstance(icon_node, Tag) else None
        title = _text_of(scope.find(sorted(HEADING_TAGS)))
        desc = _text_of(scope.find("p"))
        return make_widget(
            kind,
            icon=icon or None,
            title=title or c.text,
            description=desc,
            color=normalize_color(c.style("color")),
        )

    if kind is WidgetKind.TESTIMONIAL:
        content = _find_by_class(scope, r"content|text|quote") or scope.find(["blockquote", "p"])
        name = _find_by_class(scope, r"name|author") or scope.find(["cite", "strong"])
        job = _find_by_class(scope, r"job|position|role|company")
        img = scope.find("img")
        return make_widget(
            kind,
            content=_text_of(content if isinstance(content, Tag) else None) or c.text,
            name=_text_of(name if isinstance(name, Tag) else None),
            job=_text_of(job),
            image=_attr(img if isinstance(img, Tag) else None, "src"),
        )

    if kind is WidgetKind.COUNTER:
        raw = next((c.attrs[a] for a in COUNT_ATTRS if c.attrs.get(a)), "")
        number_node = _find_by_class(scope, r"number|count")
        number, suffix = _parse_count(raw or _text_of(number_node) or c.text)
        title_node = _find_by_class(scope, r"title|label")
        title = _text_of(title_node) or _NUMBER_RE.sub("", c.text).strip()
        return make_widget(kind, number=number, title=title, suffix=suffix)

    if kind is WidgetKind.VIDEO:
        src = c.attrs.get("src", "")
        if not src:
            src = _attr(_first(scope, "iframe", "video", "source"), "src")
            if not src:
                src = _attr(scope.find("source"), "src")
        return make_widget(kind, url=src, provider=video_provider(src))

    if kind is WidgetKind.LIST:
        lst = _first(scope, "ul", "ol")
        items = [li.get_text(" ", strip=True) for li in (lst or scope).find_all("li")]
        if not items:
            items = [line.strip() for line in c.text.splitlines() if line.strip()]
        ordered = c.tag.lower() == "ol" or str(c.attrs.get("ordered", "")).lower() == "true"
        return make_widget(kind, items=items, ordered=ordered)

    if kind is WidgetKind.QUOTE:
        cite = scope.find("cite")
        citation = _text_of(cite if isinstance(cite, Tag) else None)
        paragraphs = [p.get_text(" ", strip=True) for p in scope.find_all("p")]
        text = " ".join(paragraphs) or c.text
        if citation and not paragraphs and text.endswith(citation):
            text = text[: -len(citation)].strip()
        return make_widget(
            kind,
            html=c.inner_html.strip() or html_lib.escape(text),
            text=text,
            citation=citation,
        )

    if kind is WidgetKind.DIVIDER:
        return make_widget(
            kind,
            weight=parse_px(c.style("borderTopWidth", "height"), 1) or 1,
            color=normalize_color(c.style("borderTopColor", "borderColor", "color")),
        )

    if kind is WidgetKind.SPACER:
        return make_widget(
            kind,
            height=parse_px(c.style("height") or c.attrs.get("height"), 50) or 50,
        )

    if c.node is not None:
        raw_html = str(c.node)
    else:
        raw_html = c.inner_html or (f"<div>{html_lib.escape(c.text)}</div>" if c.text else "")
    return make_widget(WidgetKind.HTML, html=raw_html)


def _section_settings(spec: SectionSpec) -> SectionSettings:
    styles = spec.styles
    background = styles.get("backgroundColor") or styles.get("background") or ""
    image = styles.get("backgroundImage") or styles.get("background") or ""
    return SectionSettings(
        background_color=normalize_color(background),
        background_image=extract_background_image(image),
        padding=parse_box(styles.get("padding")),
        css_class=" ".join(spec.classes),
    )


def build_document(source: DataSource) -> Document:
    sections: list[Section] = []
    for spec in source.sections():
        columns = [col for col in spec.columns if col]
        if not columns:
            continue
        size = column_size(len(columns))
        sections.append(
            Section(
                columns=tuple(
                    Column(size_percent=size, widgets=tuple(build_widget(c) for c in col))
                    for col in columns
                ),
                settings=_section_settings(spec),
            )
        )
    document = Document(title=source.title(), sections=tuple(sections), method=source.method)
    logger.debug(
        "document built: method=%s sections=%d widgets=%d",
        document.method,
        len(document.sections),
        document.widget_count(),
    )
    return document


# Markup source


def _style_map(raw: object) -> dict[str, str]:
    if not isinstance(raw, str):
        return {}
    styles: dict[str, str] = {}
    for decl in raw.split(";"):
        if ":" not in decl:
            continue
        key, value = decl.split(":", 1)
        key = key.strip().lower()
        if not key:
            continue
        camel = re.sub(r"-([a-z])", lambda m: m.group(1).upper(), key)
        styles[camel] = value.strip()
    return styles


def candidate_from_tag(tag: Tag) -> Candidate:
    attrs: dict[str, str] = {}
    for key, value in tag.attrs.items():
        attrs[key] = " ".join(value) if isinstance(value, list) else str(value)
    return Candidate(
        tag=tag.name,
        classes=tuple(tag.get("class") or ()),
        attrs=attrs,
        text=tag.get_text(" ", strip=True),
        inner_html=tag.decode_contents(),
        styles=_style_map(tag.get("style")),
        node=tag,
    )


def _element_children(node: Tag) -> list[Tag]:
    return [c for c in node.children if isinstance(c, Tag) and c.name not in SKIP_TAGS]


def _is_plain_container(tag: Tag) -> bool:
    if tag.name not in CONTAINER_TAGS or not _element_children(tag):
        return False
    # Classification only needs the tag, classes and attributes.
    shallow = Candidate(
        tag=tag.name,
        classes=tuple(tag.get("class") or ()),
        attrs={k: str(v) for k, v in tag.attrs.items() if k != "class"},
    )
    return classify(shallow) is WidgetKind.HTML


def _drop_nested(matches: list[Tag]) -> list[Tag]:
    ids = {id(m) for m in matches}
    # Wrappers that contain other matches are not columns.
    return [m for m in matches if not any(id(d) in ids for d in m.find_all(True))]


def detect_columns(container: Tag) -> list[Tag]:
    """Return the column elements of a section, or [] for a single column."""

    for selector in COLUMN_SELECTORS:
        matches = _drop_nested(container.select(selector))
        if MIN_COLUMNS <= len(matches) <= MAX_COLUMNS:
            return matches

    children = _element_children(container)
    while len(children) == 1 and _is_plain_container(children[0]):
        children = _element_children(children[0])
    if MIN_COLUMNS <= len(children) <= MAX_COLUMNS:
        return children
    return []


def _widget_nodes(node: Tag) -> list[Tag]:
    if not _is_plain_container(node):
        return [node]
    nodes: list[Tag] = []
    for child in _element_children(node):
        nodes.extend(_widget_nodes(child))
    return nodes


class MarkupSource:
    """Heuristic traversal of captured HTML."""

    method = "markup"

    def __init__(self, html: str) -> None:
        self._html = html

    def title(self) -> str:
        return extract_title(self._html)

    def _top_level(self, soup: BeautifulSoup) -> list[Tag]:
        root = soup.body or soup
        children = _element_children(root)
        while (
            len(children) == 1
            and _is_plain_container(children[0])
            and any(
                g.name in SECTION_TAGS or children[0].name == "main"
                for g in _element_children(children[0])
            )
        ):
            children = _element_children(children[0])
        return children

    def _section(self, node: Tag) -> SectionSpec:
        columns = detect_columns(node)
        if columns:
            cols = [[candidate_from_tag(t) for t in _widget_nodes(c)] for c in columns]
        else:
            cols = [[candidate_from_tag(t) for t in _widget_nodes(node)]]
        return SectionSpec(
            columns=cols,
            styles=_style_map(node.get("style")),
            classes=tuple(node.get("class") or ()),
        )

    def sections(self) -> Iterator[SectionSpec]:
        soup = BeautifulSoup(self._html, "html.parser")
        _clean_soup_inplace(soup)
        loose: list[Candidate] = []
        for node in self._top_level(soup):
            if _is_plain_container(node):
                if loose:
                    yield SectionSpec(columns=[loose])
                    loose = []
                yield self._section(node)
            else:
                loose.append(candidate_from_tag(node))
        if loose:
            yield SectionSpec(columns=[loose])


# Native block source

# Block short name -> (synthetic tag, synthetic class) fed to the ladder.
_BLOCK_TAGS: Final[dict[str, tuple[str, str]]] = {
    "paragraph": ("p", ""),
    "image": ("img", ""),
    "button": ("button", ""),
    "advancedbtn": ("button", ""),
    "singlebtn": ("button", ""),
    "list": ("ul", ""),
    "iconlist": ("ul", ""),
    "quote": ("blockquote", ""),
    "pullquote": ("blockquote", ""),
    "separator": ("hr", ""),
    "divider": ("hr", ""),
    "spacer": ("div", "spacer"),
    "video": ("video", ""),
    "infobox": ("div", "icon-box"),
    "testimonials": ("div", "testimonial"),
    "testimonial": ("div", "testimonial"),
    "countup": ("div", "counter"),
    "html": ("div", ""),
    "freeform": ("div", ""),
    "shortcode": ("div", ""),
}
_HEADING_BLOCKS = {"heading", "advancedheading"}
_ITEM_CONTAINERS = {"list", "iconlist", "quote", "pullquote", "testimonials"}
_RAW_BLOCKS = {"html", "freeform", "shortcode"}


def _block_html(block: Block) -> str:
    """Block HTML with inner block markup folded back into its wrapper."""

    if not block.inner_blocks:
        return block.inner_html
    inner = "".join(_block_html(b) for b in block.inner_blocks)
    cut = block.inner_html.rfind("</")
    if cut < 0:
        return block.inner_html + inner
    return block.inner_html[:cut] + inner + block.inner_html[cut:]


def _block_styles(attributes: Mapping[str, Any]) -> dict[str, str]:
    styles: dict[str, str] = {}
    align = attributes.get("textAlign") or attributes.get("align")
    if isinstance(align, str):
        styles["textAlign"] = align
    style = attributes.get("style")
    if isinstance(style, dict):
        color = style.get("color")
        if isinstance(color, dict):
            if color.get("text"):
                styles["color"] = str(color["text"])
            if color.get("background"):
                styles["backgroundColor"] = str(color["background"])
        spacing = style.get("spacing")
        if isinstance(spacing, dict) and isinstance(spacing.get("padding"), dict):
            pad = spacing["padding"]
            styles["padding"] = " ".join(
                str(pad.get(side, "0")) for side in ("top", "right", "bottom", "left")
            )
    for key, target in (
        ("customTextColor", "color"),
        ("textColor", "color"),
        ("color", "color"),
        ("customBackgroundColor", "backgroundColor"),
        ("backgroundColor", "backgroundColor"),
        ("background", "backgroundColor"),
    ):
        value = attributes.get(key)
        if isinstance(value, str) and target not in styles:
            styles[target] = value
    if "height" in attributes:
        styles["height"] = str(attributes["height"])
    return styles


def candidate_from_block(block: Block) -> Candidate:
    html = _block_html(block).strip()
    frag = BeautifulSoup(html, "html.parser")
    top = [t for t in frag.children if isinstance(t, Tag)]
    first = top[0] if top else None
    short = block.short_name
    attrs: dict[str, str] = {
        str(k): str(v).lower() if isinstance(v, bool) else str(v)
        for k, v in block.attributes.items()
        if isinstance(v, (str, int, float, bool))
    }
    extra_class = attrs.get("className", "")
    node: Tag | None = first

    if short in _HEADING_BLOCKS:
        level = parse_px(attrs.get("level"), 0)
        if not level and first is not None and first.name in HEADING_TAGS:
            level = int(first.name[1])
        tag = f"h{level or 2}"
        node = frag.find(tag) or first
    elif short in _BLOCK_TAGS:
        tag, klass = _BLOCK_TAGS[short]
        extra_class = f"{extra_class} {klass}".strip()
        if short == "list" and str(block.attributes.get("ordered")).lower() == "true":
            tag = "ol"
        url = attrs.get("url")
        if url:
            attrs.setdefault("src" if tag in ("img", "video") else "href", url)
        if tag == "button":
            node = frag.find("a") or first
    elif short == "embed":
        url = attrs.get("url", "")
        tag = "iframe" if _VIDEO_SRC_RE.search(url) else "div"
        attrs["src"] = url
    elif first is not None and len(top) == 1:
        # Unknown block with a single root element goes through the ladder.
        tag = first.name
    else:
        tag = "div"
        node = None

    if short in _RAW_BLOCKS:
        node = None

    classes = tuple(node.get("class") or ()) if node is not None else ()
    classes += tuple(extra_class.split())
    text = node.get_text(" ", strip=True) if node is not None else frag.get_text(" ", strip=True)
    inner_html = html if node is None else node.decode_contents()

    return Candidate(
        tag=tag,
        classes=classes,
        attrs=attrs,
        text=text,
        inner_html=inner_html,
        styles=_block_styles(block.attributes),
        node=node,
    )


def _leaf_blocks(blocks: Iterable[Block]) -> list[Block]:
    leaves: list[Block] = []
    for block in blocks:
        if block.inner_blocks and block.short_name not in _ITEM_CONTAINERS:
            leaves.extend(_leaf_blocks(block.inner_blocks))
        else:
            leaves.append(block)
    return leaves


def _is_columns_block(block: Block) -> bool:
    if block.short_name in ("columns", "rowlayout"):
        return True
    return len(block.inner_blocks) >= 2 and all(
        b.short_name == "column" for b in block.inner_blocks
    )


class NativeBlockSource:
    """Structured blocks straight from the site's editor data."""

    method = "native"

    def __init__(self, blocks: Sequence[Block]) -> None:
        self._blocks = list(blocks)

    def title(self) -> str:
        for block in _leaf_blocks(self._blocks):
            if block.short_name in _HEADING_BLOCKS:
                text = BeautifulSoup(block.inner_html, "html.parser").get_text(" ", strip=True)
                if text:
                    return text
        return "Untitled"

    def sections(self) -> Iterator[SectionSpec]:
        loose: list[Candidate] = []
        for block in self._blocks:
            if block.inner_blocks and block.short_name not in _ITEM_CONTAINERS:
                if loose:
                    yield SectionSpec(columns=[loose])
                    loose = []
                styles = _block_styles(block.attributes)
                classes = tuple(str(block.attributes.get("className", "")).split())
                if _is_columns_block(block):
                    columns = [
                        [candidate_from_block(b) for b in _leaf_blocks(col.inner_blocks)]
                        for col in block.inner_blocks
                    ]
                else:
                    columns = [[candidate_from_block(b) for b in _leaf_blocks(block.inner_blocks)]]
                yield SectionSpec(columns=columns, styles=styles, classes=classes)
            else:
                loose.append(candidate_from_block(block))
        if loose:
            yield SectionSpec(columns=[loose])


# Extracted element source


@dataclass(frozen=True)
class Rect:
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0

    def contains(self, other: Rect) -> bool:
        return (
            self.x <= other.x
            and self.y <= other.y
            and other.x + other.width <= self.x + self.width
            and other.y + other.height <= self.y + self.height
        )


@dataclass(frozen=True)
class ElementData:
    """One element of a computed-style snapshot taken in a browser."""

    tag: str
    classes: tuple[str, ...] = ()
    id: str = ""
    text: str = ""
    attributes: Mapping[str, str] = field(default_factory=dict)
    position: Rect = field(default_factory=Rect)
    styles: Mapping[str, str] = field(default_factory=dict)
    is_visible: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ElementData:
        classes = data.get("classes", data.get("className", ()))
        if isinstance(classes, str):
            classes = classes.split()
        pos = data.get("position") or data.get("rect") or {}
        return cls(
            tag=str(data.get("tag") or data.get("tagName") or "div").lower(),
            classes=tuple(str(c) for c in classes or ()),
            id=str(data.get("id") or ""),
            text=str(data.get("text") or data.get("textContent") or ""),
            attributes={str(k): str(v) for k, v in (data.get("attributes") or {}).items()},
            position=Rect(
                x=float(pos.get("x", 0) or 0),
                y=float(pos.get("y", 0) or 0),
                width=float(pos.get("width", 0) or 0),
                height=float(pos.get("height", 0) or 0),
            ),
            styles={str(k): str(v) for k, v in (data.get("styles") or data.get("computedStyles") or {}).items()},
            is_visible=bool(data.get("isVisible", data.get("is_visible", True))),
        )

    def visible(self) -> bool:
        if not self.is_visible:
            return False
        if self.position.width <= 0 or self.position.height <= 0:
            return False
        if self.styles.get("display") == "none" or self.styles.get("visibility") == "hidden":
            return False
        return True


_EXTRACTED_SKIP: Final[frozenset[str]] = (
    CONTAINER_TAGS
    | SKIP_TAGS
    | {"li", "span", "strong", "em", "b", "i", "small", "label", "source", "body", "html", "br"}
)


def candidate_from_element(el: ElementData) -> Candidate:
    attrs = dict(el.attributes)
    if el.id:
        attrs.setdefault("id", el.id)
    return Candidate(
        tag=el.tag,
        classes=el.classes,
        attrs=attrs,
        text=el.text.strip(),
        inner_html=html_lib.escape(el.text.strip()),
        styles=el.styles,
        node=None,
    )


class ExtractedElementSource:
    """Elements captured with their rendered geometry and computed styles."""

    method = "extracted"

    def __init__(self, elements: Sequence[ElementData]) -> None:
        self._elements = list(elements)

    def title(self) -> str:
        for el in self._elements:
            if el.tag == "h1" and el.text.strip():
                return el.text.strip()
        return "Untitled"

    def _widgets(self) -> list[tuple[ElementData, Candidate]]:
        accepted: list[tuple[ElementData, Candidate]] = []
        for el in sorted(
            (e for e in self._elements if e.visible()),
            key=lambda e: (e.position.y, e.position.x),
        ):
            cand = candidate_from_element(el)
            if el.tag in _EXTRACTED_SKIP and classify(cand) is WidgetKind.HTML:
                continue
            if any(prev.position.contains(el.position) for prev, _ in accepted):
                continue
            accepted.append((el, cand))
        return accepted

    def sections(self) -> Iterator[SectionSpec]:
        rows: list[list[tuple[ElementData, Candidate]]] = []
        for item in self._widgets():
            if rows and abs(item[0].position.y - rows[-1][0][0].position.y) <= ROW_TOLERANCE_PX:
                rows[-1].append(item)
            else:
                rows.append([item])

        running: list[Candidate] = []
        for row in rows:
            if MIN_COLUMNS <= len(row) <= MAX_COLUMNS:
                if running:
                    yield SectionSpec(columns=[running])
                    running = []
                ordered = sorted(row, key=lambda it: it[0].position.x)
                yield SectionSpec(columns=[[cand] for _, cand in ordered])
            else:
                running.extend(cand for _, cand in row)
        if running:
            yield SectionSpec(columns=[running])


def select_source(
    html: str,
    blocks: Sequence[Block] | None = None,
    elements: Sequence[ElementData] | None = None,
) -> DataSource:
    """Prefer native blocks, then extracted elements, then raw markup."""

    if blocks:
        return NativeBlockSource(blocks)
    if elements:
        return ExtractedElementSource(elements)
    return MarkupSource(html)
