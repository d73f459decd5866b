"""Document model shared by every builder.

A captured page becomes a read-only ``Section -> Column -> Widget`` tree. The
tree is built once per export call and handed to exactly one builder.
"""

from __future__ import annotations

import itertools
import secrets
import threading
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Final, Mapping, Protocol

from .colors import Box


class WidgetKind(str, Enum):
    HEADING = "heading"
    TEXT = "text"
    IMAGE = "image"
    BUTTON = "button"
    ICON_BOX = "icon-box"
    TESTIMONIAL = "testimonial"
    COUNTER = "counter"
    VIDEO = "video"
    LIST = "list"
    QUOTE = "quote"
    DIVIDER = "divider"
    SPACER = "spacer"
    HTML = "html"


# Fixed property schema per kind: key -> default value.
WIDGET_SCHEMAS: Final[dict[WidgetKind, dict[str, Any]]] = {
    WidgetKind.HEADING: {"level": 2, "text": "", "html": "", "align": "left", "color": ""},
    WidgetKind.TEXT: {"html": "", "text": "", "align": "left", "color": ""},
    WidgetKind.IMAGE: {"src": "", "alt": "", "width": 0, "height": 0, "link": "", "align": "left"},
    WidgetKind.BUTTON: {
        "text": "",
        "url": "#",
        "align": "left",
        "size": "md",
        "background_color": "",
        "text_color": "",
    },
    WidgetKind.ICON_BOX: {"icon": "fas fa-star", "title": "", "description": "", "color": ""},
    WidgetKind.TESTIMONIAL: {"content": "", "name": "", "job": "", "image": ""},
    WidgetKind.COUNTER: {"number": 0, "title": "", "suffix": ""},
    WidgetKind.VIDEO: {"url": "", "provider": "hosted"},
    WidgetKind.LIST: {"items": (), "ordered": False},
    WidgetKind.QUOTE: {"html": "", "text": "", "citation": ""},
    WidgetKind.DIVIDER: {"style": "solid", "weight": 1, "color": ""},
    WidgetKind.SPACER: {"height": 50},
    WidgetKind.HTML: {"html": ""},
}


@dataclass(frozen=True)
class Widget:
    kind: WidgetKind
    props: Mapping[str, Any]

    def __post_init__(self) -> None:
        object.__setattr__(self, "props", MappingProxyType(dict(self.props)))

    def __getitem__(self, key: str) -> Any:
        return self.props[key]


def make_widget(kind: WidgetKind, **props: Any) -> Widget:
    """Create a widget, filling schema defaults and dropping unknown keys."""

    schema = WIDGET_SCHEMAS[kind]
    values = dict(schema)
    for key, value in props.items():
        if key in schema and value is not None:
            values[key] = value
    if kind is WidgetKind.LIST:
        values["items"] = tuple(values["items"])
    if kind is WidgetKind.HEADING:
        values["level"] = min(6, max(1, int(values["level"])))
    return Widget(kind=kind, props=values)


@dataclass(frozen=True)
class SectionSettings:
    background_color: str = ""
    background_image: str = ""
    padding: Box = field(default_factory=Box)
    css_class: str = ""


@dataclass(frozen=True)
class Column:
    size_percent: int
    widgets: tuple[Widget, ...] = ()


@dataclass(frozen=True)
class Section:
    columns: tuple[Column, ...]
    settings: SectionSettings = field(default_factory=SectionSettings)

    def widgets(self) -> list[Widget]:
        return [w for c in self.columns for w in c.widgets]


@dataclass(frozen=True)
class Document:
    title: str
    sections: tuple[Section, ...]
    method: str

    def widget_count(self) -> int:
        return sum(len(s.widgets()) for s in self.sections)

    def iter_widgets(self):
        for section in self.sections:
            yield from section.widgets()


def column_size(count: int) -> int:
    # Floor division; three columns give 33/33/33.
    return 100 // max(1, count)


class IdGenerator(Protocol):
    def next_id(self) -> str: ...

    def next_int(self) -> int: ...


class SequentialIds:
    """Deterministic ids: ``0000001``, ``0000002``, ... (7-char hex)."""

    def __init__(self, start: int = 1, width: int = 7) -> None:
        self._counter = itertools.count(start)
        self._width = width
        self._lock = threading.Lock()

    def next_int(self) -> int:
        with self._lock:
            return next(self._counter)

    def next_id(self) -> str:
        return f"{self.next_int():0{self._width}x}"


class RandomIds:
    def __init__(self, width: int = 7) -> None:
        self._width = width
        self._ints = SequentialIds()

    def next_int(self) -> int:
        return self._ints.next_int()

    def next_id(self) -> str:
        return secrets.token_hex(self._width)[: self._width]
