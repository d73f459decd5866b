from __future__ import annotations

import json
from typing import Any

from ..artifact import FileGroup, GeneratedFile
from ..ir import Document, Section, Widget, WidgetKind
from .base import BuildContext, Builder, BuildOutput, check_renderers, widget_html

BRICKS_VERSION = "1.9"


def _heading(w: Widget) -> tuple[str, dict[str, Any]]:
    return "heading", {"tag": f"h{w['level']}", "text": w["text"], "_typography": _typography(w)}


def _text(w: Widget) -> tuple[str, dict[str, Any]]:
    return "text-basic", {"text": w["html"], "_typography": _typography(w)}


def _typography(w: Widget) -> dict[str, Any]:
    typography: dict[str, Any] = {}
    if w["align"] != "left":
        typography["text-align"] = w["align"]
    if w["color"]:
        typography["color"] = {"hex": w["color"]}
    return typography


def _image(w: Widget) -> tuple[str, dict[str, Any]]:
    settings: dict[str, Any] = {"image": {"url": w["src"], "external": True}, "altText": w["alt"]}
    if w["link"]:
        settings["link"] = {"type": "external", "url": w["link"]}
    return "image", settings


def _button(w: Widget) -> tuple[str, dict[str, Any]]:
    settings: dict[str, Any] = {
        "text": w["text"],
        "link": {"type": "external", "url": w["url"]},
        "size": w["size"],
    }
    if w["background_color"]:
        settings["_background"] = {"color": {"hex": w["background_color"]}}
    if w["text_color"]:
        settings["_typography"] = {"color": {"hex": w["text_color"]}}
    return "button", settings


def _icon_box(w: Widget) -> tuple[str, dict[str, Any]]:
    return "icon-box", {
        "icon": {"library": "fontawesomeSolid", "icon": w["icon"]},
        "content": f"<h3>{w['title']}</h3><p>{w['description']}</p>",
        "iconColor": {"hex": w["color"]} if w["color"] else {},
    }


def _testimonial(w: Widget) -> tuple[str, dict[str, Any]]:
    item: dict[str, Any] = {"content": w["content"], "name": w["name"], "title": w["job"]}
    if w["image"]:
        item["image"] = {"url": w["image"], "external": True}
    return "testimonials", {"items": [item]}


def _counter(w: Widget) -> tuple[str, dict[str, Any]]:
    return "counter", {"countFrom": 0, "countTo": w["number"], "suffix": w["suffix"], "title": w["title"]}


def _video(w: Widget) -> tuple[str, dict[str, Any]]:
    provider = w["provider"]
    if provider == "youtube":
        return "video", {"videoType": "youtube", "youTubeId": w["url"]}
    if provider == "vimeo":
        return "video", {"videoType": "vimeo", "vimeoId": w["url"]}
    return "video", {"videoType": "file", "fileUrl": w["url"]}


def _list(w: Widget) -> tuple[str, dict[str, Any]]:
    return "list", {"items": [{"title": item} for item in w["items"]]}


def _rich(w: Widget) -> tuple[str, dict[str, Any]]:
    return "text", {"text": widget_html(w)}


def _divider(w: Widget) -> tuple[str, dict[str, Any]]:
    settings: dict[str, Any] = {"style": w["style"], "height": w["weight"]}
    if w["color"]:
        settings["color"] = {"hex": w["color"]}
    return "divider", settings


def _spacer(w: Widget) -> tuple[str, dict[str, Any]]:
    return "div", {"_height": f"{w['height']}px"}


def _code(w: Widget) -> tuple[str, dict[str, Any]]:
    return "code", {"code": w["html"], "executeCode": True}


ELEMENTS = check_renderers(
    {
        WidgetKind.HEADING: _heading,
        WidgetKind.TEXT: _text,
        WidgetKind.IMAGE: _image,
        WidgetKind.BUTTON: _button,
        WidgetKind.ICON_BOX: _icon_box,
        WidgetKind.TESTIMONIAL: _testimonial,
        WidgetKind.COUNTER: _counter,
        WidgetKind.VIDEO: _video,
        WidgetKind.LIST: _list,
        WidgetKind.QUOTE: _rich,
        WidgetKind.DIVIDER: _divider,
        WidgetKind.SPACER: _spacer,
        WidgetKind.HTML: _code,
    }
)


def _section_settings(section: Section) -> dict[str, Any]:
    s = section.settings
    settings: dict[str, Any] = {}
    background: dict[str, Any] = {}
    if s.background_color:
        background["color"] = {"hex": s.background_color}
    if s.background_image:
        background["image"] = {"url": s.background_image, "external": True}
    if background:
        settings["_background"] = background
    if not s.padding.is_zero():
        unit = s.padding.unit
        settings["_padding"] = {
            side: f"{getattr(s.padding, side):g}{unit}" for side in ("top", "right", "bottom", "left")
        }
    if s.css_class:
        settings["_cssClasses"] = s.css_class
    return settings


def _clean(settings: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in settings.items() if v not in ("", None, {}, [])}


def build_elements(document: Document, ctx: BuildContext) -> list[dict[str, Any]]:
    """Flatten the document into Bricks' parent/children element list."""

    elements: list[dict[str, Any]] = []

    def add(name: str, parent: str | int, settings: dict[str, Any]) -> dict[str, Any]:
        element = {
            "id": ctx.ids.next_id()[-6:],
            "name": name,
            "parent": parent,
            "children": [],
            "settings": _clean(settings),
        }
        elements.append(element)
        return element

    for section in document.sections:
        sec = add("section", 0, _section_settings(section))
        container = add("container", sec["id"], {"_direction": "row"} if len(section.columns) > 1 else {})
        sec["children"].append(container["id"])
        for column in section.columns:
            parent = container
            if len(section.columns) > 1:
                parent = add("block", container["id"], {"_width": f"{column.size_percent}%"})
                container["children"].append(parent["id"])
            for w in column.widgets:
                name, settings = ELEMENTS[w.kind](w)
                child = add(name, parent["id"], settings)
                parent["children"].append(child["id"])
    return elements


class BricksBuilder(Builder):
    builder_id = "bricks"
    display_name = "Bricks"
    folder = "bricks-template"

    def generate(self, document: Document, ctx: BuildContext) -> BuildOutput:
        base = self.folder
        elements = build_elements(document, ctx)
        template = {
            "title": document.title,
            "templateType": "content",
            "version": BRICKS_VERSION,
            "content": elements,
            "pageSettings": [],
            "templateSettings": [],
        }
        files = [
            GeneratedFile.text(
                f"{base}/template.json",
                json.dumps(template, indent=2, ensure_ascii=False),
                FileGroup.TEMPLATE,
            ),
        ]
        files += self.asset_files(ctx, base)
        files.append(
            self.readme(
                base,
                f"{document.title} - Bricks template",
                "Import `template.json` from Bricks > Templates > Import, then insert "
                "it on a page with the Template element or apply it directly.",
            )
        )
        return BuildOutput(
            files=tuple(files), metadata=self.metadata(document, format="json", elements=len(elements))
        )
