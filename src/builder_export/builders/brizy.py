from __future__ import annotations

import json
from typing import Any

from ..artifact import FileGroup, GeneratedFile
from ..ir import Document, Section, Widget, WidgetKind
from .base import BuildContext, Builder, BuildOutput, check_renderers, widget_html

# Brizy stores colors as hex without "#" plus an opacity.


def _hex(color: str) -> str:
    return color.lstrip("#").lower()


def _rich_text(w: Widget) -> tuple[str, dict[str, Any]]:
    return "RichText", {"text": widget_html(w)}


def _image(w: Widget) -> tuple[str, dict[str, Any]]:
    value: dict[str, Any] = {"imageSrc": w["src"], "alt": w["alt"], "sizeType": "original"}
    if w["width"]:
        value["width"] = w["width"]
    if w["link"]:
        value.update(linkType="external", linkExternal=w["link"])
    return "Image", value


def _button(w: Widget) -> tuple[str, dict[str, Any]]:
    value: dict[str, Any] = {"text": w["text"], "linkType": "external", "linkExternal": w["url"]}
    if w["background_color"]:
        value.update(bgColorHex=_hex(w["background_color"]), bgColorOpacity=1)
    if w["text_color"]:
        value.update(colorHex=_hex(w["text_color"]), colorOpacity=1)
    return "Button", value


def _counter(w: Widget) -> tuple[str, dict[str, Any]]:
    return "Counter", {"start": 0, "end": w["number"], "suffix": w["suffix"], "title": w["title"]}


def _video(w: Widget) -> tuple[str, dict[str, Any]]:
    provider = w["provider"] if w["provider"] in ("youtube", "vimeo") else "custom"
    return "Video", {"type": provider, "video": w["url"]}


def _line(w: Widget) -> tuple[str, dict[str, Any]]:
    value: dict[str, Any] = {"style": w["style"], "borderWidth": w["weight"]}
    if w["color"]:
        value.update(borderColorHex=_hex(w["color"]), borderColorOpacity=1)
    return "Line", value


def _spacer(w: Widget) -> tuple[str, dict[str, Any]]:
    return "Spacer", {"height": w["height"], "heightSuffix": "px"}


def _embed(w: Widget) -> tuple[str, dict[str, Any]]:
    return "EmbedCode", {"code": w["html"]}


ELEMENTS = check_renderers(
    {
        WidgetKind.HEADING: _rich_text,
        WidgetKind.TEXT: _rich_text,
        WidgetKind.IMAGE: _image,
        WidgetKind.BUTTON: _button,
        WidgetKind.ICON_BOX: _rich_text,
        WidgetKind.TESTIMONIAL: _rich_text,
        WidgetKind.COUNTER: _counter,
        WidgetKind.VIDEO: _video,
        WidgetKind.LIST: _rich_text,
        WidgetKind.QUOTE: _rich_text,
        WidgetKind.DIVIDER: _line,
        WidgetKind.SPACER: _spacer,
        WidgetKind.HTML: _embed,
    }
)


class _Tree:
    def __init__(self, ctx: BuildContext) -> None:
        self.ids = ctx.ids

    def item(self, type_: str, value: dict[str, Any], items: list[dict[str, Any]] | None = None) -> dict[str, Any]:
        value = {"_id": self.ids.next_id(), **value}
        if items is not None:
            value["items"] = items
        return {"type": type_, "value": value}

    def widget(self, w: Widget) -> dict[str, Any]:
        type_, value = ELEMENTS[w.kind](w)
        return self.item("Wrapper", {}, [self.item(type_, value)])

    def section(self, section: Section) -> dict[str, Any]:
        s = section.settings
        style: dict[str, Any] = {}
        if s.background_color:
            style.update(bgColorHex=_hex(s.background_color), bgColorOpacity=1)
        if s.background_image:
            style["bgImageSrc"] = s.background_image
        if not s.padding.is_zero():
            style.update(
                paddingType="ungrouped",
                paddingTop=s.padding.top,
                paddingRight=s.padding.right,
                paddingBottom=s.padding.bottom,
                paddingLeft=s.padding.left,
                paddingSuffix=s.padding.unit,
            )
        columns = [
            self.item("Column", {"width": c.size_percent}, [self.widget(w) for w in c.widgets])
            for c in section.columns
        ]
        row = self.item("Row", {}, columns)
        return self.item("Section", {}, [self.item("SectionItem", style, [row])])


def build_page(document: Document, ctx: BuildContext) -> dict[str, Any]:
    tree = _Tree(ctx)
    return {"title": document.title, "items": [tree.section(s) for s in document.sections]}


class BrizyBuilder(Builder):
    builder_id = "brizy"
    display_name = "Brizy"
    folder = "brizy-template"

    def generate(self, document: Document, ctx: BuildContext) -> BuildOutput:
        base = self.folder
        page = build_page(document, ctx)
        files = [
            GeneratedFile.text(
                f"{base}/template.json", json.dumps(page, indent=2, ensure_ascii=False), FileGroup.TEMPLATE
            ),
        ]
        files += self.asset_files(ctx, base)
        files.append(
            self.readme(
                base,
                f"{document.title} - Brizy template",
                "Open a page with Brizy, choose Templates > Import and select `template.json`.",
            )
        )
        return BuildOutput(files=tuple(files), metadata=self.metadata(document, format="json"))
