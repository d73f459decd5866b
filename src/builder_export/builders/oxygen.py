from __future__ import annotations

import itertools
import json
from typing import Any, Iterator

from ..artifact import FileGroup, GeneratedFile
from ..ir import Document, Section, Widget, WidgetKind
from .base import BuildContext, Builder, BuildOutput, check_renderers, video_embed_url, widget_html


def _text_options(w: Widget) -> dict[str, Any]:
    original: dict[str, Any] = {}
    if w["align"] != "left":
        original["text-align"] = w["align"]
    if w["color"]:
        original["color"] = w["color"]
    return original


def _heading(w: Widget) -> tuple[str, dict[str, Any], str]:
    original = _text_options(w)
    original["tag"] = f"h{w['level']}"
    return "ct_headline", original, w["html"]


def _text(w: Widget) -> tuple[str, dict[str, Any], str]:
    return "ct_text_block", _text_options(w), w["html"]


def _image(w: Widget) -> tuple[str, dict[str, Any], str]:
    return "ct_image", {"src": w["src"], "alt": w["alt"], "image_type": 2}, ""


def _button(w: Widget) -> tuple[str, dict[str, Any], str]:
    original: dict[str, Any] = {"url": w["url"]}
    if w["background_color"]:
        original["button-color"] = w["background_color"]
    if w["text_color"]:
        original["button-text-color"] = w["text_color"]
    return "ct_link_button", original, w["text"]


def _video(w: Widget) -> tuple[str, dict[str, Any], str]:
    return "ct_video", {"src": video_embed_url(w["url"], w["provider"]), "embed_src": w["url"]}, ""


def _rich(w: Widget) -> tuple[str, dict[str, Any], str]:
    return "ct_text_block", {}, widget_html(w)


def _spacer(w: Widget) -> tuple[str, dict[str, Any], str]:
    return "ct_div_block", {"height": str(w["height"]), "height-unit": "px"}, ""


def _divider(w: Widget) -> tuple[str, dict[str, Any], str]:
    original: dict[str, Any] = {"height": str(w["weight"]), "height-unit": "px", "width": "100", "width-unit": "%"}
    original["background-color"] = w["color"] or "#DDDDDD"
    return "ct_div_block", original, ""


def _code(w: Widget) -> tuple[str, dict[str, Any], str]:
    return "ct_code_block", {"code-php": w["html"]}, ""


ELEMENTS = check_renderers(
    {
        WidgetKind.HEADING: _heading,
        WidgetKind.TEXT: _text,
        WidgetKind.IMAGE: _image,
        WidgetKind.BUTTON: _button,
        WidgetKind.ICON_BOX: _rich,
        WidgetKind.TESTIMONIAL: _rich,
        WidgetKind.COUNTER: _rich,
        WidgetKind.VIDEO: _video,
        WidgetKind.LIST: _rich,
        WidgetKind.QUOTE: _rich,
        WidgetKind.DIVIDER: _divider,
        WidgetKind.SPACER: _spacer,
        WidgetKind.HTML: _code,
    }
)


def _node(
    counter: Iterator[int], name: str, parent: int, depth: int, original: dict[str, Any], text: str = ""
) -> dict[str, Any]:
    node_id = next(counter)
    slug = name.removeprefix("ct_").replace("_", "-")
    options: dict[str, Any] = {
        "ct_id": node_id,
        "ct_parent": parent,
        "selector": f"{slug}-{node_id}-100",
        "nicename": f"{slug.replace('-', ' ').title()} (#{node_id})",
        "original": {k: v for k, v in original.items() if v not in ("", None)},
    }
    if text:
        options["ct_content"] = text
    return {"id": node_id, "name": name, "options": options, "depth": depth, "children": []}


def _section_original(section: Section) -> dict[str, Any]:
    s = section.settings
    original: dict[str, Any] = {}
    if s.background_color:
        original["background-color"] = s.background_color
    if s.background_image:
        original["background-image"] = s.background_image
    if not s.padding.is_zero():
        for side in ("top", "right", "bottom", "left"):
            original[f"section-padding-{side}"] = f"{getattr(s.padding, side):g}"
            original[f"section-padding-{side}-unit"] = s.padding.unit
    if s.css_class:
        original["classes"] = s.css_class
    return original


def build_tree(document: Document) -> dict[str, Any]:
    """Oxygen's ``ct_builder_json`` tree with ids counting up from 1."""

    counter = itertools.count(1)
    root: dict[str, Any] = {"id": 0, "name": "root", "depth": 0, "children": []}
    for section in document.sections:
        sec = _node(counter, "ct_section", 0, 1, _section_original(section))
        root["children"].append(sec)
        multi = len(section.columns) > 1
        row = sec
        if multi:
            row = _node(counter, "ct_div_block", sec["id"], 2, {"display": "flex", "flex-direction": "row"})
            sec["children"].append(row)
        for column in section.columns:
            holder = row
            if multi:
                holder = _node(
                    counter, "ct_div_block", row["id"], 3, {"width": str(column.size_percent), "width-unit": "%"}
                )
                row["children"].append(holder)
            for w in column.widgets:
                name, original, text = ELEMENTS[w.kind](w)
                holder["children"].append(_node(counter, name, holder["id"], holder["depth"] + 1, original, text))
    return root


def _count(node: dict[str, Any]) -> int:
    return sum(1 + _count(child) for child in node["children"])


class OxygenBuilder(Builder):
    builder_id = "oxygen"
    display_name = "Oxygen"
    folder = "oxygen-template"

    def generate(self, document: Document, ctx: BuildContext) -> BuildOutput:
        base = self.folder
        tree = build_tree(document)
        files = [
            GeneratedFile.text(
                f"{base}/template.json", json.dumps(tree, indent=2, ensure_ascii=False), FileGroup.TEMPLATE
            ),
        ]
        files += self.asset_files(ctx, base)
        files.append(
            self.readme(
                base,
                f"{document.title} - Oxygen template",
                "Create a template under Oxygen > Templates, open it in the builder "
                "and use Manage > Import to load `template.json`.",
            )
        )
        return BuildOutput(
            files=tuple(files), metadata=self.metadata(document, format="json", elements=_count(tree))
        )
