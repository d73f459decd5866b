from __future__ import annotations

from typing import Any

from ..artifact import FileGroup, GeneratedFile
from ..ir import Document, Section, Widget, WidgetKind
from .base import BuildContext, Builder, BuildOutput, check_renderers, widget_html
from .syntax import escape_shortcode_content, php_serialize, shortcode


def _heading(w: Widget) -> tuple[str, dict[str, Any]]:
    return "heading", {
        "heading": w["text"],
        "tag": f"h{w['level']}",
        "alignment": w["align"],
        "color": w["color"].lstrip("#"),
    }


def _rich_text(w: Widget) -> tuple[str, dict[str, Any]]:
    return "rich-text", {"text": widget_html(w)}


def _photo(w: Widget) -> tuple[str, dict[str, Any]]:
    return "photo", {
        "photo_source": "url",
        "photo_url": w["src"],
        "alt": w["alt"],
        "align": w["align"],
        "link_type": "url" if w["link"] else "",
        "link_url": w["link"],
    }


def _button(w: Widget) -> tuple[str, dict[str, Any]]:
    return "button", {
        "text": w["text"],
        "link": w["url"],
        "align": w["align"],
        "bg_color": w["background_color"].lstrip("#"),
        "text_color": w["text_color"].lstrip("#"),
    }


def _callout(w: Widget) -> tuple[str, dict[str, Any]]:
    return "callout", {
        "title": w["title"],
        "text": w["description"],
        "image_type": "icon",
        "icon": w["icon"],
        "icon_color": w["color"].lstrip("#"),
    }


def _testimonial(w: Widget) -> tuple[str, dict[str, Any]]:
    return "testimonials", {"testimonials": [{"testimonial": widget_html(w)}]}


def _counter(w: Widget) -> tuple[str, dict[str, Any]]:
    return "number-counter", {
        "number": w["number"],
        "number_type": "percent" if w["suffix"] == "%" else "standard",
        "after_number_text": w["title"],
        "number_suffix": "" if w["suffix"] == "%" else w["suffix"],
    }


def _video(w: Widget) -> tuple[str, dict[str, Any]]:
    if w["provider"] == "hosted":
        return "video", {"video_type": "media_library", "video_url": w["url"]}
    return "video", {"video_type": "embed", "embed_code": widget_html(w)}


def _separator(w: Widget) -> tuple[str, dict[str, Any]]:
    return "separator", {"style": w["style"], "height": w["weight"], "color": w["color"].lstrip("#")}


def _spacer(w: Widget) -> tuple[str, dict[str, Any]]:
    return "separator", {"style": "none", "height": w["height"]}


def _html(w: Widget) -> tuple[str, dict[str, Any]]:
    return "html", {"html": w["html"]}


MODULES = check_renderers(
    {
        WidgetKind.HEADING: _heading,
        WidgetKind.TEXT: _rich_text,
        WidgetKind.IMAGE: _photo,
        WidgetKind.BUTTON: _button,
        WidgetKind.ICON_BOX: _callout,
        WidgetKind.TESTIMONIAL: _testimonial,
        WidgetKind.COUNTER: _counter,
        WidgetKind.VIDEO: _video,
        WidgetKind.LIST: _rich_text,
        WidgetKind.QUOTE: _rich_text,
        WidgetKind.DIVIDER: _separator,
        WidgetKind.SPACER: _spacer,
        WidgetKind.HTML: _html,
    }
)


def _row_settings(section: Section) -> dict[str, Any]:
    s = section.settings
    settings: dict[str, Any] = {"width": "fixed", "content_width": "fixed"}
    if s.background_color:
        settings["bg_type"] = "color"
        settings["bg_color"] = s.background_color.lstrip("#")
    if s.background_image:
        settings["bg_type"] = "photo"
        settings["bg_image_src"] = s.background_image
    if not s.padding.is_zero():
        settings.update(
            padding_top=s.padding.top,
            padding_right=s.padding.right,
            padding_bottom=s.padding.bottom,
            padding_left=s.padding.left,
            padding_unit=s.padding.unit,
        )
    if s.css_class:
        settings["class"] = s.css_class
    return settings


def _clean(settings: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in settings.items() if v not in ("", None, [])}


def render_shortcodes(document: Document) -> str:
    rows = []
    for section in document.sections:
        cols = []
        for column in section.columns:
            modules = []
            for w in column.widgets:
                module_type, settings = MODULES[w.kind](w)
                text = settings.pop("text", None) if module_type == "rich-text" else None
                content = escape_shortcode_content(text) if text is not None else None
                modules.append(shortcode("fl_module", {"type": module_type, **_clean(settings)}, content))
            cols.append(shortcode("fl_col", {"size": column.size_percent}, "".join(modules)))
        rows.append(shortcode("fl_row", _clean(_row_settings(section)), "".join(cols)))
    return "\n".join(rows) + "\n"


def build_nodes(document: Document, ctx: BuildContext) -> dict[str, dict[str, Any]]:
    """Flat ``node id -> node`` map in the layout data format."""

    nodes: dict[str, dict[str, Any]] = {}

    def add(node_type: str, parent: str | None, position: int, settings: dict[str, Any]) -> str:
        node_id = ctx.ids.next_id()
        nodes[node_id] = {
            "node": node_id,
            "type": node_type,
            "parent": parent,
            "position": position,
            "settings": settings,
        }
        return node_id

    for row_pos, section in enumerate(document.sections):
        row = add("row", None, row_pos, _clean(_row_settings(section)))
        group = add("column-group", row, 0, {})
        for col_pos, column in enumerate(section.columns):
            col = add("column", group, col_pos, {"size": column.size_percent})
            for mod_pos, w in enumerate(column.widgets):
                module_type, settings = MODULES[w.kind](w)
                add("module", col, mod_pos, {"type": module_type, **_clean(settings)})
    return nodes


class BeaverBuilder(Builder):
    builder_id = "beaver-builder"
    display_name = "Beaver Builder"
    folder = "beaver-builder-layout"

    def generate(self, document: Document, ctx: BuildContext) -> BuildOutput:
        base = self.folder
        nodes = build_nodes(document, ctx)
        files = [
            GeneratedFile.text(f"{base}/layout.txt", render_shortcodes(document), FileGroup.TEMPLATE),
            GeneratedFile.text(f"{base}/layout.dat", php_serialize(nodes), FileGroup.TEMPLATE),
        ]
        files += self.asset_files(ctx, base)
        files.append(
            self.readme(
                base,
                f"{document.title} - Beaver Builder layout",
                "`layout.dat` holds the serialized node map Beaver Builder stores "
                "in `_fl_builder_data`; import it with Tools > Import or a template "
                "exporter. `layout.txt` is the same layout as shortcodes for manual "
                "rebuilding.",
            )
        )
        return BuildOutput(
            files=tuple(files), metadata=self.metadata(document, format="shortcode", nodes=len(nodes))
        )
