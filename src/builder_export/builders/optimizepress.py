from __future__ import annotations

import json
import re

from ..artifact import FileGroup, GeneratedFile
from ..ir import Column, Document, Section, Widget, WidgetKind
from .base import BuildContext, Builder, BuildOutput, check_renderers, widget_html
from .syntax import escape_shortcode_content, shortcode

ELEMENT_RE = re.compile(r"\[op_(?!row\b|col\b)[a-z_]+")


def _text_html(html: str, align: str = "", color: str = "") -> str:
    return shortcode("op_text", {"align": align, "color": color}, escape_shortcode_content(html))


def _heading(w: Widget) -> str:
    return shortcode(
        "op_heading",
        {"tag": f"h{w['level']}", "align": w["align"], "color": w["color"]},
        escape_shortcode_content(w["html"]),
    )


def _text(w: Widget) -> str:
    return _text_html(w["html"], w["align"], w["color"])


def _image(w: Widget) -> str:
    return shortcode(
        "op_image", {"src": w["src"], "alt": w["alt"], "align": w["align"], "link": w["link"]}
    )


def _button(w: Widget) -> str:
    return shortcode(
        "op_button",
        {
            "url": w["url"],
            "text": w["text"],
            "align": w["align"],
            "bg_color": w["background_color"],
            "text_color": w["text_color"],
        },
    )


def _video(w: Widget) -> str:
    return shortcode("op_video", {"url": w["url"], "type": w["provider"]})


def _as_html(w: Widget) -> str:
    return _text_html(widget_html(w))


def _divider(w: Widget) -> str:
    return shortcode("op_divider", {"style": w["style"], "height": w["weight"], "color": w["color"]})


def _spacer(w: Widget) -> str:
    return shortcode("op_spacer", {"height": w["height"]})


def _custom_html(w: Widget) -> str:
    return shortcode("op_custom_html", None, escape_shortcode_content(w["html"]))


ELEMENTS = check_renderers(
    {
        WidgetKind.HEADING: _heading,
        WidgetKind.TEXT: _text,
        WidgetKind.IMAGE: _image,
        WidgetKind.BUTTON: _button,
        WidgetKind.ICON_BOX: _as_html,
        WidgetKind.TESTIMONIAL: _as_html,
        WidgetKind.COUNTER: _as_html,
        WidgetKind.VIDEO: _video,
        WidgetKind.LIST: _as_html,
        WidgetKind.QUOTE: _as_html,
        WidgetKind.DIVIDER: _divider,
        WidgetKind.SPACER: _spacer,
        WidgetKind.HTML: _custom_html,
    }
)


def _column(column: Column) -> str:
    body = "\n".join(ELEMENTS[w.kind](w) for w in column.widgets)
    return shortcode("op_col", {"width": f"{column.size_percent}%"}, f"\n{body}\n")


def render_row(section: Section) -> str:
    s = section.settings
    attrs = {
        "bg_color": s.background_color,
        "bg_image": s.background_image,
        "padding": "" if s.padding.is_zero() else s.padding.css(),
        "class": s.css_class,
    }
    cols = "\n".join(_column(c) for c in section.columns)
    return shortcode("op_row", attrs, f"\n{cols}\n")


def render_layout(document: Document) -> str:
    return "\n\n".join(render_row(s) for s in document.sections) + "\n"


def count_elements(layout: str) -> int:
    return len(ELEMENT_RE.findall(layout))


class OptimizePressBuilder(Builder):
    builder_id = "optimizepress"
    display_name = "OptimizePress"
    folder = "optimizepress-template"

    def generate(self, document: Document, ctx: BuildContext) -> BuildOutput:
        base = self.folder
        layout = render_layout(document)
        template = {
            "name": document.title,
            "type": "page",
            "format": "shortcode",
            "rows": len(document.sections),
            "content": layout,
        }
        files = [
            GeneratedFile.text(f"{base}/template.txt", layout, FileGroup.TEMPLATE),
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
                f"{document.title} - OptimizePress template",
                "Import `template.json` from OptimizePress > Templates, or paste "
                "`template.txt` into a page edited with the OptimizePress builder.",
            )
        )
        return BuildOutput(
            files=tuple(files),
            metadata=self.metadata(document, format="shortcode", elements=count_elements(layout)),
        )
