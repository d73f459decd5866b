from __future__ import annotations

import json

from ..artifact import FileGroup, GeneratedFile
from ..ir import Column, Document, Section, Widget, WidgetKind
from .base import BuildContext, Builder, BuildOutput, check_renderers, esc, widget_html
from .syntax import escape_shortcode_content, shortcode

BUILDER_VERSION = "4.16"

# Column width (percent) -> Divi column type.
COLUMN_TYPES = {100: "4_4", 50: "1_2", 33: "1_3", 25: "1_4", 20: "1_5", 16: "1_6"}


def column_type(size_percent: int) -> str:
    if size_percent in COLUMN_TYPES:
        return COLUMN_TYPES[size_percent]
    nearest = min(COLUMN_TYPES, key=lambda s: abs(s - size_percent))
    return COLUMN_TYPES[nearest]


def _common(**attrs: object) -> dict[str, object]:
    return {"_builder_version": BUILDER_VERSION, **attrs}


def _text_module(html: str, align: str = "left", color: str = "") -> str:
    attrs = _common(text_orientation=align if align != "left" else "", text_text_color=color)
    return shortcode("et_pb_text", attrs, escape_shortcode_content(html))


def _heading(w: Widget) -> str:
    level = w["level"]
    return _text_module(f"<h{level}>{w['html']}</h{level}>", w["align"], w["color"])


def _text(w: Widget) -> str:
    return _text_module(f"<p>{w['html']}</p>", w["align"], w["color"])


def _image(w: Widget) -> str:
    attrs = _common(src=w["src"], alt=w["alt"], url=w["link"], align=w["align"] if w["align"] != "left" else "")
    return shortcode("et_pb_image", attrs)


def _button(w: Widget) -> str:
    attrs = _common(
        button_url=w["url"],
        button_text=w["text"],
        button_alignment=w["align"] if w["align"] != "left" else "",
        custom_button="on" if w["background_color"] or w["text_color"] else "",
        button_bg_color=w["background_color"],
        button_text_color=w["text_color"],
    )
    return shortcode("et_pb_button", attrs)


def _blurb(w: Widget) -> str:
    attrs = _common(title=w["title"], use_icon="on", font_icon=w["icon"], icon_color=w["color"])
    return shortcode("et_pb_blurb", attrs, escape_shortcode_content(f"<p>{esc(w['description'])}</p>"))


def _testimonial(w: Widget) -> str:
    attrs = _common(author=w["name"], job_title=w["job"], portrait_url=w["image"])
    return shortcode("et_pb_testimonial", attrs, escape_shortcode_content(f"<p>{esc(w['content'])}</p>"))


def _counter(w: Widget) -> str:
    return shortcode(
        "et_pb_number_counter",
        _common(title=w["title"], number=w["number"], percent_sign="on" if w["suffix"] == "%" else "off"),
    )


def _video(w: Widget) -> str:
    return shortcode("et_pb_video", _common(src=w["url"]))


def _list(w: Widget) -> str:
    return _text_module(widget_html(w))


def _quote(w: Widget) -> str:
    return _text_module(widget_html(w))


def _divider(w: Widget) -> str:
    return shortcode(
        "et_pb_divider",
        _common(show_divider="on", color=w["color"], divider_weight=f"{w['weight']}px"),
    )


def _spacer(w: Widget) -> str:
    return shortcode("et_pb_divider", _common(show_divider="off", height=f"{w['height']}px"))


def _code(w: Widget) -> str:
    return shortcode("et_pb_code", _common(), escape_shortcode_content(w["html"]))


MODULES = check_renderers(
    {
        WidgetKind.HEADING: _heading,
        WidgetKind.TEXT: _text,
        WidgetKind.IMAGE: _image,
        WidgetKind.BUTTON: _button,
        WidgetKind.ICON_BOX: _blurb,
        WidgetKind.TESTIMONIAL: _testimonial,
        WidgetKind.COUNTER: _counter,
        WidgetKind.VIDEO: _video,
        WidgetKind.LIST: _list,
        WidgetKind.QUOTE: _quote,
        WidgetKind.DIVIDER: _divider,
        WidgetKind.SPACER: _spacer,
        WidgetKind.HTML: _code,
    }
)


def _column(column: Column) -> str:
    body = "".join(MODULES[w.kind](w) for w in column.widgets)
    return shortcode("et_pb_column", _common(type=column_type(column.size_percent)), body)


def render_section(section: Section) -> str:
    s = section.settings
    row = shortcode("et_pb_row", _common(), "".join(_column(c) for c in section.columns))
    attrs = {
        "fb_built": "1",
        **_common(
            background_color=s.background_color,
            background_image=s.background_image,
            custom_padding="" if s.padding.is_zero() else "|".join(
                f"{v:g}{s.padding.unit}" for v in (s.padding.top, s.padding.right, s.padding.bottom, s.padding.left)
            ),
        ),
    }
    return shortcode("et_pb_section", attrs, row)


def render_layout(document: Document) -> str:
    return "".join(render_section(s) for s in document.sections)


class DiviBuilder(Builder):
    builder_id = "divi"
    display_name = "Divi Builder"
    folder = "divi-layout"

    def generate(self, document: Document, ctx: BuildContext) -> BuildOutput:
        base = self.folder
        layout = render_layout(document)
        library = {
            "context": "et_builder",
            "data": {"1": layout},
            "presets": [],
            "global_colors": [],
            "images": [],
            "thumbnails": [],
        }
        files = [
            GeneratedFile.text(f"{base}/divi-layout.txt", layout, FileGroup.TEMPLATE),
            GeneratedFile.text(
                f"{base}/divi-export.json",
                json.dumps(library, indent=2, ensure_ascii=False),
                FileGroup.TEMPLATE,
            ),
            GeneratedFile.text(
                f"{base}/IMPORT_INSTRUCTIONS.md",
                "# Importing into Divi\n\n"
                "1. Go to Divi > Divi Library > Import & Export.\n"
                "2. Import `divi-export.json`.\n"
                "3. Or open a page in the Divi Builder, switch to the text editor "
                "and paste the contents of `divi-layout.txt`.\n",
                FileGroup.DOC,
            ),
        ]
        files += self.asset_files(ctx, base)
        files.append(
            self.readme(
                base,
                f"{document.title} - Divi layout",
                "Shortcode layout for the Divi Builder. Custom CSS from `assets/css/` "
                "can be pasted into Divi > Theme Options > Custom CSS.",
            )
        )
        return BuildOutput(files=tuple(files), metadata=self.metadata(document, format="shortcode"))
