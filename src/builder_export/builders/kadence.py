from __future__ import annotations

from typing import Any

from ..artifact import FileGroup, GeneratedFile
from ..ir import Document, Section, Widget, WidgetKind
from ..urls import safe_filename_piece
from .base import BuildContext, Builder, BuildOutput, check_renderers, esc, widget_html
from .gutenberg import BLOCKS as CORE_BLOCKS
from .syntax import serialize_block


class _Renderer:
    """Per-call unique ids; Kadence keys styles on ``uniqueID``."""

    def __init__(self, ctx: BuildContext) -> None:
        self.ctx = ctx

    def uid(self) -> str:
        return f"_{self.ctx.ids.next_id()}"

    def heading(self, w: Widget) -> str:
        uid = self.uid()
        attrs: dict[str, Any] = {"uniqueID": uid, "level": w["level"]}
        if w["align"] != "left":
            attrs["align"] = w["align"]
        if w["color"]:
            attrs["color"] = w["color"]
        tag = f"h{w['level']}"
        inner = (
            f'<{tag} class="kt-adv-heading{uid} wp-block-kadence-advancedheading" '
            f'data-kb-block="kb-adv-heading{uid}">{w["html"]}</{tag}>'
        )
        return serialize_block("kadence/advancedheading", attrs, inner)

    def image(self, w: Widget) -> str:
        uid = self.uid()
        attrs: dict[str, Any] = {"uniqueID": uid}
        if w["align"] != "left":
            attrs["align"] = w["align"]
        img = f'<img src="{esc(w["src"])}" alt="{esc(w["alt"])}" class="kb-img"/>'
        if w["link"]:
            attrs["link"] = w["link"]
            img = f'<a href="{esc(w["link"])}">{img}</a>'
        inner = f'<figure class="wp-block-kadence-image kb-image{uid}">{img}</figure>'
        return serialize_block("kadence/image", attrs, inner)

    def button(self, w: Widget) -> str:
        uid = self.uid()
        btn_attrs: dict[str, Any] = {"uniqueID": f"{uid}-0", "text": w["text"], "link": w["url"]}
        if w["background_color"]:
            btn_attrs["background"] = w["background_color"]
        if w["text_color"]:
            btn_attrs["color"] = w["text_color"]
        single = serialize_block("kadence/singlebtn", btn_attrs, None)
        attrs: dict[str, Any] = {"uniqueID": uid}
        if w["align"] != "left":
            attrs["hAlign"] = w["align"]
        inner = f'<div class="wp-block-kadence-advancedbtn kb-buttons-wrap kb-btns{uid}">{single}</div>'
        return serialize_block("kadence/advancedbtn", attrs, inner)

    def infobox(self, w: Widget) -> str:
        uid = self.uid()
        attrs = {
            "uniqueID": uid,
            "title": w["title"],
            "contentText": w["description"],
            "mediaIcon": [{"icon": w["icon"]}],
        }
        inner = (
            f'<div class="wp-block-kadence-infobox kt-info-box{uid}">'
            f'<div class="kt-blocks-info-box-text-wrap"><h3 class="kt-blocks-info-box-title">'
            f'{esc(w["title"])}</h3><p class="kt-blocks-info-box-text">{esc(w["description"])}</p>'
            "</div></div>"
        )
        return serialize_block("kadence/infobox", attrs, inner)

    def testimonial(self, w: Widget) -> str:
        uid = self.uid()
        item = {"content": w["content"], "title": w["name"], "occupation": w["job"], "url": w["image"]}
        inner = (
            f'<div class="wp-block-kadence-testimonials kt-testimonial{uid}">'
            f'<div class="kt-testimonial-content">{esc(w["content"])}</div>'
            f'<div class="kt-testimonial-name">{esc(w["name"])}</div></div>'
        )
        return serialize_block("kadence/testimonials", {"uniqueID": uid, "testimonials": [item]}, inner)

    def counter(self, w: Widget) -> str:
        uid = self.uid()
        attrs = {"uniqueID": uid, "start": 0, "end": w["number"], "suffix": w["suffix"], "title": w["title"]}
        return serialize_block("kadence/countup", attrs, None)

    def spacer(self, w: Widget) -> str:
        attrs = {"uniqueID": self.uid(), "spacerHeight": w["height"], "dividerEnable": False}
        return serialize_block("kadence/spacer", attrs, None)

    def divider(self, w: Widget) -> str:
        attrs: dict[str, Any] = {"uniqueID": self.uid(), "spacerHeight": 20, "dividerHeight": w["weight"]}
        if w["color"]:
            attrs["dividerColor"] = w["color"]
        return serialize_block("kadence/spacer", attrs, None)

    def icon_list(self, w: Widget) -> str:
        uid = self.uid()
        items = "".join(
            serialize_block("kadence/listitem", {"uniqueID": f"{uid}-{i}", "text": text}, None)
            for i, text in enumerate(w["items"])
        )
        inner = f'<div class="wp-block-kadence-iconlist kt-svg-icon-list-items{uid}"><ul>{items}</ul></div>'
        return serialize_block("kadence/iconlist", {"uniqueID": uid}, inner)

    def core(self, w: Widget) -> str:
        return CORE_BLOCKS[w.kind](w)

    def table(self):
        return check_renderers(
            {
                WidgetKind.HEADING: self.heading,
                WidgetKind.TEXT: self.core,
                WidgetKind.IMAGE: self.image,
                WidgetKind.BUTTON: self.button,
                WidgetKind.ICON_BOX: self.infobox,
                WidgetKind.TESTIMONIAL: self.testimonial,
                WidgetKind.COUNTER: self.counter,
                WidgetKind.VIDEO: self.core,
                WidgetKind.LIST: self.icon_list,
                WidgetKind.QUOTE: self.core,
                WidgetKind.DIVIDER: self.divider,
                WidgetKind.SPACER: self.spacer,
                WidgetKind.HTML: self.core,
            }
        )

    def section(self, section: Section) -> str:
        table = self.table()
        uid = self.uid()
        s = section.settings
        row_attrs: dict[str, Any] = {
            "uniqueID": uid,
            "columns": len(section.columns),
            "colLayout": "equal" if len(section.columns) > 1 else "row",
        }
        if s.background_color:
            row_attrs["bgColor"] = s.background_color
        if s.background_image:
            row_attrs["bgImg"] = s.background_image
        if not s.padding.is_zero():
            row_attrs["padding"] = [s.padding.top, s.padding.right, s.padding.bottom, s.padding.left]

        cols = []
        for i, column in enumerate(section.columns, start=1):
            col_uid = self.uid()
            body = "\n\n".join(table[w.kind](w) for w in column.widgets)
            cols.append(
                serialize_block(
                    "kadence/column",
                    {"id": i, "uniqueID": col_uid},
                    f'<div class="wp-block-kadence-column kadence-column{col_uid}">'
                    f'<div class="kt-inside-inner-col">\n{body}\n</div></div>',
                )
            )
        return serialize_block("kadence/rowlayout", row_attrs, "\n".join(cols))


class KadenceBuilder(Builder):
    builder_id = "kadence"
    display_name = "Kadence Blocks"
    folder = "kadence-blocks"

    def generate(self, document: Document, ctx: BuildContext) -> BuildOutput:
        base = self.folder
        renderer = _Renderer(ctx)
        content = "\n\n".join(renderer.section(s) for s in document.sections) + "\n"
        slug = safe_filename_piece(document.title).lower()
        files = [
            GeneratedFile.text(f"{base}/blocks.html", content, FileGroup.MARKUP),
            GeneratedFile.text(
                f"{base}/{slug}-preview.html",
                "\n".join(widget_html(w) for w in document.iter_widgets()) + "\n",
                FileGroup.DOC,
            ),
        ]
        files += self.asset_files(ctx, base)
        files.append(
            self.readme(
                base,
                f"{document.title} - Kadence Blocks",
                "Requires the Kadence Blocks plugin. Paste `blocks.html` into the "
                "block editor's Code editor. The `*-preview.html` file is a plain "
                "HTML rendering for reference only.",
            )
        )
        return BuildOutput(files=tuple(files), metadata=self.metadata(document, format="html"))
