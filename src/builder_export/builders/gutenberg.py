from __future__ import annotations

from typing import Any

from ..artifact import FileGroup, GeneratedFile
from ..ir import Document, Section, Widget, WidgetKind
from .base import BuildContext, Builder, BuildOutput, check_renderers, esc
from .syntax import serialize_block


def _align_class(align: str) -> str:
    return f"has-text-align-{align}" if align and align != "left" else ""


def _color_parts(text_color: str = "", background: str = "") -> tuple[dict[str, Any], list[str], str]:
    """Block ``style`` attribute, CSS classes and inline style for colors."""

    color: dict[str, str] = {}
    classes: list[str] = []
    inline: list[str] = []
    if text_color:
        color["text"] = text_color
        classes.append("has-text-color")
        inline.append(f"color:{text_color}")
    if background:
        color["background"] = background
        classes.append("has-background")
        inline.append(f"background-color:{background}")
    attrs = {"style": {"color": color}} if color else {}
    return attrs, classes, ";".join(inline)


def _open_tag(tag: str, classes: list[str], style: str) -> str:
    out = f"<{tag}"
    classes = [c for c in classes if c]
    if classes:
        out += f' class="{" ".join(classes)}"'
    if style:
        out += f' style="{style}"'
    return out + ">"


def _heading(w: Widget) -> str:
    attrs: dict[str, Any] = {}
    if w["level"] != 2:
        attrs["level"] = w["level"]
    if w["align"] != "left":
        attrs["textAlign"] = w["align"]
    color_attrs, classes, style = _color_parts(w["color"])
    attrs.update(color_attrs)
    tag = f"h{w['level']}"
    inner = _open_tag(tag, [_align_class(w["align"])] + classes, style)
    return serialize_block("heading", attrs, f"{inner}{w['html']}</{tag}>")


def _paragraph(w: Widget) -> str:
    attrs: dict[str, Any] = {}
    if w["align"] != "left":
        attrs["align"] = w["align"]
    color_attrs, classes, style = _color_parts(w["color"])
    attrs.update(color_attrs)
    inner = _open_tag("p", [_align_class(w["align"])] + classes, style)
    return serialize_block("paragraph", attrs, f"{inner}{w['html']}</p>")


def _image(w: Widget) -> str:
    attrs: dict[str, Any] = {}
    if w["align"] in ("center", "right"):
        attrs["align"] = w["align"]
    if w["width"]:
        attrs["width"] = w["width"]
    img = f'<img src="{esc(w["src"])}" alt="{esc(w["alt"])}"/>'
    if w["link"]:
        attrs["linkDestination"] = "custom"
        img = f'<a href="{esc(w["link"])}">{img}</a>'
    align = f" align{w['align']}" if "align" in attrs else ""
    return serialize_block("image", attrs, f'<figure class="wp-block-image{align}">{img}</figure>')


def _button_block(text: str, url: str, text_color: str = "", background: str = "") -> str:
    attrs, classes, style = _color_parts(text_color, background)
    link_classes = ["wp-block-button__link", *classes, "wp-element-button"]
    link = f'<a class="{" ".join(link_classes)}" href="{esc(url)}"'
    if style:
        link += f' style="{style}"'
    link += f">{esc(text)}</a>"
    return serialize_block("button", attrs, f'<div class="wp-block-button">{link}</div>')


def _buttons(w: Widget) -> str:
    attrs: dict[str, Any] = {}
    if w["align"] in ("center", "right"):
        attrs["layout"] = {"type": "flex", "justifyContent": w["align"]}
    inner = _button_block(w["text"], w["url"], w["text_color"], w["background_color"])
    return serialize_block("buttons", attrs, f'<div class="wp-block-buttons">{inner}</div>')


def _group(children: list[str], attrs: dict[str, Any] | None = None, style: str = "") -> str:
    classes = ["wp-block-group"]
    if attrs and attrs.get("style", {}).get("color", {}).get("background"):
        classes.append("has-background")
    inner = _open_tag("div", classes, style) + "\n" + "\n\n".join(children) + "\n</div>"
    return serialize_block("group", attrs or {}, inner)


def _plain_heading(text: str, level: int) -> str:
    attrs = {"level": level} if level != 2 else {}
    return serialize_block("heading", attrs, f"<h{level}>{esc(text)}</h{level}>")


def _plain_paragraph(text: str) -> str:
    return serialize_block("paragraph", None, f"<p>{esc(text)}</p>")


def _icon_box(w: Widget) -> str:
    children = [_plain_heading(w["title"], 3)]
    if w["description"]:
        children.append(_plain_paragraph(w["description"]))
    return _group(children, {"className": "icon-box"})


def _testimonial(w: Widget) -> str:
    cite = esc(w["name"]) + (f", {esc(w['job'])}" if w["job"] else "")
    inner = f'<blockquote class="wp-block-quote"><p>{esc(w["content"])}</p><cite>{cite}</cite></blockquote>'
    return serialize_block("quote", {"className": "testimonial"}, inner)


def _counter(w: Widget) -> str:
    children = [_plain_heading(f"{w['number']}{w['suffix']}", 2)]
    if w["title"]:
        children.append(_plain_paragraph(w["title"]))
    return _group(children, {"className": "counter"})


def _video(w: Widget) -> str:
    provider = w["provider"]
    if provider == "hosted":
        return serialize_block(
            "video",
            None,
            f'<figure class="wp-block-video"><video controls src="{esc(w["url"])}"></video></figure>',
        )
    attrs = {"url": w["url"], "type": "video", "providerNameSlug": provider, "responsive": True}
    classes = (
        f"wp-block-embed is-type-video is-provider-{provider} wp-block-embed-{provider} "
        "wp-embed-aspect-16-9 wp-has-aspect-ratio"
    )
    inner = (
        f'<figure class="{classes}"><div class="wp-block-embed__wrapper">\n'
        f"{esc(w['url'])}\n</div></figure>"
    )
    return serialize_block("embed", attrs, inner)


def _list(w: Widget) -> str:
    tag = "ol" if w["ordered"] else "ul"
    items = "".join(f"<li>{esc(i)}</li>" for i in w["items"])
    attrs = {"ordered": True} if w["ordered"] else None
    return serialize_block("list", attrs, f"<{tag}>{items}</{tag}>")


def _quote(w: Widget) -> str:
    cite = f"<cite>{esc(w['citation'])}</cite>" if w["citation"] else ""
    return serialize_block(
        "quote", None, f'<blockquote class="wp-block-quote"><p>{esc(w["text"])}</p>{cite}</blockquote>'
    )


def _divider(w: Widget) -> str:
    return serialize_block(
        "separator", None, '<hr class="wp-block-separator has-alpha-channel-opacity"/>'
    )


def _spacer(w: Widget) -> str:
    height = f"{w['height']}px"
    return serialize_block(
        "spacer",
        {"height": height},
        f'<div style="height:{height}" aria-hidden="true" class="wp-block-spacer"></div>',
    )


def _html(w: Widget) -> str:
    return serialize_block("html", None, w["html"])


BLOCKS = check_renderers(
    {
        WidgetKind.HEADING: _heading,
        WidgetKind.TEXT: _paragraph,
        WidgetKind.IMAGE: _image,
        WidgetKind.BUTTON: _buttons,
        WidgetKind.ICON_BOX: _icon_box,
        WidgetKind.TESTIMONIAL: _testimonial,
        WidgetKind.COUNTER: _counter,
        WidgetKind.VIDEO: _video,
        WidgetKind.LIST: _list,
        WidgetKind.QUOTE: _quote,
        WidgetKind.DIVIDER: _divider,
        WidgetKind.SPACER: _spacer,
        WidgetKind.HTML: _html,
    }
)


def render_section(section: Section) -> str:
    """Single plain columns emit their blocks directly; others are wrapped."""

    if len(section.columns) > 1:
        cols = []
        for column in section.columns:
            width = f"{column.size_percent}%"
            body = "\n\n".join(BLOCKS[w.kind](w) for w in column.widgets)
            cols.append(
                serialize_block(
                    "column",
                    {"width": width},
                    f'<div class="wp-block-column" style="flex-basis:{width}">\n{body}\n</div>',
                )
            )
        content = serialize_block(
            "columns", None, '<div class="wp-block-columns">\n' + "\n\n".join(cols) + "\n</div>"
        )
    else:
        content = "\n\n".join(BLOCKS[w.kind](w) for w in section.widgets())

    s = section.settings
    if not s.background_color and s.padding.is_zero():
        return content

    attrs, _, style = _color_parts(background=s.background_color)
    if not s.padding.is_zero():
        pad = s.padding
        attrs.setdefault("style", {})["spacing"] = {
            "padding": {
                "top": f"{pad.top:g}{pad.unit}",
                "right": f"{pad.right:g}{pad.unit}",
                "bottom": f"{pad.bottom:g}{pad.unit}",
                "left": f"{pad.left:g}{pad.unit}",
            }
        }
        style = ";".join(p for p in (style, f"padding:{pad.css()}") if p)
    return _group([content], attrs, style)


def render_document(document: Document) -> str:
    return "\n\n".join(render_section(s) for s in document.sections) + "\n"


class GutenbergBuilder(Builder):
    builder_id = "gutenberg"
    display_name = "Gutenberg"
    folder = "gutenberg-blocks"

    def generate(self, document: Document, ctx: BuildContext) -> BuildOutput:
        base = self.folder
        files = [
            GeneratedFile.text(f"{base}/blocks.html", render_document(document), FileGroup.MARKUP),
        ]
        files += self.asset_files(ctx, base)
        files.append(
            self.readme(
                base,
                f"{document.title} - block content",
                "Open a page in the block editor, switch to the Code editor "
                "(Ctrl+Shift+Alt+M), paste the contents of `blocks.html` and switch "
                "back to the Visual editor. Add the stylesheets under `assets/css/` "
                "through Appearance > Customize > Additional CSS if needed.",
            )
        )
        return BuildOutput(files=tuple(files), metadata=self.metadata(document, format="html"))
