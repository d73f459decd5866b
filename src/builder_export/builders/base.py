"""Builder contract and helpers shared by every target.

A builder is stateless: ``generate`` reads the document and the build context
and returns files. Anything that varies per call (ids, counters) comes from
the context or lives in local variables.
"""

from __future__ import annotations

import html as html_lib
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Mapping

from ..artifact import FileGroup, GeneratedFile
from ..content import asset_filename
from ..ir import Document, IdGenerator, Widget, WidgetKind
from ..urls import safe_filename_piece


@dataclass(frozen=True)
class ThemeMetadata:
    name: str = "Custom Cloned Theme"
    author: str = "Website Cloner"
    description: str = "Theme generated from a captured page"
    version: str = "1.0.0"
    uri: str = ""

    @property
    def slug(self) -> str:
        return safe_filename_piece(self.name).lower()

    @property
    def function_prefix(self) -> str:
        return self.slug.replace("-", "_").replace(".", "_")


@dataclass(frozen=True)
class BuildContext:
    html: str
    ids: IdGenerator
    css: tuple[str, ...] = ()
    js: tuple[str, ...] = ()
    images: Mapping[str, bytes] = field(default_factory=dict)
    theme: ThemeMetadata = field(default_factory=ThemeMetadata)


@dataclass(frozen=True)
class BuildOutput:
    files: tuple[GeneratedFile, ...]
    metadata: Mapping[str, Any] = field(default_factory=dict)


Renderer = Callable[[Widget], Any]


class Builder:
    builder_id: ClassVar[str] = ""
    display_name: ClassVar[str] = ""
    folder: ClassVar[str] = ""

    def generate(self, document: Document, ctx: BuildContext) -> BuildOutput:
        raise NotImplementedError

    def folder_for(self, ctx: BuildContext) -> str:
        return self.folder

    def asset_files(
        self, ctx: BuildContext, base: str, *, css_name: str = "style", js_name: str = "script"
    ) -> list[GeneratedFile]:
        files: list[GeneratedFile] = []
        for i, css in enumerate(ctx.css, start=1):
            files.append(
                GeneratedFile.text(f"{base}/assets/css/{css_name}-{i}.css", css, FileGroup.STYLE)
            )
        for i, js in enumerate(ctx.js, start=1):
            files.append(
                GeneratedFile.text(f"{base}/assets/js/{js_name}-{i}.js", js, FileGroup.SCRIPT)
            )
        for path, data in sorted(ctx.images.items()):
            files.append(
                GeneratedFile(
                    path=f"{base}/assets/images/{asset_filename(path)}",
                    data=data,
                    group=FileGroup.IMAGE,
                )
            )
        return files

    def readme(self, base: str, title: str, body: str) -> GeneratedFile:
        text = f"# {title}\n\n{body.strip()}\n"
        return GeneratedFile.text(f"{base}/README.md", text, FileGroup.DOC)

    def metadata(self, document: Document, **extra: Any) -> dict[str, Any]:
        meta: dict[str, Any] = {
            "conversionMethod": document.method,
            "sections": len(document.sections),
            "widgets": document.widget_count(),
        }
        meta.update(extra)
        return meta


def esc(text: object) -> str:
    return html_lib.escape(str(text), quote=True)


def style_attr(**props: str) -> str:
    """``style_attr(text_align="center", color="#FFF")`` -> ``text-align:center;color:#FFF``."""

    parts = [f"{k.replace('_', '-')}:{v}" for k, v in props.items() if v]
    return ";".join(parts)


def video_embed_url(url: str, provider: str) -> str:
    if provider == "youtube":
        if "watch?v=" in url:
            return "https://www.youtube.com/embed/" + url.split("watch?v=", 1)[1].split("&", 1)[0]
        if "youtu.be/" in url:
            return "https://www.youtube.com/embed/" + url.split("youtu.be/", 1)[1].split("?", 1)[0]
    if provider == "vimeo" and "player.vimeo.com" not in url:
        video_id = url.rstrip("/").rsplit("/", 1)[-1]
        if video_id.isdigit():
            return f"https://player.vimeo.com/video/{video_id}"
    return url


def widget_html(w: Widget) -> str:
    """Plain semantic HTML for a widget, used where a target wants markup."""

    k = w.kind
    if k is WidgetKind.HEADING:
        level = w["level"]
        style = style_attr(text_align=w["align"] if w["align"] != "left" else "", color=w["color"])
        attr = f' style="{style}"' if style else ""
        return f"<h{level}{attr}>{w['html'] or esc(w['text'])}</h{level}>"
    if k is WidgetKind.TEXT:
        style = style_attr(text_align=w["align"] if w["align"] != "left" else "", color=w["color"])
        attr = f' style="{style}"' if style else ""
        return f"<p{attr}>{w['html'] or esc(w['text'])}</p>"
    if k is WidgetKind.IMAGE:
        img = f'<img src="{esc(w["src"])}" alt="{esc(w["alt"])}" />'
        return f'<a href="{esc(w["link"])}">{img}</a>' if w["link"] else img
    if k is WidgetKind.BUTTON:
        style = style_attr(background_color=w["background_color"], color=w["text_color"])
        attr = f' style="{style}"' if style else ""
        return f'<a class="button" href="{esc(w["url"])}"{attr}>{esc(w["text"])}</a>'
    if k is WidgetKind.ICON_BOX:
        return (
            f'<div class="icon-box"><i class="{esc(w["icon"])}"></i>'
            f"<h3>{esc(w['title'])}</h3><p>{esc(w['description'])}</p></div>"
        )
    if k is WidgetKind.TESTIMONIAL:
        cite = esc(w["name"]) + (f", {esc(w['job'])}" if w["job"] else "")
        return f"<blockquote><p>{esc(w['content'])}</p><cite>{cite}</cite></blockquote>"
    if k is WidgetKind.COUNTER:
        return (
            f'<div class="counter"><span class="counter-number">{w["number"]}{esc(w["suffix"])}'
            f'</span><span class="counter-title">{esc(w["title"])}</span></div>'
        )
    if k is WidgetKind.VIDEO:
        if w["provider"] == "hosted":
            return f'<video src="{esc(w["url"])}" controls></video>'
        src = video_embed_url(w["url"], w["provider"])
        return f'<iframe src="{esc(src)}" allowfullscreen></iframe>'
    if k is WidgetKind.LIST:
        tag = "ol" if w["ordered"] else "ul"
        items = "".join(f"<li>{esc(i)}</li>" for i in w["items"])
        return f"<{tag}>{items}</{tag}>"
    if k is WidgetKind.QUOTE:
        cite = f"<cite>{esc(w['citation'])}</cite>" if w["citation"] else ""
        return f"<blockquote><p>{esc(w['text'])}</p>{cite}</blockquote>"
    if k is WidgetKind.DIVIDER:
        return "<hr />"
    if k is WidgetKind.SPACER:
        return f'<div style="height:{w["height"]}px" aria-hidden="true"></div>'
    return w["html"]


def check_renderers(table: Mapping[WidgetKind, Renderer]) -> Mapping[WidgetKind, Renderer]:
    missing = [k.value for k in WidgetKind if k not in table]
    if missing:
        raise TypeError(f"renderer table missing kinds: {', '.join(missing)}")
    return table
