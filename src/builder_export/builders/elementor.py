from __future__ import annotations

import json
from typing import Any

from ..artifact import FileGroup, GeneratedFile
from ..ir import Column, Document, Section, Widget, WidgetKind
from .base import BuildContext, Builder, BuildOutput, check_renderers, esc

TEMPLATE_VERSION = "0.4"


def drop_empty(settings: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in settings.items() if v not in ("", None, {}, [])}


def _heading(w: Widget) -> tuple[str, dict[str, Any]]:
    return "heading", {
        "title": w["html"] or esc(w["text"]),
        "header_size": f"h{w['level']}",
        "align": w["align"],
        "title_color": w["color"],
    }


def _text(w: Widget) -> tuple[str, dict[str, Any]]:
    return "text-editor", {
        "editor": f"<p>{w['html']}</p>",
        "align": w["align"],
        "text_color": w["color"],
    }


def _image(w: Widget) -> tuple[str, dict[str, Any]]:
    settings: dict[str, Any] = {
        "image": {"url": w["src"], "id": "", "alt": w["alt"]},
        "align": w["align"],
    }
    if w["width"]:
        settings["width"] = {"unit": "px", "size": w["width"]}
    if w["link"]:
        settings["link_to"] = "custom"
        settings["link"] = {"url": w["link"], "is_external": "", "nofollow": ""}
    return "image", settings


def _button(w: Widget) -> tuple[str, dict[str, Any]]:
    return "button", {
        "text": w["text"],
        "link": {"url": w["url"], "is_external": "", "nofollow": ""},
        "align": w["align"],
        "size": w["size"],
        "background_color": w["background_color"],
        "button_text_color": w["text_color"],
    }


def _icon_box(w: Widget) -> tuple[str, dict[str, Any]]:
    return "icon-box", {
        "selected_icon": {"value": w["icon"], "library": "fa-solid"},
        "title_text": w["title"],
        "description_text": w["description"],
        "primary_color": w["color"],
    }


def _testimonial(w: Widget) -> tuple[str, dict[str, Any]]:
    settings: dict[str, Any] = {
        "testimonial_content": w["content"],
        "testimonial_name": w["name"],
        "testimonial_job": w["job"],
    }
    if w["image"]:
        settings["testimonial_image"] = {"url": w["image"], "id": ""}
    return "testimonial", settings


def _counter(w: Widget) -> tuple[str, dict[str, Any]]:
    return "counter", {
        "starting_number": 0,
        "ending_number": w["number"],
        "suffix": w["suffix"],
        "title": w["title"],
    }


def _video(w: Widget) -> tuple[str, dict[str, Any]]:
    provider = w["provider"]
    settings: dict[str, Any] = {"video_type": provider}
    if provider == "youtube":
        settings["youtube_url"] = w["url"]
    elif provider == "vimeo":
        settings["vimeo_url"] = w["url"]
    else:
        settings["hosted_url"] = {"url": w["url"], "id": ""}
    return "video", settings


def _list(w: Widget) -> tuple[str, dict[str, Any]]:
    icon = "fas fa-circle" if not w["ordered"] else "fas fa-angle-right"
    return "icon-list", {
        "icon_list": [
            {"text": item, "selected_icon": {"value": icon, "library": "fa-solid"}}
            for item in w["items"]
        ]
    }


def _quote(w: Widget) -> tuple[str, dict[str, Any]]:
    cite = f"<cite>{esc(w['citation'])}</cite>" if w["citation"] else ""
    return "text-editor", {"editor": f"<blockquote>{esc(w['text'])}{cite}</blockquote>"}


def _divider(w: Widget) -> tuple[str, dict[str, Any]]:
    return "divider", {
        "style": w["style"],
        "weight": {"unit": "px", "size": w["weight"]},
        "color": w["color"],
    }


def _spacer(w: Widget) -> tuple[str, dict[str, Any]]:
    return "spacer", {"space": {"unit": "px", "size": w["height"]}}


def _html(w: Widget) -> tuple[str, dict[str, Any]]:
    return "html", {"html": w["html"]}


WIDGETS = check_renderers(
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
        WidgetKind.QUOTE: _quote,
        WidgetKind.DIVIDER: _divider,
        WidgetKind.SPACER: _spacer,
        WidgetKind.HTML: _html,
    }
)


def section_settings(section: Section) -> dict[str, Any]:
    s = section.settings
    settings: dict[str, Any] = {"layout": "boxed", "gap": "default"}
    if s.background_color:
        settings["background_background"] = "classic"
        settings["background_color"] = s.background_color
    if s.background_image:
        settings["background_background"] = "classic"
        settings["background_image"] = {"url": s.background_image, "id": ""}
    if not s.padding.is_zero():
        settings["padding"] = {
            "unit": s.padding.unit,
            "top": str(s.padding.top),
            "right": str(s.padding.right),
            "bottom": str(s.padding.bottom),
            "left": str(s.padding.left),
            "isLinked": False,
        }
    return settings


class ElementorBuilder(Builder):
    builder_id = "elementor"
    display_name = "Elementor"
    folder = "elementor-custom-template"

    def _widget(self, w: Widget, ctx: BuildContext) -> dict[str, Any]:
        widget_type, settings = WIDGETS[w.kind](w)
        return {
            "id": ctx.ids.next_id(),
            "elType": "widget",
            "widgetType": widget_type,
            "settings": drop_empty(settings),
            "elements": [],
        }

    def _column(self, column: Column, ctx: BuildContext) -> dict[str, Any]:
        return {
            "id": ctx.ids.next_id(),
            "elType": "column",
            "settings": {"_column_size": column.size_percent, "_inline_size": None},
            "elements": [self._widget(w, ctx) for w in column.widgets],
        }

    def _section(self, section: Section, ctx: BuildContext) -> dict[str, Any]:
        return {
            "id": ctx.ids.next_id(),
            "elType": "section",
            "settings": section_settings(section),
            "elements": [self._column(c, ctx) for c in section.columns],
        }

    def template(self, document: Document, ctx: BuildContext) -> dict[str, Any]:
        return {
            "version": TEMPLATE_VERSION,
            "title": document.title,
            "type": "page",
            "page_settings": {},
            "content": [self._section(s, ctx) for s in document.sections],
        }

    def generate(self, document: Document, ctx: BuildContext) -> BuildOutput:
        base = self.folder
        prefix = ctx.theme.function_prefix
        template = self.template(document, ctx)
        files = [
            GeneratedFile.text(
                f"{base}/templates/template.json",
                json.dumps(template, indent=2, ensure_ascii=False),
                FileGroup.TEMPLATE,
            ),
            GeneratedFile.text(
                f"{base}/{base}.php", _plugin_php(ctx, prefix), FileGroup.TEMPLATE
            ),
            GeneratedFile.text(
                f"{base}/includes/template-loader.php", _loader_php(prefix), FileGroup.TEMPLATE
            ),
        ]
        files += self.asset_files(ctx, base)
        files.append(
            self.readme(
                base,
                f"{document.title} - Elementor template",
                "Upload this folder to `/wp-content/plugins/` and activate it. On "
                "activation the template in `templates/template.json` is imported "
                "into the Elementor library. You can also import the JSON file "
                "directly from Templates > Saved Templates > Import.",
            )
        )
        return BuildOutput(files=tuple(files), metadata=self.metadata(document, format="json"))


def _plugin_php(ctx: BuildContext, prefix: str) -> str:
    theme = ctx.theme
    return f"""<?php
/**
 * Plugin Name: {theme.name} Template
 * Description: {theme.description}
 * Version: {theme.version}
 * Author: {theme.author}
 */

if (!defined('ABSPATH')) {{
    exit;
}}

require_once plugin_dir_path(__FILE__) . 'includes/template-loader.php';

register_activation_hook(__FILE__, '{prefix}_import_template');

function {prefix}_enqueue_assets() {{
    $base = plugin_dir_url(__FILE__) . 'assets/';
    foreach (glob(plugin_dir_path(__FILE__) . 'assets/css/*.css') as $file) {{
        wp_enqueue_style('{prefix}-' . basename($file, '.css'), $base . 'css/' . basename($file));
    }}
    foreach (glob(plugin_dir_path(__FILE__) . 'assets/js/*.js') as $file) {{
        wp_enqueue_script('{prefix}-' . basename($file, '.js'), $base . 'js/' . basename($file), array(), null, true);
    }}
}}
add_action('wp_enqueue_scripts', '{prefix}_enqueue_assets');
"""


def _loader_php(prefix: str) -> str:
    return f"""<?php
if (!defined('ABSPATH')) {{
    exit;
}}

function {prefix}_import_template() {{
    $path = plugin_dir_path(dirname(__FILE__)) . 'templates/template.json';
    $data = json_decode(file_get_contents($path), true);
    if (!is_array($data)) {{
        return;
    }}
    $post_id = wp_insert_post(array(
        'post_title' => $data['title'],
        'post_type' => 'elementor_library',
        'post_status' => 'publish',
    ));
    update_post_meta($post_id, '_elementor_data', wp_slash(wp_json_encode($data['content'])));
    update_post_meta($post_id, '_elementor_template_type', 'page');
    update_post_meta($post_id, '_elementor_edit_mode', 'builder');
}}
"""
