"""JetEngine templates.

JetEngine listing templates are Elementor documents with an extra
``__dynamic__`` map per widget for bound fields. The widget settings are the
Elementor ones; only the envelope differs.
"""

from __future__ import annotations

import json
from typing import Any

from ..artifact import FileGroup, GeneratedFile
from ..ir import Document, Widget
from .base import BuildContext, Builder, BuildOutput
from .elementor import WIDGETS, drop_empty, section_settings

TEMPLATE_VERSION = "1.0.0"
TEMPLATE_TYPE = "jet-engine-template"


def _widget(w: Widget, ctx: BuildContext) -> dict[str, Any]:
    widget_type, settings = WIDGETS[w.kind](w)
    settings = drop_empty(settings)
    settings["__dynamic__"] = {}
    return {
        "id": ctx.ids.next_id(),
        "elType": "widget",
        "widgetType": widget_type,
        "settings": settings,
        "elements": [],
    }


def build_template(document: Document, ctx: BuildContext) -> dict[str, Any]:
    content = []
    for section in document.sections:
        columns = [
            {
                "id": ctx.ids.next_id(),
                "elType": "column",
                "settings": {"_column_size": column.size_percent},
                "elements": [_widget(w, ctx) for w in column.widgets],
            }
            for column in section.columns
        ]
        content.append(
            {
                "id": ctx.ids.next_id(),
                "elType": "section",
                "settings": section_settings(section),
                "elements": columns,
            }
        )
    return {
        "version": TEMPLATE_VERSION,
        "type": TEMPLATE_TYPE,
        "title": document.title,
        "content": content,
    }


class CrocoblockBuilder(Builder):
    builder_id = "crocoblock"
    display_name = "Crocoblock"
    folder = "jetengine-template"

    def generate(self, document: Document, ctx: BuildContext) -> BuildOutput:
        base = self.folder
        template = build_template(document, ctx)
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
                f"{document.title} - JetEngine template",
                "Requires Elementor and JetEngine. Go to JetEngine > Templates, "
                "choose Import and upload `template.json`.",
            )
        )
        return BuildOutput(files=tuple(files), metadata=self.metadata(document, format="json"))
