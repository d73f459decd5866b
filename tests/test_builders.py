"""Tests for the target builders and their registry."""

from __future__ import annotations

import json

import pytest

from builder_export.artifact import FileGroup
from builder_export.builders.base import ThemeMetadata, check_renderers
from builder_export.builders.beaver import build_nodes
from builder_export.builders.bricks import build_elements
from builder_export.builders.divi import column_type, render_layout
from builder_export.builders.oxygen import build_tree
from builder_export.builders.syntax import php_serialize, shortcode
from builder_export.convert.blocks import parse_blocks
from builder_export.convert.sources import MarkupSource, build_document
from builder_export.errors import UnsupportedBuilder
from builder_export.ir import (
    Column,
    Document,
    Section,
    SequentialIds,
    WidgetKind,
    make_widget,
)
from builder_export.registry import (
    BUILDER_INFO,
    BuilderId,
    builder_info,
    get_builder,
    install_instructions,
    list_builders,
    resolve_builder_id,
)
from builder_export.verification import verify_plugin_free

SIMPLE = build_document(MarkupSource("<h1>Hi</h1><p>World</p>"))


def _doc(*widgets) -> Document:
    return Document(
        title="T",
        sections=(Section(columns=(Column(size_percent=100, widgets=tuple(widgets)),)),),
        method="markup",
    )


# ============================================================================
# Every target
# ============================================================================


class TestAllBuilders:
    """Contract tests run against every registered target."""

    @pytest.mark.parametrize("builder_id", list(BuilderId))
    def test_generates_files_under_folder(self, builder_id: BuilderId, landing_document, make_ctx) -> None:
        """Each builder writes a README and keeps files inside its folder."""
        builder = get_builder(builder_id)
        ctx = make_ctx(css=("p { color: red; }",), images={"images/team.png": b"\x89PNG"})
        output = builder.generate(landing_document, ctx)
        folder = builder.folder_for(ctx)
        paths = [f.path for f in output.files]
        assert paths
        assert all(p.startswith(f"{folder}/") for p in paths)
        assert f"{folder}/README.md" in paths
        assert any(f.group is FileGroup.IMAGE for f in output.files)
        assert any(f.group is FileGroup.STYLE for f in output.files)
        assert output.metadata["sections"] == len(landing_document.sections)
        assert output.metadata["widgets"] == landing_document.widget_count()

    @pytest.mark.parametrize("builder_id", list(BuilderId))
    def test_empty_document(self, builder_id: BuilderId, make_ctx) -> None:
        """A document without sections still produces a package."""
        output = get_builder(builder_id).generate(Document("Empty", (), "markup"), make_ctx())
        assert output.files

    @pytest.mark.parametrize("builder_id", list(BuilderId))
    def test_every_widget_kind(self, builder_id: BuilderId, make_ctx) -> None:
        """Every widget kind renders with schema defaults."""
        doc = _doc(*(make_widget(kind) for kind in WidgetKind))
        assert get_builder(builder_id).generate(doc, make_ctx()).files

    @pytest.mark.parametrize("builder_id", list(BuilderId))
    def test_deterministic(self, builder_id: BuilderId, landing_document, make_ctx) -> None:
        """Same document and id sequence give the same bytes."""
        builder = get_builder(builder_id)
        first = builder.generate(landing_document, make_ctx())
        second = builder.generate(landing_document, make_ctx())
        assert [f.data for f in first.files] == [f.data for f in second.files]


def test_check_renderers_rejects_partial_table() -> None:
    """Renderer tables must cover every widget kind."""
    with pytest.raises(TypeError, match="missing kinds"):
        check_renderers({WidgetKind.HEADING: lambda w: ""})


# ============================================================================
# Individual targets
# ============================================================================


class TestElementor:
    """Tests for the Elementor template."""

    def test_template_structure(self, make_ctx) -> None:
        """Sections hold columns, columns hold widgets, ids are sequential."""
        output = get_builder("elementor").generate(SIMPLE, make_ctx())
        by_path = {f.path: f for f in output.files}
        template = json.loads(by_path["elementor-custom-template/templates/template.json"].content)
        assert template["title"] == "Hi"
        (section,) = template["content"]
        assert section["elType"] == "section"
        assert section["id"] == "0000001"
        (column,) = section["elements"]
        assert column["elType"] == "column"
        assert column["settings"]["_column_size"] == 100
        heading, text = column["elements"]
        assert heading["widgetType"] == "heading"
        assert heading["settings"] == {"title": "Hi", "header_size": "h1", "align": "left"}
        assert text["widgetType"] == "text-editor"
        assert [section["id"], column["id"], heading["id"], text["id"]] == [
            "0000001",
            "0000002",
            "0000003",
            "0000004",
        ]


class TestGutenberg:
    """Tests for block markup output."""

    def test_blocks_parse_back(self, make_ctx) -> None:
        """Generated block markup is valid block syntax."""
        output = get_builder("gutenberg").generate(SIMPLE, make_ctx())
        content = output.files[0].content
        blocks = parse_blocks(content)
        assert [b.name for b in blocks] == ["core/heading", "core/paragraph"]
        assert blocks[0].attributes == {"level": 1}
        assert blocks[0].inner_html == "<h1>Hi</h1>"
        assert blocks[1].inner_html == "<p>World</p>"

    def test_columns_wrap(self, landing_document, make_ctx) -> None:
        """Multi-column sections use columns and column blocks."""
        output = get_builder("gutenberg").generate(landing_document, make_ctx())
        blocks = parse_blocks(output.files[0].content)
        names = [b.short_name for b in blocks]
        assert "columns" in names or "group" in names
        columns = [b for b in blocks if b.short_name == "columns"]
        assert columns
        assert all(c.short_name == "column" for c in columns[-1].inner_blocks)
        assert [c.attributes["width"] for c in columns[-1].inner_blocks] == ["33%", "33%", "33%"]

    def test_verifies_clean(self, make_ctx) -> None:
        """Core blocks carry no plugin dependencies."""
        output = get_builder("gutenberg").generate(SIMPLE, make_ctx())
        assert verify_plugin_free(output.files).score == 100


class TestDivi:
    """Tests for Divi shortcodes."""

    def test_layout_nesting(self) -> None:
        """Sections wrap rows wrap columns wrap modules."""
        layout = render_layout(SIMPLE)
        assert layout.startswith("[et_pb_section")
        assert '[et_pb_column _builder_version="4.16" type="4_4"]' in layout
        assert layout.count("[et_pb_text") == 2
        assert layout.endswith("[/et_pb_section]")

    def test_brackets_escaped(self) -> None:
        """Literal brackets in content cannot open a shortcode."""
        layout = render_layout(_doc(make_widget(WidgetKind.TEXT, html="Use [brackets]")))
        assert "&#91;brackets&#93;" in layout
        assert "[brackets]" not in layout

    def test_column_type_nearest(self) -> None:
        """Widths map to the nearest Divi column type."""
        assert column_type(50) == "1_2"
        assert column_type(33) == "1_3"
        assert column_type(30) == "1_3"


class TestBeaver:
    """Tests for Beaver Builder layouts."""

    def test_node_map(self, make_ctx) -> None:
        """Rows, column groups, columns and modules form a flat parent map."""
        nodes = build_nodes(SIMPLE, make_ctx())
        types = [n["type"] for n in nodes.values()]
        assert types == ["row", "column-group", "column", "module", "module"]
        row, group, column, *modules = nodes.values()
        assert row["parent"] is None
        assert group["parent"] == row["node"]
        assert column["parent"] == group["node"]
        assert all(m["parent"] == column["node"] for m in modules)
        assert modules[0]["settings"]["type"] == "heading"

    def test_layout_dat_is_php_serialized(self, make_ctx) -> None:
        """layout.dat holds the serialized node map."""
        output = get_builder("beaver-builder").generate(SIMPLE, make_ctx())
        by_path = {f.path: f for f in output.files}
        data = by_path["beaver-builder-layout/layout.dat"].content
        assert data.startswith('a:5:{s:7:"0000001";a:5:{')
        assert output.metadata["nodes"] == 5


class TestBricks:
    """Tests for Bricks element lists."""

    def test_parent_links(self, landing_document, make_ctx) -> None:
        """Children lists and parent ids agree; ids are unique."""
        elements = build_elements(landing_document, make_ctx())
        ids = [e["id"] for e in elements]
        assert len(ids) == len(set(ids))
        by_id = {e["id"]: e for e in elements}
        for element in elements:
            for child in element["children"]:
                assert by_id[child]["parent"] == element["id"]
        roots = [e for e in elements if e["parent"] == 0]
        assert [r["name"] for r in roots] == ["section", "section"]
        blocks = [e for e in elements if e["name"] == "block"]
        assert {b["settings"]["_width"] for b in blocks} == {"33%"}


class TestOxygen:
    """Tests for the Oxygen tree."""

    def test_tree(self) -> None:
        """The root has id 0 and every node has a selector."""
        tree = build_tree(SIMPLE)
        assert tree["id"] == 0
        (section,) = tree["children"]
        assert section["name"] == "ct_section"
        names = [c["name"] for c in section["children"]]
        assert names == ["ct_headline", "ct_text_block"]
        assert all(c["options"]["ct_parent"] == section["id"] for c in section["children"])


class TestPluginFree:
    """Tests for the standalone theme."""

    def test_theme_files(self, landing_document, make_ctx) -> None:
        """The theme has the core template files under its slug."""
        ctx = make_ctx(theme=ThemeMetadata(name="Acme Landing"), js=("a();",))
        output = get_builder("plugin-free").generate(landing_document, ctx)
        paths = {f.path for f in output.files}
        for name in ("style.css", "functions.php", "header.php", "index.php", "footer.php"):
            assert f"acme-landing/{name}" in paths
        assert "acme-landing/assets/js/custom-1.js" in paths
        style = next(f for f in output.files if f.path == "acme-landing/style.css").content
        assert "Theme Name: Acme Landing" in style
        assert output.metadata["theme"] == "acme-landing"

    def test_plugin_free_score(self, landing_document, make_ctx) -> None:
        """The theme passes its own verification with a perfect score."""
        output = get_builder("plugin-free").generate(landing_document, make_ctx(css=("p{}",), js=("a();",)))
        report = verify_plugin_free(output.files)
        assert report.score == 100
        assert report.is_plugin_free

    def test_php_open_tags_neutralized(self, make_ctx) -> None:
        """Captured markup cannot open PHP inside index.php."""
        doc = _doc(make_widget(WidgetKind.HTML, html="<?php evil(); ?>"))
        output = get_builder("plugin-free").generate(doc, make_ctx())
        index = next(f for f in output.files if f.path.endswith("/index.php")).content
        assert "&lt;?php evil(); ?>" in index
        assert index.count("<?php") == 2


# ============================================================================
# Registry and syntax helpers
# ============================================================================


class TestRegistry:
    """Tests for target resolution and metadata."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("elementor", BuilderId.ELEMENTOR),
            (" Gutenberg ", BuilderId.GUTENBERG),
            ("beaverbuilder", BuilderId.BEAVER_BUILDER),
            ("pluginfree", BuilderId.PLUGIN_FREE),
            ("jetengine", BuilderId.CROCOBLOCK),
            (BuilderId.DIVI, BuilderId.DIVI),
        ],
    )
    def test_resolve(self, raw, expected: BuilderId) -> None:
        """Ids, aliases and enum members resolve."""
        assert resolve_builder_id(raw) is expected

    def test_unsupported(self) -> None:
        """Unknown targets raise before any work."""
        with pytest.raises(UnsupportedBuilder) as exc:
            get_builder("wix")
        assert exc.value.builder_id == "wix"

    def test_every_id_has_a_builder(self) -> None:
        """The builder ids agree with the registry."""
        for builder_id in BuilderId:
            assert get_builder(builder_id).builder_id == builder_id.value
            assert builder_info(builder_id).id == builder_id.value

    def test_list_order(self) -> None:
        """Targets are listed in declaration order, plugin-free first."""
        infos = list_builders()
        assert [i.id for i in infos] == [b.value for b in BuilderId]
        assert len(BUILDER_INFO) == 11

    def test_install_instructions(self) -> None:
        """Instructions are numbered steps under a title."""
        text = install_instructions("plugin-free")
        assert text.startswith("Installation Instructions for Plugin-Free Theme\n\n1. ")
        assert "No plugins required" in text


class TestSyntax:
    """Tests for low-level writers."""

    def test_php_serialize(self) -> None:
        """Values follow PHP's serialize() format."""
        assert php_serialize({"a": 1, "b": [True, None]}) == 'a:2:{s:1:"a";i:1;s:1:"b";a:2:{i:0;b:1;i:1;N;}}'

    def test_php_serialize_counts_bytes(self) -> None:
        """String lengths are byte lengths."""
        assert php_serialize("é") == 's:2:"é";'

    def test_shortcode_attributes(self) -> None:
        """Attributes are escaped and empty ones omitted."""
        assert shortcode("x", {"a": 'say "hi"', "b": ""}) == '[x a="say &quot;hi&quot;" /]'
        assert shortcode("x", None, "body") == "[x]body[/x]"
