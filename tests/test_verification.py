"""Tests for plugin-free verification of generated files."""

from __future__ import annotations

from builder_export.artifact import FileGroup, GeneratedFile
from builder_export.verification import (
    CheckType,
    Severity,
    score_checks,
    verify_plugin_free,
)


def _file(path: str, content: str, group: FileGroup) -> GeneratedFile:
    return GeneratedFile.text(path, content, group)


class TestVerifyPluginFree:
    """Tests for verify_plugin_free."""

    def test_clean_output_scores_full(self) -> None:
        """Core-only output is plugin-free with a perfect score."""
        files = [
            _file("theme/index.php", "<?php get_header(); ?>\n<section class=\"pf-section\"><p>x</p></section>\n<?php get_footer(); ?>", FileGroup.TEMPLATE),
            _file("theme/style.css", ".pf-section { margin: 0; }", FileGroup.STYLE),
            _file("theme/assets/js/custom-1.js", "console.log('ok');", FileGroup.SCRIPT),
        ]
        report = verify_plugin_free(files)
        assert report.score == 100
        assert report.is_plugin_free is True
        assert report.dependencies == ()
        assert report.files_scanned == 3

    def test_plugin_function_is_critical(self) -> None:
        """Calls into plugin APIs are critical findings."""
        files = [_file("t/index.php", "<?php echo get_field('price'); ?>", FileGroup.TEMPLATE)]
        report = verify_plugin_free(files)
        (check,) = report.dependencies
        assert check.type is CheckType.FUNCTION
        assert check.name == "Advanced Custom Fields"
        assert check.severity is Severity.CRITICAL
        assert report.score == 80
        assert report.is_plugin_free is False

    def test_markup_findings(self) -> None:
        """Classes and shortcodes in markup are reported."""
        html = '<div class="elementor-widget">[woocommerce_cart]</div>'
        report = verify_plugin_free([_file("out/page.html", html, FileGroup.MARKUP)])
        types = sorted(c.type.value for c in report.dependencies)
        assert types == ["class", "shortcode"]

    def test_unknown_shortcode_and_external_script_warn(self) -> None:
        """Unrecognized shortcodes and remote scripts are warnings."""
        html = '[mystery]<script src="https://cdn.example.com/lib.js"></script>'
        report = verify_plugin_free([_file("out/page.html", html, FileGroup.MARKUP)])
        assert report.warning_count == 2
        assert report.critical_count == 0
        assert report.score == 90
        assert report.is_plugin_free is True

    def test_duplicates_counted_once(self) -> None:
        """The same family and check type counts once per file."""
        html = '<div class="elementor-a"></div><div class="elementor-b"></div>'
        report = verify_plugin_free([_file("out/page.html", html, FileGroup.MARKUP)])
        assert len(report.dependencies) == 1

    def test_css_selectors(self) -> None:
        """Signature selectors in style sheets are flagged."""
        report = verify_plugin_free([_file("a/style.css", ".et_pb_row { width: 100%; }", FileGroup.STYLE)])
        assert report.dependencies[0].type is CheckType.SELECTOR
        assert report.dependencies[0].name == "Divi"

    def test_images_and_docs_skipped(self) -> None:
        """Binary and documentation files are not scanned."""
        files = [
            _file("a/README.md", "Works with Elementor", FileGroup.DOC),
            GeneratedFile(path="a/assets/images/x.png", data=b"\x89PNG elementor", group=FileGroup.IMAGE),
        ]
        report = verify_plugin_free(files)
        assert report.files_scanned == 0
        assert report.score == 100

    def test_score_floor(self) -> None:
        """The score never drops below zero."""
        families = [
            "elementor", "woocommerce", "wpcf7", "et_pb_x", "fl-row", "brxe-x",
            "brz-x", "op3-x", "jet-x", "kb-x", "gform_x",
        ]
        html = "".join(f'<div class="{cls}"></div>' for cls in families)
        report = verify_plugin_free([_file("p.html", html, FileGroup.MARKUP)])
        assert report.critical_count >= 6
        assert report.score == 0

    def test_recommendations(self) -> None:
        """Findings come with a recommendation to re-run elimination."""
        report = verify_plugin_free([_file("p.html", '<i class="fl-module"></i>', FileGroup.MARKUP)])
        assert any("Beaver Builder" in r for r in report.recommendations)
        assert report.recommendations[-1] == "Re-run the export with dependency elimination enabled."


def test_score_checks_empty() -> None:
    """No checks means a perfect score."""
    assert score_checks([]) == 100
