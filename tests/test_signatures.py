"""Tests for the plugin and page-builder signature table."""

from __future__ import annotations

import pytest

from builder_export.signatures import (
    CORE_FUNCTIONS,
    SIGNATURES,
    detect_source_builder,
    family,
    find_families,
    match_family,
)


class TestMatchFamily:
    """Tests for match_family and find_families."""

    @pytest.mark.parametrize(
        ("text", "name"),
        [
            ("elementor-widget-heading", "elementor"),
            ("woocommerce-product", "woocommerce"),
            ("wpcf7-form", "contact-form-7"),
            ("et_pb_section_0", "divi"),
            ("fl-row-content", "beaver-builder"),
            ("brxe-heading", "bricks"),
            ("ct-section-inner-wrap", "oxygen"),
            ("kb-row-layout-wrap", "kadence"),
            ("brz-section", "brizy"),
            ("op3-element", "optimizepress"),
            ("jet-listing-grid", "crocoblock"),
        ],
    )
    def test_matches_family(self, text: str, name: str) -> None:
        """Representative class names map to their family."""
        fam = match_family(text)
        assert fam is not None
        assert fam.name == name

    def test_case_insensitive(self) -> None:
        """Patterns ignore case."""
        assert match_family("ELEMENTOR-SECTION") is family("elementor")

    @pytest.mark.parametrize("text", ["", "container", "wp-block-heading", "btn-primary"])
    def test_neutral_text(self, text: str) -> None:
        """Generic or core markup is not a dependency."""
        assert match_family(text) is None

    def test_find_all_families(self) -> None:
        """find_families returns every family present."""
        names = [f.name for f in find_families("elementor and woocommerce together")]
        assert names == ["elementor", "woocommerce"]

    def test_core_functions_are_neutral(self) -> None:
        """No allow-listed core function belongs to a plugin family."""
        assert all(match_family(fn) is None for fn in CORE_FUNCTIONS)

    def test_family_names_unique(self) -> None:
        """Each family appears once."""
        names = [f.name for f in SIGNATURES]
        assert len(names) == len(set(names))


class TestDetectSourceBuilder:
    """Tests for detect_source_builder."""

    def test_elementor(self) -> None:
        """Elementor document markers win."""
        html = '<div data-elementor-type="wp-page"><section class="elementor-section"></section></div>'
        assert detect_source_builder(html) == "elementor"

    def test_gutenberg_is_checked_last(self) -> None:
        """Core block classes only count when nothing else matches."""
        assert detect_source_builder('<p class="wp-block-paragraph">x</p>') == "gutenberg"
        html = '<div class="wp-block-group"><div class="et_pb_row"></div></div>'
        assert detect_source_builder(html) == "divi"

    def test_unknown(self) -> None:
        """Plain pages have no source builder."""
        assert detect_source_builder("<h1>Hello</h1>") is None
