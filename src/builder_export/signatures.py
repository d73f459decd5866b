"""Signatures of foreign page-builder and plugin markup.

One table serves dependency elimination, plugin-free verification and
source-builder detection. Patterns are matched case-insensitively against
class names, URLs, inline content and generated template text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True)
class SignatureFamily:
    name: str
    label: str
    pattern: re.Pattern[str]

    def search(self, text: str) -> re.Match[str] | None:
        return self.pattern.search(text)


def _family(name: str, label: str, pattern: str) -> SignatureFamily:
    return SignatureFamily(name=name, label=label, pattern=re.compile(pattern, re.I))


SIGNATURES: Final[tuple[SignatureFamily, ...]] = (
    _family(
        "elementor",
        "Elementor",
        r"elementor|data-elementor|elementor-element|elementor-widget",
    ),
    _family("woocommerce", "WooCommerce", r"woocommerce|\bwc[-_]|product_cat"),
    _family("yoast", "Yoast SEO / Rank Math", r"yoast|wpseo|rank-math"),
    _family(
        "acf",
        "Advanced Custom Fields",
        r"\bacf[-_]|advanced-custom-fields|\bget_field\b|\bthe_field\b",
    ),
    _family("wpbakery", "WPBakery", r"\bvc_|\bwpb_|js_composer"),
    _family("contact-form-7", "Contact Form 7", r"wpcf7|contact-form-7"),
    _family("jetpack", "Jetpack", r"jetpack|\bjp-"),
    _family("gravityforms", "Gravity Forms", r"\bgform|gravityforms|gravity-forms"),
    _family("divi", "Divi", r"\bet_pb_|\bet-pb-|\bet_builder|divi-builder"),
    _family("beaver-builder", "Beaver Builder", r"fl-builder|\bfl_builder|\bfl-row|\bfl_row|\bfl-module"),
    _family("bricks", "Bricks", r"\bbrxe-|data-brx-|bricks-builder"),
    _family("oxygen", "Oxygen", r"\bct-section|\bct_section|\boxy-|oxygen-"),
    _family("kadence", "Kadence Blocks", r"kadence|\bkt-adv|\bkb-"),
    _family("brizy", "Brizy", r"\bbrz-|brizy"),
    _family("optimizepress", "OptimizePress", r"\bop-row|\bop_row|optimizepress|\bop3-"),
    _family("crocoblock", "Crocoblock / JetEngine", r"\bjet-|jet_engine|jetengine|crocoblock"),
)

_BY_NAME: Final[dict[str, SignatureFamily]] = {f.name: f for f in SIGNATURES}

CORE_FUNCTIONS: Final[frozenset[str]] = frozenset(
    {
        "wp_head",
        "wp_footer",
        "wp_body_open",
        "get_header",
        "get_footer",
        "get_template_part",
        "wp_enqueue_style",
        "wp_enqueue_script",
        "wp_get_theme",
        "bloginfo",
        "get_template_directory_uri",
        "get_stylesheet_uri",
        "get_stylesheet_directory_uri",
        "home_url",
        "esc_url",
        "esc_html",
        "esc_attr",
        "the_content",
        "the_title",
        "have_posts",
        "the_post",
        "language_attributes",
        "body_class",
        "add_action",
        "add_filter",
        "add_theme_support",
        "register_nav_menus",
        "defined",
        "function_exists",
        "plugin_dir_path",
        "plugin_dir_url",
        "register_activation_hook",
        "file_get_contents",
        "json_decode",
        "wp_insert_post",
        "update_post_meta",
        "wp_slash",
        "wp_json_encode",
    }
)


def family(name: str) -> SignatureFamily:
    return _BY_NAME[name]


def match_family(text: str) -> SignatureFamily | None:
    """Return the first family whose pattern matches ``text``."""

    if not text:
        return None
    for fam in SIGNATURES:
        if fam.search(text):
            return fam
    return None


def find_families(text: str) -> list[SignatureFamily]:
    if not text:
        return []
    return [fam for fam in SIGNATURES if fam.search(text)]


# Checked in order; gutenberg last because every block theme emits wp-block-.
_SOURCE_BUILDER_MARKERS: Final[tuple[tuple[str, re.Pattern[str]], ...]] = (
    ("elementor", re.compile(r"data-elementor-type|elementor-section", re.I)),
    ("divi", re.compile(r"et_pb_|et-db", re.I)),
    ("beaver-builder", re.compile(r"fl-builder|fl-row", re.I)),
    ("bricks", re.compile(r"data-brx-element|brxe-", re.I)),
    ("oxygen", re.compile(r"ct-section|oxy-", re.I)),
    ("kadence", re.compile(r"wp-block-kadence|kb-row-layout", re.I)),
    ("brizy", re.compile(r"brz-", re.I)),
    ("optimizepress", re.compile(r"op-row|op3-", re.I)),
    ("crocoblock", re.compile(r"jet-listing|jet-engine", re.I)),
    ("gutenberg", re.compile(r"wp-block-", re.I)),
)


def detect_source_builder(html: str) -> str | None:
    """Guess which page builder produced a captured page."""

    for builder_id, marker in _SOURCE_BUILDER_MARKERS:
        if marker.search(html):
            return builder_id
    return None
