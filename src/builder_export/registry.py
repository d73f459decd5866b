"""Closed set of export targets and their builders."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Final

from .builders.base import Builder
from .builders.beaver import BeaverBuilder
from .builders.bricks import BricksBuilder
from .builders.brizy import BrizyBuilder
from .builders.crocoblock import CrocoblockBuilder
from .builders.divi import DiviBuilder
from .builders.elementor import ElementorBuilder
from .builders.gutenberg import GutenbergBuilder
from .builders.kadence import KadenceBuilder
from .builders.optimizepress import OptimizePressBuilder
from .builders.oxygen import OxygenBuilder
from .builders.plugin_free import PluginFreeBuilder
from .errors import UnsupportedBuilder


class BuilderId(str, Enum):
    PLUGIN_FREE = "plugin-free"
    ELEMENTOR = "elementor"
    GUTENBERG = "gutenberg"
    DIVI = "divi"
    BEAVER_BUILDER = "beaver-builder"
    BRICKS = "bricks"
    OXYGEN = "oxygen"
    KADENCE = "kadence"
    BRIZY = "brizy"
    OPTIMIZEPRESS = "optimizepress"
    CROCOBLOCK = "crocoblock"


ALIASES: Final[dict[str, BuilderId]] = {
    "beaverbuilder": BuilderId.BEAVER_BUILDER,
    "pluginfree": BuilderId.PLUGIN_FREE,
    "jetengine": BuilderId.CROCOBLOCK,
}


def resolve_builder_id(raw: str | BuilderId) -> BuilderId:
    if isinstance(raw, BuilderId):
        return raw
    key = str(raw).strip().lower()
    if key in ALIASES:
        return ALIASES[key]
    try:
        return BuilderId(key)
    except ValueError:
        raise UnsupportedBuilder(str(raw)) from None


def get_builder(raw: str | BuilderId) -> Builder:
    builder_id = resolve_builder_id(raw)
    if builder_id is BuilderId.PLUGIN_FREE:
        return PluginFreeBuilder()
    elif builder_id is BuilderId.ELEMENTOR:
        return ElementorBuilder()
    elif builder_id is BuilderId.GUTENBERG:
        return GutenbergBuilder()
    elif builder_id is BuilderId.DIVI:
        return DiviBuilder()
    elif builder_id is BuilderId.BEAVER_BUILDER:
        return BeaverBuilder()
    elif builder_id is BuilderId.BRICKS:
        return BricksBuilder()
    elif builder_id is BuilderId.OXYGEN:
        return OxygenBuilder()
    elif builder_id is BuilderId.KADENCE:
        return KadenceBuilder()
    elif builder_id is BuilderId.BRIZY:
        return BrizyBuilder()
    elif builder_id is BuilderId.OPTIMIZEPRESS:
        return OptimizePressBuilder()
    elif builder_id is BuilderId.CROCOBLOCK:
        return CrocoblockBuilder()
    raise UnsupportedBuilder(str(raw))


@dataclass(frozen=True)
class BuilderInfo:
    id: str
    name: str
    format: str
    description: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


BUILDER_INFO: Final[dict[BuilderId, BuilderInfo]] = {
    BuilderId.ELEMENTOR: BuilderInfo(
        "elementor", "Elementor", "json", "Most popular drag-and-drop page builder"
    ),
    BuilderId.GUTENBERG: BuilderInfo(
        "gutenberg", "Gutenberg", "html", "Native WordPress block editor"
    ),
    BuilderId.DIVI: BuilderInfo(
        "divi", "Divi Builder", "shortcode", "Popular Elegant Themes page builder"
    ),
    BuilderId.BEAVER_BUILDER: BuilderInfo(
        "beaver-builder", "Beaver Builder", "shortcode", "Professional page builder for WordPress"
    ),
    BuilderId.BRICKS: BuilderInfo("bricks", "Bricks", "json", "Visual site builder for WordPress"),
    BuilderId.OXYGEN: BuilderInfo("oxygen", "Oxygen", "json", "Visual design tool for WordPress"),
    BuilderId.KADENCE: BuilderInfo(
        "kadence", "Kadence Blocks", "html", "Gutenberg-enhanced blocks for WordPress"
    ),
    BuilderId.BRIZY: BuilderInfo("brizy", "Brizy", "json", "Next-gen website builder"),
    BuilderId.OPTIMIZEPRESS: BuilderInfo(
        "optimizepress", "OptimizePress", "shortcode", "Landing page and sales funnel builder"
    ),
    BuilderId.CROCOBLOCK: BuilderInfo(
        "crocoblock", "Crocoblock", "json", "JetEngine dynamic content templates"
    ),
    BuilderId.PLUGIN_FREE: BuilderInfo(
        "plugin-free", "Plugin-Free Theme", "html", "Pure semantic HTML without builder dependencies"
    ),
}


def builder_info(raw: str | BuilderId) -> BuilderInfo:
    return BUILDER_INFO[resolve_builder_id(raw)]


def list_builders() -> list[BuilderInfo]:
    return [BUILDER_INFO[b] for b in BuilderId]


_INSTALL: Final[dict[BuilderId, tuple[str, ...]]] = {
    BuilderId.PLUGIN_FREE: (
        "Extract the ZIP file",
        "Upload the theme folder to /wp-content/themes/",
        "Activate the theme in Appearance > Themes",
        "No plugins required",
    ),
    BuilderId.ELEMENTOR: (
        "Install and activate the Elementor plugin",
        "Upload the template folder to /wp-content/plugins/",
        "Activate the template plugin",
        "The template appears in Templates > Saved Templates",
    ),
    BuilderId.GUTENBERG: (
        "Create a new page in WordPress",
        "Open the Code editor",
        "Paste the block content from blocks.html",
        "Switch back to the Visual editor",
    ),
    BuilderId.DIVI: (
        "Install and activate the Divi theme or Divi Builder plugin",
        "Go to Divi > Divi Library",
        "Import divi-export.json",
    ),
    BuilderId.BEAVER_BUILDER: (
        "Install and activate the Beaver Builder plugin",
        "Import the layout from the template files",
    ),
    BuilderId.BRICKS: (
        "Install and activate the Bricks theme",
        "Go to Bricks > Templates and import template.json",
    ),
    BuilderId.OXYGEN: (
        "Install and activate the Oxygen plugin",
        "Open a template in Oxygen and import template.json",
    ),
    BuilderId.KADENCE: (
        "Install the Kadence theme and the Kadence Blocks plugin",
        "Paste blocks.html into the Code editor of a page",
    ),
    BuilderId.BRIZY: (
        "Install and activate the Brizy plugin",
        "Import template.json from the Brizy templates panel",
    ),
    BuilderId.OPTIMIZEPRESS: (
        "Install and activate OptimizePress",
        "Go to OptimizePress > Templates",
        "Import template.json",
    ),
    BuilderId.CROCOBLOCK: (
        "Install and activate JetEngine",
        "Go to JetEngine > Templates",
        "Import template.json",
    ),
}


def install_instructions(raw: str | BuilderId) -> str:
    builder_id = resolve_builder_id(raw)
    info = BUILDER_INFO[builder_id]
    steps = "\n".join(f"{i}. {step}" for i, step in enumerate(_INSTALL[builder_id], start=1))
    return f"Installation Instructions for {info.name}\n\n{steps}\n"
