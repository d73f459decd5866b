"""A standalone classic theme: semantic HTML, core template functions only."""

from __future__ import annotations

from ..artifact import FileGroup, GeneratedFile
from ..ir import Document, Section
from .base import BuildContext, Builder, BuildOutput, esc, style_attr, widget_html

_COLUMNS_CSS = """
.pf-section { box-sizing: border-box; }
.pf-columns { display: flex; flex-wrap: wrap; margin: 0 -15px; }
.pf-column { box-sizing: border-box; padding: 0 15px; }
.pf-column img, .pf-section img { max-width: 100%; height: auto; }
.button { display: inline-block; padding: 12px 24px; border-radius: 4px; text-decoration: none; }
@media (max-width: 768px) { .pf-column { flex-basis: 100% !important; } }
"""


def _neutralize_php(html: str) -> str:
    # Generated markup must never open a PHP block inside index.php.
    return html.replace("<?", "&lt;?")


def render_section(section: Section) -> str:
    s = section.settings
    style = style_attr(
        background_color=s.background_color,
        background_image=f"url('{s.background_image}')" if s.background_image else "",
        padding="" if s.padding.is_zero() else s.padding.css(),
    )
    classes = " ".join(c for c in ("pf-section", s.css_class) if c)
    attr = f' style="{esc(style)}"' if style else ""
    if len(section.columns) == 1:
        body = "\n".join(widget_html(w) for w in section.columns[0].widgets)
    else:
        cols = []
        for column in section.columns:
            inner = "\n".join(widget_html(w) for w in column.widgets)
            cols.append(
                f'<div class="pf-column" style="flex-basis:{column.size_percent}%">\n{inner}\n</div>'
            )
        body = '<div class="pf-columns">\n' + "\n".join(cols) + "\n</div>"
    return f'<section class="{esc(classes)}"{attr}>\n{body}\n</section>'


def render_body(document: Document) -> str:
    return _neutralize_php("\n\n".join(render_section(s) for s in document.sections))


class PluginFreeBuilder(Builder):
    builder_id = "plugin-free"
    display_name = "Plugin-Free Theme"
    folder = ""

    def folder_for(self, ctx: BuildContext) -> str:
        return ctx.theme.slug

    def generate(self, document: Document, ctx: BuildContext) -> BuildOutput:
        theme = ctx.theme
        base = self.folder_for(ctx)
        prefix = theme.function_prefix
        files = [
            GeneratedFile.text(f"{base}/style.css", _style_css(ctx), FileGroup.STYLE),
            GeneratedFile.text(f"{base}/functions.php", _functions_php(ctx, prefix), FileGroup.TEMPLATE),
            GeneratedFile.text(f"{base}/header.php", _HEADER_PHP, FileGroup.TEMPLATE),
            GeneratedFile.text(
                f"{base}/index.php",
                "<?php get_header(); ?>\n<main id=\"main\" class=\"site-main\">\n"
                f"{render_body(document)}\n</main>\n<?php get_footer(); ?>\n",
                FileGroup.TEMPLATE,
            ),
            GeneratedFile.text(f"{base}/footer.php", _FOOTER_PHP, FileGroup.TEMPLATE),
        ]
        files += self.asset_files(ctx, base, css_name="custom", js_name="custom")
        files.append(
            self.readme(
                base,
                theme.name,
                "A standalone WordPress theme generated from a captured page. It "
                "needs no page builder or additional extensions.\n\n"
                "1. Upload the theme folder to `/wp-content/themes/`.\n"
                "2. Activate it under Appearance > Themes.",
            )
        )
        return BuildOutput(
            files=tuple(files), metadata=self.metadata(document, format="html", theme=theme.slug)
        )


def _style_css(ctx: BuildContext) -> str:
    theme = ctx.theme
    header = [
        "/*",
        f"Theme Name: {theme.name}",
        f"Author: {theme.author}",
        f"Description: {theme.description}",
        f"Version: {theme.version}",
    ]
    if theme.uri:
        header.append(f"Theme URI: {theme.uri}")
    header += ["License: GPL-2.0-or-later", f"Text Domain: {theme.slug}", "*/"]
    return "\n".join(header) + "\n" + _COLUMNS_CSS


def _functions_php(ctx: BuildContext, prefix: str) -> str:
    styles = "".join(
        f"    wp_enqueue_style('{prefix}-custom-{i}', get_template_directory_uri() . "
        f"'/assets/css/custom-{i}.css', array('{prefix}-style'), '{ctx.theme.version}');\n"
        for i in range(1, len(ctx.css) + 1)
    )
    scripts = "".join(
        f"    wp_enqueue_script('{prefix}-custom-{i}', get_template_directory_uri() . "
        f"'/assets/js/custom-{i}.js', array(), '{ctx.theme.version}', true);\n"
        for i in range(1, len(ctx.js) + 1)
    )
    return f"""<?php
if (!defined('ABSPATH')) {{
    exit;
}}

function {prefix}_setup() {{
    add_theme_support('title-tag');
    add_theme_support('post-thumbnails');
    add_theme_support('html5', array('search-form', 'gallery', 'caption'));
    register_nav_menus(array('primary' => 'Primary Menu'));
}}
add_action('after_setup_theme', '{prefix}_setup');

function {prefix}_assets() {{
    wp_enqueue_style('{prefix}-style', get_stylesheet_uri(), array(), '{ctx.theme.version}');
{styles}{scripts}}}
add_action('wp_enqueue_scripts', '{prefix}_assets');
"""


_HEADER_PHP = """<!DOCTYPE html>
<html <?php language_attributes(); ?>>
<head>
<meta charset="<?php bloginfo('charset'); ?>">
<meta name="viewport" content="width=device-width, initial-scale=1">
<?php wp_head(); ?>
</head>
<body <?php body_class(); ?>>
<?php wp_body_open(); ?>
<header class="site-header">
<a class="site-title" href="<?php echo esc_url(home_url('/')); ?>"><?php bloginfo('name'); ?></a>
</header>
"""

_FOOTER_PHP = """<footer class="site-footer">
<p>&copy; <?php echo esc_html(date('Y')); ?> <?php bloginfo('name'); ?></p>
</footer>
<?php wp_footer(); ?>
</body>
</html>
"""
