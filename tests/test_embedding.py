"""Tests for the inline/upload/external asset decision."""

from __future__ import annotations

import base64

import pytest

from builder_export.convert.blocks import Block
from builder_export.convert.sources import ElementData
from builder_export.embedding import (
    DEFAULT_IMAGE_THRESHOLD,
    UPLOAD_PREFIX,
    Decision,
    EmbeddingOptions,
    decide,
    embed_assets,
    embed_blocks,
    embed_elements,
    embed_sources,
    lookup_asset,
)

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


# ============================================================================
# decide
# ============================================================================


class TestDecide:
    """Tests for the size boundaries."""

    @pytest.mark.parametrize(
        ("size", "expected"),
        [
            (0, Decision.INLINE),
            (100, Decision.INLINE),
            (101, Decision.WORDPRESS),
            (500, Decision.WORDPRESS),
            (501, Decision.EXTERNAL),
        ],
    )
    def test_boundaries(self, size: int, expected: Decision) -> None:
        """Inclusive at the threshold and at five times the threshold."""
        assert decide(size, 100) is expected

    def test_image_threshold(self) -> None:
        """A 2 KiB image inlines, a 2 MiB image stays external at 50 KiB."""
        assert decide(2 * 1024, DEFAULT_IMAGE_THRESHOLD) is Decision.INLINE
        assert decide(2 * 1024 * 1024, DEFAULT_IMAGE_THRESHOLD) is Decision.EXTERNAL


class TestLookupAsset:
    """Tests for matching references to captured bytes."""

    def test_exact_then_path_suffix(self) -> None:
        """References resolve by exact key, then by a path suffix."""
        assets = {"img/a.png": b"a", "css/site.css": b"c"}
        assert lookup_asset(assets, "img/a.png") == b"a"
        assert lookup_asset(assets, "./img/a.png?v=2") == b"a"
        assert lookup_asset(assets, "https://cdn.example.com/css/site.css") == b"c"
        assert lookup_asset(assets, "https://cdn.example.com/static/site.css") is None
        assert lookup_asset(assets, "missing.png") is None

    def test_same_name_other_directory(self) -> None:
        """A shared file name in another directory is not a match."""
        assert lookup_asset({"b/logo.png": b"b"}, "a/logo.png") is None
        assert lookup_asset({"img/logo.png": b"i"}, "logo.png") == b"i"

    def test_ambiguous_suffix(self) -> None:
        """Two assets matching one reference resolve to neither."""
        assets = {"a/logo.png": b"a", "b/logo.png": b"b"}
        assert lookup_asset(assets, "logo.png") is None
        assert lookup_asset(assets, "/a/logo.png") == b"a"


# ============================================================================
# embed_assets
# ============================================================================


class TestEmbedAssets:
    """Tests for rewriting markup references."""

    def test_small_image_becomes_data_uri(self) -> None:
        """Images under the threshold are inlined as base64."""
        result = embed_assets('<img src="a.png" srcset="a@2x.png 2x">', {"a.png": PNG})
        expected = "data:image/png;base64," + base64.b64encode(PNG).decode("ascii")
        assert expected in result.html
        assert "srcset" not in result.html
        (decision,) = result.decisions
        assert decision.decision is Decision.INLINE
        assert decision.method == "base64"

    def test_mid_image_is_uploaded(self) -> None:
        """Images between the limits point at the media library."""
        options = EmbeddingOptions(image_threshold=10)
        result = embed_assets('<img src="img/b.png">', {"img/b.png": b"x" * 30}, options)
        assert f'src="{UPLOAD_PREFIX}b.png"' in result.html
        assert result.uploads() == ["img/b.png"]

    def test_large_image_left_alone(self) -> None:
        """Images over five times the threshold stay untouched."""
        html = '<img src="big.png">'
        result = embed_assets(html, {"big.png": b"x" * 60}, EmbeddingOptions(image_threshold=10))
        assert result.html == html
        assert result.count(Decision.EXTERNAL) == 1

    def test_base64_disabled(self) -> None:
        """With base64 off, small images stay external references."""
        html = '<img src="a.png">'
        result = embed_assets(html, {"a.png": PNG}, EmbeddingOptions(enable_base64=False))
        assert result.html == html
        assert result.decisions[0].decision is Decision.EXTERNAL
        assert result.uploads() == []

    def test_inline_css_disabled(self) -> None:
        """With CSS inlining off, small stylesheets keep their link."""
        html = '<link rel="stylesheet" href="site.css"/>'
        result = embed_assets(html, {"site.css": b"p{}"}, EmbeddingOptions(inline_css=False))
        assert result.html == html
        assert result.decisions[0].decision is Decision.EXTERNAL

    def test_image_in_other_directory_is_external(self) -> None:
        """An asset with the same file name elsewhere is not embedded."""
        html = '<img src="a/logo.png">'
        result = embed_assets(html, {"b/logo.png": PNG})
        assert result.html == html
        (decision,) = result.decisions
        assert decision.decision is Decision.EXTERNAL
        assert decision.size_bytes == 0

    def test_stylesheet_inlined(self) -> None:
        """Small linked stylesheets become style elements."""
        result = embed_assets(
            '<link rel="stylesheet" href="site.css"><p>x</p>', {"site.css": b"p{color:red}"}
        )
        assert "<style>p{color:red}</style>" in result.html
        assert "<link" not in result.html

    def test_script_inlined(self) -> None:
        """Small external scripts lose their src and carry the code."""
        result = embed_assets('<script src="app.js"></script>', {"app.js": b"run();"})
        assert result.html == "<script>run();</script>"

    def test_missing_bytes_are_external(self) -> None:
        """References without captured bytes are kept and reported."""
        html = '<img src="https://example.com/x.png">'
        result = embed_assets(html, {})
        assert result.html == html
        (decision,) = result.decisions
        assert decision.decision is Decision.EXTERNAL
        assert decision.size_bytes == 0

    def test_unreferenced_images_never_inline(self) -> None:
        """Captured images missing from the markup are at most uploaded."""
        result = embed_assets("<p>x</p>", {"logo.png": PNG}, image_paths=["logo.png"])
        assert result.html == "<p>x</p>"
        assert result.decisions[0].decision is Decision.WORDPRESS

    def test_size_growth(self) -> None:
        """Inlining reports the markup growth."""
        result = embed_assets('<img src="a.png">', {"a.png": PNG})
        assert result.processed_size > result.original_size
        assert result.size_increase_percent > 0
        level, _ = result.assessment()
        assert level == "warning"


# ============================================================================
# Native blocks and extracted elements
# ============================================================================


class TestEmbedStructured:
    """Tests for embedding into blocks and element snapshots."""

    DATA_URI = "data:image/png;base64," + base64.b64encode(PNG).decode("ascii")

    def test_block_url_and_markup(self) -> None:
        """An image block's url and inner img share one decision."""
        block = Block("core/image", {"url": "a.png"}, '<figure><img src="a.png"/></figure>')
        group = Block("core/group", {}, "<div></div>", (block,))
        (embedded,), result = embed_blocks([group], {"a.png": PNG})
        (image,) = embedded.inner_blocks
        assert image.attributes["url"] == self.DATA_URI
        assert self.DATA_URI in image.inner_html
        assert block.attributes["url"] == "a.png"
        (decision,) = result.decisions
        assert decision.decision is Decision.INLINE

    def test_non_image_url_untouched(self) -> None:
        """Button and file urls are not image references."""
        block = Block("core/button", {"url": "/signup"}, "<a>Go</a>")
        (embedded,), result = embed_blocks([block], {})
        assert embedded is block
        assert result.decisions == ()

    def test_element_src(self) -> None:
        """Extracted img elements get the rewritten src."""
        img = ElementData(tag="img", attributes={"src": "img/a.png", "alt": "A"})
        para = ElementData(tag="p", text="x")
        (new_img, new_para), result = embed_elements([img, para], {"img/a.png": PNG})
        assert new_img.attributes == {"src": self.DATA_URI, "alt": "A"}
        assert new_para is para
        assert result.count(Decision.INLINE) == 1

    def test_captured_image_used_by_block(self) -> None:
        """A captured image referenced only from a block is not unreferenced."""
        block = Block("core/image", {"url": "a.png"})
        blocks, result, elements = embed_sources(
            "<p>x</p>", {"a.png": PNG}, blocks=[block], image_paths=["a.png"]
        )
        assert elements is None
        assert blocks is not None
        assert blocks[0].attributes["url"] == self.DATA_URI
        (decision,) = result.decisions
        assert decision.decision is Decision.INLINE
        assert result.html == "<p>x</p>"
