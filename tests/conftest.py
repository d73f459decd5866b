"""Shared fixtures for builder-export tests."""

from __future__ import annotations

from typing import Callable

import pytest

from builder_export.builders.base import BuildContext, ThemeMetadata
from builder_export.convert.sources import MarkupSource, build_document
from builder_export.ir import Document, SequentialIds
from builder_export.pipeline import ExportFlags, ExportInput

# ============================================================================
# Sample pages
# ============================================================================

SIMPLE_PAGE = "<h1>Hi</h1><p>World</p>"

LANDING_PAGE = """<!DOCTYPE html>
<html>
<head><title>Landing</title></head>
<body>
  <section class="hero" style="background-color: #336699; padding: 40px 20px">
    <h1>Grow faster</h1>
    <p>Everything you need to launch.</p>
    <a class="btn btn-lg" href="/signup">Sign up</a>
  </section>
  <section class="benefits">
    <div class="col">
      <h3>Fast</h3>
      <p>Ships in minutes.</p>
    </div>
    <div class="col">
      <h3>Safe</h3>
      <p>Backed up daily.</p>
    </div>
    <div class="col">
      <img src="images/team.png" alt="Team" />
    </div>
  </section>
</body>
</html>
"""


@pytest.fixture
def simple_html() -> str:
    return SIMPLE_PAGE


@pytest.fixture
def landing_html() -> str:
    return LANDING_PAGE


@pytest.fixture
def landing_document() -> Document:
    return build_document(MarkupSource(LANDING_PAGE))


@pytest.fixture
def make_ctx() -> Callable[..., BuildContext]:
    """Factory for build contexts with deterministic ids."""

    def _make(html: str = "", **overrides) -> BuildContext:
        values = {
            "html": html,
            "ids": SequentialIds(),
            "theme": ThemeMetadata(name="Test Theme"),
        }
        values.update(overrides)
        return BuildContext(**values)

    return _make


@pytest.fixture
def export_input() -> Callable[..., ExportInput]:
    """Factory for pipeline inputs around the simple page."""

    def _make(target: str = "gutenberg", **overrides) -> ExportInput:
        values = {
            "html": SIMPLE_PAGE,
            "target": target,
            "flags": ExportFlags(),
        }
        values.update(overrides)
        return ExportInput(**values)

    return _make
