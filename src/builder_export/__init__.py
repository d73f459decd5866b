"""builder-export core library.

Converts a captured web page (markup, stylesheets, scripts and asset bytes)
into importable packages for WordPress page builders, plus a plugin-free
theme. One intermediate document is built per export; each target builder
renders it into its own syntax.

Repo rules:
- Builders are stateless; per-run state lives in the build context.
- Every export stage writes its report, even when switched off.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
