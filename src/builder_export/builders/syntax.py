"""Low-level writers for block comments, shortcodes and PHP serialization."""

from __future__ import annotations

import json
from typing import Any, Mapping


def block_attrs_json(attrs: Mapping[str, Any]) -> str:
    # Escaped so the JSON can never terminate the surrounding comment.
    text = json.dumps(attrs, separators=(",", ":"), ensure_ascii=False)
    return (
        text.replace("--", "\\u002d\\u002d")
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
    )


def serialize_block(name: str, attrs: Mapping[str, Any] | None, inner: str | None) -> str:
    """``<!-- wp:name {attrs} -->inner<!-- /wp:name -->``; core/ is implied."""

    if name.startswith("core/"):
        name = name[len("core/") :]
    opener = f"<!-- wp:{name}"
    if attrs:
        opener += " " + block_attrs_json(attrs)
    if inner is None:
        return opener + " /-->"
    return f"{opener} -->\n{inner}\n<!-- /wp:{name} -->"


def escape_shortcode_attr(value: object) -> str:
    text = str(value)
    return (
        text.replace("&", "&amp;")
        .replace('"', "&quot;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace("[", "&#91;")
        .replace("]", "&#93;")
    )


def escape_shortcode_content(text: str) -> str:
    return text.replace("[", "&#91;").replace("]", "&#93;")


def shortcode(
    tag: str,
    attrs: Mapping[str, Any] | None = None,
    content: str | None = None,
) -> str:
    """Render ``[tag a="b"]content[/tag]``, or a self-closing ``[tag /]``.

    Empty and None attribute values are omitted. ``content`` must already be
    escaped with ``escape_shortcode_content`` or be nested shortcodes.
    """

    parts = [tag]
    for key, value in (attrs or {}).items():
        if value is None or value == "":
            continue
        parts.append(f'{key}="{escape_shortcode_attr(value)}"')
    opener = "[" + " ".join(parts)
    if content is None:
        return opener + " /]"
    return f"{opener}]{content}[/{tag}]"


def php_serialize(value: Any) -> str:
    """Serialize Python values the way PHP's ``serialize()`` does."""

    if value is None:
        return "N;"
    if isinstance(value, bool):
        return f"b:{int(value)};"
    if isinstance(value, int):
        return f"i:{value};"
    if isinstance(value, float):
        return f"d:{value!r};"
    if isinstance(value, str):
        return f's:{len(value.encode("utf-8"))}:"{value}";'
    if isinstance(value, Mapping):
        items = "".join(php_serialize(k) + php_serialize(v) for k, v in value.items())
        return f"a:{len(value)}:{{{items}}}"
    if isinstance(value, (list, tuple)):
        items = "".join(php_serialize(i) + php_serialize(v) for i, v in enumerate(value))
        return f"a:{len(value)}:{{{items}}}"
    raise TypeError(f"cannot serialize {type(value).__name__}")
