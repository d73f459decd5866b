from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any

MAX_BLOCK_DEPTH = 10

_TOKEN_RE = re.compile(
    r"<!--\s+(?P<closer>/)?wp:(?P<name>[a-z][a-z0-9_-]*(?:/[a-z][a-z0-9_-]*)?)\s+"
    r"(?P<attrs>\{.*?\}\s+)?(?P<void>/)?-->",
    re.DOTALL,
)


@dataclass(frozen=True)
class Block:
    """One native block, e.g. ``core/heading`` with its attributes."""

    name: str
    attributes: dict[str, Any] = field(default_factory=dict)
    inner_html: str = ""
    inner_blocks: tuple[Block, ...] = ()

    @property
    def namespace(self) -> str:
        return self.name.split("/", 1)[0] if "/" in self.name else "core"

    @property
    def short_name(self) -> str:
        return self.name.split("/", 1)[-1]

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, _depth: int = 0) -> Block:
        """Build a block from either a REST-style or a parser-style record.

        Accepts ``{namespace, name, attributes, innerHTML, innerBlocks}`` as
        well as ``{blockName, attrs, innerHTML, innerBlocks}``.
        """

        if _depth > MAX_BLOCK_DEPTH:
            raise ValueError(f"Block nesting exceeds {MAX_BLOCK_DEPTH} levels")

        if "blockName" in data:
            name = str(data.get("blockName") or "core/freeform")
            attrs = data.get("attrs") or {}
        else:
            raw_name = str(data.get("name") or "freeform")
            namespace = str(data.get("namespace") or "core")
            name = raw_name if "/" in raw_name else f"{namespace}/{raw_name}"
            attrs = data.get("attributes") or {}

        inner = data.get("innerBlocks") or []
        children = tuple(
            cls.from_dict(child, _depth=_depth + 1)
            for child in inner
            if isinstance(child, dict)
        )
        return cls(
            name=_qualify(name),
            attributes=dict(attrs) if isinstance(attrs, dict) else {},
            inner_html=str(data.get("innerHTML") or ""),
            inner_blocks=children,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "namespace": self.namespace,
            "name": self.short_name,
            "attributes": dict(self.attributes),
            "innerHTML": self.inner_html,
            "innerBlocks": [b.to_dict() for b in self.inner_blocks],
        }


def _qualify(name: str) -> str:
    return name if "/" in name else f"core/{name}"


@dataclass
class _Frame:
    name: str
    attrs: dict[str, Any]
    parts: list[str] = field(default_factory=list)
    children: list[Block] = field(default_factory=list)

    def finish(self) -> Block:
        return Block(
            name=self.name,
            attributes=self.attrs,
            inner_html="".join(self.parts).strip(),
            inner_blocks=tuple(self.children),
        )


def _parse_attrs(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except ValueError:
        return {}
    return value if isinstance(value, dict) else {}


def parse_blocks(content: str) -> list[Block]:
    """Parse serialized block markup into a block tree.

    Text outside any block becomes a ``core/freeform`` block when it is not
    blank. Unclosed blocks are closed at the end of the input.
    """

    output: list[Block] = []
    stack: list[_Frame] = []
    offset = 0

    def emit(block: Block) -> None:
        if stack:
            stack[-1].children.append(block)
        else:
            output.append(block)

    def emit_text(text: str) -> None:
        if stack:
            stack[-1].parts.append(text)
        elif text.strip():
            output.append(Block(name="core/freeform", inner_html=text.strip()))

    for m in _TOKEN_RE.finditer(content):
        emit_text(content[offset : m.start()])
        offset = m.end()

        name = _qualify(m.group("name"))
        if m.group("closer"):
            if not stack:
                continue
            emit_block = stack.pop().finish()
            emit(emit_block)
            continue

        attrs = _parse_attrs(m.group("attrs"))
        if m.group("void"):
            emit(Block(name=name, attributes=attrs))
        else:
            stack.append(_Frame(name=name, attrs=attrs))

    emit_text(content[offset:])
    while stack:
        emit(stack.pop().finish())
    return output
