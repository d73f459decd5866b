from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any

MANIFEST_JSONL = "manifest.jsonl"
MANIFEST_JSON = "manifest.json"


def utc_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


@dataclass
class StageLog:
    """Event log of one export run, packaged as ``manifest.jsonl``."""

    events: list[dict[str, Any]] = field(default_factory=list)

    def append(self, event: dict[str, Any]) -> None:
        event = dict(event)
        event.setdefault("at", utc_iso())
        self.events.append(event)

    def stage(self, kind: str, stage: str, **fields: Any) -> None:
        self.append({"kind": kind, "stage": stage, **fields})

    def to_jsonl(self) -> str:
        return "".join(json.dumps(evt, ensure_ascii=False) + "\n" for evt in self.events)


def summary_json(summary: dict[str, Any]) -> str:
    return json.dumps(summary, indent=2, ensure_ascii=False)
