from __future__ import annotations

import json
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .artifact import REPORT_NAMES, VIOLATION_REPORT_NAME
from .manifest import MANIFEST_JSON, MANIFEST_JSONL


@dataclass(frozen=True)
class ArchiveInspection:
    archive_path: Path
    entries: int
    lines_total: int
    lines_invalid_json: int
    kinds: dict[str, int]
    referenced_files: int
    missing_files: int
    missing_paths_sample: list[str]
    reports: dict[str, bool]

    @property
    def complete(self) -> bool:
        return self.missing_files == 0 and all(self.reports.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "archive_path": str(self.archive_path),
            "entries": self.entries,
            "lines_total": self.lines_total,
            "lines_invalid_json": self.lines_invalid_json,
            "kinds": dict(self.kinds),
            "referenced_files": self.referenced_files,
            "missing_files": self.missing_files,
            "missing_paths_sample": list(self.missing_paths_sample),
            "reports": dict(self.reports),
            "complete": self.complete,
        }


def inspect_archive(path: Path, *, max_missing_paths_sample: int = 25) -> ArchiveInspection:
    """Cross-check an export zip against its own manifests."""

    path = Path(path)
    try:
        zf = zipfile.ZipFile(path)
    except zipfile.BadZipFile as e:
        raise ValueError(f"Not a zip archive: {path}") from e

    with zf:
        names = set(zf.namelist())
        if MANIFEST_JSONL not in names and MANIFEST_JSON not in names:
            raise FileNotFoundError(f"Missing manifest.jsonl/manifest.json in: {path}")

        kinds: dict[str, int] = {}
        lines_total = 0
        lines_invalid_json = 0
        if MANIFEST_JSONL in names:
            for line in zf.read(MANIFEST_JSONL).decode("utf-8").splitlines():
                lines_total += 1
                line = line.strip()
                if not line:
                    continue
                try:
                    evt = json.loads(line)
                except json.JSONDecodeError:
                    lines_invalid_json += 1
                    continue
                kind = str(evt.get("kind") or "")
                if kind:
                    kinds[kind] = kinds.get(kind, 0) + 1

        referenced_files = 0
        missing_files = 0
        missing_paths_sample: list[str] = []
        if MANIFEST_JSON in names:
            try:
                manifest_obj = json.loads(zf.read(MANIFEST_JSON).decode("utf-8"))
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in manifest.json in: {path}") from e
            items = manifest_obj.get("items") if isinstance(manifest_obj, dict) else None
            for it in items if isinstance(items, list) else []:
                if not isinstance(it, dict):
                    continue
                v = it.get("file")
                if not isinstance(v, str) or not v:
                    continue
                referenced_files += 1
                if v not in names:
                    missing_files += 1
                    if len(missing_paths_sample) < max_missing_paths_sample:
                        missing_paths_sample.append(v)

        reports = {name: name in names for name in REPORT_NAMES.values()}
        if VIOLATION_REPORT_NAME in names:
            reports[VIOLATION_REPORT_NAME] = True

    kinds = dict(sorted(kinds.items(), key=lambda kv: (-kv[1], kv[0])))
    return ArchiveInspection(
        archive_path=path,
        entries=len(names),
        lines_total=lines_total,
        lines_invalid_json=lines_invalid_json,
        kinds=kinds,
        referenced_files=referenced_files,
        missing_files=missing_files,
        missing_paths_sample=missing_paths_sample,
        reports=reports,
    )
