from __future__ import annotations

import io
import json
import logging
import zipfile
from typing import Any

from .artifact import ExportArtifact
from .convert.html_to_md import html_to_markdown
from .manifest import MANIFEST_JSON, MANIFEST_JSONL, StageLog, summary_json

logger = logging.getLogger(__name__)

INSTALL_NAME = "INSTALL.txt"
PREVIEW_NAME = "PREVIEW.md"
METADATA_NAME = "metadata.json"

# Entry timestamps are fixed; the export time lives in metadata.json.
_ZIP_DATE = (1980, 1, 1, 0, 0, 0)


def _entry(zf: zipfile.ZipFile, name: str, data: bytes) -> None:
    info = zipfile.ZipInfo(name, date_time=_ZIP_DATE)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = 0o644 << 16
    zf.writestr(info, data)


def _summary(artifact: ExportArtifact, extra_names: list[str]) -> dict[str, Any]:
    items = [{"file": f.path, "size": f.size, "group": f.group.value} for f in artifact.files]
    items += [{"file": name, "group": "report"} for name in sorted(artifact.reports)]
    items += [{"file": name, "group": "package"} for name in extra_names]
    return {
        "builderId": artifact.builder_id,
        "createdAt": artifact.metadata.get("createdAt"),
        "fileCount": len(artifact.files),
        "totalSize": sum(f.size for f in artifact.files),
        "warnings": list(artifact.warnings),
        "items": items,
    }


def build_archive(
    artifact: ExportArtifact,
    log: StageLog,
    *,
    preview_html: str = "",
    title: str | None = None,
) -> bytes:
    """Zip builder files, stage reports and package metadata; finalizes ``artifact``."""

    if artifact.finalized:
        raise ValueError(f"artifact for {artifact.builder_id} is already packaged")

    extra = [INSTALL_NAME, PREVIEW_NAME, METADATA_NAME, MANIFEST_JSONL]
    summary = _summary(artifact, extra)
    log.stage("packaged", "package", files=len(summary["items"]))

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for f in artifact.files:
            _entry(zf, f.path, f.data)
        for name, text in sorted(artifact.reports.items()):
            _entry(zf, name, text.encode("utf-8"))
        _entry(zf, INSTALL_NAME, artifact.instructions.encode("utf-8"))
        preview = html_to_markdown(preview_html, builder_id=artifact.builder_id, title=title)
        _entry(zf, PREVIEW_NAME, preview.encode("utf-8"))
        _entry(
            zf,
            METADATA_NAME,
            json.dumps(artifact.metadata, indent=2, ensure_ascii=False).encode("utf-8"),
        )
        _entry(zf, MANIFEST_JSONL, log.to_jsonl().encode("utf-8"))
        _entry(zf, MANIFEST_JSON, summary_json(summary).encode("utf-8"))

    artifact.archive = buf.getvalue()
    logger.debug("archive built: %d entries, %d bytes", len(summary["items"]) + 1, len(artifact.archive))
    return artifact.archive
