from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from typing import Any


class FileGroup(str, Enum):
    MARKUP = "markup"
    TEMPLATE = "template"
    STYLE = "style"
    SCRIPT = "script"
    IMAGE = "image"
    DOC = "doc"


TEXT_GROUPS = frozenset(
    {FileGroup.MARKUP, FileGroup.TEMPLATE, FileGroup.STYLE, FileGroup.SCRIPT, FileGroup.DOC}
)


@dataclass(frozen=True)
class GeneratedFile:
    path: str
    data: bytes
    group: FileGroup

    @classmethod
    def text(cls, path: str, content: str, group: FileGroup) -> GeneratedFile:
        return cls(path=path, data=content.encode("utf-8"), group=group)

    @property
    def content(self) -> str:
        return self.data.decode("utf-8", errors="replace")

    @property
    def suffix(self) -> str:
        return PurePosixPath(self.path).suffix.lower()

    @property
    def size(self) -> int:
        return len(self.data)


REPORT_NAMES = {
    "budget": "BUDGET_VALIDATION_REPORT.txt",
    "embedding": "ASSET_EMBEDDING_REPORT.txt",
    "elimination": "ELIMINATION_REPORT.txt",
    "verification": "VERIFICATION_REPORT.txt",
}
VIOLATION_REPORT_NAME = "BUDGET_VIOLATION_REPORT.txt"


@dataclass
class ExportArtifact:
    """Files, reports and metadata of one export; finalized by packaging."""

    builder_id: str
    files: list[GeneratedFile] = field(default_factory=list)
    reports: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    instructions: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    archive: bytes = b""

    @property
    def finalized(self) -> bool:
        return bool(self.archive)
