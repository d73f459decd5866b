"""Tests for export archive inspection."""

from __future__ import annotations

import json
import zipfile
from pathlib import Path

import pytest

from builder_export.artifact import REPORT_NAMES
from builder_export.export_inspect import inspect_archive
from builder_export.pipeline import run_export


def _zip(path: Path, entries: dict[str, str]) -> Path:
    with zipfile.ZipFile(path, "w") as zf:
        for name, text in entries.items():
            zf.writestr(name, text)
    return path


class TestInspectArchive:
    """Tests for inspect_archive."""

    def test_pipeline_archive_is_complete(self, tmp_path: Path, export_input) -> None:
        """A packaged export references only files it contains."""
        artifact = run_export(export_input("divi"))
        path = tmp_path / "divi-export.zip"
        path.write_bytes(artifact.archive)

        result = inspect_archive(path)
        assert result.complete is True
        assert result.missing_files == 0
        assert result.referenced_files > len(artifact.files)
        assert result.lines_invalid_json == 0
        assert result.kinds["stage_started"] == 6
        assert result.kinds["stage_skipped"] == 4
        assert all(result.reports.values())

    def test_missing_files(self, tmp_path: Path) -> None:
        """Manifest items absent from the zip are counted and sampled."""
        manifest = {"items": [{"file": "a.txt"}, {"file": "b.txt"}, {"file": "c.txt"}]}
        path = _zip(tmp_path / "x.zip", {"a.txt": "a", "manifest.json": json.dumps(manifest)})

        result = inspect_archive(path, max_missing_paths_sample=1)
        assert result.referenced_files == 3
        assert result.missing_files == 2
        assert result.missing_paths_sample == ["b.txt"]
        assert result.complete is False

    def test_missing_reports(self, tmp_path: Path) -> None:
        """Stage reports are part of completeness."""
        entries = {"manifest.json": json.dumps({"items": []})}
        entries.update({name: "" for name in list(REPORT_NAMES.values())[:-1]})
        result = inspect_archive(_zip(tmp_path / "x.zip", entries))
        assert result.missing_files == 0
        assert result.reports[REPORT_NAMES["verification"]] is False
        assert result.complete is False

    def test_counts_event_kinds(self, tmp_path: Path) -> None:
        """Event kinds are tallied and bad lines counted."""
        lines = '{"kind": "a"}\n{"kind": "b"}\n{"kind": "a"}\nnot json\n\n'
        result = inspect_archive(_zip(tmp_path / "x.zip", {"manifest.jsonl": lines}))
        assert result.kinds == {"a": 2, "b": 1}
        assert list(result.kinds) == ["a", "b"]
        assert result.lines_invalid_json == 1
        assert result.lines_total == 5

    def test_to_dict(self, tmp_path: Path) -> None:
        """The JSON form includes the completeness flag."""
        path = _zip(tmp_path / "x.zip", {"manifest.jsonl": ""})
        data = inspect_archive(path).to_dict()
        assert data["archive_path"] == str(path)
        assert data["complete"] is False

    def test_not_a_zip(self, tmp_path: Path) -> None:
        """Garbage input is a ValueError."""
        path = tmp_path / "x.zip"
        path.write_bytes(b"not a zip")
        with pytest.raises(ValueError, match="Not a zip"):
            inspect_archive(path)

    def test_no_manifest(self, tmp_path: Path) -> None:
        """Archives without a manifest are rejected."""
        with pytest.raises(FileNotFoundError):
            inspect_archive(_zip(tmp_path / "x.zip", {"a.txt": "a"}))

    def test_invalid_manifest_json(self, tmp_path: Path) -> None:
        """A corrupt manifest.json is a ValueError."""
        with pytest.raises(ValueError, match="Invalid JSON"):
            inspect_archive(_zip(tmp_path / "x.zip", {"manifest.json": "{"}))
