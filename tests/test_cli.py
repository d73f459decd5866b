"""Tests for the builder-export command line."""

from __future__ import annotations

import json
import zipfile
from pathlib import Path

import pytest

from builder_export.artifact import VIOLATION_REPORT_NAME
from builder_export.cli import main
from builder_export.registry import BuilderId

PAGE = '<section class="hero"><h1>Launch</h1><p>Soon.</p></section>'


@pytest.fixture
def page(tmp_path: Path) -> Path:
    path = tmp_path / "page.html"
    path.write_text(PAGE, encoding="utf-8")
    return path


# ============================================================================
# builders / detect
# ============================================================================


class TestInfoCommands:
    """Tests for builders and detect."""

    def test_builders_json(self, capsys) -> None:
        """Every target is listed with its id."""
        assert main(["builders", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert [item["id"] for item in data] == [b.value for b in BuilderId]

    def test_builders_table(self, capsys) -> None:
        """The plain listing has one line per target."""
        assert main(["builders"]) == 0
        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == len(BuilderId)

    def test_detect(self, tmp_path: Path, capsys) -> None:
        """The source builder is printed, or unknown."""
        html = tmp_path / "x.html"
        html.write_text('<div class="et_pb_section"></div>', encoding="utf-8")
        assert main(["detect", "--html", str(html)]) == 0
        assert capsys.readouterr().out.strip() == "divi"

        html.write_text("<p>plain</p>", encoding="utf-8")
        assert main(["detect", "--html", str(html)]) == 0
        assert capsys.readouterr().out.strip() == "unknown"

    def test_detect_missing_file(self, tmp_path: Path) -> None:
        """An unreadable page is an input error."""
        assert main(["detect", "--html", str(tmp_path / "none.html")]) == 2


# ============================================================================
# export
# ============================================================================


class TestExportCommand:
    """Tests for the export command."""

    def test_writes_one_zip_per_target(self, tmp_path: Path, page: Path) -> None:
        """Each target lands in its own archive."""
        out = tmp_path / "out"
        argv = ["export", "--html", str(page), "--out", str(out), "--quiet"]
        argv += ["--target", "elementor", "--target", "gutenberg", "--verify"]
        assert main(argv) == 0
        assert sorted(p.name for p in out.iterdir()) == [
            "elementor-export.zip",
            "gutenberg-export.zip",
        ]
        with zipfile.ZipFile(out / "gutenberg-export.zip") as zf:
            meta = json.loads(zf.read("metadata.json"))
        assert meta["builderId"] == "gutenberg"
        assert meta["pluginFreeScore"] == 100

    def test_random_ids(self, tmp_path: Path, page: Path) -> None:
        """Random ids replace the sequential ones."""
        out = tmp_path / "out"
        argv = ["export", "--html", str(page), "--out", str(out), "--quiet"]
        assert main(argv + ["--target", "elementor", "--random-ids"]) == 0
        with zipfile.ZipFile(out / "elementor-export.zip") as zf:
            name = next(n for n in zf.namelist() if n.endswith("templates/template.json"))
            template = zf.read(name).decode("utf-8")
        assert '"0000001"' not in template

    def test_budget_abort(self, tmp_path: Path, page: Path) -> None:
        """A blocked budget writes only the violation report."""
        budget = tmp_path / "budget.json"
        budget.write_text(json.dumps({"html": {"maxSize": 10}}), encoding="utf-8")
        out = tmp_path / "out"
        argv = ["export", "--html", str(page), "--out", str(out), "--quiet", "--target", "divi"]
        argv += ["--validate-budget", "--budget", str(budget)]
        assert main(argv) == 3
        assert [p.name for p in out.iterdir()] == [VIOLATION_REPORT_NAME]
        report = (out / VIOLATION_REPORT_NAME).read_text(encoding="utf-8")
        assert "PERFORMANCE BUDGET VIOLATIONS" in report

    def test_budget_override(self, tmp_path: Path, page: Path) -> None:
        """The override flag exports despite violations."""
        budget = tmp_path / "budget.json"
        budget.write_text(json.dumps({"max_html_size": 10}), encoding="utf-8")
        out = tmp_path / "out"
        argv = ["export", "--html", str(page), "--out", str(out), "--quiet", "--target", "divi"]
        argv += ["--validate-budget", "--budget", str(budget), "--budget-override"]
        assert main(argv) == 0
        assert (out / "divi-export.zip").exists()

    def test_unsupported_target(self, tmp_path: Path) -> None:
        """Unknown targets fail before the input is read."""
        out = tmp_path / "out"
        argv = ["export", "--html", str(tmp_path / "none.html"), "--out", str(out), "--target", "wix"]
        assert main(argv) == 5
        assert not out.exists()

    def test_missing_input(self, tmp_path: Path) -> None:
        """A missing page file is an input error."""
        argv = ["export", "--html", str(tmp_path / "none.html"), "--out", str(tmp_path / "o")]
        assert main(argv + ["--target", "divi"]) == 2

    def test_invalid_budget_file(self, tmp_path: Path, page: Path) -> None:
        """A budget file that is not JSON is an input error."""
        budget = tmp_path / "budget.json"
        budget.write_text("{", encoding="utf-8")
        argv = ["export", "--html", str(page), "--out", str(tmp_path / "o"), "--target", "divi"]
        assert main(argv + ["--budget", str(budget)]) == 2

    def test_assets_and_blocks(self, tmp_path: Path, page: Path) -> None:
        """Captured assets and native blocks feed the export."""
        assets = tmp_path / "assets"
        (assets / "img").mkdir(parents=True)
        (assets / "img" / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n")
        blocks = tmp_path / "blocks.html"
        blocks.write_text(
            "<!-- wp:heading -->\n<h2>Native</h2>\n<!-- /wp:heading -->", encoding="utf-8"
        )
        out = tmp_path / "out"
        argv = ["export", "--html", str(page), "--out", str(out), "--quiet", "--target", "gutenberg"]
        argv += ["--assets-dir", str(assets), "--blocks", str(blocks)]
        assert main(argv) == 0
        with zipfile.ZipFile(out / "gutenberg-export.zip") as zf:
            names = zf.namelist()
            markup = "".join(
                zf.read(n).decode("utf-8") for n in names if n.endswith(".html")
            )
        assert any(n.endswith("assets/images/logo.png") for n in names)
        assert "Native" in markup


# ============================================================================
# inspect-export
# ============================================================================


class TestInspectCommand:
    """Tests for inspect-export."""

    def test_complete_archive(self, tmp_path: Path, page: Path, capsys) -> None:
        """A fresh export inspects clean."""
        out = tmp_path / "out"
        main(["export", "--html", str(page), "--out", str(out), "--quiet", "--target", "bricks"])
        capsys.readouterr()
        zip_path = out / "bricks-export.zip"
        assert main(["inspect-export", "--in", str(zip_path), "--json", "--fail-on-missing"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["complete"] is True
        assert data["missing_files"] == 0

    def test_fail_on_missing(self, tmp_path: Path, capsys) -> None:
        """Incomplete archives fail only when asked to."""
        path = tmp_path / "x.zip"
        with zipfile.ZipFile(path, "w") as zf:
            zf.writestr("manifest.json", json.dumps({"items": [{"file": "gone.txt"}]}))
        assert main(["inspect-export", "--in", str(path)]) == 0
        assert "missing: gone.txt" in capsys.readouterr().out
        assert main(["inspect-export", "--in", str(path), "--fail-on-missing"]) == 4

    def test_bad_archive(self, tmp_path: Path) -> None:
        """Unreadable archives are input errors."""
        path = tmp_path / "x.zip"
        path.write_bytes(b"nope")
        assert main(["inspect-export", "--in", str(path)]) == 2
