from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

import requests
from tqdm import tqdm

from .artifact import VIOLATION_REPORT_NAME
from .budget import Budget
from .builders.base import ThemeMetadata
from .content import AssetKind, asset_kind
from .convert.blocks import Block, parse_blocks
from .convert.sources import ElementData
from .embedding import EmbeddingOptions
from .errors import BudgetExceeded, InvalidInput, UnsupportedBuilder
from .export_inspect import inspect_archive
from .http_client import HttpClient
from .ir import RandomIds
from .pipeline import ExportFlags, ExportInput, ExportPipeline, ExportStage
from .registry import BUILDER_INFO, list_builders, resolve_builder_id
from .signatures import detect_source_builder
from .wp_api import WordPressApiError, WordPressClient


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def _load_assets(assets_dir: Path) -> dict[str, bytes]:
    assets: dict[str, bytes] = {}
    for p in sorted(assets_dir.rglob("*")):
        if p.is_file():
            assets[p.relative_to(assets_dir).as_posix()] = p.read_bytes()
    return assets


def _load_blocks(path: Path) -> list[Block]:
    text = _read_text(path)
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        # Not JSON: treat the file as serialized block content.
        return parse_blocks(text)
    if not isinstance(data, list):
        raise InvalidInput(f"Expected a JSON list of blocks in: {path}")
    return [Block.from_dict(item) for item in data if isinstance(item, dict)]


def _load_elements(path: Path) -> list[ElementData]:
    try:
        data = json.loads(_read_text(path))
    except json.JSONDecodeError as e:
        raise InvalidInput(f"Invalid JSON in: {path}") from e
    if isinstance(data, dict):
        data = data.get("elements")
    if not isinstance(data, list):
        raise InvalidInput(f"Expected a JSON list of elements in: {path}")
    return [ElementData.from_dict(item) for item in data if isinstance(item, dict)]


def _load_budget(path: Path) -> Budget:
    try:
        data = json.loads(_read_text(path))
    except json.JSONDecodeError as e:
        raise InvalidInput(f"Invalid JSON in budget file: {path}") from e
    if not isinstance(data, dict):
        raise InvalidInput(f"Expected a JSON object in budget file: {path}")
    return Budget.from_dict(data)


def _build_input(args: argparse.Namespace) -> ExportInput:
    assets = _load_assets(args.assets_dir) if args.assets_dir else {}
    image_paths = [p for p in assets if asset_kind(p) is AssetKind.IMAGE]
    embedding = None
    if args.no_base64 or args.inline_threshold is not None:
        embedding = EmbeddingOptions(enable_base64=not args.no_base64)
        if args.inline_threshold is not None:
            embedding.inline_threshold = int(args.inline_threshold)
    return ExportInput(
        html=_read_text(args.html),
        target=args.target[0],
        css=[_read_text(p) for p in args.css],
        js=[_read_text(p) for p in args.js],
        image_paths=image_paths,
        asset_bytes=assets,
        theme=ThemeMetadata(
            name=args.theme_name,
            author=args.theme_author,
            description=args.theme_description,
            version=args.theme_version,
        ),
        flags=ExportFlags(
            embed_assets=bool(args.embed_assets),
            eliminate_dependencies=bool(args.eliminate),
            validate_budget=bool(args.validate_budget),
            budget_override=bool(args.budget_override),
            verify_plugin_free=bool(args.verify),
        ),
        custom_budget=_load_budget(args.budget) if args.budget else None,
        embedding=embedding,
        native_blocks=_load_blocks(args.blocks) if args.blocks else None,
        elements=_load_elements(args.elements) if args.elements else None,
    )


def _run_export(args: argparse.Namespace) -> int:
    try:
        targets = [resolve_builder_id(t) for t in args.target]
    except UnsupportedBuilder as e:
        print(str(e), file=sys.stderr)
        return 5
    try:
        base_input = _build_input(args)
    except (OSError, ValueError) as e:
        print(str(e), file=sys.stderr)
        return 2

    args.out.mkdir(parents=True, exist_ok=True)
    stages = len(ExportStage)
    with tqdm(total=len(targets) * stages, desc="export", unit="stage", disable=args.quiet) as bar:
        for target in targets:
            bar.set_postfix_str(target.value)
            pipeline = ExportPipeline(
                ids=RandomIds() if args.random_ids else None,
                max_workers=int(args.workers),
                progress=lambda _stage: bar.update(1),
            )
            export_input = replace(base_input, target=target)
            try:
                artifact = pipeline.run(export_input)
            except BudgetExceeded as e:
                report_path = args.out / VIOLATION_REPORT_NAME
                report_path.write_text(e.report, encoding="utf-8")
                bar.close()
                print(str(e), file=sys.stderr)
                print(str(report_path), file=sys.stderr)
                return 3
            except OSError as e:
                print(str(e), file=sys.stderr)
                return 2

            zip_path = args.out / f"{target.value}-export.zip"
            zip_path.write_bytes(artifact.archive)
            score = artifact.metadata.get("pluginFreeScore")
            tqdm.write(
                f"{target.value}: files={artifact.metadata['fileCount']} "
                f"size={artifact.metadata['totalSize']}"
                + (f" plugin_free_score={score}" if score is not None else "")
                + f" -> {zip_path}"
            )
            for warning in artifact.warnings:
                tqdm.write(f"  warning: {warning}", file=sys.stderr)
    return 0


def _print_builders(as_json: bool) -> int:
    infos = list_builders()
    if as_json:
        print(json.dumps([i.to_dict() for i in infos], indent=2, ensure_ascii=False))
        return 0
    width = max(len(i.id) for i in infos)
    for i in infos:
        print(f"{i.id.ljust(width)}  {i.format:<9}  {i.name} - {i.description}")
    return 0


def _fetch_blocks(args: argparse.Namespace) -> int:
    session = requests.Session()
    http = HttpClient(session, timeout_s=int(args.timeout))
    client = WordPressClient(http)
    try:
        if client.site_info(args.site) is None:
            print(f"No WordPress REST API found at {args.site}", file=sys.stderr)
            return 2
        blocks = client.fetch_page_blocks(args.site, args.slug)
    except (RuntimeError, WordPressApiError) as e:
        print(str(e), file=sys.stderr)
        return 2

    payload: list[dict[str, Any]] = [b.to_dict() for b in blocks]
    try:
        args.out.parent.mkdir(parents=True, exist_ok=True)
        args.out.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as e:
        print(str(e), file=sys.stderr)
        return 2
    print(f"fetch-blocks: blocks={len(blocks)} -> {args.out}")
    return 0


def _inspect(args: argparse.Namespace) -> int:
    try:
        inspected = inspect_archive(args.in_zip, max_missing_paths_sample=int(args.max_missing_sample))
    except (OSError, ValueError) as e:
        print(str(e), file=sys.stderr)
        return 2

    if bool(args.json):
        print(json.dumps(inspected.to_dict(), indent=2, ensure_ascii=False))
    else:
        kinds = ", ".join(f"{k}={v}" for k, v in inspected.kinds.items()) or "(none)"
        reports = ", ".join(
            f"{name}={'yes' if present else 'no'}" for name, present in inspected.reports.items()
        )
        print(
            f"archive={inspected.archive_path} entries={inspected.entries} "
            f"referenced_files={inspected.referenced_files} "
            f"missing_files={inspected.missing_files}"
        )
        print(f"kinds: {kinds}")
        print(f"reports: {reports}")
        for p in inspected.missing_paths_sample:
            print(f"missing: {p}")
    if bool(args.fail_on_missing) and not inspected.complete:
        return 4
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="builder-export")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging on stderr")
    sub = parser.add_subparsers(dest="cmd", required=True)

    export_p = sub.add_parser("export", help="Convert a captured page into builder packages")
    export_p.add_argument("--html", type=Path, required=True, help="Captured page HTML")
    export_p.add_argument("--css", type=Path, action="append", default=[], help="Repeatable")
    export_p.add_argument("--js", type=Path, action="append", default=[], help="Repeatable")
    export_p.add_argument(
        "--assets-dir", type=Path, default=None, help="Directory of captured images and files"
    )
    export_p.add_argument("--blocks", type=Path, default=None, help="Native blocks (JSON or block markup)")
    export_p.add_argument("--elements", type=Path, default=None, help="Extracted elements JSON")
    export_p.add_argument(
        "--target",
        action="append",
        required=True,
        help=f"Repeatable; one of: {', '.join(b.value for b in BUILDER_INFO)}",
    )
    export_p.add_argument("--out", type=Path, required=True)
    export_p.add_argument("--embed-assets", action="store_true")
    export_p.add_argument("--no-base64", action="store_true", help="Never inline images")
    export_p.add_argument("--inline-threshold", type=int, default=None, help="Bytes")
    export_p.add_argument("--eliminate", action="store_true", help="Strip foreign plugin code")
    export_p.add_argument("--validate-budget", action="store_true")
    export_p.add_argument("--budget-override", action="store_true")
    export_p.add_argument("--budget", type=Path, default=None, help="Custom budget JSON")
    export_p.add_argument("--verify", action="store_true", help="Score output for plugin residue")
    export_p.add_argument("--theme-name", default=ThemeMetadata.name)
    export_p.add_argument("--theme-author", default=ThemeMetadata.author)
    export_p.add_argument("--theme-description", default=ThemeMetadata.description)
    export_p.add_argument("--theme-version", default=ThemeMetadata.version)
    export_p.add_argument("--workers", type=int, default=1, help="Threads for CSS/JS passes")
    export_p.add_argument(
        "--random-ids", action="store_true", help="Opaque element ids instead of 0000001, 0000002, ..."
    )
    export_p.add_argument("--quiet", action="store_true", help="No progress bar")

    builders_p = sub.add_parser("builders", help="List supported targets")
    builders_p.add_argument("--json", action="store_true")

    detect_p = sub.add_parser("detect", help="Guess which page builder made a page")
    detect_p.add_argument("--html", type=Path, required=True)

    fetch_p = sub.add_parser("fetch-blocks", help="Download a page's native blocks")
    fetch_p.add_argument("--site", required=True)
    fetch_p.add_argument("--slug", required=True)
    fetch_p.add_argument("--out", type=Path, required=True)
    fetch_p.add_argument("--timeout", type=int, default=45)

    inspect_p = sub.add_parser(
        "inspect-export",
        help="Summarize and validate an export archive",
    )
    inspect_p.add_argument("--in", dest="in_zip", type=Path, required=True)
    inspect_p.add_argument(
        "--json",
        action="store_true",
        help="Print machine-readable JSON to stdout",
    )
    inspect_p.add_argument(
        "--fail-on-missing",
        action="store_true",
        help="Return non-zero if files or stage reports are missing",
    )
    inspect_p.add_argument(
        "--max-missing-sample",
        type=int,
        default=25,
        help="Max missing paths to include in output",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "export":
        return _run_export(args)

    if args.cmd == "builders":
        return _print_builders(bool(args.json))

    if args.cmd == "detect":
        try:
            html = _read_text(args.html)
        except OSError as e:
            print(str(e), file=sys.stderr)
            return 2
        print(detect_source_builder(html) or "unknown")
        return 0

    if args.cmd == "fetch-blocks":
        return _fetch_blocks(args)

    if args.cmd == "inspect-export":
        return _inspect(args)

    return 2
