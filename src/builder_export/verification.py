"""Scan generated output for leftover plugin and page-builder dependencies."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Final, Iterable

from .artifact import FileGroup, GeneratedFile
from .signatures import CORE_FUNCTIONS, SIGNATURES, SignatureFamily, match_family

logger = logging.getLogger(__name__)

CRITICAL_PENALTY = 20
WARNING_PENALTY = 5
PASS_SCORE = 90

_PHP_CALL_RE: Final = re.compile(r"\b([A-Za-z_][A-Za-z0-9_]*)\s*\(")
_PHP_BLOCK_RE: Final = re.compile(r"<\?php.*?(?:\?>|\Z)", re.S)
_CLASS_ATTR_RE: Final = re.compile(r"""class\s*=\s*["']([^"']*)["']""", re.I)
_SHORTCODE_RE: Final = re.compile(r"\[([A-Za-z][\w-]*)[^\]]*\]")
_SELECTOR_RE: Final = re.compile(r"[.#]([A-Za-z_][\w-]*)|\[([A-Za-z_][\w-]*)")
_EXTERNAL_SCRIPT_RE: Final = re.compile(
    r"""<script[^>]+src\s*=\s*["'](https?:)?//([^"'/]+)""", re.I
)


class Severity(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"


class CheckType(str, Enum):
    FUNCTION = "function"
    CLASS = "class"
    SHORTCODE = "shortcode"
    SELECTOR = "selector"
    SCRIPT = "script"
    TEXT = "text"
    EXTERNAL_SCRIPT = "external-script"


@dataclass(frozen=True)
class DependencyCheck:
    name: str
    type: CheckType
    location: str
    detail: str
    severity: Severity = Severity.CRITICAL
    detected: bool = True


@dataclass(frozen=True)
class VerificationReport:
    is_plugin_free: bool
    score: int
    dependencies: tuple[DependencyCheck, ...]
    recommendations: tuple[str, ...]
    files_scanned: int = 0

    @property
    def critical_count(self) -> int:
        return sum(1 for d in self.dependencies if d.severity is Severity.CRITICAL)

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self.dependencies if d.severity is Severity.WARNING)


def score_checks(checks: Iterable[DependencyCheck]) -> int:
    score = 100
    for check in checks:
        if not check.detected:
            continue
        if check.severity is Severity.CRITICAL:
            score -= CRITICAL_PENALTY
        else:
            score -= WARNING_PENALTY
    return max(0, score)


class _Collector:
    def __init__(self) -> None:
        self.checks: list[DependencyCheck] = []
        self._seen: set[tuple[str, str, str]] = set()

    def hit(
        self,
        fam: SignatureFamily | None,
        kind: CheckType,
        location: str,
        detail: str,
        severity: Severity = Severity.CRITICAL,
        name: str | None = None,
    ) -> None:
        label = fam.label if fam else (name or "unknown")
        key = (label, kind.value, location)
        if key in self._seen:
            return
        self._seen.add(key)
        self.checks.append(
            DependencyCheck(
                name=label,
                type=kind,
                location=location,
                detail=detail,
                severity=severity,
            )
        )


def _scan_markup(text: str, path: str, out: _Collector) -> None:
    for m in _CLASS_ATTR_RE.finditer(text):
        for cls in m.group(1).split():
            fam = match_family(cls)
            if fam:
                out.hit(fam, CheckType.CLASS, path, f"class {cls}")
    for m in _SHORTCODE_RE.finditer(text):
        fam = match_family(m.group(1))
        if fam:
            out.hit(fam, CheckType.SHORTCODE, path, m.group(0)[:80])
        else:
            out.hit(
                None,
                CheckType.SHORTCODE,
                path,
                m.group(0)[:80],
                Severity.WARNING,
                name=f"Unrecognized shortcode [{m.group(1)}]",
            )
    for m in _EXTERNAL_SCRIPT_RE.finditer(text):
        out.hit(
            None,
            CheckType.EXTERNAL_SCRIPT,
            path,
            f"script from {m.group(2)}",
            Severity.WARNING,
            name=f"External script ({m.group(2)})",
        )


def _scan_php(text: str, path: str, out: _Collector) -> None:
    for block in _PHP_BLOCK_RE.findall(text):
        for m in _PHP_CALL_RE.finditer(block):
            fn = m.group(1)
            if fn in CORE_FUNCTIONS:
                continue
            fam = match_family(fn)
            if fam:
                out.hit(fam, CheckType.FUNCTION, path, f"{fn}()")
    _scan_markup(_PHP_BLOCK_RE.sub("", text), path, out)


def _scan_css(text: str, path: str, out: _Collector) -> None:
    for m in _SELECTOR_RE.finditer(text):
        token = m.group(1) or m.group(2)
        fam = match_family(token)
        if fam:
            out.hit(fam, CheckType.SELECTOR, path, token)


def _scan_text(text: str, path: str, kind: CheckType, out: _Collector) -> None:
    for fam in SIGNATURES:
        m = fam.search(text)
        if m:
            start = max(0, m.start() - 20)
            out.hit(fam, kind, path, text[start : m.end() + 20].replace("\n", " "))


def verify_plugin_free(files: Iterable[GeneratedFile]) -> VerificationReport:
    """Score generated files; never raises on odd content."""

    out = _Collector()
    scanned = 0
    for f in files:
        if f.group in (FileGroup.IMAGE, FileGroup.DOC):
            continue
        scanned += 1
        text = f.content
        if f.suffix == ".php":
            _scan_php(text, f.path, out)
        elif f.group is FileGroup.MARKUP or f.suffix in (".html", ".htm"):
            _scan_markup(text, f.path, out)
        elif f.group is FileGroup.STYLE:
            _scan_css(text, f.path, out)
        elif f.group is FileGroup.SCRIPT:
            _scan_text(text, f.path, CheckType.SCRIPT, out)
        else:
            _scan_text(text, f.path, CheckType.TEXT, out)

    checks = tuple(out.checks)
    score = score_checks(checks)
    critical = sum(1 for c in checks if c.severity is Severity.CRITICAL)
    report = VerificationReport(
        is_plugin_free=score >= PASS_SCORE and critical == 0,
        score=score,
        dependencies=checks,
        recommendations=tuple(_recommendations(checks)),
        files_scanned=scanned,
    )
    logger.info(
        "verification: score=%d critical=%d plugin_free=%s",
        report.score,
        report.critical_count,
        report.is_plugin_free,
    )
    return report


def _recommendations(checks: tuple[DependencyCheck, ...]) -> list[str]:
    if not checks:
        return ["No plugin dependencies detected; the export is self-contained."]

    by_name: dict[str, list[str]] = {}
    for check in checks:
        by_name.setdefault(check.name, [])
        if check.location not in by_name[check.name]:
            by_name[check.name].append(check.location)

    recs: list[str] = []
    for name, locations in by_name.items():
        where = ", ".join(locations[:3])
        if name.startswith("External script"):
            recs.append(f"Bundle {name.lower()} locally or drop it ({where})")
        elif name.startswith("Unrecognized shortcode"):
            recs.append(f"Replace {name.lower()} with static markup ({where})")
        else:
            recs.append(f"Remove remaining {name} references ({where})")
    if any(c.severity is Severity.CRITICAL for c in checks):
        recs.append("Re-run the export with dependency elimination enabled.")
    return recs
