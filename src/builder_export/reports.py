"""Plain-text stage reports packaged with every export."""

from __future__ import annotations

from typing import Iterable, Sequence

from .budget import BudgetValidation
from .elimination import EliminationResult
from .embedding import Decision, EmbeddingResult
from .verification import VerificationReport

_RULE = "=" * 60
_THIN = "-" * 60


def format_bytes(n: float) -> str:
    size = float(n)
    for unit in ("B", "KB", "MB"):
        if abs(size) < 1024 or unit == "MB":
            if unit == "B":
                return f"{int(size)} B"
            return f"{size:.2f} {unit}"
        size /= 1024
    return f"{size:.2f} MB"


def _header(title: str, created_at: str) -> list[str]:
    return [_RULE, title, _RULE, f"Generated: {created_at}", ""]


def render_skipped(title: str, created_at: str, reason: str) -> str:
    lines = _header(title, created_at)
    lines.append(f"Stage skipped: {reason}")
    return "\n".join(lines) + "\n"


def render_budget_report(
    validation: BudgetValidation, created_at: str, *, aborted: bool = False
) -> str:
    title = "PERFORMANCE BUDGET VIOLATIONS" if aborted else "PERFORMANCE BUDGET VALIDATION"
    lines = _header(title, created_at)
    b = validation.breakdown
    lines += [
        "Sizes (before any transformation):",
        f"  HTML:    {format_bytes(b.get('html', 0))}",
        f"  CSS:     {format_bytes(b.get('css', 0))}",
        f"  JS:      {format_bytes(b.get('js', 0))}",
        f"  Images:  {format_bytes(b.get('images', 0))}",
        f"  Total:   {format_bytes(validation.total_size)}",
        "",
    ]

    if not validation.violations:
        lines.append("Status: PASS - all categories are within budget.")
        return "\n".join(lines) + "\n"

    critical = len(validation.critical())
    lines.append(
        f"Violations: {len(validation.violations)} "
        f"({critical} critical, {len(validation.violations) - critical} warning)"
    )
    lines.append("")
    for v in validation.violations:
        lines += [
            f"[{v.severity.value.upper()}] {v.category.value}: {v.item}",
            f"  Current:  {format_bytes(v.current)}",
            f"  Budget:   {format_bytes(v.budget)}",
            f"  Exceeded: {format_bytes(v.exceeded_bytes)}",
            f"  Fix:      {v.recommendation}",
            "",
        ]
    if aborted:
        lines.append("Export aborted. Re-run with a budget override to export anyway.")
    elif validation.requires_override:
        lines.append("Export continued under budget override.")
    else:
        lines.append("Export continued under caller override.")
    return "\n".join(lines) + "\n"


def render_embedding_report(result: EmbeddingResult, created_at: str) -> str:
    lines = _header("ASSET EMBEDDING REPORT", created_at)
    opts = result.options
    lines += [
        f"Inline threshold (css/js): {format_bytes(opts.inline_threshold)}",
        f"Image threshold:           {format_bytes(opts.image_threshold)}",
        "",
        f"Inlined:           {result.count(Decision.INLINE)}",
        f"Media library:     {result.count(Decision.WORDPRESS)}",
        f"External:          {result.count(Decision.EXTERNAL)}",
        f"Original size:     {format_bytes(result.original_size)}",
        f"Processed size:    {format_bytes(result.processed_size)}",
        f"Size increase:     {result.size_increase_percent:.1f}%",
        "",
    ]
    level, message = result.assessment()
    lines.append(f"Assessment [{level.upper()}]: {message}")
    lines.append("")
    if not result.decisions:
        lines.append("No assets referenced.")
    for d in result.decisions:
        method = f", {d.method}" if d.method else ""
        lines.append(f"- {d.path} ({format_bytes(d.size_bytes)}) -> {d.decision.value}{method}")
        lines.append(f"    {d.reason}")
    return "\n".join(lines) + "\n"


def render_elimination_report(
    results: Sequence[tuple[str, EliminationResult]], created_at: str
) -> str:
    lines = _header("DEPENDENCY ELIMINATION REPORT", created_at)
    removed = sum(len(r.removed_items) for _, r in results)
    warnings = sum(len(r.warnings) for _, r in results)
    saved = sum(r.bytes_saved for _, r in results)
    lines += [
        f"Items removed: {removed}",
        f"Warnings:      {warnings}",
        f"Bytes saved:   {format_bytes(saved)}",
        "",
    ]
    for name, result in results:
        lines.append(_THIN)
        lines.append(
            f"{name}: {format_bytes(result.original_size)} -> {format_bytes(result.new_size)}"
        )
        if not result.removed_items and not result.warnings:
            lines.append("  nothing to remove")
        for item in result.removed_items:
            lines.append(f"  - {item}")
        for warning in result.warnings:
            lines.append(f"  ! {warning}")
    return "\n".join(lines) + "\n"


def render_verification_report(report: VerificationReport, created_at: str) -> str:
    lines = _header("PLUGIN-FREE VERIFICATION REPORT", created_at)
    status = "PLUGIN-FREE" if report.is_plugin_free else "DEPENDENCIES FOUND"
    lines += [
        f"Status:   {status}",
        f"Score:    {report.score}/100",
        f"Scanned:  {report.files_scanned} file(s)",
        f"Critical: {report.critical_count}",
        f"Warnings: {report.warning_count}",
        "",
    ]
    if report.dependencies:
        lines.append("Detected dependencies:")
        for check in report.dependencies:
            lines.append(
                f"  [{check.severity.value.upper()}] {check.name} "
                f"({check.type.value}) in {check.location}: {check.detail}"
            )
        lines.append("")
    lines.append("Recommendations:")
    lines += _bullets(report.recommendations)
    return "\n".join(lines) + "\n"


def _bullets(items: Iterable[str]) -> list[str]:
    return [f"  - {item}" for item in items]
