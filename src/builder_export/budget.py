"""Pre-flight size budget check used as the export gate."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Mapping, Sequence

from .content import byte_size

logger = logging.getLogger(__name__)

KIB = 1024
MIB = 1024 * KIB

CRITICAL_FACTOR = 1.5
PER_FILE_CRITICAL_FACTOR = 2.0


class BudgetCategory(str, Enum):
    HTML = "html"
    CSS = "css"
    JS = "js"
    IMAGES = "images"
    TOTAL = "total"


class Severity(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"


_NESTED_KEYS: dict[str, dict[str, str]] = {
    "html": {"maxSize": "max_html_size"},
    "css": {"maxSizePerFile": "max_css_file_size", "maxTotalSize": "max_total_css"},
    "js": {"maxSizePerFile": "max_js_file_size", "maxTotalSize": "max_total_js"},
    "images": {"maxSizePerImage": "max_image_size", "maxTotalSize": "max_total_images"},
    "total": {"maxTotalSize": "max_total_page_size"},
}


@dataclass
class Budget:
    max_html_size: int = 500 * KIB
    max_css_file_size: int = 100 * KIB
    max_total_css: int = 300 * KIB
    max_js_file_size: int = 150 * KIB
    max_total_js: int = 500 * KIB
    max_image_size: int = 500 * KIB
    max_total_images: int = 5 * MIB
    max_total_page_size: int = 10 * MIB
    allow_override: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Budget:
        """Load a budget; unknown keys are ignored.

        Accepts flat snake_case or camelCase keys (``max_total_css``,
        ``maxTotalCss``) and the nested per-category form
        ``{"css": {"maxSizePerFile": ..., "maxTotalSize": ...}}``.
        """

        known = {f.name for f in fields(cls)}
        flat: dict[str, Any] = {}
        for key, value in data.items():
            nested = _NESTED_KEYS.get(str(key))
            if nested and isinstance(value, Mapping):
                for sub_key, target in nested.items():
                    if sub_key in value:
                        flat[target] = value[sub_key]
            else:
                flat[str(key)] = value

        values: dict[str, Any] = {}
        for key, value in flat.items():
            snake = "".join("_" + ch.lower() if ch.isupper() else ch for ch in str(key))
            if snake in known:
                values[snake] = bool(value) if snake == "allow_override" else int(value)
        return cls(**values)


@dataclass(frozen=True)
class BudgetViolation:
    category: BudgetCategory
    item: str
    current: int
    budget: int
    severity: Severity
    recommendation: str

    @property
    def exceeded_bytes(self) -> int:
        return self.current - self.budget


@dataclass(frozen=True)
class BudgetValidation:
    violations: tuple[BudgetViolation, ...]
    can_export: bool
    requires_override: bool
    total_size: int
    breakdown: Mapping[str, int] = field(default_factory=dict)
    budget: Budget = field(default_factory=Budget)

    def critical(self) -> list[BudgetViolation]:
        return [v for v in self.violations if v.severity is Severity.CRITICAL]


def _check(
    out: list[BudgetViolation],
    category: BudgetCategory,
    item: str,
    current: int,
    limit: int,
    recommendation: str,
    factor: float = CRITICAL_FACTOR,
) -> None:
    if current <= limit:
        return
    severity = Severity.CRITICAL if current > limit * factor else Severity.WARNING
    out.append(
        BudgetViolation(
            category=category,
            item=item,
            current=current,
            budget=limit,
            severity=severity,
            recommendation=recommendation,
        )
    )


def _size(item: bytes | int) -> int:
    return item if isinstance(item, int) else len(item)


def validate_budget(
    html: str,
    css: Sequence[str] = (),
    js: Sequence[str] = (),
    images: Sequence[bytes | int] = (),
    budget: Budget | None = None,
    *,
    image_names: Sequence[str] = (),
) -> BudgetValidation:
    """Measure the unmodified capture against ``budget``.

    ``images`` holds raw bytes or already-known sizes.
    """

    budget = budget or Budget()
    violations: list[BudgetViolation] = []

    html_size = byte_size(html)
    _check(
        violations,
        BudgetCategory.HTML,
        "page markup",
        html_size,
        budget.max_html_size,
        "Remove unused markup, inline SVG and hidden sections, or split the page",
    )

    css_sizes = [byte_size(c) for c in css]
    for i, size in enumerate(css_sizes, start=1):
        _check(
            violations,
            BudgetCategory.CSS,
            f"stylesheet {i}",
            size,
            budget.max_css_file_size,
            f"Minify stylesheet {i} and purge unused rules",
            PER_FILE_CRITICAL_FACTOR,
        )
    _check(
        violations,
        BudgetCategory.CSS,
        "all stylesheets",
        sum(css_sizes),
        budget.max_total_css,
        "Combine stylesheets and drop rules for unused components",
    )

    js_sizes = [byte_size(j) for j in js]
    for i, size in enumerate(js_sizes, start=1):
        _check(
            violations,
            BudgetCategory.JS,
            f"script {i}",
            size,
            budget.max_js_file_size,
            f"Minify script {i}, defer it or remove non-critical code",
            PER_FILE_CRITICAL_FACTOR,
        )
    _check(
        violations,
        BudgetCategory.JS,
        "all scripts",
        sum(js_sizes),
        budget.max_total_js,
        "Remove third-party scripts and split large bundles",
    )

    image_sizes = [_size(i) for i in images]
    for i, size in enumerate(image_sizes):
        name = image_names[i] if i < len(image_names) else f"image {i + 1}"
        _check(
            violations,
            BudgetCategory.IMAGES,
            name,
            size,
            budget.max_image_size,
            f"Compress {name} or convert it to WebP",
        )
    _check(
        violations,
        BudgetCategory.IMAGES,
        "all images",
        sum(image_sizes),
        budget.max_total_images,
        "Lazy-load below-the-fold images and compress the rest",
    )

    breakdown = {
        "html": html_size,
        "css": sum(css_sizes),
        "js": sum(js_sizes),
        "images": sum(image_sizes),
    }
    total = sum(breakdown.values())
    _check(
        violations,
        BudgetCategory.TOTAL,
        "total page",
        total,
        budget.max_total_page_size,
        "Reduce asset weight before exporting; the page is over its total budget",
    )

    result = BudgetValidation(
        violations=tuple(violations),
        can_export=not violations or budget.allow_override,
        requires_override=bool(violations) and budget.allow_override,
        total_size=total,
        breakdown=breakdown,
        budget=budget,
    )
    logger.info(
        "budget: total=%d violations=%d critical=%d",
        total,
        len(violations),
        len(result.critical()),
    )
    return result
