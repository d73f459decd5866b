"""Tests for the performance budget gate."""

from __future__ import annotations

from builder_export.budget import (
    KIB,
    Budget,
    BudgetCategory,
    Severity,
    validate_budget,
)


class TestValidateBudget:
    """Tests for validate_budget."""

    def test_within_budget(self) -> None:
        """Small pages pass with no violations."""
        result = validate_budget("<p>x</p>", ["p{}"], ["a();"], [b"img"])
        assert result.violations == ()
        assert result.can_export is True
        assert result.requires_override is False

    def test_total_is_sum_of_categories(self) -> None:
        """The total page size adds markup, styles, scripts and images."""
        result = validate_budget("a" * 10, ["b" * 20, "c" * 5], ["d" * 7], [100, b"e" * 3])
        assert result.breakdown == {"html": 10, "css": 25, "js": 7, "images": 103}
        assert result.total_size == 145

    def test_sizes_are_utf8_bytes(self) -> None:
        """Text is measured in encoded bytes, not characters."""
        result = validate_budget("é" * 4)
        assert result.breakdown["html"] == 8

    def test_warning_and_critical(self) -> None:
        """Over 1.5x the limit is critical, anything above it a warning."""
        warn = validate_budget("x" * 7, budget=Budget(max_html_size=5))
        crit = validate_budget("x" * 8, budget=Budget(max_html_size=5))
        assert warn.violations[0].severity is Severity.WARNING
        assert crit.violations[0].severity is Severity.CRITICAL
        assert crit.violations[0].exceeded_bytes == 3

    def test_exact_limit_passes(self) -> None:
        """A size equal to its limit is not a violation."""
        result = validate_budget("x" * 5, budget=Budget(max_html_size=5))
        assert result.violations == ()

    def test_per_file_factor(self) -> None:
        """Single stylesheets and scripts use a 2x critical factor."""
        budget = Budget(max_css_file_size=100, max_total_css=10 * KIB)
        warn = validate_budget("", ["a" * 190], budget=budget)
        crit = validate_budget("", ["a" * 201], budget=budget)
        assert [(v.item, v.severity) for v in warn.violations] == [("stylesheet 1", Severity.WARNING)]
        assert [(v.item, v.severity) for v in crit.violations] == [("stylesheet 1", Severity.CRITICAL)]

    def test_image_names(self) -> None:
        """Image violations name the offending file."""
        result = validate_budget(
            "",
            images=[b"x" * 20],
            budget=Budget(max_image_size=10),
            image_names=["hero.jpg"],
        )
        (violation,) = result.violations
        assert violation.category is BudgetCategory.IMAGES
        assert violation.item == "hero.jpg"

    def test_blocks_without_override(self) -> None:
        """Violations block the export unless the budget allows overriding."""
        blocked = validate_budget("x" * 10, budget=Budget(max_html_size=5))
        allowed = validate_budget("x" * 10, budget=Budget(max_html_size=5, allow_override=True))
        assert blocked.can_export is False
        assert allowed.can_export is True
        assert allowed.requires_override is True

    def test_total_budget(self) -> None:
        """The total page limit is checked on its own."""
        budget = Budget(max_total_page_size=10)
        result = validate_budget("x" * 6, ["y" * 6], budget=budget)
        categories = [v.category for v in result.violations]
        assert categories == [BudgetCategory.TOTAL]


class TestBudgetFromDict:
    """Tests for loading custom budgets."""

    def test_flat_keys(self) -> None:
        """snake_case and camelCase keys are accepted; unknown keys ignored."""
        budget = Budget.from_dict({"max_html_size": 1, "maxTotalJs": 2, "bogus": 3})
        assert budget.max_html_size == 1
        assert budget.max_total_js == 2
        assert budget.max_total_css == Budget().max_total_css

    def test_nested_form(self) -> None:
        """Per-category objects map onto the flat fields."""
        budget = Budget.from_dict(
            {
                "html": {"maxSize": 11},
                "css": {"maxSizePerFile": 12, "maxTotalSize": 13},
                "images": {"maxSizePerImage": 14},
                "total": {"maxTotalSize": 15},
                "allowOverride": True,
            }
        )
        assert budget.max_html_size == 11
        assert budget.max_css_file_size == 12
        assert budget.max_total_css == 13
        assert budget.max_image_size == 14
        assert budget.max_total_page_size == 15
        assert budget.allow_override is True
