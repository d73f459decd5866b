from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .budget import BudgetValidation


class ExportError(Exception):
    """Base class for export pipeline failures."""


class InvalidInput(ExportError, ValueError):
    pass


class UnsupportedBuilder(ExportError, ValueError):
    def __init__(self, builder_id: str) -> None:
        super().__init__(f"Unsupported builder: {builder_id!r}")
        self.builder_id = builder_id


class BudgetExceeded(ExportError):
    """Raised by the budget gate when violations exist and no override is set.

    Carries the full validation result and the rendered violation report, so
    callers can persist the report even though no artifact is produced.
    """

    def __init__(self, validation: BudgetValidation, report: str) -> None:
        count = len(validation.violations)
        super().__init__(
            f"Performance budget exceeded: {count} violation(s); "
            "re-run with a budget override to export anyway"
        )
        self.validation = validation
        self.report = report

    @property
    def violations(self):
        return self.validation.violations


class ExportCancelled(ExportError):
    pass
