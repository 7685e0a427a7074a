"""
app/domain/watchlist_import.py

Domain models used by the watchlist CSV import flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from app.domain.csv_document import CsvRow


class DetectedSource:
    NATIVE = "native"
    IMDB = "imdb"
    TMDB = "tmdb"
    GENERIC = "generic"


class DuplicatePolicy:
    SKIP = "skip"
    UPDATE = "update"


DUPLICATE_POLICIES = frozenset({DuplicatePolicy.SKIP, DuplicatePolicy.UPDATE})


@dataclass(frozen=True)
class ValidationIssue:
    """
    One validation message; ``row_number`` is None for file-level issues.
    """

    message: str
    row_number: int | None = None

    def render(self) -> str:
        if self.row_number is None:
            return self.message
        return f"Row {self.row_number}: {self.message}"


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of validating one mapped document. Never mutated after creation.
    """

    error_issues: tuple[ValidationIssue, ...] = ()
    warning_issues: tuple[ValidationIssue, ...] = ()
    sample_rows: tuple[CsvRow, ...] = ()

    @property
    def errors(self) -> tuple[str, ...]:
        return tuple(issue.render() for issue in self.error_issues)

    @property
    def warnings(self) -> tuple[str, ...]:
        return tuple(issue.render() for issue in self.warning_issues)

    @property
    def is_valid(self) -> bool:
        return not self.error_issues


@dataclass(frozen=True)
class ImportRowError:
    row: int
    error: str


@dataclass(frozen=True)
class ImportRowWarning:
    row: int
    warning: str


@dataclass
class ImportOutcome:
    """
    Running tally of one import run; returned to the caller once complete.
    """

    imported: int = 0
    skipped: int = 0
    errors: list[ImportRowError] = field(default_factory=list)
    warnings: list[ImportRowWarning] = field(default_factory=list)

    def add_error(self, row: int, error: str) -> None:
        self.errors.append(ImportRowError(row=row, error=error))

    def add_warning(self, row: int, warning: str) -> None:
        self.warnings.append(ImportRowWarning(row=row, warning=warning))

    def to_dict(self) -> dict[str, object]:
        return {
            "imported": self.imported,
            "skipped": self.skipped,
            "errors": [{"row": item.row, "error": item.error} for item in self.errors],
            "warnings": [{"row": item.row, "warning": item.warning} for item in self.warnings],
        }
