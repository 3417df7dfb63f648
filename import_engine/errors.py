"""
import_engine.errors - Exception types raised by the import pipeline.

Everything derived from ImportFailure aborts the import and is shown to
the user.  RowValidationError and RowCommitError are per-row and are
collected rather than propagated.
"""

from __future__ import annotations


class ImportFailure(Exception):
    """Base class for errors that abort an import attempt."""


class ImportFileError(ImportFailure):
    """The upload itself is unusable (wrong type, too large, empty)."""


class MissingRequiredColumn(ImportFailure):
    def __init__(self, column: str):
        super().__init__(f'The CSV file must have a "{column}" column')
        self.column = column


class ImportValidationFailed(ImportFailure):
    """One or more rows failed validation; nothing was staged."""

    SHOWN = 5

    def __init__(self, errors: list[str]):
        self.errors = errors
        msg = "Errors in the CSV file: " + "; ".join(errors[:self.SHOWN])
        if len(errors) > self.SHOWN:
            msg += f" and {len(errors) - self.SHOWN} more errors"
        super().__init__(msg)


class NoStagedPlan(ImportFailure):
    def __init__(self):
        super().__init__("There is no staged import to process")


class TransactionFailure(ImportFailure):
    """The commit transaction was rolled back as a whole."""


class RowValidationError(Exception):
    """Raised by RowValidator for a single row."""

    def __init__(self, line: int, reasons: list[str]):
        self.line = line
        self.reasons = reasons
        super().__init__(f"Line {line}: " + ", ".join(reasons))


class RowCommitError(Exception):
    """A single plan row could not be written; the rest of the commit proceeds."""
