"""
import_engine.report - Structured result of committing a plan.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import config


@dataclass
class CommitReport:
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: list[dict] = field(default_factory=list)   # [{line, reason}]
    warnings: list[str] = field(default_factory=list)

    def add_error(self, line: int, reason: str):
        self.errors.append({"line": line, "reason": reason})

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def summary(self, limit: int = config.SUMMARY_ERROR_LIMIT) -> str:
        """One-line message for the user, listing at most ``limit`` failed lines."""
        msg = f"Import completed: {self.created} products created"
        if self.updated:
            msg += f", {self.updated} products updated"
        if self.skipped:
            msg += f", {self.skipped} products skipped as duplicates"
        if self.errors:
            shown = "; ".join(f"line {e['line']}: {e['reason']}"
                              for e in self.errors[:limit])
            msg += f". Errors: {self.error_count} ({shown}"
            if self.error_count > limit:
                msg += f" and {self.error_count - limit} more"
            msg += ")"
        return msg

    def to_dict(self) -> dict:
        return {
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": self.errors,
            "warnings": self.warnings,
        }
