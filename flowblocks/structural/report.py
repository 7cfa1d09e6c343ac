# flowblocks/structural/report.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class ValidationReport:
    """
    Result of one validation run.

    errors   -> catalog must not be accepted
    warnings -> accepted, but the configuration looks suspicious

    Each message is "<dotted path>: <text>", e.g.
    "blocks.my_block.properties.my_prop: Missing required field 'type'".
    """

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, path: str, message: str) -> None:
        self.errors.append(f"{path}: {message}")

    def add_warning(self, path: str, message: str) -> None:
        self.warnings.append(f"{path}: {message}")

    @property
    def ok(self) -> bool:
        """Warnings never block acceptance."""
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "counts": {"errors": len(self.errors), "warnings": len(self.warnings)},
        }

    def summary_lines(self) -> List[str]:
        """
        Human-readable rendering: errors, then warnings, then counts and verdict.
        Styling (colors) is left to the caller.
        """
        if not self.errors and not self.warnings:
            return ["All validations passed!"]

        lines: List[str] = []
        if self.errors:
            lines.append(f"Errors ({len(self.errors)}):")
            lines.extend(f"  ERROR: {e}" for e in self.errors)
        if self.warnings:
            lines.append(f"Warnings ({len(self.warnings)}):")
            lines.extend(f"  WARNING: {w}" for w in self.warnings)

        lines.append("Summary:")
        lines.append(f"  Errors:   {len(self.errors)}")
        lines.append(f"  Warnings: {len(self.warnings)}")
        lines.append("Validation failed!" if self.errors else "Validation passed with warnings")
        return lines
