"""Pre-import diagnostics for availability and property CSV files."""

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from app.services.csv_parser import ParseResult
from app.services.field_mapper import levenshtein_distance

NAME_FIELDS = ("propertyName", "guestName", "requestGuestName")

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass
class Issue:
    severity: str  # error | warning
    kind: str
    message: str
    row: Optional[int] = None
    field: Optional[str] = None
    suggestion: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity,
            "type": self.kind,
            "message": self.message,
            "row": self.row,
            "field": self.field,
            "suggestion": self.suggestion,
        }


@dataclass
class Diagnostics:
    issues: list[Issue] = field(default_factory=list)
    column_consistency: dict[str, Any] = field(default_factory=dict)
    summary: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "issues": [i.to_dict() for i in self.issues],
            "column_consistency": self.column_consistency,
            "summary": self.summary,
        }


def mode(values: Iterable[Any]) -> Any:
    """Most common value, or None for an empty input."""
    counts = Counter(values)
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def find_closest_match(target: str, candidates: Iterable[str], max_distance: int = 3) -> Optional[str]:
    """Closest candidate by edit distance, ignoring case."""
    best: Optional[str] = None
    best_distance = max_distance + 1
    for candidate in candidates:
        distance = levenshtein_distance(target.lower(), candidate.lower())
        if distance < best_distance:
            best, best_distance = candidate, distance
    return best if best_distance <= max_distance else None


def _check_headers(headers: list[str], required: str) -> list[Issue]:
    if required in headers:
        return []
    suggestion = find_closest_match(required, headers)
    return [
        Issue(
            severity="error",
            kind="missing",
            message=f"Required column '{required}' is missing",
            field=required,
            suggestion=f"Did you mean '{suggestion}'?" if suggestion else None,
        )
    ]


def _check_columns(headers: list[str], row_lengths: list[int]) -> tuple[list[Issue], dict[str, Any]]:
    expected = len(headers)
    misaligned = [i + 2 for i, length in enumerate(row_lengths) if length != expected]
    total = len(row_lengths)
    score = (total - len(misaligned)) / total if total else 1.0

    issues = [
        Issue(
            severity="warning",
            kind="misaligned",
            message=f"Row has a different number of columns than the header ({expected})",
            row=row_number,
        )
        for row_number in misaligned
    ]
    stats = {
        "expected_columns": expected,
        "most_common_columns": mode(row_lengths) if row_lengths else expected,
        "misaligned_rows": misaligned,
        "consistency_score": score,
    }
    return issues, stats


def _check_name_fields(rows: list[dict[str, str]]) -> list[Issue]:
    issues = []
    for index, row in enumerate(rows):
        for name_field in NAME_FIELDS:
            value = (row.get(name_field) or "").strip()
            if not value:
                continue
            if _DATE_RE.match(value):
                issues.append(Issue(
                    severity="warning",
                    kind="misaligned",
                    message="Date value found in name field - possible column misalignment",
                    row=index + 2,
                    field=name_field,
                ))
            elif _EMAIL_RE.match(value):
                issues.append(Issue(
                    severity="warning",
                    kind="misaligned",
                    message="Email address found in name field - possible column misalignment",
                    row=index + 2,
                    field=name_field,
                ))
    return issues


def analyze_csv(parsed: ParseResult, required_header: str = "propertyName") -> Diagnostics:
    """Inspect a parsed file for structural problems before importing it."""
    diagnostics = Diagnostics()

    diagnostics.issues.extend(_check_headers(parsed.headers, required_header))
    column_issues, stats = _check_columns(parsed.headers, parsed.row_lengths)
    diagnostics.issues.extend(column_issues)
    diagnostics.column_consistency = stats
    diagnostics.issues.extend(_check_name_fields(parsed.data))

    errors = [i for i in diagnostics.issues if i.severity == "error"]
    warnings = [i for i in diagnostics.issues if i.severity == "warning"]
    total_rows = len(parsed.data)

    if not diagnostics.issues:
        confidence = 1.0
    elif not errors:
        confidence = 0.8
    else:
        confidence = 0.3

    diagnostics.summary = {
        "total_rows": total_rows,
        "valid_rows": max(total_rows - len(diagnostics.issues) // 3, 0),
        "critical_issues": len(errors),
        "warnings": len(warnings),
        "can_proceed_with_warnings": all(i.severity == "warning" for i in diagnostics.issues),
        "ready_to_import": not errors,
        "confidence": confidence,
    }
    return diagnostics
