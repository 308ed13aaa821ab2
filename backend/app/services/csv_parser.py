"""Quote-aware CSV parsing for imports."""

import csv
import io
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Optional

MIN_LINES_ERROR = "CSV must have at least 2 lines (header + data)"


@dataclass
class ParseResult:
    success: bool
    headers: list[str] = field(default_factory=list)
    data: list[dict[str, str]] = field(default_factory=list)
    # Raw cell counts per data row, used to spot misaligned rows
    row_lengths: list[int] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class HeaderCheck:
    valid: bool
    missing: list[str]
    extra: list[str]


def parse_csv(content: str) -> ParseResult:
    """Parse CSV text into header-keyed rows.

    Blank lines are skipped; short rows are padded with "".
    """
    text = content.lstrip("﻿")
    lines = [line for line in text.splitlines() if line.strip()]
    if len(lines) < 2:
        return ParseResult(success=False, error=MIN_LINES_ERROR)

    try:
        reader = csv.reader(io.StringIO("\n".join(lines)), skipinitialspace=False)
        raw_rows = list(reader)
    except csv.Error as e:
        return ParseResult(success=False, error=f"CSV parsing failed: {e}")

    headers = [h.strip().strip('"') for h in raw_rows[0]]
    data: list[dict[str, str]] = []
    row_lengths: list[int] = []
    for cells in raw_rows[1:]:
        if not any(cell.strip() for cell in cells):
            continue
        row_lengths.append(len(cells))
        data.append({
            header: (cells[i].strip() if i < len(cells) else "")
            for i, header in enumerate(headers)
        })

    return ParseResult(success=True, headers=headers, data=data, row_lengths=row_lengths)


def validate_headers(headers: Iterable[str], required: Iterable[str]) -> HeaderCheck:
    """Compare headers with the required set, ignoring case."""
    present = {h.lower() for h in headers}
    wanted = {r.lower() for r in required}
    missing = [r for r in required if r.lower() not in present]
    extra = [h for h in headers if h.lower() not in wanted]
    return HeaderCheck(valid=not missing, missing=missing, extra=extra)


def convert_value(value: Optional[str], value_type: str) -> Any:
    """Convert a raw cell; empty or unparseable values become None."""
    if value is None or value.strip() == "":
        return None
    value = value.strip()

    if value_type == "number":
        try:
            return float(value)
        except ValueError:
            return None
    if value_type == "boolean":
        return value.lower() == "true" or value == "1"
    if value_type == "date":
        return parse_date(value)
    return value


def parse_date(value: str) -> Optional[date]:
    """Parse ISO dates (optionally with a time part)."""
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        return None
