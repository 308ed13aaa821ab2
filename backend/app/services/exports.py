"""CSV rendering for export endpoints."""

import base64
import csv
import io
from datetime import date
from typing import Any, Iterable, Optional, Sequence

UTF8_BOM = "﻿"


def format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (list, tuple)):
        return ", ".join(format_cell(v) for v in value)
    if hasattr(value, "value"):
        return str(value.value)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def to_csv(
    headers: Sequence[str],
    rows: Iterable[Sequence[Any]],
    quote_all: bool = False,
    bom: bool = False,
) -> str:
    """Render rows as CSV text. `quote_all` wraps every cell and doubles inner quotes."""
    buffer = io.StringIO()
    writer = csv.writer(
        buffer,
        quoting=csv.QUOTE_ALL if quote_all else csv.QUOTE_MINIMAL,
        lineterminator="\n",
    )
    writer.writerow(headers)
    for row in rows:
        writer.writerow([format_cell(cell) for cell in row])
    content = buffer.getvalue().rstrip("\n")
    return f"{UTF8_BOM}{content}" if bom else content


def to_base64(content: str) -> str:
    return base64.b64encode(content.encode("utf-8")).decode("ascii")


def dated_filename(prefix: str, extension: str = "csv", today: Optional[date] = None) -> str:
    """e.g. contacts_export_2025-01-31.csv"""
    day = (today or date.today()).isoformat()
    return f"{prefix}_{day}.{extension}"
