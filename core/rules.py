"""
core/rules.py — Row classification and detail filtering.

Classification runs on the primary (Invoices) sheet:
  numeric:   identifier text is one or more ASCII digits and nothing else
              ("12345"). Group A / P1.
  otherwise: anything else, including absent or empty cells ("AB123", "").
              Group B / P2.

Each kept primary row contributes its join-key text to a set; the detail
sheet is then filtered to rows whose join key is in that set. A detail row
whose key matches no kept primary row is dropped.

Columns are located by exact text match against the header row (row 0).
The header is never filtered: it is always element 0 of the returned rows.
"""
from __future__ import annotations

import re
from typing import List, Optional, Set, Tuple

from .errors import AppError, COLUMN_NOT_FOUND
from .models import Row, Sheet


_DIGITS_RE = re.compile(r"[0-9]+")


def is_digits_only(text: str) -> bool:
    """ASCII digits only. '١٢٣' and '123\\n' do not match."""
    return bool(text) and _DIGITS_RE.fullmatch(text) is not None


def find_column(sheet: Sheet, header: Optional[Row], name: str) -> int:
    """0-based position of the header cell whose text equals name."""
    if header is not None:
        for col in sorted(header.cells):
            if header.cells[col].text() == name:
                return col
    raise AppError(
        COLUMN_NOT_FOUND,
        f"Column '{name}' not found in header of sheet '{sheet.name}'",
        {"column": name, "sheet": sheet.name},
    )


def classify_rows(
    sheet: Sheet,
    header: Optional[Row],
    numeric_only: bool,
    id_column: str = "IDINVC",
    join_column: str = "CNTITEM",
) -> Tuple[List[Row], Set[str]]:
    """
    Keep the rows whose identifier is digits-only (numeric_only=True) or is
    not (numeric_only=False). The two calls partition the data rows.

    Returns (header + kept rows, join keys of the kept rows).
    """
    id_col = find_column(sheet, header, id_column)
    join_col = find_column(sheet, header, join_column)

    rows: List[Row] = [header]
    join_keys: Set[str] = set()

    for row in sheet.rows[1:]:
        if row is None:
            continue
        if is_digits_only(row.text_at(id_col)) != numeric_only:
            continue
        rows.append(row)
        join_keys.add(row.text_at(join_col))

    return rows, join_keys


def filter_details(
    sheet: Sheet,
    header: Optional[Row],
    allowed: Set[str],
    join_column: str = "CNTITEM",
) -> List[Row]:
    """Stable filter: header plus every row whose join key is in allowed."""
    join_col = find_column(sheet, header, join_column)

    rows: List[Row] = [header]
    for row in sheet.rows[1:]:
        if row is not None and row.text_at(join_col) in allowed:
            rows.append(row)
    return rows
