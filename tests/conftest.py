"""
Shared .xls fixtures.

Workbooks are produced with xlwt so every test exercises the same BIFF
reader path (xlrd, formatting_info=True) the application uses.

The standard source:

  Invoices           IDINVC   CNTITEM  AMOUNT   VENDOR
    row 1            "10001"  "1"      150.00   Acme      (money, bold id)
    row 2            "AB123"  "2"       75.50   Beta
    row 3            10002    "3"       20.00   Gamma     (numeric id cell)
    row 4            ""       "4"        1.00   Delta     (blank id)
    row 5            "10003"  "5"        9.99   Epsilon
    row 6            "12-34"  "6"        4.00   Zeta

  Invoice_Details    CNTITEM  LINE  DESC
                     1,1,2,3,4,99,5,6   (99 matches no invoice)
"""
from __future__ import annotations

import io
import os
from typing import Any, Dict, List, Optional

import pytest
import xlwt

from core.config import SplitterConfig


BOLD = xlwt.easyxf("font: bold on, name Calibri; borders: left thin")
MONEY = xlwt.easyxf("font: italic on", num_format_str="#,##0.00")
HEADER = xlwt.easyxf("font: bold on; pattern: pattern solid, fore_colour gray25")

SOURCE_ROW_HEIGHT = 500
TEMPLATE_COL_WIDTH = 6000


def build_xls(sheets: Dict[str, Dict[str, Any]]) -> bytes:
    """
    sheets: {name: {"rows": [[value | (value, style) | None, ...] | None, ...],
                    "heights": {row: twips}, "widths": {col: width},
                    "hidden_rows": [row, ...], "default_col_width": chars,
                    "merges": [(r1, r2, c1, c2), ...]}}   # merges inclusive
    """
    wb = xlwt.Workbook(encoding="utf-8")
    for name, spec in sheets.items():
        ws = wb.add_sheet(name)
        for c, w in (spec.get("widths") or {}).items():
            ws.col(c).width = w
        for r, h in (spec.get("heights") or {}).items():
            ws.row(r).height = h
            ws.row(r).height_mismatch = True
        for r in spec.get("hidden_rows") or []:
            ws.row(r).hidden = True
        if spec.get("default_col_width") is not None:
            ws.col_default_width = spec["default_col_width"]
        for r, row in enumerate(spec.get("rows") or []):
            if row is None:
                continue
            for c, value in enumerate(row):
                if value is None:
                    continue
                if isinstance(value, tuple):
                    ws.write(r, c, value[0], value[1])
                else:
                    ws.write(r, c, value)
        for r1, r2, c1, c2 in spec.get("merges") or []:
            ws.merge(r1, r2, c1, c2)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def source_sheets(invoice_header: Optional[List[str]] = None) -> Dict[str, Dict[str, Any]]:
    hdr = invoice_header or ["IDINVC", "CNTITEM", "AMOUNT", "VENDOR"]
    return {
        "Invoices": {
            "rows": [
                [(h, HEADER) for h in hdr],
                [("10001", BOLD), "1", (150.0, MONEY), "Acme"],
                ["AB123", "2", (75.5, MONEY), "Beta"],
                [10002, "3", (20.0, MONEY), "Gamma"],
                ["", "4", (1.0, MONEY), "Delta"],
                [("10003", BOLD), "5", (9.99, MONEY), "Epsilon"],
                ["12-34", "6", (4.0, MONEY), "Zeta"],
            ],
            "heights": {1: SOURCE_ROW_HEIGHT},
        },
        "Invoice_Details": {
            "rows": [
                ["CNTITEM", "LINE", "DESC"],
                ["1", 1, "Bolts"],
                ["1", 2, "Nuts"],
                ["2", 1, "Paint"],
                ["3", 1, "Glue"],
                ["4", 1, "Tape"],
                ["99", 1, "Orphan"],
                ["5", 1, "Wire"],
                ["6", 1, "Rope"],
            ],
        },
    }


def template_sheets() -> Dict[str, Dict[str, Any]]:
    return {
        "Invoices": {
            "rows": [
                [(h, HEADER) for h in ["IDINVC", "CNTITEM", "AMOUNT", "VENDOR"]],
                ["OLD", "OLD", 0.0, "stale row"],
            ],
            "widths": {0: TEMPLATE_COL_WIDTH},
        },
        "Invoice_Details": {
            "rows": [
                [(h, HEADER) for h in ["CNTITEM", "LINE", "DESC"]],
            ],
        },
        "Notes": {
            "rows": [["Keep me"]],
        },
    }


@pytest.fixture
def source_bytes() -> bytes:
    return build_xls(source_sheets())


@pytest.fixture
def template_bytes() -> bytes:
    return build_xls(template_sheets())


@pytest.fixture
def split_env(tmp_path, source_bytes, template_bytes):
    """Source + template on disk and a config pointing at them."""
    src = tmp_path / "share" / "RL_NEW_PAYABLES_TLC_TM.XLS"
    tpl = tmp_path / "templates" / "RL_NEW_PAYABLES_TLC_TM.XLS"
    out = tmp_path / "export"
    os.makedirs(src.parent)
    os.makedirs(tpl.parent)
    src.write_bytes(source_bytes)
    tpl.write_bytes(template_bytes)

    cfg = SplitterConfig(
        source_path=str(src),
        output_dir=str(out),
        template_path=str(tpl),
        retry_delay=0.0,
    )
    return cfg


@pytest.fixture
def make_xls():
    return build_xls


@pytest.fixture
def make_source_sheets():
    return source_sheets


@pytest.fixture
def make_template_sheets():
    return template_sheets
