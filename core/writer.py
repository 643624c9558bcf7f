"""
core/writer.py — Serializes a Workbook to .xls and saves it durably.

Serialization maps every font handle to one xlwt.Font and every style
handle to one xlwt.XFStyle, so cells that share a handle share a style
object in the written file.

Saving: the workbook is serialized once. Each attempt writes the bytes to a
private temporary file created exclusively ("xb") beside the target, then
moves it over the target with os.replace. Readers never see a partially
written output, and a target held open by Excel makes the replace fail
rather than truncating it. An OSError anywhere in an attempt is retried
after a fixed delay until the attempt budget runs out.
"""
from __future__ import annotations

import io
import logging
import os
import time
from typing import Callable, Dict, Optional

import xlwt

from .errors import AppError, FILE_LOCKED, SAVE_FAILED
from .models import Cell, CellStyle, Font, Sheet, Workbook


logger = logging.getLogger(__name__)


# ── model → xlwt ──────────────────────────────────────────────────────────────

def _xlwt_font(f: Font) -> xlwt.Font:
    font = xlwt.Font()
    font.name = f.name
    font.height = f.height
    font.bold = f.bold or f.weight >= 700
    font._weight = f.weight
    font.italic = f.italic
    font.underline = f.underline
    font.colour_index = f.colour_index
    font.struck_out = f.struck_out
    font.outline = f.outline
    font.shadow = f.shadow
    font.escapement = f.escapement
    font.family = f.family
    font.charset = f.charset
    return font


def _xlwt_style(s: CellStyle, font: xlwt.Font) -> xlwt.XFStyle:
    xf = xlwt.XFStyle()
    xf.font = font
    xf.num_format_str = s.num_format

    al = xlwt.Alignment()
    al.horz = s.alignment.horizontal
    al.vert = s.alignment.vertical
    al.rota = s.alignment.rotation
    al.wrap = int(s.alignment.wrap)
    al.inde = s.alignment.indent
    al.shri = int(s.alignment.shrink)
    xf.alignment = al

    b = s.borders
    bd = xlwt.Borders()
    bd.left, bd.right, bd.top, bd.bottom = b.left, b.right, b.top, b.bottom
    bd.diag = b.diagonal
    bd.left_colour = b.left_colour
    bd.right_colour = b.right_colour
    bd.top_colour = b.top_colour
    bd.bottom_colour = b.bottom_colour
    bd.diag_colour = b.diagonal_colour
    bd.need_diag1 = int(b.diagonal_down)
    bd.need_diag2 = int(b.diagonal_up)
    xf.borders = bd

    pat = xlwt.Pattern()
    pat.pattern = s.fill.pattern
    pat.pattern_fore_colour = s.fill.fore_colour
    pat.pattern_back_colour = s.fill.back_colour
    xf.pattern = pat

    prot = xlwt.Protection()
    prot.cell_locked = int(s.locked)
    prot.formula_hidden = int(s.formula_hidden)
    xf.protection = prot
    return xf


class _StyleTable:
    """Builds each xlwt font/style once per handle."""

    def __init__(self, wb: Workbook) -> None:
        self.wb = wb
        self._fonts: Dict[int, xlwt.Font] = {}
        self._styles: Dict[int, xlwt.XFStyle] = {}

    def font(self, handle: int) -> xlwt.Font:
        if handle not in self._fonts:
            self._fonts[handle] = _xlwt_font(self.wb.font_at(handle))
        return self._fonts[handle]

    def style(self, handle: int) -> xlwt.XFStyle:
        if handle not in self._styles:
            s = self.wb.style_at(handle)
            self._styles[handle] = _xlwt_style(s, self.font(s.font))
        return self._styles[handle]


def _cell_value(cell: Cell):
    if cell.kind == "text":
        return cell.value
    if cell.kind == "number":
        return float(cell.value)
    if cell.kind == "boolean":
        return bool(cell.value)
    if cell.kind == "formula":
        return xlwt.Formula(cell.value.lstrip("="))
    # blank -> "" (xlwt writes a styled BLANK record); error -> its literal
    return cell.text()


def _write_sheet(ws, sheet: Sheet, styles: _StyleTable) -> None:
    if sheet.default_col_width is not None:
        ws.col_default_width = sheet.default_col_width
    for c, info in sorted(sheet.columns.items()):
        col = ws.col(c)
        col.width = info.width
        col.hidden = int(info.hidden)

    for rlo, rhi, clo, chi in sheet.merged:
        ws.merge(rlo, rhi - 1, clo, chi - 1)
        # merge() covers the range with one MULBLANK; single blanks let the
        # cells written below replace it cell by cell
        for r in range(rlo, rhi):
            for c in range(clo, chi):
                if (r, c) != (rlo, clo):
                    ws.write(r, c, "")

    for r, row in enumerate(sheet.rows):
        if row is None:
            continue
        if row.height is not None:
            xrow = ws.row(r)
            xrow.height = row.height
            xrow.height_mismatch = True
        if row.hidden:
            ws.row(r).hidden = 1
        for c in sorted(row.cells):
            cell = row.cells[c]
            ws.write(r, c, _cell_value(cell), styles.style(cell.style))

    if sheet.panes_frozen:
        ws.panes_frozen = True
        ws.horz_split_pos = sheet.horz_split_pos
        ws.vert_split_pos = sheet.vert_split_pos
    ws.show_grid = sheet.show_grid
    ws.visibility = sheet.visibility


def build_xlwt_workbook(wb: Workbook) -> xlwt.Workbook:
    book = xlwt.Workbook(encoding="utf-8")
    book.dates_1904 = bool(wb.datemode)
    styles = _StyleTable(wb)
    for sheet in wb.sheets:
        ws = book.add_sheet(sheet.name, cell_overwrite_ok=True)
        _write_sheet(ws, sheet, styles)
    return book


def workbook_to_bytes(wb: Workbook) -> bytes:
    buf = io.BytesIO()
    build_xlwt_workbook(wb).save(buf)
    return buf.getvalue()


# ── Durable save ──────────────────────────────────────────────────────────────

def _temp_path(path: str) -> str:
    folder, name = os.path.split(os.path.abspath(path))
    return os.path.join(folder, f".~{os.getpid()}.{name}")


def _write_exclusive(path: str, data: bytes) -> None:
    tmp = _temp_path(path)
    if os.path.exists(tmp):
        os.remove(tmp)
    try:
        with open(tmp, "xb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            os.remove(tmp)


def save_workbook_with_retry(
    wb: Workbook,
    path: str,
    max_attempts: int = 5,
    retry_delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    Replace path with the serialized workbook. Makes at most max_attempts
    attempts with retry_delay seconds between them (max_attempts - 1 sleeps
    when every attempt fails).

    Returns the attempt number that succeeded.
    """
    data = workbook_to_bytes(wb)
    last_error: Optional[OSError] = None

    for attempt in range(1, max_attempts + 1):
        try:
            _write_exclusive(path, data)
            if attempt > 1:
                logger.info("Saved %s on attempt %d", path, attempt)
            return attempt
        except OSError as e:
            last_error = e
            logger.warning("Save attempt %d/%d for %s failed: %s", attempt, max_attempts, path, e)
            if attempt < max_attempts:
                sleep(retry_delay)

    code = FILE_LOCKED if isinstance(last_error, PermissionError) else SAVE_FAILED
    raise AppError(
        code,
        f"Unable to save '{path}' after {max_attempts} attempts: {last_error}",
        {"path": path, "attempts": max_attempts},
    ) from last_error
