"""
core/io.py — Reading legacy .xls workbooks into the in-memory model.

xlrd is opened with formatting_info=True so every XF record, font, number
format, row height and column width survives the trip into core.models.
Style and font handles in the model are the xlrd table indices, so two
cells that share an XF in the file share a handle in the model.

Formulas do not survive a read: xlrd exposes only the cached result of a
formula cell, so it arrives here as a number, text, boolean or error cell
and is written back as that value. This holds for source rows and for
template sheets that are otherwise left untouched.
"""
from __future__ import annotations

import logging
import os
from typing import BinaryIO, List, Optional, Union

import xlrd

from .errors import AppError, SOURCE_NOT_FOUND, SOURCE_READ_FAILED, TEMPLATE_NOT_FOUND
from .models import (
    Alignment, Borders, Cell, CellStyle, ColumnInfo, Fill, Font, Row, Sheet, Workbook,
)


logger = logging.getLogger(__name__)

Upload = Union[bytes, bytearray, BinaryIO]


# ── xlrd → model ──────────────────────────────────────────────────────────────

def _convert_font(f) -> Font:
    return Font(
        name=f.name,
        height=f.height,
        weight=f.weight,
        bold=bool(f.bold),
        italic=bool(f.italic),
        underline=f.underline_type,
        colour_index=f.colour_index,
        struck_out=bool(f.struck_out),
        outline=bool(f.outline),
        shadow=bool(f.shadow),
        escapement=f.escapement,
        family=f.family,
        charset=f.character_set,
    )


def _convert_xf(book, xf) -> CellStyle:
    fmt = book.format_map.get(xf.format_key)
    al, bd, bg, pr = xf.alignment, xf.border, xf.background, xf.protection
    return CellStyle(
        font=xf.font_index,
        num_format=fmt.format_str if fmt is not None else "General",
        alignment=Alignment(
            horizontal=al.hor_align,
            vertical=al.vert_align,
            rotation=al.rotation,
            wrap=bool(al.text_wrapped),
            indent=al.indent_level,
            shrink=bool(al.shrink_to_fit),
        ),
        borders=Borders(
            left=bd.left_line_style,
            right=bd.right_line_style,
            top=bd.top_line_style,
            bottom=bd.bottom_line_style,
            diagonal=bd.diag_line_style,
            left_colour=bd.left_colour_index,
            right_colour=bd.right_colour_index,
            top_colour=bd.top_colour_index,
            bottom_colour=bd.bottom_colour_index,
            diagonal_colour=bd.diag_colour_index,
            diagonal_down=bool(bd.diag_down),
            diagonal_up=bool(bd.diag_up),
        ),
        fill=Fill(
            pattern=bg.fill_pattern,
            fore_colour=bg.pattern_colour_index,
            back_colour=bg.background_colour_index,
        ),
        locked=bool(pr.cell_locked),
        formula_hidden=bool(pr.formula_hidden),
    )


def _convert_cell(ctype: int, value, xf_index: int) -> Cell:
    if ctype == xlrd.XL_CELL_TEXT:
        return Cell("text", value, xf_index)
    if ctype in (xlrd.XL_CELL_NUMBER, xlrd.XL_CELL_DATE):
        # Dates are serial numbers; the date format lives on the style.
        return Cell("number", float(value), xf_index)
    if ctype == xlrd.XL_CELL_BOOLEAN:
        return Cell("boolean", bool(value), xf_index)
    if ctype == xlrd.XL_CELL_ERROR:
        return Cell("error", int(value), xf_index)
    return Cell("blank", "", xf_index)


def _convert_sheet(sh) -> Sheet:
    rowinfo = sh.rowinfo_map
    last = max([sh.nrows - 1] + list(rowinfo.keys()))

    rows: List[Optional[Row]] = []
    for r in range(last + 1):
        cells = {}
        if r < sh.nrows:
            for c in range(sh.row_len(r)):
                ctype = sh.cell_type(r, c)
                if ctype == xlrd.XL_CELL_EMPTY:
                    continue
                cells[c] = _convert_cell(ctype, sh.cell_value(r, c), sh.cell_xf_index(r, c))
        info = rowinfo.get(r)
        if not cells and info is None:
            rows.append(None)
            continue
        if info is None:
            rows.append(Row(cells=cells))
        else:
            rows.append(Row(cells=cells, height=info.height, hidden=bool(info.hidden)))

    columns = {
        c: ColumnInfo(width=ci.width, hidden=bool(ci.hidden))
        for c, ci in sorted(sh.colinfo_map.items())
    }

    default_width = getattr(sh, "defcolwidth", None)
    if default_width is None and getattr(sh, "standardwidth", None):
        default_width = sh.standardwidth // 256

    return Sheet(
        name=sh.name,
        rows=rows,
        columns=columns,
        default_col_width=default_width,
        merged=[tuple(m) for m in sh.merged_cells],
        panes_frozen=bool(getattr(sh, "panes_are_frozen", 0)),
        horz_split_pos=getattr(sh, "horz_split_pos", 0) or 0,
        vert_split_pos=getattr(sh, "vert_split_pos", 0) or 0,
        show_grid=bool(getattr(sh, "show_grid_lines", 1)),
        visibility=getattr(sh, "visibility", 0),
    )


def read_workbook(data: bytes) -> Workbook:
    """
    Parse .xls bytes into a fresh Workbook. Every call returns an
    independent object graph; nothing is shared between calls.
    """
    book = xlrd.open_workbook(file_contents=data, formatting_info=True)
    try:
        return Workbook(
            sheets=[_convert_sheet(sh) for sh in book.sheets()],
            styles=[_convert_xf(book, xf) for xf in book.xf_list],
            fonts=[_convert_font(f) for f in book.font_list],
            datemode=book.datemode,
        )
    finally:
        book.release_resources()


# ── Public loaders ────────────────────────────────────────────────────────────

def _read_upload(uploaded: Upload) -> bytes:
    if isinstance(uploaded, (bytes, bytearray)):
        return bytes(uploaded)
    return uploaded.read()


def load_source(uploaded: Optional[Upload], fallback_path: str) -> Workbook:
    """
    Uploaded bytes/stream first; otherwise the fallback path if it exists.
    Raises AppError(SOURCE_NOT_FOUND) when neither is available.
    """
    if uploaded is not None:
        origin = "<upload>"
        try:
            data = _read_upload(uploaded)
        except OSError as e:
            raise AppError(SOURCE_READ_FAILED, f"Failed to read upload: {e}")
    elif fallback_path and os.path.isfile(fallback_path):
        origin = fallback_path
        try:
            with open(fallback_path, "rb") as f:
                data = f.read()
        except PermissionError:
            raise AppError(
                SOURCE_READ_FAILED,
                f"Source file is locked: {fallback_path}",
                {"path": fallback_path},
            )
    else:
        raise AppError(
            SOURCE_NOT_FOUND,
            f"Source not found: {fallback_path}",
            {"path": fallback_path},
        )

    try:
        wb = read_workbook(data)
    except Exception as e:
        raise AppError(SOURCE_READ_FAILED, f"Failed to read source: {e}", {"path": origin})

    logger.info("Loaded source %s (%d sheets)", origin, len(wb.sheets))
    return wb


def read_template(path: str) -> bytes:
    """Raw template bytes; read fresh for every output file."""
    try:
        with open(path, "rb") as f:
            return f.read()
    except FileNotFoundError:
        raise AppError(
            TEMPLATE_NOT_FOUND,
            f"Template not found: {path}",
            {"path": path},
        )
