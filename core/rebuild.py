"""
core/rebuild.py — Refills template sheets with source rows, carrying styles.

The template is a prototype: rebuild() parses the template bytes into a new
Workbook on every call, so two outputs never share mutable state.

Styles are cloned lazily through a StyleCloner. Its two caches map source
handles to destination handles:

    style cache   source style handle -> destination style handle
    font cache    source font handle  -> destination font handle

Every source style is cloned at most once per rebuild and every source font
at most once, so the destination tables grow by the number of distinct
styles/fonts the kept rows actually use, not by the size of the source tables.
Caches live for one rebuild() call only; handles are workbook-local.
"""
from __future__ import annotations

import copy
import logging
from typing import Dict, List, Mapping, Optional

from .io import read_workbook
from .models import VALUE_KINDS, Cell, Font, Row, Sheet, Workbook


logger = logging.getLogger(__name__)


class StyleCloner:
    """Copies styles and fonts from one workbook into another, once each."""

    def __init__(self, source: Workbook, dest: Workbook) -> None:
        self.source = source
        self.dest = dest
        self._styles: Dict[int, int] = {}
        self._fonts: Dict[int, int] = {}

    @property
    def styles_cloned(self) -> int:
        return len(self._styles)

    @property
    def fonts_cloned(self) -> int:
        return len(self._fonts)

    def font(self, src_handle: int) -> int:
        dst = self._fonts.get(src_handle)
        if dst is not None:
            return dst
        s = self.source.font_at(src_handle)
        clone = Font(
            name=s.name,
            height=s.height,
            weight=s.weight,
            bold=s.bold,
            italic=s.italic,
            underline=s.underline,
            colour_index=s.colour_index,
        )
        dst = self.dest.add_font(clone)
        self._fonts[src_handle] = dst
        return dst

    def style(self, src_handle: int) -> int:
        dst = self._styles.get(src_handle)
        if dst is not None:
            return dst
        src_style = self.source.style_at(src_handle)
        clone = copy.deepcopy(src_style)
        clone.font = self.font(src_style.font)
        dst = self.dest.add_style(clone)
        self._styles[src_handle] = dst
        return dst


def copy_cell(src: Cell, style: int) -> Cell:
    """
    Value kinds copy verbatim. Everything else (blank, error) becomes text
    via Cell.text(); blanks come out as "" which is written as a styled blank.
    """
    if src.kind in VALUE_KINDS:
        return Cell(src.kind, src.value, style)
    return Cell("text", src.text(), style)


def refresh_sheet(sheet: Sheet, new_rows: List[Optional[Row]], cloner: StyleCloner) -> int:
    """
    Replace every row below the header with new_rows[1:], compacted to
    indices 1..n. new_rows[0] (the source header) is ignored: the template
    header stays. Column layout and sheet flags are untouched; merged ranges
    reaching below the header are dropped along with the rows they covered.

    Returns the number of data rows written.
    """
    sheet.rows = sheet.rows[:1] or [None]
    sheet.merged = [m for m in sheet.merged if m[1] <= 1]

    for src_row in new_rows[1:]:
        dst_row = Row(height=src_row.height, hidden=src_row.hidden)
        for col in sorted(src_row.cells):
            src_cell = src_row.cells[col]
            dst_row.cells[col] = copy_cell(src_cell, cloner.style(src_cell.style))
        sheet.rows.append(dst_row)

    return len(new_rows) - 1


def rebuild(
    template_bytes: bytes,
    row_sets: Mapping[str, List[Optional[Row]]],
    source: Workbook,
) -> Workbook:
    """
    Parse a fresh copy of the template and refill each sheet named in
    row_sets. Row cell styles are handles into source.
    """
    dest = read_workbook(template_bytes)
    cloner = StyleCloner(source, dest)

    for sheet_name, rows in row_sets.items():
        n = refresh_sheet(dest.sheet(sheet_name), rows, cloner)
        logger.debug("Refilled %s with %d rows", sheet_name, n)

    logger.debug(
        "Cloned %d styles and %d fonts into destination",
        cloner.styles_cloned, cloner.fonts_cloned,
    )
    return dest
