from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple

from .errors import AppError, SHEET_NOT_FOUND


CellKind = Literal["text", "number", "boolean", "formula", "blank", "error"]

# Kinds the rebuilder copies verbatim; anything else goes through Cell.text().
VALUE_KINDS = ("text", "number", "boolean", "formula")

ERROR_TEXT = {
    0x00: "#NULL!",
    0x07: "#DIV/0!",
    0x0F: "#VALUE!",
    0x17: "#REF!",
    0x1D: "#NAME?",
    0x24: "#NUM!",
    0x2A: "#N/A",
}


# ---- Formatting ----

@dataclass
class Font:
    name: str = "Arial"
    height: int = 200              # twips (1/20 pt)
    weight: int = 400              # 700 = bold
    bold: bool = False
    italic: bool = False
    underline: int = 0             # BIFF underline type (0 none, 1 single, 2 double, ...)
    colour_index: int = 0x7FFF
    struck_out: bool = False
    outline: bool = False
    shadow: bool = False
    escapement: int = 0
    family: int = 0
    charset: int = 1


@dataclass
class Alignment:
    horizontal: int = 0
    vertical: int = 2              # bottom
    rotation: int = 0
    wrap: bool = False
    indent: int = 0
    shrink: bool = False


@dataclass
class Borders:
    left: int = 0
    right: int = 0
    top: int = 0
    bottom: int = 0
    diagonal: int = 0
    left_colour: int = 0x40
    right_colour: int = 0x40
    top_colour: int = 0x40
    bottom_colour: int = 0x40
    diagonal_colour: int = 0x40
    diagonal_down: bool = False
    diagonal_up: bool = False


@dataclass
class Fill:
    pattern: int = 0
    fore_colour: int = 0x40
    back_colour: int = 0x41


@dataclass
class CellStyle:
    """
    Everything an XF record carries. font is a handle into the owning
    workbook's font table, never a Font object.
    """
    font: int = 0
    num_format: str = "General"
    alignment: Alignment = field(default_factory=Alignment)
    borders: Borders = field(default_factory=Borders)
    fill: Fill = field(default_factory=Fill)
    locked: bool = True
    formula_hidden: bool = False


# ---- Content ----

def number_text(value: float) -> str:
    """Integral numbers print without a decimal part (12345.0 -> '12345')."""
    if value == int(value) and abs(value) < 1e15:
        return str(int(value))
    return repr(float(value))


@dataclass
class Cell:
    kind: CellKind
    value: Any
    style: int = 0                 # handle into the owning workbook's style table

    def __post_init__(self) -> None:
        k, v = self.kind, self.value
        ok = (
            (k in ("text", "formula") and isinstance(v, str))
            or (k == "number" and isinstance(v, (int, float)) and not isinstance(v, bool))
            or (k == "boolean" and isinstance(v, bool))
            or (k == "blank" and v in (None, ""))
            or (k == "error" and isinstance(v, int))
        )
        if not ok:
            raise ValueError(f"Cell value {v!r} does not fit kind {k!r}")

    def text(self) -> str:
        """Textual form used for header lookup, matching and lossy copies."""
        if self.kind in ("text", "formula"):
            return self.value
        if self.kind == "number":
            return number_text(self.value)
        if self.kind == "boolean":
            return "TRUE" if self.value else "FALSE"
        if self.kind == "error":
            return ERROR_TEXT.get(self.value, f"#ERR{self.value}")
        return ""


@dataclass
class Row:
    cells: Dict[int, Cell] = field(default_factory=dict)
    height: Optional[int] = None   # twips; None = sheet default
    hidden: bool = False

    def cell(self, col: int) -> Optional[Cell]:
        return self.cells.get(col)

    def text_at(self, col: int) -> str:
        """Text of the cell at col, or "" when the cell is absent."""
        c = self.cells.get(col)
        return c.text() if c is not None else ""


@dataclass
class ColumnInfo:
    width: int
    hidden: bool = False


@dataclass
class Sheet:
    """
    rows is positional: rows[i] is row index i, None where the file has no row.
    rows[0] is the header.
    merged holds xlrd-style ranges (rlo, rhi, clo, chi), upper bounds exclusive.
    """
    name: str
    rows: List[Optional[Row]] = field(default_factory=list)
    columns: Dict[int, ColumnInfo] = field(default_factory=dict)
    default_col_width: Optional[int] = None   # characters; None = writer default
    merged: List[Tuple[int, int, int, int]] = field(default_factory=list)
    panes_frozen: bool = False
    horz_split_pos: int = 0
    vert_split_pos: int = 0
    show_grid: bool = True
    visibility: int = 0

    @property
    def header(self) -> Optional[Row]:
        return self.rows[0] if self.rows else None

    def data_rows(self) -> List[Row]:
        return [r for r in self.rows[1:] if r is not None]


@dataclass
class Workbook:
    """
    Sheets plus the style and font tables they reference by integer handle.
    Handles are only meaningful inside the workbook that issued them.
    """
    sheets: List[Sheet] = field(default_factory=list)
    styles: List[CellStyle] = field(default_factory=list)
    fonts: List[Font] = field(default_factory=list)
    datemode: int = 0

    def sheet(self, name: str) -> Sheet:
        for s in self.sheets:
            if s.name == name:
                return s
        raise AppError(
            SHEET_NOT_FOUND,
            f"Sheet not found: {name}",
            {"sheet": name, "available": [s.name for s in self.sheets]},
        )

    def style_at(self, handle: int) -> CellStyle:
        return self.styles[handle]

    def font_at(self, handle: int) -> Font:
        return self.fonts[handle]

    def add_style(self, style: CellStyle) -> int:
        self.styles.append(style)
        return len(self.styles) - 1

    def add_font(self, font: Font) -> int:
        self.fonts.append(font)
        return len(self.fonts) - 1


# ---- Run reporting ----

@dataclass
class SplitResult:
    label: str                     # "P1" / "P2"
    path: str
    invoice_rows: int
    detail_rows: int


@dataclass
class SplitReport:
    """
    Returned by engine.process. GUI renders this; tests can assert it.
    """
    source: str
    output_dir: str
    results: List[SplitResult] = field(default_factory=list)

    @property
    def paths(self) -> List[str]:
        return [r.path for r in self.results]
