from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class AppError(Exception):
    """
    User-facing error with a short code and structured details.
    Raise AppError from core modules; GUI should display friendly_message(e).
    """
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        if self.details:
            return f"{self.code}: {self.message} ({self.details})"
        return f"{self.code}: {self.message}"


# ── Error codes (keep stable for tests and GUI) ───────────────────────────────

SOURCE_NOT_FOUND   = "SOURCE_NOT_FOUND"
SOURCE_READ_FAILED = "SOURCE_READ_FAILED"
TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
SHEET_NOT_FOUND    = "SHEET_NOT_FOUND"
COLUMN_NOT_FOUND   = "COLUMN_NOT_FOUND"
FILE_LOCKED        = "FILE_LOCKED"
SAVE_FAILED        = "SAVE_FAILED"


def _basename(e: AppError) -> str:
    if e.details and e.details.get("path"):
        return f" ({os.path.basename(str(e.details['path']))})"
    return ""


# ── Friendly message lookup ───────────────────────────────────────────────────

def friendly_message(e: AppError) -> str:
    """
    Return a plain-English one-liner suitable for display in a GUI dialog.
    Never exposes raw tracebacks or internal code paths.
    """
    code = e.code
    msg  = e.message or ""
    details = e.details or {}

    if code == SOURCE_NOT_FOUND:
        path = details.get("path", "")
        where = f" at {path}" if path else ""
        return f"No source file was chosen and none was found{where}. Select a source workbook."

    if code == SOURCE_READ_FAILED:
        if "permission" in msg.lower() or "locked" in msg.lower():
            return "Source file is open in another program. Close it and try again."
        return f"Could not read the source file. Check that it is a valid XLS workbook.\n({msg})"

    if code == TEMPLATE_NOT_FOUND:
        return f"Template workbook not found{_basename(e)}. Check the template path setting."

    if code == SHEET_NOT_FOUND:
        sheet = details.get("sheet", "")
        if sheet:
            return f"Sheet '{sheet}' is missing from the workbook."
        return f"Sheet not found in workbook.\n({msg})"

    if code == COLUMN_NOT_FOUND:
        column = details.get("column", "")
        sheet = details.get("sheet", "")
        if column and sheet:
            return f"Column '{column}' is missing from the header row of sheet '{sheet}'."
        return f"A required column is missing from the header row.\n({msg})"

    if code == FILE_LOCKED:
        return f"Output file is open in another program{_basename(e)}. Close it and try again."

    if code == SAVE_FAILED:
        return f"Could not save the output file{_basename(e)}. Check that the folder exists and is writable."

    # Unknown code: first line of the message only
    clean = msg.splitlines()[0] if msg else "An unexpected error occurred."
    return clean
