from __future__ import annotations

import os
import tkinter as tk
from tkinter import filedialog
from typing import Optional

from gui.ui_build import build_ui

from core.config import SplitterConfig, configure_logging
from core.engine import process as engine_process
from core.errors import AppError, SOURCE_READ_FAILED, friendly_message


SUCCESS_MESSAGE = "Files generated successfully."


class SplitterApp(tk.Tk):
    """
    Payables splitter window.

    - Source file is optional: blank means the configured share path.
    - Destination folder is optional: blank means the configured export folder.
    - SPLIT runs the engine on the Tk thread and shows the outcome in the status line.
    """

    def __init__(self, config: Optional[SplitterConfig] = None) -> None:
        super().__init__()
        self.title("AP Payables Splitter")
        self.minsize(620, 260)

        self.settings: SplitterConfig = config or SplitterConfig.from_env()
        self.last_error: Optional[AppError] = None

        self._build_ui()

    # ---------------- UI ----------------

    def _build_ui(self) -> None:
        build_ui(self)

    def _set_status(self, text: str, error: bool = False) -> None:
        self.status_var.set(text)
        try:
            self.status_label.configure(foreground="#b00020" if error else "#1b5e20")
        except tk.TclError:
            pass

    def browse_source(self) -> None:
        path = filedialog.askopenfilename(
            title="Select source workbook",
            filetypes=[("Excel 97-2003 Workbook", "*.xls"), ("All files", "*.*")],
        )
        if not path:
            return
        self.source_file_var.set(path)

    def browse_destination(self) -> None:
        path = filedialog.askdirectory(title="Select destination folder")
        if not path:
            return
        self.dest_dir_var.set(path)

    # ---------------- Run ----------------

    def run_split(self) -> None:
        source_path = self.source_file_var.get().strip()
        dest_dir = self.dest_dir_var.get().strip() or None

        self.last_error = None
        self._set_status("Working...")
        self.update_idletasks()

        try:
            if source_path:
                with open(source_path, "rb") as f:
                    report = engine_process(f, dest_dir, self.settings)
            else:
                report = engine_process(None, dest_dir, self.settings)
        except AppError as e:
            self.last_error = e
            self._set_status(friendly_message(e), error=True)
            return
        except OSError as e:
            self.last_error = AppError(SOURCE_READ_FAILED, str(e), {"path": source_path})
            self._set_status(friendly_message(self.last_error), error=True)
            return

        names = ", ".join(os.path.basename(r.path) for r in report.results)
        self._set_status(f"{SUCCESS_MESSAGE} ({names})")


def main() -> None:
    config = SplitterConfig.from_env()
    configure_logging(config.log_level)
    app = SplitterApp(config)
    app.mainloop()


if __name__ == "__main__":
    main()
